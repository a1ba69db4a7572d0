"""
Base translator interface and implementations.

This module defines:
- Abstract Translator interface that all endpoint backends implement
- DummyTranslator for tests and offline runs (echo or simple transformations)
- create_translator() factory used by the CLI and the pipeline

Design Philosophy:
- Translators are stateless: they receive the language pair in each call
- A translator translates one request body; chunking, delimiters and
  failure isolation live in BatchTranslator
- Endpoint failures raise TranslationEndpointError and are never swallowed
  here
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class TranslationResult:
    """Result of a translation request.

    Attributes:
        text: The translated text
        source_text: Original source text
        metadata: Additional info (backend, language pair, ...)
    """
    text: str
    source_text: str
    metadata: dict = field(default_factory=dict)


class Translator(ABC):
    """Abstract base class for all translation backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the translator name (e.g., 'google-free', 'dummy-prefix')."""
        pass

    @abstractmethod
    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> TranslationResult:
        """Translate one request body.

        Args:
            text: Source text; may contain newline-separated segments
            source_lang: Source language code
            target_lang: Target language code

        Returns:
            TranslationResult with translation and metadata

        Raises:
            TranslationEndpointError: network failure, non-200 response or
                unusable payload
        """
        pass


class DummyTranslator(Translator):
    """A dummy translator for testing.

    Modes:
    - 'echo': Return the input unchanged
    - 'upper': Return uppercase version
    - 'prefix': Add a [TARGET] tag to every line
    """

    def __init__(self, mode: str = "prefix"):
        self.mode = mode

    @property
    def name(self) -> str:
        return f"dummy-{self.mode}"

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> TranslationResult:
        if self.mode == "echo":
            translated = text
        elif self.mode == "upper":
            translated = text.upper()
        else:  # prefix
            tag = f"[{target_lang.upper()}]"
            translated = "\n".join(f"{tag} {line}" for line in text.split("\n"))

        return TranslationResult(
            text=translated,
            source_text=text,
            metadata={"translator": self.name, "mode": self.mode},
        )


def create_translator(backend: str, **kwargs) -> Translator:
    """Factory function to create a translator by name.

    Args:
        backend: Translator backend name
        **kwargs: Backend-specific arguments (timeout, mode, email)

    Supported backends and aliases:
        - google-free, googlefree, gtx, google: Google Translate web endpoint (no key)
        - mymemory: MyMemory translation API (no key, rate limited)
        - dummy, echo, test: Offline test translator
    """
    backend_lower = backend.lower().replace("_", "-")

    if backend_lower in ("google-free", "googlefree", "gtx", "google"):
        from lokma_i18n.translate.google_free import GoogleFreeTranslator
        return GoogleFreeTranslator(timeout=kwargs.get("timeout", 10.0))

    elif backend_lower in ("mymemory",):
        from lokma_i18n.translate.mymemory import MyMemoryTranslator
        return MyMemoryTranslator(
            timeout=kwargs.get("timeout", 10.0),
            email=kwargs.get("email"),
        )

    elif backend_lower in ("dummy", "echo", "test"):
        mode = kwargs.get("mode", "echo" if backend_lower == "echo" else "prefix")
        return DummyTranslator(mode=mode)

    else:
        available = ["google-free", "mymemory", "dummy"]
        raise ValueError(
            f"Unknown translator backend: {backend}. "
            f"Available backends: {', '.join(available)}"
        )
