"""
Project-wide configuration.

Defaults live at module level; a project describes itself in a JSON file
(``i18n.json`` by default) that is loaded into a SyncConfig. Paths in the
file are resolved relative to the file's own directory.

Example i18n.json:

    {
      "messages_dir": "messages",
      "source_lang": "tr",
      "target_langs": ["en", "de", "fr", "it", "es"],
      "sources": [
        {"directory": "src/app/[locale]/admin/settings", "namespace": "AdminSettings"},
        {"directory": "src/components", "namespace": "Components"}
      ],
      "injection_points": [
        {"file": "src/app/[locale]/admin/settings/page.tsx",
         "anchor": "export default function",
         "statement": "const t = useTranslations('AdminSettings');"}
      ]
    }

Environment overrides:
    LOKMA_I18N_MESSAGES_DIR: messages directory
    LOKMA_I18N_BACKEND: translation backend name
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from lokma_i18n.errors import ConfigError

APP_NAME = "lokma-i18n"

# Default project config file, looked up in the working directory
DEFAULT_CONFIG_FILE = Path("i18n.json")

DEFAULT_SOURCE_LANG = "tr"
DEFAULT_TARGET_LANGS = ["en", "de", "fr", "it", "es"]

# Source files the scanner parses
DEFAULT_EXTENSIONS = [".tsx", ".ts", ".jsx", ".js"]

# Calls whose string arguments are already translation lookups
DEFAULT_TRANSLATION_FUNCTIONS = ["t", "useTranslations", "getTranslations"]

# Batch translation limits for the free endpoint
DEFAULT_CHUNK_SIZE = 40
DEFAULT_REQUEST_DELAY = 0.3
DEFAULT_REQUEST_TIMEOUT = 10.0

DEFAULT_BACKEND = "google-free"
DEFAULT_COLLECTION = "translations"
DEFAULT_SECRETS_FILE = Path(".secrets") / "service-account.json"
DEFAULT_IMPORT_LINE = "import { useTranslations } from 'next-intl';"


@dataclass
class SourceBinding:
    """A source directory whose strings belong to one catalog namespace."""
    directory: Path
    namespace: str


@dataclass
class InjectionPoint:
    """Where the translation hook goes in one file.

    The statement is inserted after the first line containing ``anchor``.
    """
    file: Path
    anchor: str
    statement: str


@dataclass
class SyncConfig:
    """Configuration for every pipeline stage."""
    messages_dir: Path = Path("messages")
    source_lang: str = DEFAULT_SOURCE_LANG
    target_langs: list[str] = field(default_factory=lambda: list(DEFAULT_TARGET_LANGS))
    sources: list[SourceBinding] = field(default_factory=list)

    # Scanner
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    translation_functions: list[str] = field(
        default_factory=lambda: list(DEFAULT_TRANSLATION_FUNCTIONS)
    )
    strict_identifiers: bool = True
    extra_words: list[str] = field(default_factory=list)

    # Key derivation
    key_style: str = "camel"
    max_key_words: int = 6

    # Batch translation
    translator_backend: str = DEFAULT_BACKEND
    chunk_size: int = DEFAULT_CHUNK_SIZE
    request_delay: float = DEFAULT_REQUEST_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Sync
    conflict_policy: str = "local-wins"
    remote_collection: str = DEFAULT_COLLECTION
    secrets_file: Path = DEFAULT_SECRETS_FILE

    # Rewrite
    injection_points: list[InjectionPoint] = field(default_factory=list)
    import_line: str = DEFAULT_IMPORT_LINE

    config_path: Optional[Path] = None

    @property
    def all_langs(self) -> list[str]:
        """Source language first, then targets without duplicates."""
        langs = [self.source_lang]
        langs.extend(lang for lang in self.target_langs if lang != self.source_lang)
        return langs

    def injection_point_for(self, path: Path) -> Optional[InjectionPoint]:
        resolved = Path(path).resolve()
        for point in self.injection_points:
            if point.file.resolve() == resolved:
                return point
        return None

    @classmethod
    def from_dict(cls, data: dict, base_dir: Path | None = None) -> "SyncConfig":
        """Build a config from parsed JSON, resolving paths against base_dir."""
        base_dir = Path(base_dir or Path.cwd())

        def resolve(value) -> Path:
            p = Path(value)
            return p if p.is_absolute() else base_dir / p

        known = {f for f in cls.__dataclass_fields__ if f != "config_path"}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        kwargs = dict(data)
        kwargs.setdefault("messages_dir", "messages")
        kwargs.setdefault("secrets_file", str(DEFAULT_SECRETS_FILE))
        try:
            kwargs["messages_dir"] = resolve(kwargs["messages_dir"])
            kwargs["secrets_file"] = resolve(kwargs["secrets_file"])
            kwargs["sources"] = [
                SourceBinding(directory=resolve(s["directory"]), namespace=s["namespace"])
                for s in kwargs.get("sources", [])
            ]
            kwargs["injection_points"] = [
                InjectionPoint(
                    file=resolve(p["file"]),
                    anchor=p["anchor"],
                    statement=p["statement"],
                )
                for p in kwargs.get("injection_points", [])
            ]
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Malformed source/injection entry in config: {e}") from e

        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def load(cls, path: Path | str = DEFAULT_CONFIG_FILE) -> "SyncConfig":
        """Load config from a JSON file and apply environment overrides.

        Raises:
            ConfigError: file missing, not JSON, or semantically invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        config = cls.from_dict(data, base_dir=path.resolve().parent)
        config.config_path = path
        config.apply_env()
        return config

    def apply_env(self) -> None:
        if messages_dir := os.getenv("LOKMA_I18N_MESSAGES_DIR"):
            self.messages_dir = Path(messages_dir)
        if backend := os.getenv("LOKMA_I18N_BACKEND"):
            self.translator_backend = backend

    def validate(self) -> None:
        if not self.source_lang:
            raise ConfigError("source_lang must not be empty")
        if self.key_style not in ("camel", "snake"):
            raise ConfigError(f"key_style must be 'camel' or 'snake', got {self.key_style!r}")
        if self.chunk_size < 1:
            raise ConfigError("chunk_size must be at least 1")
        if self.max_key_words < 1:
            raise ConfigError("max_key_words must be at least 1")
        if self.conflict_policy not in ("local-wins", "remote-wins"):
            raise ConfigError(
                f"conflict_policy must be 'local-wins' or 'remote-wins', got {self.conflict_policy!r}"
            )

    def require_messages_dir(self) -> Path:
        if not self.messages_dir.is_dir():
            raise ConfigError(f"Messages directory not found: {self.messages_dir}")
        return self.messages_dir

    def require_sources(self) -> list[SourceBinding]:
        if not self.sources:
            raise ConfigError("No source directories configured ('sources' is empty)")
        missing = [str(b.directory) for b in self.sources if not b.directory.is_dir()]
        if missing:
            raise ConfigError(f"Source directories not found: {', '.join(missing)}")
        return self.sources
