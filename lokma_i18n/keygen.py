"""
Translation key derivation.

Turns a natural-language UI string into a short ASCII identifier:

    >>> derive_key("İşletme Aktif (Lokma'da Görünsün)", {})
    'isletmeAktifLokmadaGorunsun'

Turkish letters are transliterated with a fixed table instead of Unicode
case folding ("İ".lower() yields "i" plus a combining dot, which would
leak into keys). Collisions between different source strings get a numeric
suffix; re-deriving the same string against the same namespace returns the
same key.
"""

from __future__ import annotations

import random
import re
from typing import Dict, Iterable, Mapping, Optional, Union

# Fixed transliteration table for the source language
TR_MAP = {
    "ı": "i", "İ": "i",
    "ğ": "g", "Ğ": "g",
    "ü": "u", "Ü": "u",
    "ş": "s", "Ş": "s",
    "ö": "o", "Ö": "o",
    "ç": "c", "Ç": "c",
}

# Turkish diacritic characters (also used by the scanner heuristic)
TR_CHARS = "".join(TR_MAP)

KEY_STYLES = ("camel", "snake")
DEFAULT_MAX_WORDS = 6

_COMBINING_DOT = "\u0307"
_QUOTES = "\"'`“”‘’"
_NON_KEY_CHARS = re.compile(r"[^A-Za-z0-9 ]")
_WHITESPACE = re.compile(r"\s+")

ExistingKeys = Union[Mapping[str, str], Iterable[str]]


def transliterate(text: str) -> str:
    """Replace Turkish letters with their closest ASCII letter."""
    text = text.replace("i" + _COMBINING_DOT, "i").replace(_COMBINING_DOT, "")
    return "".join(TR_MAP.get(ch, ch) for ch in text)


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and strip surrounding whitespace/quotes.

    This is also the canonical form stored as a catalog value, so the
    scanner and the rewriter agree on what a literal "is".
    """
    text = _WHITESPACE.sub(" ", text)
    return text.strip().strip(_QUOTES).strip()


def base_key(text: str, style: str = "camel", max_words: int = DEFAULT_MAX_WORDS) -> str:
    """Derive the un-suffixed key for ``text``; empty when nothing survives."""
    if style not in KEY_STYLES:
        raise ValueError(f"Unknown key style: {style}. Use one of {KEY_STYLES}")

    cleaned = _NON_KEY_CHARS.sub("", transliterate(normalize_text(text)))
    words = cleaned.split()[:max_words]
    if not words:
        return ""

    if style == "snake":
        return "_".join(w.lower() for w in words)
    head, *tail = words
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in tail)


def _owner(existing: ExistingKeys, key: str) -> Optional[str]:
    """Source text already bound to ``key``; ``""`` for plain sets."""
    if isinstance(existing, Mapping):
        return existing.get(key)
    return "" if key in existing else None


def derive_key(
    text: str,
    existing_keys: ExistingKeys,
    style: str = "camel",
    max_words: int = DEFAULT_MAX_WORDS,
    rng: Optional[random.Random] = None,
) -> str:
    """Derive a unique key for ``text``.

    Args:
        text: Natural-language source string (may contain punctuation/emoji)
        existing_keys: Keys already in use in the namespace. A mapping of
            key -> source text lets the same text reuse its key; with a plain
            set every hit counts as a collision.
        style: "camel" (default) or "snake"
        max_words: Maximum number of words kept in the key
        rng: Random source for the fallback token (injectable for tests)

    Returns:
        A key not bound to any other source text. Never raises for bad input.
    """
    source = normalize_text(text)
    base = base_key(source, style=style, max_words=max_words)

    if not base:
        rng = rng or random.Random()
        prefix = "key" if style == "camel" else "text_"
        while True:
            candidate = f"{prefix}{rng.randint(0, 9999)}"
            if _owner(existing_keys, candidate) is None:
                return candidate

    candidate = base
    counter = 1
    while True:
        owner = _owner(existing_keys, candidate)
        if owner is None or owner == source:
            return candidate
        candidate = f"{base}{counter}"
        counter += 1


class KeyRegistry:
    """Keys of one namespace, indexed both ways.

    Seeded from an existing catalog namespace so a re-scan finds the key
    that was assigned last time instead of deriving a new one.
    """

    def __init__(
        self,
        existing: Optional[Mapping[str, str]] = None,
        style: str = "camel",
        max_words: int = DEFAULT_MAX_WORDS,
        rng: Optional[random.Random] = None,
    ):
        self.style = style
        self.max_words = max_words
        self.rng = rng or random.Random()
        self._by_key: Dict[str, str] = {}
        self._by_text: Dict[str, str] = {}
        for key, value in (existing or {}).items():
            if isinstance(value, str):
                self._by_key[key] = normalize_text(value)
                self._by_text.setdefault(normalize_text(value), key)
            else:
                # Nested namespace: the name is taken, nothing maps to it
                self._by_key[key] = "\0namespace"

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: str) -> bool:
        return key in self._by_key

    def key_for(self, text: str) -> Optional[str]:
        return self._by_text.get(normalize_text(text))

    def add(self, text: str) -> str:
        """Return the key for ``text``, registering a new one if needed."""
        source = normalize_text(text)
        if source in self._by_text:
            return self._by_text[source]
        key = derive_key(
            source, self._by_key, style=self.style, max_words=self.max_words, rng=self.rng
        )
        self._by_key[key] = source
        self._by_text[source] = key
        return key

    def items(self):
        return self._by_key.items()
