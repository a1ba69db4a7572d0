"""
Runtime lookup of one namespace (e.g. PushNotifications) from the remote store.

Notification senders need a handful of strings per language on every call.
Reads go through a TTLCache the caller owns and passes in; there is no
process-wide cache, and the clock is injectable so expiry is testable.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from lokma_i18n.errors import RemoteStoreError
from lokma_i18n.remote import RemoteStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60


@dataclass
class CacheEntry:
    """A cached value and when it was fetched."""
    value: Any
    fetched_at: float


class TTLCache:
    """Small in-memory cache with a caller-supplied TTL and clock."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.fetched_at < self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value if present and not expired."""
        entry = self._entries.get(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry.value

    def put(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=self.clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def get_namespace_translations(
    remote: RemoteStore,
    lang: str,
    namespace: str,
    cache: TTLCache,
    fallback_lang: str = "tr",
    fallback: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Fetch a namespace for a language, with cache and fallbacks.

    Order: fresh cache entry -> remote document -> same namespace in
    ``fallback_lang`` -> static ``fallback`` (or {}). A fallback-language
    result is cached under the requested language too. Callers always get
    a copy they may modify.
    """
    cache_key = f"{lang}:{namespace}"
    cached = cache.get(cache_key)
    if cached is not None:
        return dict(cached)

    try:
        data = remote.fetch(lang)
    except RemoteStoreError as e:
        logger.error("Fetching translations for %s failed: %s", lang, e)
        return dict(fallback or {})

    values = data.get(namespace)
    if isinstance(values, dict) and values:
        cache.put(cache_key, dict(values))
        return dict(values)

    if lang != fallback_lang:
        logger.warning(
            "Namespace %s missing for language '%s'. Falling back to '%s'.",
            namespace, lang, fallback_lang,
        )
        values = get_namespace_translations(
            remote, fallback_lang, namespace, cache, fallback_lang, fallback
        )
        if cache.get(f"{fallback_lang}:{namespace}") is not None:
            cache.put(cache_key, dict(values))
        return values

    return dict(fallback or {})
