"""
Placeholder fan-out into target languages.

A placeholder is the source value tagged with the target language code,
e.g. ``"[EN] Siparişlerim"``. It marks a key that still needs a human or
machine translation; the batch translator looks for exactly these.

The rule that matters: an existing non-placeholder value in a target
catalog is never overwritten.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from lokma_i18n.catalog import CatalogStore, TranslationCatalog
from lokma_i18n.errors import CatalogError

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"^\[([A-Z]{2,3}(?:-[A-Z0-9]{2,4})?)\]\s")
_PREFIX_RE = re.compile(r"^\[[A-Z]{2,3}(?:-[A-Z0-9]{2,4})?\]\s*")


def tag_for(lang: str) -> str:
    return f"[{lang.upper()}]"


def make_placeholder(value: str, lang: str) -> str:
    """Wrap a source value as a placeholder for ``lang``."""
    return f"{tag_for(lang)} {value}"


def is_placeholder(value, lang: Optional[str] = None) -> bool:
    """Whether ``value`` is a placeholder (for ``lang`` if given)."""
    if not isinstance(value, str):
        return False
    match = _PLACEHOLDER_RE.match(value)
    if not match:
        return False
    return lang is None or match.group(1) == lang.upper()


def strip_placeholder(value: str) -> str:
    """Remove a leading ``[XX]`` tag (no-op for plain values)."""
    return _PREFIX_RE.sub("", value, count=1)


def fill_catalog(
    source: TranslationCatalog,
    target: TranslationCatalog,
    source_lang: str,
) -> dict:
    """Add placeholders for every source leaf missing from ``target``.

    Returns:
        Counts: added, refreshed, kept, conflicts
    """
    stats = {"added": 0, "refreshed": 0, "kept": 0, "conflicts": 0}
    verbatim = target.lang == source_lang

    for tkey, value in source.leaves():
        wanted = value if verbatim else make_placeholder(value, target.lang)
        current = target.get(tkey)

        if current is None:
            action = "added"
        elif isinstance(current, dict):
            logger.warning("[%s] %s is a namespace in target, skipping", target.lang, tkey)
            stats["conflicts"] += 1
            continue
        elif is_placeholder(current, target.lang) and current != wanted:
            # Source text changed since the placeholder was written
            action = "refreshed"
        else:
            stats["kept"] += 1
            continue

        try:
            target.set(tkey, wanted)
        except CatalogError as e:
            logger.warning("%s, skipping", e)
            stats["conflicts"] += 1
            continue
        stats[action] += 1

    return stats


def inject_placeholders(
    source_catalog: TranslationCatalog,
    target_langs: Iterable[str],
    store: CatalogStore,
    source_lang: Optional[str] = None,
) -> dict[str, TranslationCatalog]:
    """Fan every source key out to the target languages and persist them.

    Args:
        source_catalog: Catalog of the source language
        target_langs: Language codes to fill
        store: Store used to load and save target catalogs
        source_lang: Defaults to source_catalog.lang; a target equal to it
            receives verbatim copies instead of placeholders

    Returns:
        Mapping of language code -> updated catalog
    """
    source_lang = source_lang or source_catalog.lang
    results: dict[str, TranslationCatalog] = {}

    for lang in target_langs:
        target = store.load(lang)
        stats = fill_catalog(source_catalog, target, source_lang)
        changed = stats["added"] + stats["refreshed"]
        if changed:
            store.save(target)
        logger.info(
            "[%s] %d added, %d refreshed, %d kept, %d conflicts",
            lang, stats["added"], stats["refreshed"], stats["kept"], stats["conflicts"],
        )
        results[lang] = target

    return results


def clean_placeholders(catalog: TranslationCatalog) -> int:
    """Remove placeholder leaves for the catalog's language and empty namespaces.

    Returns:
        Number of placeholder values removed
    """
    removed = 0
    for tkey, value in list(catalog.leaves()):
        if is_placeholder(value, catalog.lang) and catalog.delete(tkey):
            removed += 1
    catalog.prune_empty()
    return removed
