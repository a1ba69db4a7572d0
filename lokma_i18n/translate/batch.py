"""
Best-effort batch translation of placeholder entries.

Texts are sent in fixed-size chunks, one request per chunk, joined with a
newline. The response is split on the same delimiter and must produce
exactly one segment per requested text; otherwise the whole chunk is
discarded. Guessing an alignment would write translations into the wrong
keys.

A failed chunk yields ``None`` for each of its items. Callers leave those
entries as placeholders and the next run retries them; a failed chunk never
aborts the batch.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from lokma_i18n.catalog import CatalogStore, TranslationKey
from lokma_i18n.errors import CatalogError, TranslationEndpointError
from lokma_i18n.placeholders import is_placeholder, make_placeholder, strip_placeholder
from lokma_i18n.translate.base import Translator

logger = logging.getLogger(__name__)

DELIMITER = "\n"


@dataclass
class TranslateStats:
    """Outcome of translating one target language."""
    lang: str
    requested: int = 0
    translated: int = 0
    failed: int = 0
    failed_keys: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.failed == 0 and self.error is None


class BatchTranslator:
    """Chunked, paced, failure-isolating wrapper around a Translator.

    Usage:
        batch = BatchTranslator(create_translator("google-free"), chunk_size=40)
        results = batch.translate_batch(["Siparişlerim", "Kaydet"], "en")
        # -> ["My Orders", "Save"] or [None, None] if the chunk failed
    """

    def __init__(
        self,
        translator: Translator,
        chunk_size: int = 40,
        delay: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.translator = translator
        self.chunk_size = chunk_size
        self.delay = delay
        self.sleep = sleep
        self._requests = 0

    def _pace(self) -> None:
        if self._requests and self.delay > 0:
            self.sleep(self.delay)
        self._requests += 1

    def _clean(self, segment: str) -> Optional[str]:
        value = strip_placeholder(segment.strip()).strip()
        return value or None

    def _request(self, text: str, source_lang: str, target_lang: str) -> str:
        self._pace()
        return self.translator.translate(text, source_lang, target_lang).text

    def translate_chunk(
        self,
        chunk: List[str],
        target_lang: str,
        source_lang: str,
    ) -> List[Optional[str]]:
        """Translate one chunk with a single request; all-None on any failure."""
        try:
            response = self._request(DELIMITER.join(chunk), source_lang, target_lang)
        except TranslationEndpointError as e:
            logger.warning(
                "Chunk of %d items failed for %s: %s", len(chunk), target_lang, e
            )
            return [None] * len(chunk)

        if response.endswith(DELIMITER):
            response = response[: -len(DELIMITER)]
        segments = response.split(DELIMITER)
        if len(segments) != len(chunk):
            logger.warning(
                "Chunk length mismatch for %s: expected %d segments, got %d; "
                "%d items left for retry",
                target_lang, len(chunk), len(segments), len(chunk),
            )
            return [None] * len(chunk)

        return [self._clean(s) for s in segments]

    def translate_single(self, text: str, target_lang: str, source_lang: str) -> Optional[str]:
        """Translate a text that itself contains the delimiter."""
        try:
            return self._clean(self._request(text, source_lang, target_lang))
        except TranslationEndpointError as e:
            logger.warning("Multi-line item failed for %s: %s", target_lang, e)
            return None

    def translate_batch(
        self,
        texts: List[str],
        target_lang: str,
        source_lang: str = "tr",
    ) -> List[Optional[str]]:
        """Translate texts in submission order.

        Returns:
            One entry per input text: the translation, or None if its chunk
            failed
        """
        results: List[Optional[str]] = [None] * len(texts)
        self._requests = 0

        # blank texts translate to themselves without a request
        for i, t in enumerate(texts):
            if not t.strip():
                results[i] = ""
        pending = [i for i, t in enumerate(texts) if t.strip()]
        batchable = [i for i in pending if DELIMITER not in texts[i]]
        multiline = [i for i in pending if DELIMITER in texts[i]]

        chunks = [
            batchable[i:i + self.chunk_size]
            for i in range(0, len(batchable), self.chunk_size)
        ]
        for n, indices in enumerate(chunks, start=1):
            logger.info("  %s: batch %d / %d (%d items)", target_lang, n, len(chunks), len(indices))
            translated = self.translate_chunk([texts[i] for i in indices], target_lang, source_lang)
            for i, value in zip(indices, translated):
                results[i] = value

        for i in multiline:
            results[i] = self.translate_single(texts[i], target_lang, source_lang)

        failed = sum(1 for r in results if r is None)
        if failed:
            logger.warning("%s: %d of %d items not translated", target_lang, failed, len(texts))
        return results


def _translate_language(
    store: CatalogStore,
    source_leaves: list[tuple[TranslationKey, str]],
    lang: str,
    source_lang: str,
    batch: BatchTranslator,
) -> TranslateStats:
    target = store.load(lang)
    stats = TranslateStats(lang=lang)

    pending: list[tuple[TranslationKey, str]] = []
    for tkey, text in source_leaves:
        current = target.get(tkey)
        if current is None or is_placeholder(current, lang):
            pending.append((tkey, text))

    stats.requested = len(pending)
    logger.info("Need to translate %d keys for %s", len(pending), lang.upper())
    if not pending:
        return stats

    results = batch.translate_batch([text for _, text in pending], lang, source_lang)
    for (tkey, text), value in zip(pending, results):
        try:
            if value is not None:
                target.set(tkey, value)
                stats.translated += 1
                continue
            if target.get(tkey) is None:
                target.set(tkey, make_placeholder(text, lang))
        except CatalogError as e:
            logger.warning("%s, skipping", e)
        stats.failed += 1
        stats.failed_keys.append(str(tkey))

    store.save(target)
    logger.info(
        "Translated %d of %d items for %s.json", stats.translated, stats.requested, lang
    )
    return stats


def translate_placeholders(
    store: CatalogStore,
    source_lang: str,
    target_langs: Iterable[str],
    batch: BatchTranslator,
) -> dict[str, TranslateStats]:
    """Replace placeholders (and fill missing keys) in every target catalog.

    Keys whose translation failed keep, or receive, a placeholder so the
    next run retries them. A target catalog that cannot be loaded or saved
    is reported in ``TranslateStats.error`` and the remaining languages
    still run.

    Raises:
        CatalogError: the source catalog cannot be loaded
    """
    source = store.load(source_lang)
    source_leaves = list(source.leaves())
    report: dict[str, TranslateStats] = {}

    for lang in target_langs:
        if lang == source_lang:
            continue
        try:
            report[lang] = _translate_language(store, source_leaves, lang, source_lang, batch)
        except CatalogError as e:
            logger.error("Skipping %s: %s", lang, e)
            report[lang] = TranslateStats(lang=lang, error=str(e))

    return report
