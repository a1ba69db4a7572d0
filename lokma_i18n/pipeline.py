"""
Translation key synchronization pipeline.

This module orchestrates the stages, each of which is also a CLI
subcommand and can be re-run on its own:
1. scan: find untranslated literals under the configured source bindings
2. extract: derive keys and add them to the source-language catalog
3. inject: fan placeholders out to every target catalog
4. translate: replace placeholders via the batch translator (best effort)
5. sync: reconcile every catalog with the remote document store
6. rewrite: replace literals in the source files with t('key') lookups
7. missing: report t('key') lookups whose key is not in the source catalog

Design Philosophy:
- Every stage reads its inputs from disk and writes its outputs back, so
  stages are independent and idempotent
- Stages report partial failures in StageResult.errors instead of raising;
  only configuration errors raise
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from lokma_i18n.audit import MissingKey, audit_sources
from lokma_i18n.catalog import CatalogStore, TranslationKey
from lokma_i18n.config import SyncConfig
from lokma_i18n.errors import CatalogError, SourceParseError
from lokma_i18n.keygen import KeyRegistry
from lokma_i18n.merge import ConflictPolicy
from lokma_i18n.placeholders import clean_placeholders, inject_placeholders
from lokma_i18n.remote import RemoteStore, sync_languages
from lokma_i18n.rewrite import rewrite_file
from lokma_i18n.scanner import SourceOccurrence, SourceScanner
from lokma_i18n.translate.base import Translator, create_translator
from lokma_i18n.translate.batch import BatchTranslator, translate_placeholders

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Result of running one pipeline stage.

    Contains counters for the CLI summary plus the errors that made the
    stage a partial failure.
    """
    stage: str
    stats: dict = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    occurrences: list[SourceOccurrence] = field(default_factory=list)
    missing: list[MissingKey] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


class SyncPipeline:
    """Runs pipeline stages against one project configuration.

    Usage:
        config = SyncConfig.load("i18n.json")
        pipeline = SyncPipeline(config)

        pipeline.extract()
        pipeline.inject()
        result = pipeline.translate()
    """

    def __init__(
        self,
        config: SyncConfig,
        translator: Optional[Translator] = None,
        remote: Optional[RemoteStore] = None,
        sleep: Optional[Callable[[float], None]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.store = CatalogStore(config.messages_dir)
        self._translator = translator
        self._remote = remote
        self._sleep = sleep
        self.rng = rng or random.Random()
        self.scanner = SourceScanner(
            extensions=config.extensions,
            translation_functions=config.translation_functions,
            strict_identifiers=config.strict_identifiers,
            extra_words=config.extra_words,
        )

    @property
    def translator(self) -> Translator:
        if self._translator is None:
            self._translator = create_translator(
                self.config.translator_backend, timeout=self.config.request_timeout
            )
        return self._translator

    def _skipped_errors(self) -> list[str]:
        return [f"parse error: {p}" for p in self.scanner.skipped_files]

    def scan(self) -> StageResult:
        """Report candidate literals without touching any catalog."""
        self.scanner.skipped_files.clear()
        occurrences = self.scanner.scan_bindings(self.config.require_sources())
        files = {o.path for o in occurrences}
        return StageResult(
            stage="scan",
            stats={"strings": len(occurrences), "files": len(files),
                   "skipped_files": len(self.scanner.skipped_files)},
            errors=self._skipped_errors(),
            occurrences=occurrences,
        )

    def extract(self) -> StageResult:
        """Scan, derive keys per namespace, and add new keys to the source catalog."""
        scan = self.scan()
        self.config.messages_dir.mkdir(parents=True, exist_ok=True)
        catalog = self.store.load(self.config.source_lang)

        registries: dict[str, KeyRegistry] = {}
        added = 0
        errors = list(scan.errors)
        for occ in scan.occurrences:
            ns = occ.namespace or ""
            if ns not in registries:
                registries[ns] = KeyRegistry(
                    catalog.namespace(ns),
                    style=self.config.key_style,
                    max_words=self.config.max_key_words,
                    rng=self.rng,
                )
            key = registries[ns].add(occ.text)
            tkey = TranslationKey(ns, key)
            if catalog.get(tkey) is None:
                try:
                    catalog.set(tkey, occ.text)
                except CatalogError as e:
                    errors.append(str(e))
                    continue
                added += 1
                logger.debug("%s:%d %s -> %s", occ.path, occ.line, occ.text, tkey)

        if added:
            self.store.save(catalog)
        logger.info("Added %d new keys to %s.json", added, self.config.source_lang)
        stats = dict(scan.stats, added=added, total=len(catalog))
        return StageResult(stage="extract", stats=stats, errors=errors, occurrences=scan.occurrences)

    def inject(self) -> StageResult:
        """Fan source keys out to every configured language."""
        self.config.require_messages_dir()
        source = self.store.load(self.config.source_lang)
        results = inject_placeholders(
            source, self.config.all_langs, self.store, source_lang=self.config.source_lang
        )
        return StageResult(
            stage="inject",
            stats={lang: len(cat) for lang, cat in results.items()},
        )

    def translate(self) -> StageResult:
        """Translate placeholders in every target language (best effort)."""
        self.config.require_messages_dir()
        batch = BatchTranslator(
            self.translator,
            chunk_size=self.config.chunk_size,
            delay=self.config.request_delay,
            **({"sleep": self._sleep} if self._sleep else {}),
        )
        report = translate_placeholders(
            self.store, self.config.source_lang, self.config.target_langs, batch
        )
        result = StageResult(stage="translate")
        for lang, stats in report.items():
            if stats.error is not None:
                result.stats[lang] = "skipped"
                result.errors.append(f"{lang}: {stats.error}")
                continue
            result.stats[lang] = {"translated": stats.translated, "failed": stats.failed}
            if stats.failed:
                result.errors.append(f"{lang}: {stats.failed} items left as placeholders")
        return result

    def sync(self, remote: Optional[RemoteStore] = None, langs: Optional[list[str]] = None) -> StageResult:
        """Reconcile local catalogs with the remote store."""
        self.config.require_messages_dir()
        remote = remote or self._remote
        if remote is None:
            raise ValueError("sync() needs a remote store")
        report = sync_languages(
            self.store,
            remote,
            langs or self.store.languages(),
            ConflictPolicy(self.config.conflict_policy),
        )
        return StageResult(
            stage="sync",
            stats=dict(report.synced),
            errors=[f"{lang}: {err}" for lang, err in report.failed.items()],
        )

    def rewrite(self) -> StageResult:
        """Replace extracted literals in source files with t('key') lookups."""
        catalog = self.store.load(self.config.source_lang)
        result = StageResult(stage="rewrite", stats={"files": 0, "strings": 0})
        for binding in self.config.require_sources():
            for path in self.scanner.iter_files(binding.directory):
                try:
                    count = rewrite_file(
                        path,
                        binding.namespace,
                        catalog,
                        self.scanner,
                        injection_point=self.config.injection_point_for(path),
                        import_line=self.config.import_line,
                    )
                except SourceParseError as e:
                    logger.warning("Error parsing %s, skipped: %s", path, e)
                    result.errors.append(f"parse error: {path}")
                    continue
                if count:
                    result.stats["files"] += 1
                    result.stats["strings"] += count
        return result

    def clean(self) -> StageResult:
        """Remove placeholder values and empty namespaces from target catalogs."""
        self.config.require_messages_dir()
        result = StageResult(stage="clean")
        for lang in self.config.target_langs:
            if lang == self.config.source_lang:
                continue
            catalog = self.store.load(lang)
            removed = clean_placeholders(catalog)
            if removed:
                self.store.save(catalog)
            result.stats[lang] = removed
        return result

    def missing(self) -> StageResult:
        """Report t('key') lookups whose key is not in the source catalog."""
        self.scanner.skipped_files.clear()
        catalog = self.store.load(self.config.source_lang)
        roots = [binding.directory for binding in self.config.require_sources()]
        found = audit_sources(self.scanner, roots, catalog)

        result = StageResult(
            stage="missing",
            stats={"missing": len(found), "skipped_files": len(self.scanner.skipped_files)},
            errors=self._skipped_errors(),
            missing=found,
        )
        for item in found:
            result.errors.append(f"{item.path}:{item.line} {item.tkey}")
        logger.info("Found %d missing translations", len(found))
        return result
