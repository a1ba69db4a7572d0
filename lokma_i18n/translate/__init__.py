"""
Translation backends and best-effort batch translation.

Components:
- base: Translator interface, DummyTranslator, create_translator()
- google_free: keyless Google Translate web endpoint
- mymemory: MyMemory translation API
- batch: chunked BatchTranslator and translate_placeholders()
"""

from lokma_i18n.translate.base import (
    Translator,
    TranslationResult,
    DummyTranslator,
    create_translator,
)
from lokma_i18n.translate.batch import BatchTranslator, TranslateStats, translate_placeholders

__all__ = [
    "Translator",
    "TranslationResult",
    "DummyTranslator",
    "create_translator",
    "BatchTranslator",
    "TranslateStats",
    "translate_placeholders",
]
