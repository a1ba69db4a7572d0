"""
lokma-i18n: translation key extraction and synchronization.

Keeps the per-language message catalogs of the Lokma admin portal in step
with its UI source:

1. Scan TSX/TS sources for untranslated Turkish strings
2. Derive stable keys and add them to the source catalog
3. Fan placeholders out to every target language
4. Machine-translate placeholders in best-effort batches
5. Reconcile local catalogs with the remote document store

License: MIT
"""

__version__ = "0.1.0"

from lokma_i18n.catalog import CatalogStore, TranslationCatalog, TranslationKey
from lokma_i18n.config import SyncConfig
from lokma_i18n.keygen import derive_key
from lokma_i18n.merge import ConflictPolicy, merge_catalogs
from lokma_i18n.pipeline import SyncPipeline

__all__ = [
    "CatalogStore",
    "TranslationCatalog",
    "TranslationKey",
    "SyncConfig",
    "derive_key",
    "ConflictPolicy",
    "merge_catalogs",
    "SyncPipeline",
]
