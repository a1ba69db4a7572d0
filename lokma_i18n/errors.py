"""
Exception types shared by the pipeline stages.

Recovery happens close to where the error is raised:
- SourceParseError: the scanner logs it and skips the file
- TranslationEndpointError: the batch translator marks the chunk as failed
- RemoteStoreError: sync skips that language and moves on
- ConfigError: never recovered, the CLI exits with code 2
"""

from __future__ import annotations


class I18nError(Exception):
    """Base class for all lokma-i18n errors."""


class ConfigError(I18nError):
    """Missing or invalid configuration (config file, directories, credentials)."""


class CatalogError(I18nError):
    """A catalog file exists but cannot be read or parsed."""


class ConcurrentModificationError(CatalogError):
    """The catalog file changed on disk between load() and save()."""

    def __init__(self, lang: str, path):
        self.lang = lang
        self.path = path
        super().__init__(
            f"Catalog '{lang}' was modified on disk since it was loaded ({path}); "
            "reload and re-run the stage"
        )


class SourceParseError(I18nError):
    """A source file could not be parsed into a syntax tree."""


class TranslationEndpointError(I18nError):
    """The external translation endpoint failed or returned garbage."""


class RemoteStoreError(I18nError):
    """Reading from or writing to the remote document store failed."""
