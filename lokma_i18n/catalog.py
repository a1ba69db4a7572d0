"""
Per-language translation catalogs and their on-disk store.

A catalog is a tree of namespaces (nested dicts) whose leaves are strings.
Each language lives in ``<messages_dir>/<lang>.json``.

Saving is deterministic: keys are sorted at every level and the JSON is
written with a fixed indent and a trailing newline, so saving an unchanged
catalog twice produces byte-identical files.

The store also does a cheap optimistic-concurrency check: ``load()``
remembers a hash of the file, and ``save()`` refuses to write if the file
changed on disk in the meantime.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Tuple

from lokma_i18n.errors import CatalogError, ConcurrentModificationError

logger = logging.getLogger(__name__)

# Version recorded for a catalog whose file did not exist at load time
ABSENT = "absent"


@dataclass(frozen=True, order=True)
class TranslationKey:
    """A (namespace, key) pair; namespaces are dotted paths, "" is the root."""
    namespace: str
    key: str

    @property
    def path(self) -> Tuple[str, ...]:
        parts = tuple(self.namespace.split(".")) if self.namespace else ()
        return parts + (self.key,)

    @classmethod
    def from_path(cls, path: Tuple[str, ...]) -> "TranslationKey":
        return cls(namespace=".".join(path[:-1]), key=path[-1])

    def __str__(self) -> str:
        return f"{self.namespace}.{self.key}" if self.namespace else self.key


def sort_tree(data: dict) -> dict:
    """Return a copy of ``data`` with keys sorted at every level."""
    return {
        k: sort_tree(v) if isinstance(v, dict) else v
        for k, v in sorted(data.items())
    }


def dumps(data: dict) -> str:
    """Canonical serialization used for every catalog write."""
    return json.dumps(sort_tree(data), ensure_ascii=False, indent=2) + "\n"


def _digest(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


@dataclass
class TranslationCatalog:
    """All translations of one language.

    Attributes:
        lang: Language code ("tr", "en", ...)
        data: Nested namespace -> key -> value tree
        version: Hash of the file this catalog was loaded from; ABSENT if
            there was no file; None if it never came from a store
    """
    lang: str
    data: dict = field(default_factory=dict)
    version: Optional[str] = None

    def get(self, tkey: TranslationKey):
        node = self.data
        for part in tkey.path:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def contains(self, tkey: TranslationKey) -> bool:
        return isinstance(self.get(tkey), str)

    def set(self, tkey: TranslationKey, value: str) -> None:
        """Set a leaf, creating namespaces on the way.

        Raises:
            CatalogError: a path component is already a string leaf
        """
        node = self.data
        for part in tkey.path[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise CatalogError(
                    f"[{self.lang}] cannot create namespace under leaf '{part}' for {tkey}"
                )
            node = child
        if isinstance(node.get(tkey.key), dict):
            raise CatalogError(f"[{self.lang}] {tkey} is a namespace, not a leaf")
        node[tkey.key] = value

    def delete(self, tkey: TranslationKey) -> bool:
        parent = self.get(TranslationKey.from_path(tkey.path[:-1])) if tkey.namespace else self.data
        if isinstance(parent, dict) and isinstance(parent.get(tkey.key), str):
            del parent[tkey.key]
            return True
        return False

    def namespace(self, name: str) -> dict:
        """Leaves directly under a namespace ({} if it does not exist)."""
        node = self.data
        for part in name.split(".") if name else ():
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                return {}
        return node if isinstance(node, dict) else {}

    def leaves(self) -> Iterator[Tuple[TranslationKey, str]]:
        """All (key, value) leaves in sorted order."""
        def walk(node: dict, prefix: Tuple[str, ...]):
            for k in sorted(node):
                v = node[k]
                if isinstance(v, dict):
                    yield from walk(v, prefix + (k,))
                elif isinstance(v, str):
                    yield TranslationKey.from_path(prefix + (k,)), v
        yield from walk(self.data, ())

    def prune_empty(self) -> int:
        """Drop empty namespaces; returns how many were removed."""
        def prune(node: dict) -> int:
            removed = 0
            for k in list(node):
                v = node[k]
                if isinstance(v, dict):
                    removed += prune(v)
                    if not v:
                        del node[k]
                        removed += 1
            return removed
        return prune(self.data)

    def __len__(self) -> int:
        return sum(1 for _ in self.leaves())


class CatalogStore:
    """Loads and saves catalogs from a messages directory."""

    def __init__(self, messages_dir: Path | str):
        self.messages_dir = Path(messages_dir)

    def path_for(self, lang: str) -> Path:
        return self.messages_dir / f"{lang}.json"

    def languages(self) -> list[str]:
        if not self.messages_dir.is_dir():
            return []
        return sorted(p.stem for p in self.messages_dir.glob("*.json"))

    def _current_version(self, path: Path) -> str:
        if not path.exists():
            return ABSENT
        return _digest(path.read_bytes())

    def load(self, lang: str) -> TranslationCatalog:
        """Load a language catalog; an absent file yields an empty catalog.

        Raises:
            CatalogError: the file is not a JSON object
        """
        path = self.path_for(lang)
        if not path.exists():
            logger.debug("No catalog for %s yet (%s)", lang, path)
            return TranslationCatalog(lang=lang, version=ABSENT)

        raw = path.read_bytes()
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CatalogError(f"Malformed catalog {path}: {e}") from e
        if not isinstance(data, dict):
            raise CatalogError(f"Catalog {path} must contain a JSON object")
        return TranslationCatalog(lang=lang, data=data, version=_digest(raw))

    def save(self, catalog: TranslationCatalog, force: bool = False) -> Path:
        """Write the whole catalog, sorted, atomically.

        Args:
            catalog: Catalog to persist (catalog.lang selects the file)
            force: Skip the optimistic-concurrency check

        Raises:
            ConcurrentModificationError: file changed since the catalog was loaded
        """
        path = self.path_for(catalog.lang)
        if not force and catalog.version is not None:
            if self._current_version(path) != catalog.version:
                raise ConcurrentModificationError(catalog.lang, path)

        payload = dumps(catalog.data).encode("utf-8")
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{catalog.lang}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        catalog.version = _digest(payload)
        logger.debug("Saved %s (%d keys) to %s", catalog.lang, len(catalog), path)
        return path
