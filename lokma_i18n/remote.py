"""
Remote document store and catalog synchronization.

The remote keeps one document per language code in a ``translations``
collection; document fields mirror the local namespace/key tree. Writes are
merge-style so fields written concurrently by other tools survive.

Backends:
- FirestoreStore: Google Cloud Firestore (google-cloud-firestore)
- JsonDirStore: a directory of <lang>.json files with the same contract,
  used for local mirrors, dry runs and tests
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from lokma_i18n.catalog import CatalogStore, dumps
from lokma_i18n.errors import CatalogError, RemoteStoreError
from lokma_i18n.merge import ConflictPolicy, merge_catalogs

logger = logging.getLogger(__name__)


class RemoteStore(ABC):
    """One document per language code."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def fetch(self, lang: str) -> dict:
        """Return the language document ({} if it does not exist).

        Raises:
            RemoteStoreError: the store could not be read
        """
        pass

    @abstractmethod
    def push(self, lang: str, data: dict) -> None:
        """Merge-write the language document.

        Raises:
            RemoteStoreError: the write failed
        """
        pass


class FirestoreStore(RemoteStore):
    """Firestore-backed remote store.

    Usage:
        store = FirestoreStore(credentials_path=Path("service-account.json"))
        data = store.fetch("tr")
    """

    def __init__(
        self,
        credentials_path: Path,
        collection: str = "translations",
        client=None,
    ):
        self.credentials_path = Path(credentials_path)
        self.collection = collection
        self._client = client

    @property
    def name(self) -> str:
        return f"firestore:{self.collection}"

    def _get_client(self):
        """Lazy initialization of the Firestore client."""
        if self._client is None:
            try:
                from google.cloud import firestore
            except ImportError:
                raise ImportError(
                    "google-cloud-firestore library required. Install with: "
                    "pip install google-cloud-firestore"
                )
            try:
                self._client = firestore.Client.from_service_account_json(
                    str(self.credentials_path)
                )
            except Exception as e:
                raise RemoteStoreError(f"Cannot create Firestore client: {e}") from e
        return self._client

    def _document(self, lang: str):
        return self._get_client().collection(self.collection).document(lang)

    def fetch(self, lang: str) -> dict:
        from google.api_core import exceptions as gexc

        try:
            snapshot = self._document(lang).get()
        except gexc.GoogleAPIError as e:
            raise RemoteStoreError(f"Reading {self.collection}/{lang} failed: {e}") from e
        if not snapshot.exists:
            return {}
        return snapshot.to_dict() or {}

    def push(self, lang: str, data: dict) -> None:
        from google.api_core import exceptions as gexc

        try:
            self._document(lang).set(data, merge=True)
        except gexc.GoogleAPIError as e:
            raise RemoteStoreError(f"Writing {self.collection}/{lang} failed: {e}") from e


class JsonDirStore(RemoteStore):
    """Remote store emulated by a directory of JSON documents."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    @property
    def name(self) -> str:
        return f"jsondir:{self.directory}"

    def _path(self, lang: str) -> Path:
        return self.directory / f"{lang}.json"

    def fetch(self, lang: str) -> dict:
        path = self._path(lang)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise RemoteStoreError(f"Reading {path} failed: {e}") from e
        if not isinstance(data, dict):
            raise RemoteStoreError(f"Remote document {path} is not a JSON object")
        return data

    def push(self, lang: str, data: dict) -> None:
        # Merge-style: keep remote-only fields, like Firestore's merge=True
        existing = self.fetch(lang)
        merged = merge_catalogs(data, existing, ConflictPolicy.LOCAL_WINS)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._path(lang).write_text(dumps(merged), encoding="utf-8")
        except OSError as e:
            raise RemoteStoreError(f"Writing {self._path(lang)} failed: {e}") from e


@dataclass
class SyncReport:
    """Per-language outcome of a sync run."""
    synced: dict[str, int] = field(default_factory=dict)  # lang -> leaf count
    failed: dict[str, str] = field(default_factory=dict)  # lang -> error

    @property
    def success(self) -> bool:
        return not self.failed


def sync_language(
    store: CatalogStore,
    remote: RemoteStore,
    lang: str,
    policy: ConflictPolicy = ConflictPolicy.LOCAL_WINS,
) -> int:
    """Reconcile one language; returns the merged leaf count.

    The merged tree is pushed to the remote first and only then saved
    locally, so a remote failure leaves the local file untouched.
    """
    local = store.load(lang)
    remote_data = remote.fetch(lang)
    merged = merge_catalogs(local.data, remote_data, policy)

    remote.push(lang, merged)
    local.data = merged
    store.save(local)
    return len(local)


def sync_languages(
    store: CatalogStore,
    remote: RemoteStore,
    langs: Optional[Iterable[str]] = None,
    policy: ConflictPolicy = ConflictPolicy.LOCAL_WINS,
) -> SyncReport:
    """Reconcile every language; a failure skips that language only."""
    report = SyncReport()
    for lang in langs if langs is not None else store.languages():
        try:
            count = sync_language(store, remote, lang, policy)
        except (RemoteStoreError, CatalogError) as e:
            logger.error("Sync of %s failed, skipping: %s", lang, e)
            report.failed[lang] = str(e)
            continue
        logger.info("Synced %s with %s (%d keys)", lang, remote.name, count)
        report.synced[lang] = count
    return report
