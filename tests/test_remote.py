"""
Tests for remote stores, catalog sync and runtime namespace lookup.

Run with: pytest tests/test_remote.py -v
"""

import json

import pytest

from lokma_i18n.catalog import CatalogStore, TranslationCatalog
from lokma_i18n.errors import RemoteStoreError
from lokma_i18n.lookup import TTLCache, get_namespace_translations
from lokma_i18n.merge import ConflictPolicy
from lokma_i18n.remote import FirestoreStore, JsonDirStore, RemoteStore, sync_languages


class FlakyRemote(RemoteStore):
    """In-memory remote that fails for some languages."""

    def __init__(self, docs=None, fail_fetch=(), fail_push=()):
        self.docs = docs or {}
        self.fail_fetch = set(fail_fetch)
        self.fail_push = set(fail_push)
        self.fetches = []

    @property
    def name(self):
        return "flaky"

    def fetch(self, lang):
        self.fetches.append(lang)
        if lang in self.fail_fetch:
            raise RemoteStoreError(f"fetch {lang} failed")
        return json.loads(json.dumps(self.docs.get(lang, {})))

    def push(self, lang, data):
        if lang in self.fail_push:
            raise RemoteStoreError(f"push {lang} failed")
        self.docs[lang] = data


@pytest.fixture
def store(tmp_path):
    store = CatalogStore(tmp_path / "messages")
    store.save(TranslationCatalog("tr", {"a": {"x": "1"}}))
    store.save(TranslationCatalog("de", {"a": {"x": "Eins"}}))
    return store


class TestSync:
    """Tests for sync_languages()."""

    def test_both_sides_get_union(self, store, tmp_path):
        """Local and remote end up with the merged tree."""
        remote_dir = tmp_path / "remote"
        remote_dir.mkdir()
        (remote_dir / "tr.json").write_text(json.dumps({"a": {"y": "2"}}), encoding="utf-8")
        remote = JsonDirStore(remote_dir)

        report = sync_languages(store, remote, ["tr"])

        assert report.success
        assert report.synced == {"tr": 2}
        assert store.load("tr").data == {"a": {"x": "1", "y": "2"}}
        assert remote.fetch("tr") == {"a": {"x": "1", "y": "2"}}

    def test_defaults_to_local_languages(self, store):
        """Without explicit languages every local catalog is synced."""
        remote = FlakyRemote()
        report = sync_languages(store, remote)
        assert sorted(report.synced) == ["de", "tr"]
        assert remote.docs["de"] == {"a": {"x": "Eins"}}

    def test_failed_fetch_skips_language(self, store):
        """A fetch failure skips that language and leaves its file untouched."""
        before = store.path_for("de").read_bytes()
        remote = FlakyRemote(docs={"tr": {"b": "2"}}, fail_fetch={"de"})

        report = sync_languages(store, remote, ["de", "tr"])

        assert not report.success
        assert "de" in report.failed
        assert report.synced == {"tr": 2}
        assert store.path_for("de").read_bytes() == before

    def test_failed_push_leaves_local_untouched(self, store):
        """The local file is only written after a successful push."""
        before = store.path_for("tr").read_bytes()
        remote = FlakyRemote(docs={"tr": {"b": "2"}}, fail_push={"tr"})

        report = sync_languages(store, remote, ["tr"])

        assert "tr" in report.failed
        assert store.path_for("tr").read_bytes() == before

    def test_remote_wins_policy(self, store):
        """REMOTE_WINS takes the remote value for conflicting leaves."""
        remote = FlakyRemote(docs={"de": {"a": {"x": "Eins (bearbeitet)"}}})
        sync_languages(store, remote, ["de"], ConflictPolicy.REMOTE_WINS)
        assert store.load("de").data == {"a": {"x": "Eins (bearbeitet)"}}

    def test_sync_is_idempotent(self, store, tmp_path):
        """A second sync changes nothing on either side."""
        remote = JsonDirStore(tmp_path / "remote")
        sync_languages(store, remote, ["tr"])
        local_before = store.path_for("tr").read_bytes()
        remote_before = (tmp_path / "remote" / "tr.json").read_bytes()

        sync_languages(store, remote, ["tr"])

        assert store.path_for("tr").read_bytes() == local_before
        assert (tmp_path / "remote" / "tr.json").read_bytes() == remote_before


class TestJsonDirStore:
    """Tests for the directory-backed remote store."""

    def test_missing_document(self, tmp_path):
        """A missing document is an empty dict."""
        assert JsonDirStore(tmp_path).fetch("en") == {}

    def test_push_keeps_remote_only_fields(self, tmp_path):
        """push() is merge-style."""
        remote = JsonDirStore(tmp_path)
        remote.push("en", {"a": "1"})
        remote.push("en", {"b": "2"})
        assert remote.fetch("en") == {"a": "1", "b": "2"}

    def test_malformed_document(self, tmp_path):
        """A broken document raises RemoteStoreError."""
        (tmp_path / "en.json").write_text("{oops", encoding="utf-8")
        with pytest.raises(RemoteStoreError):
            JsonDirStore(tmp_path).fetch("en")


class FakeSnapshot:
    def __init__(self, data):
        self.exists = data is not None
        self._data = data

    def to_dict(self):
        return self._data


class FakeDocument:
    def __init__(self, docs, lang):
        self.docs = docs
        self.lang = lang

    def get(self):
        return FakeSnapshot(self.docs.get(self.lang))

    def set(self, data, merge=False):
        self.docs.setdefault("_writes", []).append((self.lang, data, merge))
        self.docs[self.lang] = data


class FakeFirestoreClient:
    def __init__(self, docs):
        self.docs = docs
        self.collections = []

    def collection(self, name):
        self.collections.append(name)
        return self

    def document(self, lang):
        return FakeDocument(self.docs, lang)


class TestFirestoreStore:
    """Tests for FirestoreStore against a fake client."""

    def test_fetch_and_push(self, tmp_path):
        """Documents are read per language and written with merge=True."""
        docs = {"tr": {"PushNotifications": {"title": "Yeni sipariş"}}}
        client = FakeFirestoreClient(docs)
        remote = FirestoreStore(tmp_path / "sa.json", client=client)

        assert remote.fetch("tr") == {"PushNotifications": {"title": "Yeni sipariş"}}
        assert remote.fetch("en") == {}

        remote.push("en", {"a": "1"})
        assert docs["_writes"] == [("en", {"a": "1"}, True)]
        assert client.collections[0] == "translations"


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestNamespaceLookup:
    """Tests for get_namespace_translations() and TTLCache."""

    @pytest.fixture
    def remote(self):
        return FlakyRemote(docs={
            "tr": {"PushNotifications": {"newOrder": "Yeni sipariş"}},
            "en": {"PushNotifications": {"newOrder": "New order"}},
            "de": {"Other": {"x": "y"}},
        })

    def test_cached_within_ttl(self, remote):
        """A second lookup within the TTL does not hit the remote."""
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=900, clock=clock)

        first = get_namespace_translations(remote, "en", "PushNotifications", cache)
        clock.now += 899
        second = get_namespace_translations(remote, "en", "PushNotifications", cache)

        assert first == second == {"newOrder": "New order"}
        assert remote.fetches == ["en"]

    def test_refetched_after_ttl(self, remote):
        """An expired entry is fetched again."""
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=900, clock=clock)

        get_namespace_translations(remote, "en", "PushNotifications", cache)
        clock.now += 900
        get_namespace_translations(remote, "en", "PushNotifications", cache)

        assert remote.fetches == ["en", "en"]

    def test_missing_namespace_falls_back(self, remote):
        """A language without the namespace falls back to the source language."""
        cache = TTLCache(clock=FakeClock())
        values = get_namespace_translations(remote, "de", "PushNotifications", cache)
        assert values == {"newOrder": "Yeni sipariş"}

    def test_fallback_cached_under_requested_language(self, remote):
        """A fallback result is cached for the requested language as well."""
        cache = TTLCache(clock=FakeClock())
        get_namespace_translations(remote, "de", "PushNotifications", cache)
        get_namespace_translations(remote, "de", "PushNotifications", cache)
        assert remote.fetches == ["de", "tr"]

    def test_result_is_a_copy(self, remote):
        """Mutating a returned dict does not change the cached entry."""
        cache = TTLCache(clock=FakeClock())
        first = get_namespace_translations(remote, "en", "PushNotifications", cache)
        first["newOrder"] = "changed"
        assert get_namespace_translations(remote, "en", "PushNotifications", cache) == {
            "newOrder": "New order"
        }

    def test_remote_error_returns_static_fallback(self):
        """A failing remote yields the static fallback."""
        remote = FlakyRemote(fail_fetch={"en"})
        values = get_namespace_translations(
            remote, "en", "PushNotifications", TTLCache(), fallback={"newOrder": "Order"}
        )
        assert values == {"newOrder": "Order"}

    def test_cache_clear(self):
        """clear() drops every entry."""
        cache = TTLCache(clock=FakeClock())
        cache.put("en:X", {"a": "1"})
        assert len(cache) == 1
        cache.clear()
        assert cache.get("en:X") is None
