"""
Tests for catalog merging.

Run with: pytest tests/test_merge.py -v
"""

import copy

from lokma_i18n.merge import ConflictPolicy, merge_catalogs, resolve_leaf


class TestMergeCatalogs:
    """Tests for merge_catalogs()."""

    def test_nested_union(self):
        """Disjoint keys in the same namespace are unioned."""
        merged = merge_catalogs({"a": {"x": "1"}}, {"a": {"y": "2"}})
        assert merged == {"a": {"x": "1", "y": "2"}}

    def test_disjoint_keysets(self):
        """The result contains every key from both sides."""
        local = {"orders": {"title": "Siparişler"}, "menu": {"add": "Ekle"}}
        remote = {"push": {"newOrder": "Yeni sipariş"}, "menu": {"remove": "Sil"}}
        merged = merge_catalogs(local, remote)
        assert merged == {
            "menu": {"add": "Ekle", "remove": "Sil"},
            "orders": {"title": "Siparişler"},
            "push": {"newOrder": "Yeni sipariş"},
        }

    def test_local_wins(self):
        """LOCAL_WINS keeps the local value on conflict."""
        merged = merge_catalogs({"a": "local"}, {"a": "remote"}, ConflictPolicy.LOCAL_WINS)
        assert merged == {"a": "local"}

    def test_remote_wins(self):
        """REMOTE_WINS keeps the remote value on conflict."""
        merged = merge_catalogs({"a": "local"}, {"a": "remote"}, ConflictPolicy.REMOTE_WINS)
        assert merged == {"a": "remote"}

    def test_policy_accepts_strings(self):
        """Policies can be passed by their config value."""
        assert merge_catalogs({"a": "l"}, {"a": "r"}, "remote-wins") == {"a": "r"}

    def test_placeholder_never_beats_final_value(self):
        """A placeholder loses against a final value under both policies."""
        for policy in ConflictPolicy:
            assert merge_catalogs({"a": "[EN] Kaydet"}, {"a": "Save"}, policy) == {"a": "Save"}
            assert merge_catalogs({"a": "Save"}, {"a": "[EN] Kaydet"}, policy) == {"a": "Save"}

    def test_leaf_vs_namespace_follows_policy(self):
        """Type conflicts are decided by the policy and the result is copied."""
        local = {"a": {"x": "1"}}
        remote = {"a": "flat"}
        assert merge_catalogs(local, remote, ConflictPolicy.LOCAL_WINS) == {"a": {"x": "1"}}
        assert merge_catalogs(local, remote, ConflictPolicy.REMOTE_WINS) == {"a": "flat"}
        merged = merge_catalogs(local, remote)
        merged["a"]["x"] = "changed"
        assert local == {"a": {"x": "1"}}

    def test_inputs_not_mutated(self):
        """Neither input is modified."""
        local = {"a": {"x": "1"}, "b": "2"}
        remote = {"a": {"y": "3"}, "b": "4"}
        local_copy, remote_copy = copy.deepcopy(local), copy.deepcopy(remote)
        merge_catalogs(local, remote)
        assert local == local_copy
        assert remote == remote_copy

    def test_result_is_sorted(self):
        """Keys come out sorted at every level."""
        merged = merge_catalogs({"b": {"z": "1", "a": "2"}}, {"a": "3"})
        assert list(merged) == ["a", "b"]
        assert list(merged["b"]) == ["a", "z"]


class TestResolveLeaf:
    """Tests for the single-leaf conflict rule."""

    def test_equal_values(self):
        """Equal values resolve to themselves."""
        assert resolve_leaf("x", "x", ConflictPolicy.REMOTE_WINS) == "x"

    def test_both_placeholders_follow_policy(self):
        """Two placeholders are an ordinary conflict."""
        assert resolve_leaf("[EN] a", "[EN] b", ConflictPolicy.LOCAL_WINS) == "[EN] a"
        assert resolve_leaf("[EN] a", "[EN] b", ConflictPolicy.REMOTE_WINS) == "[EN] b"
