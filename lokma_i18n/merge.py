"""
Deep merge of a local catalog with its remote copy.

Two policies are in tension here: protecting manual edits made in the
remote store (REMOTE_WINS) versus treating the local JSON as authoritative
(LOCAL_WINS). Which one applies is a product decision, so it is an explicit
argument and the leaf rule lives in one named function, ``resolve_leaf``.

Rules common to both policies:
- a value present on only one side is kept
- two namespaces are merged recursively
- a placeholder never replaces a final value
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from lokma_i18n.placeholders import is_placeholder

_MISSING = object()


class ConflictPolicy(str, Enum):
    """Which side wins when both hold different scalar values."""
    LOCAL_WINS = "local-wins"
    REMOTE_WINS = "remote-wins"


def resolve_leaf(local: Any, remote: Any, policy: ConflictPolicy = ConflictPolicy.LOCAL_WINS) -> Any:
    """Pick the value for one key where at least one side is not a namespace.

    Args:
        local: Local value, or the _MISSING sentinel
        remote: Remote value, or the _MISSING sentinel
        policy: Tie-breaker when both sides hold different final values
    """
    if local is _MISSING:
        return remote
    if remote is _MISSING or local == remote:
        return local

    local_tmp = is_placeholder(local)
    remote_tmp = is_placeholder(remote)
    if local_tmp and not remote_tmp:
        return remote
    if remote_tmp and not local_tmp:
        return local

    return local if policy == ConflictPolicy.LOCAL_WINS else remote


def merge_catalogs(
    local: dict,
    remote: dict,
    policy: ConflictPolicy = ConflictPolicy.LOCAL_WINS,
) -> dict:
    """Recursively merge two catalog trees into a new, key-sorted dict.

    Neither input is modified.

    Example:
        >>> merge_catalogs({"a": {"x": "1"}}, {"a": {"y": "2"}})
        {'a': {'x': '1', 'y': '2'}}
    """
    policy = ConflictPolicy(policy)
    merged: dict = {}
    for key in sorted(set(local) | set(remote)):
        lv = local.get(key, _MISSING)
        rv = remote.get(key, _MISSING)
        if isinstance(lv, dict) and isinstance(rv, dict):
            merged[key] = merge_catalogs(lv, rv, policy)
        else:
            value = resolve_leaf(lv, rv, policy)
            merged[key] = merge_catalogs(value, {}, policy) if isinstance(value, dict) else value
    return merged
