"""
tests.test_cache

Decision cache behavior.

Responsibilities:
- Tri-state lookups (unknown / allow / deny) and idempotent overwrites.
- Read-only nested snapshots.
- Concurrent first-time inserts do not lose entries.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from opa_authz.cache import DecisionCache
from opa_authz.models import Action, Decision, Principal, Resource

BOB = Principal.for_user("bob")
TABLE = Resource.parse("t")


def test_lookup_unknown_when_never_recorded() -> None:
    cache = DecisionCache()
    assert cache.lookup(BOB, TABLE, Action.write) is Decision.unknown
    # Lookups never materialize entries.
    assert len(cache) == 0


def test_record_then_lookup_is_stable() -> None:
    cache = DecisionCache()
    cache.record(BOB, TABLE, Action.write, Decision.deny)
    for _ in range(3):
        assert cache.lookup(BOB, TABLE, Action.write) is Decision.deny
    # Other actions on the same resource are independent.
    assert cache.lookup(BOB, TABLE, Action.read) is Decision.unknown


def test_record_overwrites_and_is_idempotent() -> None:
    cache = DecisionCache()
    cache.record(BOB, TABLE, Action.read, Decision.allow)
    cache.record(BOB, TABLE, Action.read, Decision.allow)
    assert len(cache) == 1
    cache.record(BOB, TABLE, Action.read, Decision.deny)
    assert cache.lookup(BOB, TABLE, Action.read) is Decision.deny


def test_record_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        DecisionCache().record(BOB, TABLE, Action.read, Decision.unknown)


def test_principal_name_and_principal_share_keys() -> None:
    cache = DecisionCache()
    cache.record("bob", TABLE, Action.admin, Decision.allow)
    assert cache.lookup(BOB, TABLE, Action.admin) is Decision.allow
    assert ("bob", TABLE, Action.admin) in cache


def test_snapshot_is_nested_and_read_only() -> None:
    cache = DecisionCache()
    other = Resource.parse("ns:other")
    cache.record(BOB, TABLE, Action.read, Decision.allow)
    cache.record(BOB, other, Action.write, Decision.deny)
    cache.record("alice", TABLE, Action.read, Decision.allow)

    snap = cache.snapshot()
    assert set(snap) == {"bob", "alice"}
    assert snap["bob"][TABLE][Action.read] is Decision.allow
    assert snap["bob"][other][Action.write] is Decision.deny
    with pytest.raises(TypeError):
        snap["carol"] = {}  # type: ignore[index]

    # Later writes do not leak into an earlier snapshot.
    cache.record("carol", TABLE, Action.read, Decision.deny)
    assert "carol" not in snap
    assert cache.principals() == frozenset({"alice", "bob", "carol"})


def test_clear_is_the_only_invalidation() -> None:
    cache = DecisionCache()
    cache.record(BOB, TABLE, Action.read, Decision.allow)
    cache.clear()
    assert cache.lookup(BOB, TABLE, Action.read) is Decision.unknown


def test_concurrent_first_inserts_keep_every_principal() -> None:
    cache = DecisionCache()
    n = 200

    def work(i: int) -> None:
        user = f"user-{i}"
        cache.lookup(user, TABLE, Action.read)
        cache.record(user, TABLE, Action.read, Decision.allow)
        cache.record(user, TABLE, Action.write, Decision.deny)

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(work, range(n)))

    snap = cache.snapshot()
    assert len(snap) == n
    assert all(len(snap[f"user-{i}"][TABLE]) == 2 for i in range(n))


# --- Module Notes -----------------------------------------------------------
# Sticky-decision behavior through the client is covered in `test_client.py`.
