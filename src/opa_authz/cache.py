"""
opa_authz.cache

Process-local decision cache.

Responsibilities:
- Memoize policy verdicts per (principal, resource, action).
- Stay safe under concurrent lookups and first-time inserts from many threads.
- Expose a consistent read-only snapshot for diagnostics and tests.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType

from opa_authz.models import Action, Decision, Principal, Resource

CacheKey = tuple[str, Resource, Action]


class DecisionCache:
    """
    Monotonic memoization cache: no TTL, no eviction, no size bound.

    A recorded ALLOW stays authoritative until `clear()` or process restart,
    even if the principal's permissions are revoked at the policy engine.
    """

    def __init__(self) -> None:
        # One flat map keyed by the full triple; a single lock makes every
        # insert-if-absent atomic.
        self._entries: dict[CacheKey, Decision] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(principal: Principal | str, resource: Resource, action: Action) -> CacheKey:
        name = principal if isinstance(principal, str) else principal.name
        return (name, resource, action)

    def lookup(
        self, principal: Principal | str, resource: Resource, action: Action
    ) -> Decision:
        with self._lock:
            return self._entries.get(self._key(principal, resource, action), Decision.unknown)

    def record(
        self,
        principal: Principal | str,
        resource: Resource,
        action: Action,
        verdict: Decision,
    ) -> None:
        if verdict is Decision.unknown:
            raise ValueError("only ALLOW or DENY verdicts can be recorded")
        with self._lock:
            self._entries[self._key(principal, resource, action)] = verdict

    def snapshot(self) -> Mapping[str, Mapping[Resource, Mapping[Action, Decision]]]:
        """
        Nested principal -> resource -> action view, copied under the lock.
        """

        with self._lock:
            items = list(self._entries.items())

        nested: dict[str, dict[Resource, dict[Action, Decision]]] = {}
        for (name, resource, action), decision in items:
            nested.setdefault(name, {}).setdefault(resource, {})[action] = decision
        return MappingProxyType(
            {
                name: MappingProxyType(
                    {res: MappingProxyType(actions) for res, actions in resources.items()}
                )
                for name, resources in nested.items()
            }
        )

    def principals(self) -> frozenset[str]:
        with self._lock:
            return frozenset(name for name, _, _ in self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


# --- Module Notes -----------------------------------------------------------
# Entries are never materialized as UNKNOWN; absence is UNKNOWN. Concurrent misses for
# the same triple may both query the engine and record the same verdict (idempotent).
