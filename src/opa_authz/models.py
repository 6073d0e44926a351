"""
opa_authz.models

Authorization domain types.

Responsibilities:
- Define the caller identity (`Principal`), the protected object (`Resource`),
  the attempted operation (`Action`) and the cached outcome (`Decision`).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

DEFAULT_NAMESPACE = "default"


class Action(enum.StrEnum):
    # Closed set; values go on the wire as-is.
    read = "READ"
    write = "WRITE"
    exec = "EXEC"
    create = "CREATE"
    admin = "ADMIN"


class Decision(enum.StrEnum):
    unknown = "UNKNOWN"
    allow = "ALLOW"
    deny = "DENY"

    @classmethod
    def from_verdict(cls, allowed: bool) -> Decision:
        return cls.allow if allowed else cls.deny


def _short_name(name: str) -> str:
    # Kerberos principals: "alice/host.example.com@EXAMPLE.COM" -> "alice"
    return name.split("@", 1)[0].split("/", 1)[0]


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity as provided by the identity provider.
    """

    name: str
    short_name: str
    groups: tuple[str, ...] = ()
    real_user: str | None = None
    authentication_method: str = "SIMPLE"

    @classmethod
    def for_user(
        cls,
        name: str,
        *,
        groups: tuple[str, ...] | list[str] = (),
        real_user: str | None = None,
        authentication_method: str = "SIMPLE",
    ) -> Principal:
        return cls(
            name=name,
            short_name=_short_name(name),
            groups=tuple(groups),
            real_user=real_user,
            authentication_method=authentication_method,
        )

    @property
    def primary_group(self) -> str | None:
        return self.groups[0] if self.groups else None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Resource:
    """
    Protected object. `name` is None for namespace-scoped actions.
    """

    namespace: str = DEFAULT_NAMESPACE
    name: str | None = None

    @classmethod
    def parse(cls, value: str) -> Resource:
        # "ns:table" or bare "table" (default namespace)
        namespace, sep, name = value.partition(":")
        if not sep:
            return cls(namespace=DEFAULT_NAMESPACE, name=value)
        if not namespace or not name:
            raise ValueError(f"invalid resource name: {value!r}")
        return cls(namespace=namespace, name=name)

    @classmethod
    def for_namespace(cls, namespace: str) -> Resource:
        return cls(namespace=namespace, name=None)

    @property
    def is_namespace_scoped(self) -> bool:
        return self.name is None

    @property
    def qualified_name(self) -> str | None:
        if self.name is None:
            return None
        if self.namespace == DEFAULT_NAMESPACE:
            return self.name
        return f"{self.namespace}:{self.name}"

    def __str__(self) -> str:
        return self.qualified_name or f"{self.namespace}:*"


# --- Module Notes -----------------------------------------------------------
# All types are hashable; the decision cache keys on (principal name, Resource, Action).
