"""
opa_authz.errors

Error taxonomy for the policy client.

Responsibilities:
- Separate configuration errors (raised at construction) from per-call failures.
- Keep policy denial distinct from every failure to reach a verdict.
"""

from __future__ import annotations


class OpaError(Exception):
    pass


class OpaConfigError(OpaError):
    """Client cannot be constructed; it is never usable half-configured."""


class PolicyUrlMissing(OpaConfigError):
    def __init__(self, setting: str) -> None:
        super().__init__(f"Policy engine URL is required when authorization is enabled ({setting})")
        self.setting = setting


class PolicyUrlInvalid(OpaConfigError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Invalid policy engine URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


class SerializeFailed(OpaError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to serialize policy query: {cause}")


class QueryFailed(OpaError):
    """The policy engine could not be reached (connection, timeout, protocol)."""

    def __init__(self, url: str, cause: Exception) -> None:
        super().__init__(f"Policy query to {url} failed: {cause}")
        self.url = url


class EndpointNotFound(OpaError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Policy endpoint {url} not found (404); check the configured policy URL")
        self.url = url


class PolicyServerError(OpaError):
    def __init__(self, *, query: str, status_code: int, body: str) -> None:
        super().__init__(
            f"Policy engine returned HTTP {status_code} for query {query}: {body or '<empty>'}"
        )
        self.query = query
        self.status_code = status_code
        self.body = body


class DeserializeFailed(OpaError):
    def __init__(self, cause: Exception, body: str) -> None:
        super().__init__(f"Failed to parse policy engine response {body!r}: {cause}")
        self.body = body


class AccessDenied(OpaError, PermissionError):
    """
    Expected "no access" outcome.

    `cached` tells whether the denial was served from the decision cache
    without contacting the policy engine.
    """

    def __init__(self, reason: str, *, cached: bool = False) -> None:
        super().__init__(reason)
        self.reason = reason
        self.cached = cached


# --- Module Notes -----------------------------------------------------------
# `AccessDenied` also subclasses PermissionError so interception layers can map it
# onto their own access-control convention without importing this module.
