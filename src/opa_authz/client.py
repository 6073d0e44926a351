"""
opa_authz.client

Policy client: the single entry point used by interception layers.

Responsibilities:
- Build and serialize a Decision Query per authorization attempt.
- Consult and update the decision cache.
- POST the query to the policy engine (exactly once) and interpret the verdict.
- Map every failure onto the `opa_authz.errors` taxonomy.
"""

from __future__ import annotations

import httpx

from opa_authz.cache import DecisionCache
from opa_authz.errors import (
    AccessDenied,
    EndpointNotFound,
    PolicyServerError,
    PolicyUrlInvalid,
    PolicyUrlMissing,
    QueryFailed,
)
from opa_authz.models import Action, Decision, Principal, Resource
from opa_authz.observability.logging import get_logger
from opa_authz.query import AllowQuery, decode_result, encode_query
from opa_authz.settings import Settings

log = get_logger(__name__)

POLICY_URL_SETTING = "OPA_AUTHZ_POLICY_URL"
DEFAULT_TIMEOUT_SECONDS = 5.0


def _validate_url(url: str | None) -> httpx.URL:
    if not url:
        raise PolicyUrlMissing(POLICY_URL_SETTING)
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise PolicyUrlInvalid(url, str(e)) from e
    if parsed.scheme not in ("http", "https"):
        raise PolicyUrlInvalid(url, "scheme must be http or https")
    if not parsed.host:
        raise PolicyUrlInvalid(url, "missing host")
    return parsed


class PolicyClient:
    """
    Decides ALLOW/DENY for (principal, resource, action).

    `authorize` returns None when access is permitted and raises `AccessDenied`
    otherwise. No call is ever retried.
    """

    def __init__(
        self,
        *,
        policy_url: str | None,
        http: httpx.Client | None = None,
        cache: DecisionCache | None = None,
        enabled: bool = True,
        dry_run: bool = False,
        use_cache: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._enabled = enabled
        self._dry_run = dry_run
        self._use_cache = use_cache
        self._timeout = httpx.Timeout(timeout)
        self._cache = cache if cache is not None else DecisionCache()
        self._url: httpx.URL | None = None
        self._http = http
        self._owns_http = False

        if not enabled:
            return

        self._url = _validate_url(policy_url)
        if self._http is None:
            self._http = httpx.Client(timeout=self._timeout)
            self._owns_http = True

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http: httpx.Client | None = None,
        cache: DecisionCache | None = None,
    ) -> PolicyClient:
        return cls(
            policy_url=settings.policy_url,
            http=http,
            cache=cache,
            enabled=settings.authorization_enabled,
            dry_run=settings.dry_run,
            use_cache=settings.use_cache,
            timeout=settings.timeout_seconds,
        )

    @property
    def cache(self) -> DecisionCache:
        return self._cache

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def use_cache(self) -> bool:
        return self._use_cache

    def authorize(self, principal: Principal, resource: Resource, action: Action) -> None:
        if not self._enabled:
            return

        query = AllowQuery.build(principal, resource, action)
        body = encode_query(query)
        log.info("opa_request", body=encode_query(query, pretty=True))

        if self._dry_run:
            log.info("opa_dry_run", detail="omitting policy call")
            return

        bound = log.bind(principal=principal.name, resource=str(resource), action=str(action))

        if self._use_cache:
            cached = self._cache.lookup(principal, resource, action)
            if cached is Decision.allow:
                bound.info("opa_cache_hit", decision=str(cached))
                return
            if cached is Decision.deny:
                bound.info("opa_cache_hit", decision=str(cached))
                raise AccessDenied(
                    f"Policy engine denied {action} on {resource} for {principal} (denial cached)",
                    cached=True,
                )

        response = self._post(body)
        bound.info("opa_response", status=response.status_code, body=response.text)

        if response.status_code == 404:
            raise EndpointNotFound(str(self._url))
        if response.status_code != 200:
            raise PolicyServerError(
                query=body, status_code=response.status_code, body=response.text
            )

        result = decode_result(response.content)
        decision = Decision.from_verdict(result.allowed)
        if self._use_cache:
            bound.info("opa_cache_update", decision=str(decision))
            self._cache.record(principal, resource, action, decision)

        if decision is Decision.deny:
            detail = "" if result.result_present else " (no result in policy response)"
            raise AccessDenied(
                f"Policy engine denied {action} on {resource} for {principal}{detail}",
                cached=False,
            )

    def check_namespace(self, principal: Principal, namespace: str, action: Action) -> None:
        # Namespace-scoped: the query carries `table: null`.
        self.authorize(principal, Resource.for_namespace(namespace), action)

    def is_allowed(self, principal: Principal, resource: Resource, action: Action) -> bool:
        # Only denial maps to False; transport/config failures still raise.
        try:
            self.authorize(principal, resource, action)
        except AccessDenied:
            return False
        return True

    def _post(self, body: str) -> httpx.Response:
        if self._http is None or self._url is None:
            raise RuntimeError("policy client is disabled and has no transport")
        try:
            return self._http.post(
                self._url,
                content=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            log.error("opa_query_failed", url=str(self._url), error=str(e))
            raise QueryFailed(str(self._url), e) from e

    def close(self) -> None:
        # Injected transports are owned by the caller.
        if self._owns_http and self._http is not None:
            self._http.close()

    def __enter__(self) -> PolicyClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# --- Module Notes -----------------------------------------------------------
# Transport failures are never cached: an unreachable engine is neither ALLOW nor DENY.
# Concurrent misses for the same triple may both reach the engine; there is no
# single-flight de-duplication.
