"""
opa_authz.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the policy client.
- Offer a cached settings instance for the bootstrap layer and CLI.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration surface consumed by `PolicyClient.from_settings`.

    The policy URL is only required when authorization is enabled; validation
    happens when the client is constructed, not here.
    """

    model_config = SettingsConfigDict(env_prefix="OPA_AUTHZ_", case_sensitive=False)

    service_name: str = "opa-authz"
    log_level: str = "INFO"
    # JSON for log shipping; console rendering is friendlier for the CLI.
    log_json: bool = True

    authorization_enabled: bool = True
    policy_url: str | None = None
    dry_run: bool = False
    use_cache: bool = True

    # The outbound call blocks the calling thread; never leave it unbounded.
    timeout_seconds: float = Field(default=5.0, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Settings are loaded once per process; tests construct `Settings(...)` directly.
