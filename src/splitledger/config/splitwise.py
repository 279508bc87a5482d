"""Splitwise configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

SPLITWISE_API_BASE_URL = "https://secure.splitwise.com/api/v3.0/"
SPLITWISE_AUTHORIZE_URL = "https://secure.splitwise.com/oauth/authorize"
SPLITWISE_TOKEN_URL = "https://secure.splitwise.com/oauth/token"
SPLITWISE_TIMEOUT_SECONDS = 30.0


def default_splitwise_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="splitwise",
        base_url=SPLITWISE_API_BASE_URL,
        timeout_seconds=SPLITWISE_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
        cache=CacheConfig(),
    )


@dataclass(frozen=True)
class SplitwiseConfig:
    """Holds Splitwise OAuth application settings.

    Client credentials are only needed for the authorization-code flow; a migration
    driven by a personal API token leaves them unset.
    """

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    token_url: str = SPLITWISE_TOKEN_URL
    authorize_url: str = SPLITWISE_AUTHORIZE_URL
    resilience: ResilienceConfig = field(default_factory=default_splitwise_resilience)


def get_splitwise_config(*, resilience: ResilienceConfig | None = None) -> SplitwiseConfig:
    values = require_env_vars(("SPLITWISE_CLIENT_ID", "SPLITWISE_CLIENT_SECRET"))
    return SplitwiseConfig(
        client_id=values["SPLITWISE_CLIENT_ID"],
        client_secret=values["SPLITWISE_CLIENT_SECRET"],
        redirect_uri=optional_env_var("SPLITWISE_REDIRECT_URI"),
        resilience=resilience or default_splitwise_resilience(),
    )


def get_splitwise_token_config(*, resilience: ResilienceConfig | None = None) -> SplitwiseConfig:
    return SplitwiseConfig(
        client_id=optional_env_var("SPLITWISE_CLIENT_ID"),
        client_secret=optional_env_var("SPLITWISE_CLIENT_SECRET"),
        redirect_uri=optional_env_var("SPLITWISE_REDIRECT_URI"),
        resilience=resilience or default_splitwise_resilience(),
    )
