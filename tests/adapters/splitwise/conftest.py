from __future__ import annotations

import httpx
import pytest

from splitledger.config.http_resilience import ResilienceConfig, RetryPolicy
from splitledger.config.splitwise import SPLITWISE_API_BASE_URL, SplitwiseConfig


@pytest.fixture
def splitwise_config() -> SplitwiseConfig:
    return SplitwiseConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:8000/callback",
        resilience=ResilienceConfig(
            name="splitwise-test",
            base_url=SPLITWISE_API_BASE_URL,
            retry=RetryPolicy(total=0),
            cache=None,
        ),
    )


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []
