"""Shared fixtures for netintel tests."""

import asyncio

import pytest

from netintel.config.config_manager import AggregationConfig, reset_config_manager


class FakeFetcher:
    """Stands in for ProviderFetcher.

    ``responses`` maps provider id to either a body, an exception instance to
    raise, or a ``(delay_seconds, body_or_exception)`` tuple. Providers that
    are not listed fail with a 503.
    """

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def fetch(self, provider):
        from netintel.core.exceptions import ProviderHTTPError

        self.calls.append(provider.id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            response = self.responses.get(provider.id, ProviderHTTPError(503, provider.id))
            if isinstance(response, tuple):
                delay, response = response
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            self.active -= 1


@pytest.fixture()
def fast_config():
    return AggregationConfig(
        provider_timeout_ms=200,
        overall_timeout_ms=500,
        concurrency_limit=4,
        settle_grace_ms=25,
    )


@pytest.fixture(autouse=True)
def _reset_config_manager():
    reset_config_manager()
    yield
    reset_config_manager()
