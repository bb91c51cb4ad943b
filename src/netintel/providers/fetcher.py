"""
HTTP fetcher for third-party providers
"""

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from netintel.core.exceptions import (
    ProviderDecodeError,
    ProviderHTTPError,
    ProviderNetworkError,
    ProviderTimeoutError,
)
from netintel.core.models import ProviderDescriptor, ProviderFormat

DEFAULT_USER_AGENT = 'netintel/1.0'


class ProviderFetcher:
    """
    Fetches and decodes provider responses over a shared aiohttp session.

    Every failure is raised as a ProviderError subclass carrying a reason tag,
    so callers only ever have one exception family to absorb. Deadlines are
    enforced by the caller.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 user_agent: str = DEFAULT_USER_AGENT):
        self.logger = logging.getLogger(__name__)
        self.session = session
        self.user_agent = user_agent
        self._owns_session = False

    async def __aenter__(self):
        """Async context manager entry"""
        if not self.session:
            self.session = aiohttp.ClientSession(
                headers={
                    'User-Agent': self.user_agent,
                    'Accept': 'application/json, text/plain, */*',
                    'Cache-Control': 'no-store'
                }
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None
        self._owns_session = False

    async def fetch(self, provider: ProviderDescriptor) -> Any:
        """
        Fetch one provider

        Args:
            provider: Endpoint to query

        Returns:
            Decoded JSON for structured providers, raw text otherwise
        """
        if not self.session:
            raise ProviderNetworkError("Session not initialized", provider.id)

        try:
            async with self.session.get(provider.url) as response:
                if not 200 <= response.status < 300:
                    raise ProviderHTTPError(response.status, provider.id)

                if provider.format is ProviderFormat.STRUCTURED:
                    try:
                        return await response.json(content_type=None)
                    except (json.JSONDecodeError, UnicodeDecodeError, aiohttp.ContentTypeError) as e:
                        raise ProviderDecodeError(f"Invalid JSON from {provider.id}: {e}", provider.id)

                try:
                    return await response.text()
                except UnicodeDecodeError as e:
                    raise ProviderDecodeError(f"Undecodable body from {provider.id}: {e}", provider.id)

        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(f"Timed out calling {provider.id}: {e}", provider.id)
        except aiohttp.ClientError as e:
            raise ProviderNetworkError(f"Network error calling {provider.id}: {e}", provider.id)
