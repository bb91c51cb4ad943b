"""Tests for the aiohttp provider fetcher against a local server."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from netintel.core.exceptions import (
    ProviderDecodeError,
    ProviderHTTPError,
    ProviderNetworkError,
)
from netintel.core.models import ProviderDescriptor, ProviderFormat
from netintel.providers.fetcher import ProviderFetcher


async def _json_ok(request):
    return web.json_response({"ip": "203.0.113.5", "ua": request.headers.get("User-Agent")})


async def _json_as_text(request):
    return web.Response(text='{"ip": "2001:db8::1"}', content_type="text/plain")


async def _plain(request):
    return web.Response(text="203.0.113.5\n")


async def _broken_json(request):
    return web.Response(text="<html>rate limited</html>", content_type="text/html")


async def _server_error(request):
    return web.Response(status=503, text="busy")


def _provider_app():
    app = web.Application()
    app.router.add_get("/json", _json_ok)
    app.router.add_get("/json-text", _json_as_text)
    app.router.add_get("/plain", _plain)
    app.router.add_get("/broken", _broken_json)
    app.router.add_get("/error", _server_error)
    return app


def _provider(server, path, fmt=ProviderFormat.STRUCTURED):
    return ProviderDescriptor(f"test{path.replace('/', '-')}", str(server.make_url(path)), fmt)


class TestProviderFetcher:
    @pytest.mark.asyncio
    async def test_structured_and_plain_bodies(self):
        async with TestServer(_provider_app()) as server:
            async with ProviderFetcher(user_agent="netintel-test") as fetcher:
                body = await fetcher.fetch(_provider(server, "/json"))
                assert body == {"ip": "203.0.113.5", "ua": "netintel-test"}

                body = await fetcher.fetch(_provider(server, "/json-text"))
                assert body == {"ip": "2001:db8::1"}

                text = await fetcher.fetch(_provider(server, "/plain", ProviderFormat.PLAIN_TEXT))
                assert text == "203.0.113.5\n"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_http_error(self):
        async with TestServer(_provider_app()) as server:
            async with ProviderFetcher() as fetcher:
                with pytest.raises(ProviderHTTPError) as exc_info:
                    await fetcher.fetch(_provider(server, "/error"))
        assert exc_info.value.reason == "http-503"
        assert exc_info.value.status == 503

    @pytest.mark.asyncio
    async def test_invalid_json_raises_decode_error(self):
        async with TestServer(_provider_app()) as server:
            async with ProviderFetcher() as fetcher:
                with pytest.raises(ProviderDecodeError) as exc_info:
                    await fetcher.fetch(_provider(server, "/broken"))
        assert exc_info.value.reason == "decode-error"

    @pytest.mark.asyncio
    async def test_connection_refused_raises_network_error(self):
        server = TestServer(_provider_app())
        await server.start_server()
        url = str(server.make_url("/json"))
        await server.close()

        provider = ProviderDescriptor("gone", url, ProviderFormat.STRUCTURED)
        async with ProviderFetcher() as fetcher:
            with pytest.raises(ProviderNetworkError) as exc_info:
                await fetcher.fetch(provider)
        assert exc_info.value.reason == "network-error"

    @pytest.mark.asyncio
    async def test_fetch_without_session(self):
        fetcher = ProviderFetcher()
        with pytest.raises(ProviderNetworkError):
            await fetcher.fetch(ProviderDescriptor("x", "http://127.0.0.1/", ProviderFormat.STRUCTURED))

    @pytest.mark.asyncio
    async def test_borrowed_session_is_not_closed(self):
        import aiohttp

        async with aiohttp.ClientSession() as session:
            async with ProviderFetcher(session=session):
                pass
            assert not session.closed
