"""
aiohttp web application serving GET /api/network-intel
"""

import logging
from typing import Optional

from aiohttp import web

from netintel.api.client_hint import get_client_ip_hint
from netintel.config.config_manager import AggregationConfig
from netintel.enrichment.aggregator import Fetcher, collect_network_intel
from netintel.enrichment.location.normalizers import redact_ip_for_diagnostics
from netintel.providers.fetcher import ProviderFetcher

logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey('aggregation_config', AggregationConfig)
FETCHER_KEY = web.AppKey('fetcher', object)


async def network_intel_handler(request: web.Request) -> web.Response:
    hint = get_client_ip_hint(request.headers)
    if hint:
        logger.debug(f"IP hint {redact_ip_for_diagnostics(hint.ip)} from {hint.source}")

    result = await collect_network_intel(
        hint,
        request.app[FETCHER_KEY],
        request.app[CONFIG_KEY],
    )

    return web.json_response(
        result.to_payload(),
        headers={'Cache-Control': 'no-store'},
    )


def create_app(config: Optional[AggregationConfig] = None,
               fetcher: Optional[Fetcher] = None) -> web.Application:
    """
    Build the web application

    Args:
        config: Aggregation budgets; defaults apply when omitted
        fetcher: Injected fetcher; when omitted a ProviderFetcher is opened
            and closed together with the application
    """
    config = config or AggregationConfig()
    app = web.Application()
    app[CONFIG_KEY] = config

    if fetcher is not None:
        app[FETCHER_KEY] = fetcher
    else:
        async def fetcher_ctx(app: web.Application):
            async with ProviderFetcher(user_agent=config.user_agent) as provider_fetcher:
                app[FETCHER_KEY] = provider_fetcher
                yield

        app.cleanup_ctx.append(fetcher_ctx)

    app.router.add_get('/api/network-intel', network_intel_handler)
    return app


def run_server(host: str, port: int, config: Optional[AggregationConfig] = None):
    logger.info(f"Starting network intel server on {host}:{port}")
    web.run_app(create_app(config), host=host, port=port, print=None)
