"""
Network Intel - command line entry point
Run the HTTP service or perform a one-off lookup from this machine
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style, init as colorama_init

from netintel.api.server import run_server
from netintel.config.config_manager import get_config_manager
from netintel.core.exceptions import ConfigurationError
from netintel.core.models import AggregationResult, IpHint
from netintel.enrichment.aggregator import collect_network_intel
from netintel.enrichment.location.normalizers import classify_address
from netintel.enrichment.merge import is_geo_weak
from netintel.providers.fetcher import ProviderFetcher
from netintel.utils.logging_config import setup_logging


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Network Intel - public IP and geolocation aggregation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  netintel serve --port 8080          # Serve GET /api/network-intel
  netintel lookup                     # Look up this machine's public IPs
  netintel lookup --ip 203.0.113.5    # Seed the lookup with a known address
  netintel lookup --json              # Print the raw JSON payload
        """
    )
    parser.add_argument('--config', type=Path, help='Path to a YAML config file')
    parser.add_argument('--log-level', help='Override the configured log level')

    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the HTTP service')
    serve.add_argument('--host', help='Interface to bind')
    serve.add_argument('--port', type=int, help='Port to listen on')

    lookup = subparsers.add_parser('lookup', help='Run one aggregation and print the result')
    lookup.add_argument('--ip', help='Known client IP to seed the lookup with')
    lookup.add_argument('--json', action='store_true', help='Print the JSON payload')

    return parser


async def _lookup(ip: Optional[str], config) -> AggregationResult:
    hint = IpHint(ip=ip, source='cli') if ip else None
    async with ProviderFetcher(user_agent=config.user_agent) as fetcher:
        return await collect_network_intel(hint, fetcher, config)


def _print_result(result: AggregationResult):
    record = result.record
    status = f"{Fore.GREEN}[OK]" if result.success else f"{Fore.RED}[FAIL]"
    print(f"\n{status} NETWORK INTEL{Style.RESET_ALL}")
    print("=" * 40)

    rows = [
        ("IPv4", record.ipv4),
        ("IPv6", record.ipv6),
        ("ISP", record.isp),
        ("City", record.city),
        ("Country", record.country),
        ("Coordinates", f"{record.lat}, {record.lon}" if record.lat is not None else None),
    ]
    for label, value in rows:
        shown = value if value else f"{Style.DIM}-{Style.RESET_ALL}"
        print(f"  {label:<12} {shown}")

    if result.success and is_geo_weak(record):
        print(f"\n{Fore.YELLOW}Geolocation is weak: no provider reported location data{Style.RESET_ALL}")

    print(f"\n  Sources used: {', '.join(result.sources_used) or 'none'}")
    print(f"  Attempted:    {len(result.attempted_provider_ids)} providers, "
          f"{len(result.failures)} failed ({result.processing_time:.2f}s)")


def main(args: Optional[List[str]] = None) -> int:
    parsed = _create_parser().parse_args(args)

    try:
        config_manager = get_config_manager(parsed.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2

    logging_config = config_manager.get_logging_config()
    setup_logging(parsed.log_level or logging_config.level, logging_config.log_file)
    aggregation_config = config_manager.get_aggregation_config()

    if parsed.command == 'serve':
        server_config = config_manager.get_server_config()
        run_server(
            parsed.host or server_config.host,
            parsed.port or server_config.port,
            aggregation_config,
        )
        return 0

    if parsed.ip and not classify_address(parsed.ip):
        print(f"Not an IP address: {parsed.ip}", file=sys.stderr)
        return 2

    result = asyncio.run(_lookup(parsed.ip.strip() if parsed.ip else None, aggregation_config))

    if parsed.json:
        print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    else:
        colorama_init()
        _print_result(result)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
