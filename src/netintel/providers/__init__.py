"""
Provider catalog, response parsers and HTTP fetcher
"""

from .catalog import build_providers
from .fetcher import ProviderFetcher
from .parsers import parse_provider_response

__all__ = [
    'build_providers',
    'ProviderFetcher',
    'parse_provider_response'
]
