# src/netintel/enrichment/__init__.py
"""
Aggregation engine and merge policy
"""

from .aggregator import NetworkIntelAggregator, collect_network_intel
from .merge import choose_isp, is_geo_weak, merge_intel, should_stop_early

__all__ = [
    'NetworkIntelAggregator',
    'collect_network_intel',
    'choose_isp',
    'is_geo_weak',
    'merge_intel',
    'should_stop_early'
]
