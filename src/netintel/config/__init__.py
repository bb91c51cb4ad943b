# src/netintel/config/__init__.py
"""Configuration module"""

from .config_manager import *

__all__ = [
    'AggregationConfig', 'ServerConfig', 'LoggingConfig', 'ConfigManager',
    'get_config_manager', 'reset_config_manager'
]
