"""
Configuration Manager for the network intel service
Loads defaults, an optional YAML file and environment overrides
"""

import os
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from netintel.core.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = Path("config") / "netintel.yaml"


@dataclass
class AggregationConfig:
    """Time and concurrency budgets for one aggregation run"""
    provider_timeout_ms: int = 3500
    overall_timeout_ms: int = 10000
    concurrency_limit: int = 6
    settle_grace_ms: int = 25
    user_agent: str = "netintel/1.0"

    @property
    def provider_timeout(self) -> float:
        return self.provider_timeout_ms / 1000.0

    @property
    def overall_timeout(self) -> float:
        return self.overall_timeout_ms / 1000.0

    @property
    def settle_grace(self) -> float:
        return self.settle_grace_ms / 1000.0


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: Optional[str] = None


# Environment variable -> (section, key)
ENV_MAPPINGS = {
    'NETINTEL_PROVIDER_TIMEOUT_MS': ('aggregation', 'provider_timeout_ms'),
    'NETINTEL_OVERALL_TIMEOUT_MS': ('aggregation', 'overall_timeout_ms'),
    'NETINTEL_CONCURRENCY_LIMIT': ('aggregation', 'concurrency_limit'),
    'NETINTEL_HOST': ('server', 'host'),
    'NETINTEL_PORT': ('server', 'port'),
    'LOG_LEVEL': ('logging', 'level'),
    'LOG_FILE': ('logging', 'log_file'),
}

_POSITIVE_INTS = {
    'aggregation': ('provider_timeout_ms', 'overall_timeout_ms', 'concurrency_limit'),
    'server': ('port',),
}


class ConfigManager:
    """
    Holds the aggregation, server and logging settings.

    Precedence is defaults, then the YAML file, then environment variables.
    """

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None):
        self.logger = logging.getLogger(__name__)
        self.environ = os.environ if environ is None else environ
        self.config_path = Path(config_path or self.environ.get('NETINTEL_CONFIG') or DEFAULT_CONFIG_FILE)

        self.aggregation = AggregationConfig()
        self.server = ServerConfig()
        self.logging = LoggingConfig()

        self._load_configurations()

    def _load_configurations(self):
        raw = {'aggregation': {}, 'server': {}, 'logging': {}}

        for section, values in self._load_config_file().items():
            if section in raw and isinstance(values, dict):
                raw[section].update(values)

        for env_name, (section, key) in ENV_MAPPINGS.items():
            value = self.environ.get(env_name)
            if value not in (None, ""):
                raw[section][key] = value

        self.aggregation = self._build(AggregationConfig, 'aggregation', raw['aggregation'])
        self.server = self._build(ServerConfig, 'server', raw['server'])
        self.logging = self._build(LoggingConfig, 'logging', raw['logging'])

        if self.aggregation.settle_grace_ms < 0:
            raise ConfigurationError("aggregation.settle_grace_ms must not be negative")

    def _load_config_file(self) -> Dict[str, Any]:
        """Load the YAML config file if there is one"""
        if not self.config_path.exists():
            self.logger.debug(f"Config file not found: {self.config_path}")
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config file {self.config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")

        self.logger.info(f"Loaded configuration from {self.config_path}")
        return data

    def _build(self, config_cls, section: str, values: Dict[str, Any]):
        known = {f.name: f for f in fields(config_cls)}
        kwargs = {}

        for key, value in values.items():
            if key not in known:
                self.logger.warning(f"Ignoring unknown setting {section}.{key}")
                continue

            default = known[key].default
            if isinstance(default, int) and not isinstance(default, bool):
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ConfigurationError(f"{section}.{key} must be an integer, got {value!r}")
            elif value is not None:
                value = str(value)

            kwargs[key] = value

        for key in _POSITIVE_INTS.get(section, ()):
            if key in kwargs and kwargs[key] <= 0:
                raise ConfigurationError(f"{section}.{key} must be positive, got {kwargs[key]}")

        return config_cls(**kwargs)

    def get_aggregation_config(self) -> AggregationConfig:
        return self.aggregation

    def get_server_config(self) -> ServerConfig:
        return self.server

    def get_logging_config(self) -> LoggingConfig:
        return self.logging

    def get_configuration_summary(self) -> Dict[str, Any]:
        """Get a summary of current configuration"""
        return {
            'config_file': str(self.config_path) if self.config_path.exists() else None,
            'aggregation': {
                'provider_timeout_ms': self.aggregation.provider_timeout_ms,
                'overall_timeout_ms': self.aggregation.overall_timeout_ms,
                'concurrency_limit': self.aggregation.concurrency_limit,
            },
            'server': {'host': self.server.host, 'port': self.server.port},
            'logging': {'level': self.logging.level, 'log_file': self.logging.log_file},
        }


# Global configuration manager instance
_config_manager = None

def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """Get the global configuration manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_path)
    return _config_manager

def reset_config_manager():
    """Reset the global configuration manager (useful for testing)"""
    global _config_manager
    _config_manager = None
