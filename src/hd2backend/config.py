"""
Configuration loader for the status backend

Handles loading and parsing of YAML/JSON configuration files for:
- Upstream API location and client identification headers
- Rate limiting policy shared by every outbound request
- Time windows for dispatches and Steam news
- Polling interval and fallback behaviour
"""

import json
import yaml
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class ApiConfig:
    """Configuration for the upstream API"""
    base_url: str = "https://api.helldivers2.dev/api"
    client: str = "hd2backend"  # X-Super-Client
    contact: str = "hd2backend"  # X-Super-Contact
    request_timeout: float = 15.0  # seconds, whole request
    connect_timeout: float = 5.0
    max_concurrent_requests: int = 7

    def get_headers(self) -> Dict[str, str]:
        """Fixed headers sent with every request"""
        return {
            'X-Super-Client': self.client,
            'X-Super-Contact': self.contact,
        }


@dataclass
class RateLimitConfig:
    """Sliding-window rate limit policy"""
    max_calls: int = 5
    time_window: float = 10.0  # seconds
    buffer: float = 1.0  # seconds added to each wait


@dataclass
class FilterConfig:
    """Time windows for time-sensitive entities"""
    dispatch_window_hours: float = 36
    news_window_days: float = 7


@dataclass
class PollingConfig:
    """Configuration for the polling loop"""
    interval: int = 60  # seconds between snapshots
    error_pause: int = 5  # seconds to pause after an unexpected loop error


@dataclass
class FallbackConfig:
    """Configuration for per-category fallback data"""
    enabled: bool = True


@dataclass
class BackendConfig:
    """Main configuration class for the status backend"""
    api: ApiConfig = field(default_factory=ApiConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def load_from_file(cls, config_path: str) -> 'BackendConfig':
        """Load configuration from YAML or JSON file"""
        path = Path(config_path)

        if not path.exists():
            logger.warning(f"Config file {config_path} not found, using defaults")
            return cls()

        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ['.yaml', '.yml']:
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)

        return cls.from_dict(config_data or {})

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'BackendConfig':
        """Create configuration from dictionary"""
        sections = {
            'api': ApiConfig,
            'rate_limit': RateLimitConfig,
            'filters': FilterConfig,
            'polling': PollingConfig,
            'fallback': FallbackConfig,
        }

        main_config = {k: v for k, v in config_dict.items() if k not in sections}
        for name, section_cls in sections.items():
            main_config[name] = section_cls(**(config_dict.get(name) or {}))

        return cls(**main_config)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, used for the sample config file"""
        return {
            'api': {
                'base_url': self.api.base_url,
                'client': self.api.client,
                'contact': self.api.contact,
                'request_timeout': self.api.request_timeout,
                'connect_timeout': self.api.connect_timeout,
                'max_concurrent_requests': self.api.max_concurrent_requests
            },
            'rate_limit': {
                'max_calls': self.rate_limit.max_calls,
                'time_window': self.rate_limit.time_window,
                'buffer': self.rate_limit.buffer
            },
            'filters': {
                'dispatch_window_hours': self.filters.dispatch_window_hours,
                'news_window_days': self.filters.news_window_days
            },
            'polling': {
                'interval': self.polling.interval,
                'error_pause': self.polling.error_pause
            },
            'fallback': {
                'enabled': self.fallback.enabled
            },
            'log_level': self.log_level,
            'log_file': self.log_file
        }


def load_config(config_path: str = "config/hd2backend.yaml") -> BackendConfig:
    """Load backend configuration from file or use defaults"""
    try:
        return BackendConfig.load_from_file(config_path)
    except Exception as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        logger.info("Using default configuration")
        return BackendConfig()


def create_sample_config(output_path: str = "config/hd2backend.yaml"):
    """Create a sample configuration file"""
    config_dict = BackendConfig().to_dict()

    # Ensure directory exists
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Sample configuration created at {output_path}")
