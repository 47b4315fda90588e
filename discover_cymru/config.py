"""
Centralized configuration management with validation and type conversion.

All settings come from environment variables. The Google Maps key is not
part of Config: get_geocode_api_key() reads it on every request, and a
missing key is a request error, never a startup error.
"""

import os
import logging
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum


GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
API_KEY_ENV_VARS = ("GOOGLE_MAPS_API_KEY", "NEXT_PUBLIC_GOOGLE_MAPS_API_KEY")


class Environment(Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class TimeoutConfig:
    """Timeout configuration for different operations."""
    geo: float = 5.0
    api: float = 30.0

    def get(self, operation: str) -> float:
        """Get timeout for a specific operation, defaulting to the API timeout."""
        return getattr(self, operation, self.api)


@dataclass
class GeocodeConfig:
    """Geocode cache service configuration."""
    cache_file: str = ".geocode-cache.json"
    concurrency: int = 10
    region_suffix: str = ", Wales, UK"
    url: str = GOOGLE_GEOCODE_URL


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5


class Config:
    """Centralized configuration with validation and type conversion."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.environment = self._get_environment()
        self.debug = self._get_bool("DEBUG", False)

        # Redis only backs metrics; empty means in-process metrics
        self.redis_url: str = self._get_str("REDIS_URL", "")
        self.cors_origin: str = self._get_str("CORS_ORIGIN", "http://localhost:3000")

        self.timeout_config = TimeoutConfig(
            geo=self._get_float("TIMEOUT_GEO", 5.0),
            api=self._get_float("TIMEOUT_API", 30.0),
        )

        self.geocode_config = GeocodeConfig(
            cache_file=self._get_str("GEOCODE_CACHE_FILE", ".geocode-cache.json"),
            concurrency=self._get_int("GEOCODE_CONCURRENCY", 10),
            region_suffix=self._get_str("GEOCODE_REGION_SUFFIX", ", Wales, UK"),
            url=self._get_str("GEOCODE_URL", GOOGLE_GEOCODE_URL),
        )

        self.logging_config = LoggingConfig(
            level=self._get_str("LOG_LEVEL", "INFO"),
            format=self._get_str("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            file=self._get_optional("LOG_FILE"),
            max_bytes=self._get_int("LOG_MAX_BYTES", 10485760),
            backup_count=self._get_int("LOG_BACKUP_COUNT", 5),
        )

        self._validate()

    def _get_environment(self) -> Environment:
        """Get application environment."""
        env_str = self._get_str("ENVIRONMENT", "development").lower()
        try:
            return Environment(env_str)
        except ValueError:
            raise ValueError(f"Invalid environment: {env_str}")

    def _get_optional(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return os.getenv(key, default)

    def _get_str(self, key: str, default: str) -> str:
        return os.getenv(key, default)

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable with default.

        Raises:
            ValueError: If value cannot be converted to int
        """
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Invalid integer for {key}: {value}")

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable with default.

        Raises:
            ValueError: If value cannot be converted to float
        """
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"Invalid float for {key}: {value}")

    def _get_bool(self, key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ('1', 'true', 'yes', 'on')

    def _validate(self):
        """Validate configuration values."""
        for attr_name in ['geo', 'api']:
            timeout = getattr(self.timeout_config, attr_name)
            if timeout <= 0:
                raise ValueError(f"Invalid timeout for {attr_name}: {timeout}")

        if self.geocode_config.concurrency < 1:
            raise ValueError(f"Invalid geocode concurrency: {self.geocode_config.concurrency}")

        if self.redis_url and not self.redis_url.startswith(('redis://', 'rediss://')):
            raise ValueError(f"Invalid Redis URL: {self.redis_url}")

        # Optional API key warning (don't crash)
        if not get_geocode_api_key():
            logging.warning("GOOGLE_MAPS_API_KEY not set - geocode requests will fail until it is configured")

    def get_timeout(self, operation: str) -> float:
        return self.timeout_config.get(operation)

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for debugging.

        The API key is reported as present/absent only.
        """
        return {
            'environment': self.environment.value,
            'debug': self.debug,
            'redis_url': self.redis_url,
            'api_key_configured': bool(get_geocode_api_key()),
            'timeout_config': {
                'geo': self.timeout_config.geo,
                'api': self.timeout_config.api,
            },
            'geocode_config': {
                'cache_file': self.geocode_config.cache_file,
                'concurrency': self.geocode_config.concurrency,
                'region_suffix': self.geocode_config.region_suffix,
            },
        }


_config: Optional[Config] = None


def get_config() -> Config:
    """Get the process-wide configuration instance, building it on first use."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() rereads the environment."""
    global _config
    _config = None


def get_geocode_api_key() -> Optional[str]:
    """Return the Google Maps API key from the environment, or None."""
    for key in API_KEY_ENV_VARS:
        value = os.getenv(key)
        if value:
            return value
    return None


def setup_logging():
    """Set up logging based on configuration."""
    from logging.handlers import RotatingFileHandler

    config = get_config()

    logging.basicConfig(
        level=getattr(logging, config.logging_config.level.upper()),
        format=config.logging_config.format,
    )

    if config.logging_config.file:
        file_handler = RotatingFileHandler(
            config.logging_config.file,
            maxBytes=config.logging_config.max_bytes,
            backupCount=config.logging_config.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(config.logging_config.format))
        logging.getLogger().addHandler(file_handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    if config.is_development():
        logging.getLogger().setLevel(logging.DEBUG)
    elif config.is_production():
        logging.getLogger().setLevel(logging.INFO)
