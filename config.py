"""
Configuration Module
====================
Settings for the order lifecycle engine, read from the environment
(and a local .env file when present).

Values are validated when the configuration is first requested, so a bad
setting fails before any order is created.
"""

import os
import logging
from typing import Optional, Dict, Any
from pathlib import Path
from dotenv import load_dotenv


logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
TRUTHY = ("true", "1", "yes", "on", "enabled")


def load_environment():
    """Load a .env file from the working directory, if there is one."""
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded environment from .env file")


load_environment()


class ConfigurationError(Exception):
    """Raised when a setting is malformed or out of range."""
    pass


# ============================================================================
# ENVIRONMENT READERS
# ============================================================================

def _env_str(key: str, default: str) -> str:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


def _env_number(key: str, default, cast):
    """
    Read a numeric setting.

    Args:
        key: Environment variable name
        default: Value used when the variable is unset or empty
        cast: int or float

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    value = os.getenv(key)
    if value is None or not value.strip():
        return default

    try:
        return cast(value.strip())
    except ValueError:
        raise ConfigurationError(f"Invalid {cast.__name__} value for {key}: {value}")


# ============================================================================
# SECTIONS
# ============================================================================

class CoreConfig:
    """Restaurant and logging settings."""

    def __init__(self):
        self.default_restaurant = _env_str("DEFAULT_RESTAURANT", "McDonalds")
        self.log_level = _env_str("LOG_LEVEL", "INFO").upper()

        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid LOG_LEVEL: {self.log_level}")


class DiscountConfig:
    """Discount defaults."""

    def __init__(self):
        # Loyalty points per currency unit
        self.loyalty_conversion_rate = _env_number("LOYALTY_CONVERSION_RATE", 100.0, float)

        if not self.loyalty_conversion_rate > 0:
            raise ConfigurationError(
                f"LOYALTY_CONVERSION_RATE must be positive: {self.loyalty_conversion_rate}"
            )


class DeliveryConfig:
    """Simulated delivery settings."""

    def __init__(self):
        self.estimate = _env_str("DELIVERY_ESTIMATE", "15-20 minutes")


class FeatureFlags:
    """Optional functionality."""

    def __init__(self):
        self.enable_metrics_server = _env_bool("ENABLE_METRICS_SERVER", False)
        self.metrics_port = _env_number("METRICS_PORT", 8000, int)

        if not 1 <= self.metrics_port <= 65535:
            raise ConfigurationError(
                f"METRICS_PORT must be between 1 and 65535: {self.metrics_port}"
            )


class Config:
    """All configuration sections, validated on construction."""

    def __init__(self):
        try:
            self.core = CoreConfig()
            self.discounts = DiscountConfig()
            self.delivery = DeliveryConfig()
            self.features = FeatureFlags()
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            raise

        logger.debug("Configuration loaded")

    def get_safe_summary(self) -> Dict[str, Any]:
        return {
            "default_restaurant": self.core.default_restaurant,
            "log_level": self.core.log_level,
            "loyalty_conversion_rate": self.discounts.loyalty_conversion_rate,
            "delivery_estimate": self.delivery.estimate,
            "features": {
                "metrics_server": self.features.enable_metrics_server,
            },
            "metrics_port": self.features.metrics_port,
        }


# ============================================================================
# ACCESS
# ============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Shared configuration, built on first use.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config

    if _config is None:
        _config = Config()

    return _config


def reload_config() -> Config:
    """Rebuild the shared configuration from the current environment."""
    global _config
    load_environment()
    _config = Config()
    logger.info("Configuration reloaded")
    return _config


def get_default_restaurant() -> str:
    return get_config().core.default_restaurant


def is_feature_enabled(feature_name: str) -> bool:
    """True if the 'enable_<feature_name>' flag is set."""
    return getattr(get_config().features, f"enable_{feature_name}", False)
