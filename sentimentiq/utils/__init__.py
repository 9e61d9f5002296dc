"""
Utility modules for configuration, logging, and error handling.
"""

from sentimentiq.utils.errors import (
    SentimentIQError,
    ValidationError,
    FeatureNotPermittedError,
    FeatureDisabledError,
    ProviderError,
    PersistenceError,
    ConfigurationError,
)
from sentimentiq.utils.logging import get_logger, setup_logging, JSONFormatter
from sentimentiq.utils.config import ConfigManager, load_config

__all__ = [
    "SentimentIQError",
    "ValidationError",
    "FeatureNotPermittedError",
    "FeatureDisabledError",
    "ProviderError",
    "PersistenceError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
]
