"""
Custom exceptions for SentimentIQ Pro.

This module defines a hierarchy of exceptions for handling the error
conditions of the analysis service: rejected input, failing analysis
providers, failing history writes and missing configuration.
"""

from typing import Any, Optional


class SentimentIQError(Exception):
    """Base exception for all SentimentIQ errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(SentimentIQError):
    """Raised when caller input violates a precondition. Never retried."""

    def __init__(
        self,
        message: str,
        code: str = "invalid_input",
        details: Optional[Any] = None,
    ):
        super().__init__(message, details=details)
        self.code = code

    def __str__(self) -> str:
        # Surfaced to end users as-is
        return self.message


class FeatureNotPermittedError(ValidationError):
    """Raised when the caller's tier is not entitled to a feature."""

    def __init__(self, feature: str, tier: str = "guest"):
        super().__init__(
            f"feature not permitted for tier: '{feature}' is not available "
            f"on the {tier} tier",
            code="feature_not_permitted",
            details={"feature": feature, "tier": tier},
        )
        self.feature = feature
        self.tier = tier


class FeatureDisabledError(ValidationError):
    """Raised when a feature is toggled off in configuration."""

    def __init__(self, feature: str):
        super().__init__(
            f"feature disabled: '{feature}' is turned off on this server",
            code="feature_disabled",
            details={"feature": feature},
        )
        self.feature = feature


class ProviderError(SentimentIQError):
    """Raised when a single analysis call fails or returns a malformed payload."""

    def __init__(
        self,
        message: str,
        feature: Optional[str] = None,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.feature = feature
        self.provider = provider
        self.original_error = original_error
        self.details = {
            "feature": feature,
            "provider": provider,
            "original_error": str(original_error) if original_error else None,
        }


class PersistenceError(SentimentIQError):
    """Raised when a history storage operation fails."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.details = {"operation": operation}


class ConfigurationError(SentimentIQError):
    """Raised when configuration is invalid or the provider is unusable."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
