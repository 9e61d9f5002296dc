"""
Standard JSON error bodies and the exception-to-status mapping.

Every error response has the shape
{"error": <title>, "message": <reason>, "code": <machine code>}.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sentimentiq.utils.errors import (
    ConfigurationError,
    FeatureNotPermittedError,
    PersistenceError,
    ProviderError,
    ValidationError,
)

logger = logging.getLogger("web.responses")

# Title shown for each validation code
VALIDATION_TITLES: Dict[str, str] = {
    "text_required": "Invalid input",
    "text_too_long": "Text too long",
    "text_too_short": "Text too short",
    "no_features": "No features selected",
    "feature_not_permitted": "Feature not permitted",
    "feature_disabled": "Feature disabled",
    "history_unavailable": "History not available",
    "invalid_input": "Invalid input",
}

FORBIDDEN_CODES = ("feature_not_permitted", "history_unavailable")


class ErrorResponse:
    """Builders for standardized error bodies."""

    @staticmethod
    def create(title: str, message: str, code: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": title, "message": message}
        if code:
            body["code"] = code
        return body

    @staticmethod
    def validation_error(message: str, code: str = "invalid_input") -> Dict[str, Any]:
        return ErrorResponse.create(VALIDATION_TITLES.get(code, "Invalid input"), message, code)

    @staticmethod
    def not_found(message: str = "The requested endpoint does not exist") -> Dict[str, Any]:
        return ErrorResponse.create("Not found", message, "not_found")

    @staticmethod
    def unauthorized(message: str) -> Dict[str, Any]:
        return ErrorResponse.create("Unauthorized", message, "unauthorized")

    @staticmethod
    def internal_error(message: str = "Something went wrong on our end") -> Dict[str, Any]:
        return ErrorResponse.create("Internal server error", message, "internal_error")


def error_response(error: Exception) -> Tuple[Dict[str, Any], int]:
    """
    Map an exception to (body, status).

    ValidationError -> 400 (403 for permission codes), ProviderError -> 502,
    ConfigurationError -> 503, anything else -> 500.
    """
    if isinstance(error, ValidationError):
        status = 403 if isinstance(error, FeatureNotPermittedError) or error.code in FORBIDDEN_CODES else 400
        return ErrorResponse.validation_error(error.message, error.code), status

    if isinstance(error, ConfigurationError):
        return ErrorResponse.create(
            "Provider not configured", error.message, "provider_not_configured"
        ), 503

    if isinstance(error, ProviderError):
        return ErrorResponse.create("Analysis failed", error.message, "provider_error"), 502

    if isinstance(error, PersistenceError):
        logger.error(f"Persistence error: {error}")
        return ErrorResponse.create(
            "Storage error", "Unable to access analysis history right now", "persistence_error"
        ), 500

    logger.error(f"Unexpected error: {error}", exc_info=error)
    return ErrorResponse.internal_error(), 500
