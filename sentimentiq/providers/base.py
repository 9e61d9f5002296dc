"""
Protocol and base class for analysis providers.

AnalysisProvider is the structural subtyping protocol the orchestrator
depends on; BaseAnalysisProvider provides the Template Method
implementation with timing, logging and error wrapping.
"""

import logging
import time
from abc import abstractmethod
from typing import Any, Dict, Protocol, runtime_checkable

from sentimentiq.core.models import FeatureKind
from sentimentiq.utils.errors import ProviderError


@runtime_checkable
class AnalysisProvider(Protocol):
    """
    Protocol every analysis provider implements.

    analyze() returns one document in the cloud language service's
    document shape for the requested feature, or raises ProviderError.
    """

    @property
    def name(self) -> str:
        """Provider identifier (e.g. 'azure', 'openai')."""
        ...

    @property
    def is_configured(self) -> bool:
        """False when credentials are missing or invalid."""
        ...

    def analyze(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        ...

    def diagnostics(self) -> Dict[str, Any]:
        """Configuration report safe to show to operators."""
        ...


class BaseAnalysisProvider:
    """
    Template Method base class for providers.

    analyze() handles timing, logging and error wrapping; subclasses
    implement _analyze_impl().
    """

    def __init__(self, name: str):
        self._name = name
        self.logger = logging.getLogger(f"provider.{name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_configured(self) -> bool:
        return True

    def analyze(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        """
        Template method: impl -> type check -> wrap errors.

        Raises:
            ProviderError: If the call fails or returns something other
                than a JSON object.
        """
        feature = FeatureKind(feature)
        start = time.time()
        self.logger.debug(f"Calling {self._name} for '{feature.value}' ({len(text)} chars)")

        try:
            document = self._analyze_impl(feature, text)
        except ProviderError as e:
            if e.feature is None:
                e.feature = feature.value
            if e.provider is None:
                e.provider = self._name
            self.logger.error(f"{self._name} '{feature.value}' failed: {e.message}")
            raise
        except Exception as e:
            self.logger.error(f"{self._name} '{feature.value}' failed: {e}")
            raise ProviderError(
                f"{self._name} request failed: {e}",
                feature=feature.value,
                provider=self._name,
                original_error=e,
            ) from e

        if not isinstance(document, dict):
            raise ProviderError(
                f"malformed response: {self._name} returned {type(document).__name__} "
                f"for '{feature.value}'",
                feature=feature.value,
                provider=self._name,
            )

        elapsed = time.time() - start
        self.logger.info(f"{self._name} '{feature.value}' completed in {elapsed:.3f}s")
        return document

    def diagnostics(self) -> Dict[str, Any]:
        return {"provider": self._name, "configured": self.is_configured}

    @abstractmethod
    def _analyze_impl(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        """Subclasses implement the actual provider call here."""
        raise NotImplementedError


def mask_secret(secret: str) -> str:
    """First and last 8 characters of a credential, for diagnostics."""
    if not secret:
        return "NOT_SET"
    if len(secret) <= 16:
        return "*" * len(secret)
    return f"{secret[:8]}...{secret[-8:]}"
