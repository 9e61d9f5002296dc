"""
Analysis providers.

Usage:
    from sentimentiq.providers import create_provider

    provider = create_provider(config["provider"])
    document = provider.analyze(FeatureKind.SENTIMENT, "Lovely day.")
"""

from typing import Any, Dict, Optional

from sentimentiq.providers.azure import AzureLanguageProvider
from sentimentiq.providers.base import AnalysisProvider, BaseAnalysisProvider
from sentimentiq.providers.llm import LLMLanguageProvider
from sentimentiq.utils.errors import ConfigurationError


def create_provider(config: Optional[Dict[str, Any]] = None) -> AnalysisProvider:
    """
    Factory function to create a provider from the 'provider' config section.

    Raises:
        ConfigurationError: If the provider name is unknown.
    """
    config = config or {}
    name = str(config.get("name", "azure")).lower()

    if name == "azure":
        return AzureLanguageProvider(
            endpoint=config.get("endpoint"),
            api_key=config.get("api_key"),
            api_version=config.get("api_version", "2023-04-01"),
            language=config.get("language", "en"),
            timeout=config.get("timeout", 30),
        )
    if name in ("openai", "togetherai"):
        return LLMLanguageProvider(
            provider=name,
            model=config.get("model"),
            api_key=config.get("api_key"),
            temperature=config.get("temperature", 0.0),
            max_tokens=config.get("max_tokens", 1000),
            timeout=config.get("timeout", 30),
        )

    raise ConfigurationError(f"Unknown analysis provider: {name}", config_key="provider.name")


__all__ = [
    "AnalysisProvider",
    "AzureLanguageProvider",
    "BaseAnalysisProvider",
    "LLMLanguageProvider",
    "create_provider",
]
