"""
Azure AI Language provider.

Talks to the 'analyze-text' REST endpoint with one document per call.
The HTTP session is created lazily and shared across worker threads.
"""

import os
import threading
from typing import Any, Dict, Optional

import requests

from sentimentiq.core.models import FeatureKind
from sentimentiq.core.text_stats import summary_sentence_count
from sentimentiq.providers.base import BaseAnalysisProvider, mask_secret
from sentimentiq.utils.errors import ProviderError

DEFAULT_API_VERSION = "2023-04-01"
MIN_KEY_LENGTH = 32
AZURE_DOMAIN = "cognitiveservices.azure.com"

# Task kind per feature
TASK_KINDS: Dict[FeatureKind, str] = {
    FeatureKind.SENTIMENT: "SentimentAnalysis",
    FeatureKind.KEY_PHRASES: "KeyPhraseExtraction",
    FeatureKind.ENTITIES: "EntityRecognition",
    FeatureKind.SUMMARY: "ExtractiveSummarization",
    FeatureKind.LANGUAGE: "LanguageDetection",
}


class AzureLanguageProvider(BaseAnalysisProvider):
    """
    Azure AI Language (Text Analytics) over REST.

    Usage:
        provider = AzureLanguageProvider(
            endpoint="https://my-resource.cognitiveservices.azure.com/",
            api_key=os.environ["AZURE_TEXT_ANALYTICS_KEY"],
        )
        document = provider.analyze(FeatureKind.SENTIMENT, "Great product!")
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        api_version: str = DEFAULT_API_VERSION,
        language: str = "en",
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        super().__init__("azure")
        endpoint = endpoint or os.environ.get("AZURE_TEXT_ANALYTICS_ENDPOINT") or ""
        if endpoint and not endpoint.endswith("/"):
            endpoint += "/"
        self.endpoint = endpoint
        self._api_key = api_key or os.environ.get("AZURE_TEXT_ANALYTICS_KEY") or ""
        self.api_version = api_version
        self.language = language
        self.timeout = timeout
        self._session = session
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Thread-safe lazy-initialized HTTP session."""
        if self._session is None:
            with self._lock:
                if self._session is None:
                    self._session = requests.Session()
        return self._session

    @property
    def analyze_url(self) -> str:
        return f"{self.endpoint}language/:analyze-text?api-version={self.api_version}"

    @property
    def is_configured(self) -> bool:
        return (
            self.endpoint.startswith("https://")
            and AZURE_DOMAIN in self.endpoint
            and len(self._api_key) >= MIN_KEY_LENGTH
        )

    def build_request(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        """Request body for one document."""
        document: Dict[str, Any] = {"id": "1", "text": text}
        # Language detection must not be given a language hint
        if feature != FeatureKind.LANGUAGE:
            document["language"] = self.language

        parameters: Dict[str, Any] = {"modelVersion": "latest"}
        if feature == FeatureKind.SUMMARY:
            parameters["sentenceCount"] = summary_sentence_count(text)
            parameters["sortBy"] = "Rank"

        return {
            "kind": TASK_KINDS[feature],
            "analysisInput": {"documents": [document]},
            "parameters": parameters,
        }

    def _analyze_impl(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        if not self.is_configured:
            raise ProviderError("Azure Language credentials are missing or invalid")

        try:
            response = self.session.post(
                self.analyze_url,
                json=self.build_request(feature, text),
                headers={
                    "Ocp-Apim-Subscription-Key": self._api_key,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(
                f"Azure request failed: {e}", original_error=e
            ) from e

        if not response.ok:
            raise ProviderError(
                f"Azure API error {response.status_code}: {_error_message(response)}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(
                "malformed response: Azure returned non-JSON content", original_error=e
            ) from e

        results = (body or {}).get("results") or {}
        errors = results.get("errors") or []
        if errors:
            first = errors[0].get("error", {}) if isinstance(errors[0], dict) else {}
            raise ProviderError(
                f"Azure document error: {first.get('message', 'unknown error')}"
            )

        documents = results.get("documents") or []
        if not documents:
            raise ProviderError("malformed response: no document in Azure result")
        return documents[0]

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "configured": self.is_configured,
            "hasEndpoint": bool(self.endpoint),
            "hasApiKey": bool(self._api_key),
            "endpoint": self.endpoint or "NOT_SET",
            "apiKeyLength": len(self._api_key),
            "apiKeyPreview": mask_secret(self._api_key),
            "apiVersion": self.api_version,
            "analyzeUrl": self.analyze_url if self.endpoint else None,
        }

    def close(self) -> None:
        if self._session is not None:
            self._session.close()


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "no details"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or error.get("code") or "no details"
    return str(body)[:200]
