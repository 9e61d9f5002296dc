"""
Chat-model analysis provider.

Asks an OpenAI-compatible chat model to answer in the same JSON document
shape the Azure Language service returns, so the core shapes both the
same way. Supports OpenAI and TogetherAI with a thread-safe lazy client.
"""

import json
import os
import threading
from typing import Any, Dict, Optional

from openai import OpenAI

from sentimentiq.core.models import FeatureKind
from sentimentiq.core.text_stats import summary_sentence_count
from sentimentiq.providers.base import BaseAnalysisProvider, mask_secret
from sentimentiq.utils.errors import ConfigurationError, ProviderError

# Default models per provider
DEFAULT_MODELS: Dict[str, str] = {
    "togetherai": "meta-llama/Llama-3.3-70B-Instruct-Turbo",
    "openai": "gpt-4o-mini",
}

# Base URLs per provider
PROVIDER_BASE_URLS: Dict[str, Optional[str]] = {
    "togetherai": "https://api.together.xyz/v1",
    "openai": None,  # OpenAI SDK uses default
}

API_KEY_ENV_VARS: Dict[str, tuple] = {
    "togetherai": ("TOGETHER_API_KEY", "TOGETHERAI_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
}

SYSTEM_PROMPT = (
    "You are a text analytics service. Analyze the user's text and reply "
    "with a single JSON object and nothing else. Offsets and lengths are "
    "character positions in the original text."
)

FEATURE_PROMPTS: Dict[FeatureKind, str] = {
    FeatureKind.SENTIMENT: (
        'Classify the overall sentiment. Reply as {{"sentiment": '
        '"positive"|"negative"|"neutral"|"mixed", "confidenceScores": '
        '{{"positive": float, "negative": float, "neutral": float}}}}. '
        "The three scores sum to 1."
    ),
    FeatureKind.KEY_PHRASES: (
        'Extract the key phrases, most important first. Reply as '
        '{{"keyPhrases": [string, ...]}}.'
    ),
    FeatureKind.ENTITIES: (
        "Recognize named entities (Person, Location, Organization, DateTime, "
        "Quantity, Product, Event, ...). Reply as {{\"entities\": [{{\"text\": "
        'string, "category": string, "subcategory": string or null, '
        '"offset": int, "length": int, "confidenceScore": float}}]}}.'
    ),
    FeatureKind.SUMMARY: (
        "Select the {sentence_count} most important sentences verbatim from the "
        'text, highest rank first. Reply as {{"sentences": [{{"text": string, '
        '"rankScore": float, "offset": int, "length": int}}]}}.'
    ),
    FeatureKind.LANGUAGE: (
        'Detect the language. Reply as {{"detectedLanguage": {{"name": string, '
        '"iso6391Name": string, "confidenceScore": float}}}}.'
    ),
}


def parse_json_response(raw: Optional[str]) -> Dict[str, Any]:
    """Parse a model response that should be a JSON object.

    Handles common model quirks: markdown code fences, surrounding text.

    Raises:
        ProviderError: If no JSON object can be recovered.
    """
    cleaned = (raw or "").strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)

    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start:end + 1]

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ProviderError(
            "malformed response: model reply is not valid JSON", original_error=e
        ) from e
    if not isinstance(parsed, dict):
        raise ProviderError("malformed response: model reply is not a JSON object")
    return parsed


class LLMLanguageProvider(BaseAnalysisProvider):
    """
    OpenAI-compatible chat model acting as a language analysis service.

    The client is created lazily on first use and reused across worker
    threads via double-checked locking.
    """

    def __init__(
        self,
        provider: str = "openai",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1000,
        timeout: float = 30,
        client: Optional[Any] = None,
    ):
        self.provider = provider.lower()
        if self.provider not in DEFAULT_MODELS:
            raise ConfigurationError(
                f"Unknown LLM provider: {provider}", config_key="provider.name"
            )
        super().__init__(self.provider)
        self.model = model or DEFAULT_MODELS[self.provider]
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._api_key = self._resolve_api_key(api_key)
        self._client = client
        self._lock = threading.Lock()

    @property
    def model_id(self) -> str:
        return f"{self.provider}/{self.model}"

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    @property
    def client(self):
        """Thread-safe lazy-initialized OpenAI client."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    def build_prompt(self, feature: FeatureKind, text: str) -> str:
        instructions = FEATURE_PROMPTS[feature].format(
            sentence_count=summary_sentence_count(text)
        )
        return f"{instructions}\n\nText:\n{text}"

    def _analyze_impl(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": self.build_prompt(feature, text)},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            content = response.choices[0].message.content
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"LLM API call failed: {e}", original_error=e) from e

        return parse_json_response(content)

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "configured": self.is_configured,
            "model": self.model_id,
            "hasApiKey": bool(self._api_key),
            "apiKeyPreview": mask_secret(self._api_key or ""),
            "baseUrl": PROVIDER_BASE_URLS.get(self.provider) or "default",
        }

    def close(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            self._client.close()

    def _resolve_api_key(self, api_key: Optional[str]) -> Optional[str]:
        """Resolve API key from parameter, template, or environment."""
        if api_key:
            if api_key.startswith("${") and api_key.endswith("}"):
                return os.environ.get(api_key[2:-1])
            return api_key

        for var in API_KEY_ENV_VARS.get(self.provider, ()):
            value = os.environ.get(var)
            if value:
                return value
        return None

    def _create_client(self) -> OpenAI:
        if not self._api_key:
            env_vars = " or ".join(API_KEY_ENV_VARS[self.provider])
            raise ProviderError(
                f"No API key found for {self.provider}. Set {env_vars} environment variable.",
                provider=self.provider,
            )

        base_url = PROVIDER_BASE_URLS.get(self.provider)
        if base_url:
            return OpenAI(api_key=self._api_key, base_url=base_url, timeout=self.timeout)
        return OpenAI(api_key=self._api_key, timeout=self.timeout)
