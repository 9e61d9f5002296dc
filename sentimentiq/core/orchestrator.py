"""
Analysis orchestrator for SentimentIQ Pro.

Validates requests, fans them out to one provider call per feature and
aggregates the outcomes. A failing feature becomes a FeatureFailure in
the aggregate; it never cancels its siblings or the request.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Optional, Union

from sentimentiq.core.gate import FeatureGate
from sentimentiq.core.history import HistoryStore, create_history_store
from sentimentiq.core.models import (
    AnalysisHistoryRecord,
    ComprehensiveAnalysisResult,
    EntitiesResult,
    FeatureFailure,
    FeatureKind,
    FeatureOutcome,
    FeaturePayload,
    FeatureSuccess,
    KeyPhrasesResult,
    LanguageResult,
    SentimentResult,
    SummaryResult,
    UserTier,
)
from sentimentiq.core.shaping import shape
from sentimentiq.core.text_stats import character_count, word_count
from sentimentiq.core.tiers import get_tier_limits
from sentimentiq.core.validation import (
    AnalysisLimits,
    is_summarizable,
    validate_request,
    validate_summary_length,
)
from sentimentiq.monitoring.event_log import EventLog, create_event_log
from sentimentiq.utils.errors import ConfigurationError, ProviderError, ValidationError

SUMMARY_TOO_SHORT_MESSAGE = (
    "text too short for summarization: at least {min_chars} characters required"
)

PROBE_TEXT = "I love this product! It works perfectly and exceeded my expectations."


class AnalysisOrchestrator:
    """
    Main analysis service - orchestrates validation, dispatch and persistence.

    Design:
    - Dependency Injection: provider, gate, history and event log injected
    - Parallel Execution: per-feature provider calls run concurrently
    - Error Handling: partial results on failure, fail closed on bad input
    """

    def __init__(
        self,
        provider: Any,
        gate: Optional[FeatureGate] = None,
        history_store: Optional[HistoryStore] = None,
        event_log: Optional[EventLog] = None,
        limits: Optional[AnalysisLimits] = None,
        max_workers: int = 5,
    ):
        """
        Initialize orchestrator.

        Args:
            provider: AnalysisProvider used for every feature call
            gate: Feature gate (toggles + tier entitlement)
            history_store: Optional history storage for authenticated callers
            event_log: Event log collaborator; a private one is created if omitted
            limits: Length bounds for the analysis operations
            max_workers: Max parallel provider calls
        """
        self.provider = provider
        self.gate = gate or FeatureGate()
        self.history_store = history_store
        self.events = event_log if event_log is not None else EventLog()
        self.limits = limits or AnalysisLimits()
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = logging.getLogger("orchestrator")

    # ------------------------------------------------------------------
    # Comprehensive analysis
    # ------------------------------------------------------------------

    def analyze_comprehensive(
        self,
        text: Any,
        features: Union[None, str, Iterable[Any]] = None,
        tier: Any = UserTier.GUEST,
        user_id: Optional[str] = None,
    ) -> ComprehensiveAnalysisResult:
        """
        Analyze one text with several features.

        Args:
            text: Text to analyze (1..comprehensive_max_chars)
            features: Feature identifiers; None means every feature
            tier: Caller's tier
            user_id: Authenticated caller, used for history

        Returns:
            ComprehensiveAnalysisResult with one outcome per requested feature

        Raises:
            ValidationError: Request rejected before any provider call.
            ConfigurationError: Provider has no usable configuration.
        """
        user_tier = UserTier.parse(tier)
        start_time = time.time()

        # Step 1: Validate (short-circuits, no dispatch on failure)
        try:
            requested = validate_request(
                text, features, user_tier, self.gate, self.limits.comprehensive_max_chars
            )
        except ValidationError as e:
            self._record_rejection("comprehensive", e, user_tier, user_id)
            raise

        self.events.log_event(
            "info",
            "Comprehensive analysis started",
            "analysis",
            {
                "textLength": len(text),
                "features": [f.value for f in requested],
                "tier": user_tier.value,
            },
            user_id=user_id,
        )

        # Step 2: Summary needs a minimum length; skip it rather than fail siblings
        outcomes: Dict[FeatureKind, FeatureOutcome] = {}
        dispatch: List[FeatureKind] = []
        for feature in requested:
            if feature == FeatureKind.SUMMARY and not is_summarizable(
                text, self.limits.summary_min_chars
            ):
                outcomes[feature] = FeatureFailure(
                    feature,
                    SUMMARY_TOO_SHORT_MESSAGE.format(min_chars=self.limits.summary_min_chars),
                )
                self.logger.debug("Summary skipped: text below minimum length")
            else:
                dispatch.append(feature)

        if dispatch:
            self._require_provider()

        # Step 3: Fan out and wait for every call to settle
        outcomes.update(self._run_features_parallel(dispatch, text))

        # Step 4: Aggregate in requested order
        result = ComprehensiveAnalysisResult(
            text=text,
            word_count=word_count(text),
            character_count=character_count(text),
            features={feature: outcomes[feature] for feature in requested},
        )

        for feature in result.failed:
            self.events.log_event(
                "warn",
                f"{feature.display_name} failed",
                "analysis",
                {"feature": feature.value, "error": outcomes[feature].message},
                user_id=user_id,
            )

        # Step 5: Best-effort history
        if user_id and get_tier_limits(user_tier).has_history:
            self._persist_history(user_id, text, requested, result)

        processing_time = time.time() - start_time
        self.events.log_event(
            "info",
            "Comprehensive analysis completed",
            "analysis",
            {
                "succeeded": [f.value for f in result.succeeded],
                "failed": [f.value for f in result.failed],
                "processingTime": round(processing_time, 3),
            },
            user_id=user_id,
        )
        self.events.track_action(
            "analysis",
            {"type": "comprehensive", "features": [f.value for f in requested]},
            user_id=user_id,
        )
        self.logger.info(
            f"Comprehensive analysis complete in {processing_time:.3f}s "
            f"({len(result.succeeded)}/{len(requested)} features succeeded)"
        )
        return result

    def _run_features_parallel(
        self, features: List[FeatureKind], text: str
    ) -> Dict[FeatureKind, FeatureOutcome]:
        """
        Run one provider call per feature.

        Returns:
            dict: {feature: FeatureSuccess | FeatureFailure}
        """
        outcomes: Dict[FeatureKind, FeatureOutcome] = {}
        futures = {
            self.executor.submit(self._run_feature, feature, text): feature
            for feature in features
        }

        for future in as_completed(futures):
            feature = futures[future]
            try:
                outcomes[feature] = FeatureSuccess(feature, future.result())
                self.logger.debug(f"{feature.value} complete")
            except Exception as e:
                self.logger.error(f"{feature.value} failed: {e}")
                outcomes[feature] = FeatureFailure(feature, _failure_message(e))

        return outcomes

    def _run_feature(self, feature: FeatureKind, text: str) -> FeaturePayload:
        """Single provider call plus reshaping."""
        document = self.provider.analyze(feature, text)
        return shape(feature, document, text)

    def _persist_history(
        self,
        user_id: str,
        text: str,
        features: List[FeatureKind],
        result: ComprehensiveAnalysisResult,
    ) -> None:
        if self.history_store is None:
            return
        try:
            record = self.history_store.insert_history(
                user_id, text, [f.value for f in features], result.to_dict()
            )
        except Exception as e:
            # Never affects the response
            self.logger.error(f"Failed to save analysis history: {e}")
            self.events.log_event(
                "error",
                "Failed to save analysis history",
                "database",
                {"error": str(e)},
                error=e,
                user_id=user_id,
            )
            return

        self.events.log_event(
            "info",
            "Analysis saved to history",
            "database",
            {"recordId": record.id},
            user_id=user_id,
        )

    # ------------------------------------------------------------------
    # Single-feature operations
    # ------------------------------------------------------------------

    def analyze_sentiment(
        self, text: Any, tier: Any = UserTier.GUEST, user_id: Optional[str] = None
    ) -> SentimentResult:
        return self._analyze_single(FeatureKind.SENTIMENT, text, tier, user_id)

    def extract_key_phrases(
        self, text: Any, tier: Any = UserTier.GUEST, user_id: Optional[str] = None
    ) -> KeyPhrasesResult:
        return self._analyze_single(FeatureKind.KEY_PHRASES, text, tier, user_id)

    def recognize_entities(
        self, text: Any, tier: Any = UserTier.GUEST, user_id: Optional[str] = None
    ) -> EntitiesResult:
        return self._analyze_single(FeatureKind.ENTITIES, text, tier, user_id)

    def summarize_text(
        self, text: Any, tier: Any = UserTier.GUEST, user_id: Optional[str] = None
    ) -> SummaryResult:
        """Raises ValidationError ("text too short") below the summary minimum."""
        return self._analyze_single(FeatureKind.SUMMARY, text, tier, user_id)

    def detect_language(
        self, text: Any, tier: Any = UserTier.GUEST, user_id: Optional[str] = None
    ) -> LanguageResult:
        return self._analyze_single(FeatureKind.LANGUAGE, text, tier, user_id)

    def analyze_feature(
        self, feature: Any, text: Any, tier: Any = UserTier.GUEST, user_id: Optional[str] = None
    ) -> FeaturePayload:
        """Run a single feature by identifier."""
        kind = FeatureKind.parse(feature)
        if kind is None:
            # Lets the gate produce the permission error
            self.gate.check(tier, feature)
        return self._analyze_single(kind, text, tier, user_id)

    def _analyze_single(
        self,
        feature: FeatureKind,
        text: Any,
        tier: Any,
        user_id: Optional[str],
    ) -> FeaturePayload:
        """
        Validate, then make exactly one provider call.

        Raises:
            ValidationError: Request rejected before dispatch.
            ConfigurationError: Provider has no usable configuration.
            ProviderError: The call failed or returned a malformed document.
        """
        user_tier = UserTier.parse(tier)
        try:
            validate_request(
                text, [feature], user_tier, self.gate, self.limits.single_max_chars
            )
            if feature == FeatureKind.SUMMARY:
                validate_summary_length(text, self.limits.summary_min_chars)
        except ValidationError as e:
            self._record_rejection(feature.value, e, user_tier, user_id)
            raise

        self._require_provider()
        try:
            payload = self._run_feature(feature, text)
        except ProviderError as e:
            self.events.log_event(
                "error",
                f"{feature.display_name} failed",
                "api",
                {"feature": feature.value, "error": e.message},
                error=e,
                user_id=user_id,
            )
            raise

        self.events.track_action(
            "analysis", {"type": feature.value, "textLength": len(text)}, user_id=user_id
        )
        return payload

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def list_history(
        self, user_id: Optional[str], tier: Any, limit: int = 50
    ) -> List[AnalysisHistoryRecord]:
        """Caller's saved analyses, newest first."""
        self._require_history(user_id, tier)
        if self.history_store is None:
            return []
        return self.history_store.list_history(user_id, limit=limit)

    def delete_history(self, user_id: Optional[str], tier: Any, record_id: str) -> bool:
        """Delete one of the caller's records. Returns False if it was not found."""
        self._require_history(user_id, tier)
        if self.history_store is None:
            return False
        deleted = self.history_store.delete_history(user_id, record_id)
        if deleted:
            self.events.log_event(
                "info", "History record deleted", "database",
                {"recordId": record_id}, user_id=user_id,
            )
        return deleted

    def _require_history(self, user_id: Optional[str], tier: Any) -> None:
        user_tier = UserTier.parse(tier)
        if not user_id or not get_tier_limits(user_tier).has_history:
            raise ValidationError(
                f"history not available for tier: {user_tier.value}",
                code="history_unavailable",
                details={"tier": user_tier.value},
            )

    # ------------------------------------------------------------------
    # Provider checks
    # ------------------------------------------------------------------

    def check_provider(self) -> SentimentResult:
        """
        Connection test: one sentiment call on a fixed sentence.

        Raises:
            ConfigurationError: Provider has no usable configuration.
            ProviderError: The call failed.
        """
        self._require_provider()
        self.logger.info(f"Testing provider '{self.provider.name}'")
        return self._run_feature(FeatureKind.SENTIMENT, PROBE_TEXT)

    def provider_diagnostics(self) -> Dict[str, Any]:
        return self.provider.diagnostics()

    def _require_provider(self) -> None:
        if not self.provider.is_configured:
            self.events.log_event(
                "error",
                "Analysis provider is not configured",
                "system",
                {"provider": self.provider.name},
            )
            raise ConfigurationError(
                f"Analysis provider '{self.provider.name}' is not configured",
                config_key="provider",
            )

    def _record_rejection(
        self, operation: str, error: ValidationError, tier: UserTier, user_id: Optional[str]
    ) -> None:
        self.logger.info(f"Rejected {operation} request: {error.code}")
        self.events.log_event(
            "warn",
            f"Analysis request rejected: {error.message}",
            "analysis",
            {"operation": operation, "code": error.code, "tier": tier.value},
            user_id=user_id,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Shut down the thread pool, then release the provider's connections."""
        self.logger.info("Shutting down analysis orchestrator")
        self.executor.shutdown(wait=True)
        close = getattr(self.provider, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "AnalysisOrchestrator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


def _failure_message(error: Exception) -> str:
    if isinstance(error, ProviderError):
        return error.message
    return str(error) or type(error).__name__


def create_orchestrator(
    config: Dict[str, Any],
    event_log: Optional[EventLog] = None,
    provider: Optional[Any] = None,
) -> AnalysisOrchestrator:
    """
    Factory function to create a fully configured orchestrator.

    Args:
        config: Full configuration dict
        event_log: Shared event log; created from config['monitoring'] if omitted
        provider: Provider override; built from config['provider'] if omitted

    Returns:
        AnalysisOrchestrator: Configured orchestrator
    """
    from sentimentiq.providers import create_provider

    analysis_config = config.get("analysis", {})
    return AnalysisOrchestrator(
        provider=provider or create_provider(config.get("provider", {})),
        gate=FeatureGate(config.get("features", {})),
        history_store=create_history_store(config.get("history", {})),
        event_log=event_log or create_event_log(config.get("monitoring", {})),
        limits=AnalysisLimits.from_config(analysis_config),
        max_workers=analysis_config.get("max_workers", 5),
    )
