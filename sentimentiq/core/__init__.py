"""
Core module containing data models, tier policy, validation and the
analysis orchestrator.

Uses lazy imports for modules that pull in storage or provider stacks.
"""

# Models and policy are lightweight - import directly
from sentimentiq.core.models import (
    ALL_FEATURES,
    AnalysisHistoryRecord,
    ComprehensiveAnalysisResult,
    FeatureFailure,
    FeatureKind,
    FeatureSuccess,
    TierPolicyRecord,
    UserTier,
)
from sentimentiq.core.tiers import can_access_feature, get_tier_limits
from sentimentiq.core.gate import FeatureGate
from sentimentiq.core.validation import AnalysisLimits

__all__ = [
    # Models and policy (always available)
    "ALL_FEATURES",
    "AnalysisHistoryRecord",
    "ComprehensiveAnalysisResult",
    "FeatureFailure",
    "FeatureKind",
    "FeatureSuccess",
    "TierPolicyRecord",
    "UserTier",
    "can_access_feature",
    "get_tier_limits",
    "FeatureGate",
    "AnalysisLimits",
    # Heavy modules (lazy loaded)
    "AnalysisOrchestrator",
    "create_orchestrator",
    "InMemoryHistoryStore",
    "SQLHistoryStore",
    "create_history_store",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in ("AnalysisOrchestrator", "create_orchestrator"):
        from sentimentiq.core.orchestrator import AnalysisOrchestrator, create_orchestrator
        return AnalysisOrchestrator if name == "AnalysisOrchestrator" else create_orchestrator
    elif name in ("InMemoryHistoryStore", "SQLHistoryStore", "create_history_store"):
        from sentimentiq.core import history
        return getattr(history, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
