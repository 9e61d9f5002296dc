"""
Tier policy: which analysis features each subscription tier may use.

Pure functions, no I/O. Anything that is not a recognized tier is
treated as Guest, the least privileged tier.
"""

from typing import Any, Dict, List

from sentimentiq.core.models import FeatureKind, TierPolicyRecord, UserTier


_TIER_POLICIES: Dict[UserTier, TierPolicyRecord] = {
    UserTier.GUEST: TierPolicyRecord(
        max_features=1,
        allowed_features=(FeatureKind.SENTIMENT,),
        has_history=False,
        requires_auth=False,
    ),
    UserTier.STANDARD: TierPolicyRecord(
        max_features=2,
        allowed_features=(FeatureKind.SENTIMENT, FeatureKind.KEY_PHRASES),
        has_history=True,
        requires_auth=True,
    ),
    UserTier.PRO: TierPolicyRecord(
        max_features=5,
        allowed_features=(
            FeatureKind.SENTIMENT,
            FeatureKind.KEY_PHRASES,
            FeatureKind.ENTITIES,
            FeatureKind.SUMMARY,
            FeatureKind.LANGUAGE,
        ),
        has_history=True,
        requires_auth=True,
    ),
}

_DISPLAY_NAMES = {
    UserTier.GUEST: "Guest",
    UserTier.STANDARD: "Standard",
    UserTier.PRO: "Pro",
}

_COLOR_CLASSES = {
    UserTier.GUEST: "text-gray-600 bg-gray-100",
    UserTier.STANDARD: "text-blue-600 bg-blue-100",
    UserTier.PRO: "text-purple-600 bg-purple-100",
}


def get_tier_limits(tier: Any) -> TierPolicyRecord:
    """Return the entitlement record for a tier (Guest for unknown input)."""
    return _TIER_POLICIES[UserTier.parse(tier)]


def can_access_feature(tier: Any, feature: Any) -> bool:
    """True iff the feature is in the tier's allowed set. Unknown features are False."""
    return get_tier_limits(tier).allows(feature)


def allowed_features(tier: Any) -> List[FeatureKind]:
    return list(get_tier_limits(tier).allowed_features)


def display_name(tier: Any) -> str:
    return _DISPLAY_NAMES[UserTier.parse(tier)]


def color_class(tier: Any) -> str:
    return _COLOR_CLASSES[UserTier.parse(tier)]


def tiers_by_privilege() -> List[UserTier]:
    """All tiers, least privileged first."""
    return sorted(UserTier, key=lambda t: t.rank)
