"""
Feature gating with toggle and tier entitlement support.

Provides a single checkpoint for all feature access control:
1. Config-based toggle (operator can switch a feature off server-wide)
2. Entitlement check (does the caller's tier include the feature)

The EntitlementProvider protocol keeps the tier table swappable, e.g.
for per-account overrides stored with the account record.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from sentimentiq.core.models import ALL_FEATURES, FeatureKind, UserTier
from sentimentiq.core.tiers import can_access_feature
from sentimentiq.utils.errors import FeatureDisabledError, FeatureNotPermittedError


@runtime_checkable
class EntitlementProvider(Protocol):
    """Decides whether a tier may use a feature."""

    def is_entitled(self, tier: UserTier, feature: FeatureKind) -> bool:
        ...


class TierEntitlement:
    """Default provider: the fixed tier table."""

    def is_entitled(self, tier: UserTier, feature: FeatureKind) -> bool:
        return can_access_feature(tier, feature)


class FeatureGate:
    """
    Single checkpoint for feature access control.

    Usage:
        gate = FeatureGate(config["features"])
        gate.check(UserTier.STANDARD, FeatureKind.KEY_PHRASES)  # Raises if blocked
        if gate.is_available(tier, FeatureKind.SUMMARY):  # Non-throwing check
            ...
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        entitlement: Optional[EntitlementProvider] = None,
    ):
        """
        Args:
            config: The 'features' section of the config. Each feature id
                    maps to {"enabled": bool}; missing features are enabled.
            entitlement: Provider for entitlement checks. Defaults to
                         TierEntitlement.
        """
        self._config: Dict[str, Any] = dict(config or {})
        self._entitlement = entitlement or TierEntitlement()
        self.logger = logging.getLogger("gate")

    def check(self, tier: Any, feature: Any) -> FeatureKind:
        """
        Verify feature access and return the parsed feature.

        Raises:
            FeatureNotPermittedError: Unknown feature, or tier not entitled.
            FeatureDisabledError: Feature is toggled off.
        """
        user_tier = UserTier.parse(tier)
        kind = FeatureKind.parse(feature)
        if kind is None:
            self.logger.debug(f"Unknown feature requested: {feature!r}")
            raise FeatureNotPermittedError(str(feature), user_tier.value)

        if not self.is_enabled(kind):
            self.logger.debug(f"Feature '{kind.value}' is disabled")
            raise FeatureDisabledError(kind.value)

        if not self._entitlement.is_entitled(user_tier, kind):
            self.logger.debug(
                f"Tier '{user_tier.value}' not entitled to '{kind.value}'"
            )
            raise FeatureNotPermittedError(kind.value, user_tier.value)

        return kind

    def is_available(self, tier: Any, feature: Any) -> bool:
        """Non-throwing availability check."""
        try:
            self.check(tier, feature)
            return True
        except (FeatureDisabledError, FeatureNotPermittedError):
            return False

    def is_enabled(self, feature: Any) -> bool:
        """Check only the config toggle (ignores entitlement)."""
        kind = FeatureKind.parse(feature)
        if kind is None:
            return False
        feature_config = self._config.get(kind.value) or {}
        return bool(feature_config.get("enabled", True))

    def list_available(self, tier: Any) -> List[FeatureKind]:
        """Features that are both enabled and entitled, in canonical order."""
        return [f for f in ALL_FEATURES if self.is_available(tier, f)]

    def set_enabled(self, feature: FeatureKind, enabled: bool) -> None:
        """Runtime toggle."""
        key = FeatureKind(feature).value
        self._config[key] = {**(self._config.get(key) or {}), "enabled": enabled}
        self.logger.info(
            f"Feature '{key}' {'enabled' if enabled else 'disabled'}"
        )
