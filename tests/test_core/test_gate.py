"""Tests for FeatureGate, EntitlementProvider, and gate error classes."""

import pytest

from sentimentiq.core.gate import EntitlementProvider, FeatureGate, TierEntitlement
from sentimentiq.core.models import ALL_FEATURES, FeatureKind, UserTier
from sentimentiq.utils.errors import (
    FeatureDisabledError,
    FeatureNotPermittedError,
    ValidationError,
)


class AlwaysEntitled:
    """Test stub: grants every feature."""

    def is_entitled(self, tier, feature) -> bool:
        return True


class TestErrors:
    def test_not_permitted_message_and_code(self):
        err = FeatureNotPermittedError("entities", tier="standard")
        assert str(err).startswith("feature not permitted for tier")
        assert "entities" in str(err)
        assert err.code == "feature_not_permitted"
        assert err.feature == "entities"
        assert err.tier == "standard"
        assert isinstance(err, ValidationError)

    def test_disabled_message_and_code(self):
        err = FeatureDisabledError("summary")
        assert "summary" in str(err)
        assert err.code == "feature_disabled"


class TestTierEntitlement:
    def test_follows_tier_table(self):
        entitlement = TierEntitlement()
        assert isinstance(entitlement, EntitlementProvider)
        assert entitlement.is_entitled(UserTier.STANDARD, FeatureKind.KEY_PHRASES) is True
        assert entitlement.is_entitled(UserTier.STANDARD, FeatureKind.ENTITIES) is False


class TestFeatureGate:
    def test_check_returns_parsed_feature(self):
        gate = FeatureGate()
        assert gate.check("pro", "keyPhrases") is FeatureKind.KEY_PHRASES

    def test_check_raises_when_not_entitled(self):
        gate = FeatureGate()
        with pytest.raises(FeatureNotPermittedError) as exc_info:
            gate.check(UserTier.GUEST, FeatureKind.KEY_PHRASES)
        assert exc_info.value.tier == "guest"

    def test_check_rejects_unknown_feature(self):
        gate = FeatureGate()
        with pytest.raises(FeatureNotPermittedError):
            gate.check(UserTier.PRO, "translation")

    def test_check_raises_when_disabled(self):
        gate = FeatureGate(config={"summary": {"enabled": False}})
        with pytest.raises(FeatureDisabledError):
            gate.check(UserTier.PRO, FeatureKind.SUMMARY)

    def test_missing_config_means_enabled(self):
        gate = FeatureGate(config={})
        assert all(gate.is_enabled(f) for f in ALL_FEATURES)

    def test_custom_entitlement_overrides_table(self):
        gate = FeatureGate(entitlement=AlwaysEntitled())
        assert gate.check(UserTier.GUEST, FeatureKind.ENTITIES) is FeatureKind.ENTITIES

    def test_is_available(self):
        gate = FeatureGate(config={"language": {"enabled": False}})
        assert gate.is_available("pro", "entities") is True
        assert gate.is_available("pro", "language") is False
        assert gate.is_available("guest", "entities") is False

    def test_is_enabled_ignores_entitlement(self):
        gate = FeatureGate()
        assert gate.is_enabled(FeatureKind.SUMMARY) is True
        assert gate.is_available(UserTier.GUEST, FeatureKind.SUMMARY) is False

    def test_is_enabled_unknown_feature(self):
        assert FeatureGate().is_enabled("translation") is False

    def test_list_available(self):
        gate = FeatureGate(config={"entities": {"enabled": False}})
        assert gate.list_available("standard") == [FeatureKind.SENTIMENT, FeatureKind.KEY_PHRASES]
        assert FeatureKind.ENTITIES not in gate.list_available("pro")

    def test_set_enabled_toggles_feature(self):
        gate = FeatureGate()
        gate.set_enabled(FeatureKind.SENTIMENT, False)
        assert gate.is_enabled(FeatureKind.SENTIMENT) is False

        gate.set_enabled(FeatureKind.SENTIMENT, True)
        assert gate.is_enabled(FeatureKind.SENTIMENT) is True

    def test_config_is_copied(self):
        config = {"summary": {"enabled": True}}
        gate = FeatureGate(config=config)
        gate.set_enabled(FeatureKind.SUMMARY, False)
        assert config["summary"]["enabled"] is True
