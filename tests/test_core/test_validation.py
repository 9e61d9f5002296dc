"""Tests for request validation rules and their ordering."""

import pytest

from sentimentiq.core.gate import FeatureGate
from sentimentiq.core.models import ALL_FEATURES, FeatureKind, UserTier
from sentimentiq.core.validation import (
    AnalysisLimits,
    is_summarizable,
    normalize_features,
    validate_features,
    validate_request,
    validate_summary_length,
    validate_text,
)
from sentimentiq.utils.errors import FeatureNotPermittedError, ValidationError


class TestValidateText:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None, 123, ["text"]])
    def test_text_required(self, text):
        with pytest.raises(ValidationError) as exc_info:
            validate_text(text, 100)
        assert exc_info.value.code == "text_required"
        assert str(exc_info.value).startswith("text required")

    def test_text_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_text("a" * 101, 100)
        assert exc_info.value.code == "text_too_long"
        assert str(exc_info.value).startswith("text too long")

    def test_text_at_ceiling_passes(self):
        assert validate_text("a" * 100, 100) == "a" * 100


class TestNormalizeFeatures:
    def test_none_means_all_features(self):
        assert normalize_features(None) == list(ALL_FEATURES)

    def test_single_string(self):
        assert normalize_features("summary") == [FeatureKind.SUMMARY]

    def test_duplicates_removed_in_order(self):
        result = normalize_features(["keyPhrases", "sentiment", "keyPhrases", FeatureKind.SENTIMENT])
        assert result == [FeatureKind.KEY_PHRASES, FeatureKind.SENTIMENT]

    def test_unknown_values_passed_through(self):
        assert normalize_features(["sentiment", "translation"]) == [FeatureKind.SENTIMENT, "translation"]

    @pytest.mark.parametrize("value", [{"sentiment": True}, 5])
    def test_rejects_non_lists(self, value):
        with pytest.raises(ValidationError) as exc_info:
            normalize_features(value)
        assert exc_info.value.code == "invalid_input"


class TestValidateFeatures:
    def test_empty_selection(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_features([], UserTier.PRO, FeatureGate())
        assert exc_info.value.code == "no_features"
        assert "select at least one feature" in str(exc_info.value)

    def test_whole_request_rejected_for_one_disallowed_feature(self):
        with pytest.raises(FeatureNotPermittedError) as exc_info:
            validate_features(["sentiment", "entities"], UserTier.STANDARD, FeatureGate())
        assert exc_info.value.feature == "entities"

    def test_unknown_feature_not_permitted(self):
        with pytest.raises(FeatureNotPermittedError):
            validate_features(["translation"], UserTier.PRO, FeatureGate())

    def test_returns_parsed_features(self):
        assert validate_features(["keyPhrases"], "standard", FeatureGate()) == [FeatureKind.KEY_PHRASES]

    def test_omitted_features_rejected_below_pro(self):
        with pytest.raises(FeatureNotPermittedError):
            validate_features(None, UserTier.GUEST, FeatureGate())


class TestValidateRequestOrder:
    def test_text_checked_before_features(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_request("", [], UserTier.GUEST, FeatureGate(), 100)
        assert exc_info.value.code == "text_required"

    def test_length_checked_before_permission(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_request("a" * 200, ["entities"], UserTier.GUEST, FeatureGate(), 100)
        assert exc_info.value.code == "text_too_long"

    def test_empty_features_checked_before_permission(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_request("hello", [], UserTier.GUEST, FeatureGate(), 100)
        assert exc_info.value.code == "no_features"


class TestSummaryLength:
    def test_boundary(self):
        assert is_summarizable("a" * 200, 200) is True
        assert is_summarizable("a" * 199, 200) is False

    def test_too_short_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_summary_length("a" * 150, 200)
        assert exc_info.value.code == "text_too_short"
        assert str(exc_info.value).startswith("text too short")


class TestAnalysisLimits:
    def test_defaults(self):
        limits = AnalysisLimits()
        assert limits.comprehensive_max_chars == 10000
        assert limits.single_max_chars == 5120
        assert limits.summary_min_chars == 200

    def test_from_config_overrides(self):
        limits = AnalysisLimits.from_config({"single_max_chars": 1000})
        assert limits.single_max_chars == 1000
        assert limits.comprehensive_max_chars == 10000

    def test_from_none(self):
        assert AnalysisLimits.from_config(None) == AnalysisLimits()
