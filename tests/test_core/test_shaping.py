"""Tests for reshaping provider documents into feature results."""

import pytest

from conftest import CANNED_DOCUMENTS, LONG_TEXT, STANDARD_TEXT
from sentimentiq.core.models import FeatureKind, SummaryResult
from sentimentiq.core.shaping import (
    NO_SUMMARY_MESSAGE,
    confidence_for,
    intensity_for,
    shape,
    shape_entities,
    shape_key_phrases,
    shape_language,
    shape_sentiment,
    shape_summary,
)
from sentimentiq.utils.errors import ProviderError


def _sentiment_doc(label, positive, negative, neutral):
    return {
        "sentiment": label,
        "confidenceScores": {"positive": positive, "negative": negative, "neutral": neutral},
    }


class TestSentiment:
    def test_positive(self):
        result = shape_sentiment(_sentiment_doc("positive", 0.92, 0.03, 0.05), STANDARD_TEXT)
        assert result.score == 0.92
        assert result.magnitude == 0.92
        assert result.intensity == "high"
        assert result.word_count == 6
        assert result.analysis.is_positive is True
        assert result.analysis.confidence == "high"

    def test_negative_score_is_signed(self):
        result = shape_sentiment(_sentiment_doc("negative", 0.1, 0.45, 0.45), "Bad.")
        assert result.score == -0.45
        assert result.intensity == "medium"
        assert result.analysis.is_negative is True
        assert result.analysis.confidence == "medium"

    def test_neutral_and_mixed_score_zero(self):
        for label in ("neutral", "mixed"):
            result = shape_sentiment(_sentiment_doc(label, 0.3, 0.3, 0.4), "Fine.")
            assert result.score == 0.0
            assert result.analysis.is_neutral is True

    def test_scores_rounded(self):
        result = shape_sentiment(_sentiment_doc("positive", 0.123456, 0.5, 0.1), "Ok")
        assert result.score == 0.123
        assert result.magnitude == 0.5

    def test_to_dict(self):
        data = shape_sentiment(CANNED_DOCUMENTS[FeatureKind.SENTIMENT], STANDARD_TEXT).to_dict()
        assert data["analysis"] == {
            "isPositive": True, "isNegative": False, "isNeutral": False, "confidence": "high",
        }
        assert data["confidenceScores"]["positive"] == 0.92
        assert data["wordCount"] == 6

    @pytest.mark.parametrize(
        "magnitude, expected",
        [(0.61, "high"), (0.6, "medium"), (0.31, "medium"), (0.3, "low"), (0.0, "low")],
    )
    def test_intensity_thresholds(self, magnitude, expected):
        assert intensity_for(magnitude) == expected

    @pytest.mark.parametrize(
        "magnitude, expected",
        [(0.51, "high"), (0.5, "medium"), (0.26, "medium"), (0.25, "low")],
    )
    def test_confidence_thresholds(self, magnitude, expected):
        assert confidence_for(magnitude) == expected

    def test_missing_scores_is_malformed(self):
        with pytest.raises(ProviderError, match="malformed response"):
            shape_sentiment({"sentiment": "positive"}, "Ok")

    def test_non_numeric_score_is_malformed(self):
        with pytest.raises(ProviderError, match="malformed response"):
            shape_sentiment(_sentiment_doc("positive", "high", 0.1, 0.1), "Ok")


class TestKeyPhrases:
    def test_counts(self):
        result = shape_key_phrases({"keyPhrases": ["a", "b", "c"]}, "one two three four")
        assert result.count == 3
        assert result.word_count == 4
        assert result.to_dict() == {"keyPhrases": ["a", "b", "c"], "count": 3, "wordCount": 4}

    def test_not_a_list(self):
        with pytest.raises(ProviderError):
            shape_key_phrases({"keyPhrases": "a, b"}, "text")


class TestEntities:
    def test_grouped_by_category_in_first_seen_order(self):
        doc = {
            "entities": [
                {"text": "Paris", "category": "Location", "offset": 0, "length": 5,
                 "confidenceScore": 0.9},
                {"text": "Ada", "category": "Person", "offset": 10, "length": 3,
                 "confidenceScore": 0.8},
                {"text": "Rome", "category": "Location", "subcategory": "GPE", "offset": 20,
                 "length": 4, "confidenceScore": 0.7},
            ]
        }
        result = shape_entities(doc, "text")
        assert result.total_entities == 3
        assert result.categories == ["Location", "Person"]
        assert [e.text for e in result.entities_by_category["Location"]] == ["Paris", "Rome"]
        data = result.to_dict()
        assert data["entities"][2]["subcategory"] == "GPE"
        assert "subcategory" not in data["entities"][0]

    def test_empty(self):
        result = shape_entities({"entities": []}, "text")
        assert result.total_entities == 0
        assert result.categories == []

    def test_entity_without_category_is_malformed(self):
        with pytest.raises(ProviderError):
            shape_entities({"entities": [{"text": "Paris"}]}, "text")


class TestSummary:
    def test_joins_sentences(self):
        doc = {
            "sentences": [
                {"text": "First.", "rankScore": 1.0, "offset": 0, "length": 6},
                {"text": "Second.", "rankScore": 0.5, "offset": 7, "length": 7},
            ]
        }
        text = "x" * 130
        result = shape_summary(doc, text)
        assert result.summary == "First. Second."
        assert result.sentence_count == 2
        assert result.original_length == 130
        assert result.summary_length == 14
        assert result.compression_ratio == "10.8%"

    def test_no_sentences_fallback(self):
        result = shape_summary({"sentences": []}, LONG_TEXT)
        assert isinstance(result, SummaryResult)
        assert result.summary == NO_SUMMARY_MESSAGE
        assert result.compression_ratio == "0%"
        assert result.sentence_count == 0


class TestLanguage:
    def test_flattened_fields(self):
        result = shape_language(CANNED_DOCUMENTS[FeatureKind.LANGUAGE], "Hello")
        assert result.name == "English"
        assert result.iso6391_name == "en"
        assert result.to_dict()["confidence"] == 1.0
        assert result.to_dict()["detectedLanguage"]["iso6391Name"] == "en"

    def test_missing_detected_language(self):
        with pytest.raises(ProviderError):
            shape_language({}, "Hello")


class TestDispatch:
    @pytest.mark.parametrize("feature", list(CANNED_DOCUMENTS))
    def test_every_feature_has_a_shaper(self, feature):
        assert shape(feature, CANNED_DOCUMENTS[feature], LONG_TEXT).to_dict()

    def test_wraps_unexpected_shape_errors(self):
        doc = {"entities": [{"text": "A", "category": "B", "offset": "zero"}]}
        with pytest.raises(ProviderError) as exc_info:
            shape(FeatureKind.ENTITIES, doc, "text")
        assert exc_info.value.feature == "entities"

    def test_non_mapping_document(self):
        with pytest.raises(ProviderError):
            shape(FeatureKind.KEY_PHRASES, ["not", "a", "dict"], "text")
