"""
Reshape provider documents into typed feature results.

Providers return one document per call in the cloud language service's
document shape. The functions here turn that into the caller-facing
result models and raise ProviderError when a document is missing the
fields a feature needs.
"""

from typing import Any, Callable, Dict, List, Mapping

from sentimentiq.core.models import (
    ConfidenceScores,
    DetectedLanguage,
    EntitiesResult,
    Entity,
    FeatureKind,
    FeaturePayload,
    KeyPhrasesResult,
    LanguageResult,
    SentimentBreakdown,
    SentimentResult,
    SummaryResult,
    SummarySentence,
)
from sentimentiq.core.text_stats import word_count
from sentimentiq.utils.errors import ProviderError

NO_SUMMARY_MESSAGE = "Unable to generate summary for this text."

# Intensity buckets for the sentiment magnitude
HIGH_INTENSITY = 0.6
MEDIUM_INTENSITY = 0.3

# Confidence buckets for the sentiment magnitude
HIGH_CONFIDENCE = 0.5
MEDIUM_CONFIDENCE = 0.25

# Scores within this distance of zero read as neutral
NEUTRAL_BAND = 0.1


def _require(document: Any, key: str, feature: FeatureKind) -> Any:
    if not isinstance(document, Mapping) or key not in document or document[key] is None:
        raise ProviderError(
            f"malformed response: missing '{key}' in {feature.value} result",
            feature=feature.value,
        )
    return document[key]


def _number(value: Any, feature: FeatureKind, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ProviderError(
            f"malformed response: '{key}' is not a number in {feature.value} result",
            feature=feature.value,
            original_error=e,
        ) from e


def intensity_for(magnitude: float) -> str:
    if magnitude > HIGH_INTENSITY:
        return "high"
    if magnitude > MEDIUM_INTENSITY:
        return "medium"
    return "low"


def confidence_for(magnitude: float) -> str:
    if magnitude > HIGH_CONFIDENCE:
        return "high"
    if magnitude > MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def shape_sentiment(document: Mapping[str, Any], text: str) -> SentimentResult:
    feature = FeatureKind.SENTIMENT
    label = _require(document, "sentiment", feature)
    raw_scores = _require(document, "confidenceScores", feature)
    scores = ConfidenceScores(
        positive=_number(_require(raw_scores, "positive", feature), feature, "positive"),
        negative=_number(_require(raw_scores, "negative", feature), feature, "negative"),
        neutral=_number(_require(raw_scores, "neutral", feature), feature, "neutral"),
    )

    if label == "positive":
        score = scores.positive
    elif label == "negative":
        score = -scores.negative
    else:
        score = 0.0
    magnitude = max(scores.positive, scores.negative, scores.neutral)

    return SentimentResult(
        sentiment=str(label),
        score=round(score, 3),
        magnitude=round(magnitude, 3),
        intensity=intensity_for(magnitude),
        word_count=word_count(text),
        analysis=SentimentBreakdown(
            is_positive=score > NEUTRAL_BAND,
            is_negative=score < -NEUTRAL_BAND,
            is_neutral=abs(score) <= NEUTRAL_BAND,
            confidence=confidence_for(magnitude),
        ),
        confidence_scores=scores,
    )


def shape_key_phrases(document: Mapping[str, Any], text: str) -> KeyPhrasesResult:
    phrases = _require(document, "keyPhrases", FeatureKind.KEY_PHRASES)
    if not isinstance(phrases, list):
        raise ProviderError(
            "malformed response: 'keyPhrases' is not a list",
            feature=FeatureKind.KEY_PHRASES.value,
        )
    phrases = [str(p) for p in phrases]
    return KeyPhrasesResult(
        key_phrases=phrases,
        count=len(phrases),
        word_count=word_count(text),
    )


def shape_entities(document: Mapping[str, Any], text: str) -> EntitiesResult:
    feature = FeatureKind.ENTITIES
    raw_entities = _require(document, "entities", feature)
    if not isinstance(raw_entities, list):
        raise ProviderError("malformed response: 'entities' is not a list", feature=feature.value)

    entities: List[Entity] = []
    by_category: Dict[str, List[Entity]] = {}
    for raw in raw_entities:
        entity = Entity(
            text=str(_require(raw, "text", feature)),
            category=str(_require(raw, "category", feature)),
            subcategory=raw.get("subcategory"),
            offset=int(raw.get("offset", 0)),
            length=int(raw.get("length", 0)),
            confidence_score=_number(raw.get("confidenceScore", 0.0), feature, "confidenceScore"),
        )
        entities.append(entity)
        by_category.setdefault(entity.category, []).append(entity)

    return EntitiesResult(
        entities=entities,
        entities_by_category=by_category,
        total_entities=len(entities),
        categories=list(by_category.keys()),
    )


def shape_summary(document: Mapping[str, Any], text: str) -> SummaryResult:
    feature = FeatureKind.SUMMARY
    if not isinstance(document, Mapping):
        raise ProviderError("malformed response: summary result is not an object", feature=feature.value)

    raw_sentences = document.get("sentences") or []
    sentences = [
        SummarySentence(
            text=str(_require(raw, "text", feature)),
            rank_score=_number(raw.get("rankScore", 0.0), feature, "rankScore"),
            offset=int(raw.get("offset", 0)),
            length=int(raw.get("length", 0)),
        )
        for raw in raw_sentences
    ]

    if not sentences:
        return SummaryResult(
            summary=NO_SUMMARY_MESSAGE,
            sentences=[],
            original_length=len(text),
            summary_length=0,
            compression_ratio="0%",
            sentence_count=0,
        )

    summary = " ".join(s.text for s in sentences)
    ratio = len(summary) / len(text) * 100 if text else 0.0
    return SummaryResult(
        summary=summary,
        sentences=sentences,
        original_length=len(text),
        summary_length=len(summary),
        compression_ratio=f"{ratio:.1f}%",
        sentence_count=len(sentences),
    )


def shape_language(document: Mapping[str, Any], text: str) -> LanguageResult:
    feature = FeatureKind.LANGUAGE
    detected = _require(document, "detectedLanguage", feature)
    return LanguageResult(
        detected_language=DetectedLanguage(
            name=str(_require(detected, "name", feature)),
            iso6391_name=str(_require(detected, "iso6391Name", feature)),
            confidence_score=_number(
                _require(detected, "confidenceScore", feature), feature, "confidenceScore"
            ),
        )
    )


SHAPERS: Dict[FeatureKind, Callable[[Mapping[str, Any], str], FeaturePayload]] = {
    FeatureKind.SENTIMENT: shape_sentiment,
    FeatureKind.KEY_PHRASES: shape_key_phrases,
    FeatureKind.ENTITIES: shape_entities,
    FeatureKind.SUMMARY: shape_summary,
    FeatureKind.LANGUAGE: shape_language,
}


def shape(feature: FeatureKind, document: Mapping[str, Any], text: str) -> FeaturePayload:
    """Dispatch to the shaper for a feature."""
    try:
        return SHAPERS[feature](document, text)
    except ProviderError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise ProviderError(
            f"malformed response for {feature.value}: {e}",
            feature=feature.value,
            original_error=e,
        ) from e
