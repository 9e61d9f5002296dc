"""
Core data models for SentimentIQ Pro.

Immutable domain models for tiers, analysis features, per-feature
results and the aggregated comprehensive result. Every caller-facing
model has a to_dict() producing the camelCase wire shape.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from sentimentiq.utils.time_utils import isoformat, utcnow


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FeatureKind(str, Enum):
    """Closed set of analysis features. Values are the wire identifiers."""

    SENTIMENT = "sentiment"
    KEY_PHRASES = "keyPhrases"
    ENTITIES = "entities"
    SUMMARY = "summary"
    LANGUAGE = "language"

    @classmethod
    def parse(cls, value: Any) -> Optional["FeatureKind"]:
        """Return the matching member, or None for anything unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        return _FEATURE_DISPLAY_NAMES[self]


_FEATURE_DISPLAY_NAMES = {
    FeatureKind.SENTIMENT: "Sentiment Analysis",
    FeatureKind.KEY_PHRASES: "Key Phrase Extraction",
    FeatureKind.ENTITIES: "Named Entity Recognition",
    FeatureKind.SUMMARY: "Text Summarization",
    FeatureKind.LANGUAGE: "Language Detection",
}

ALL_FEATURES: Tuple[FeatureKind, ...] = (
    FeatureKind.SENTIMENT,
    FeatureKind.KEY_PHRASES,
    FeatureKind.ENTITIES,
    FeatureKind.SUMMARY,
    FeatureKind.LANGUAGE,
)


class UserTier(str, Enum):
    """Subscription level, ordered by privilege."""

    GUEST = "guest"
    STANDARD = "standard"
    PRO = "pro"

    @classmethod
    def parse(cls, value: Any) -> "UserTier":
        """Return the matching tier; anything unrecognized is GUEST."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.GUEST

    @property
    def rank(self) -> int:
        return _TIER_RANKS[self]


_TIER_RANKS = {UserTier.GUEST: 0, UserTier.STANDARD: 1, UserTier.PRO: 2}


# ---------------------------------------------------------------------------
# Tier policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TierPolicyRecord:
    """Entitlements derived from a tier. Computed on demand, never stored."""

    max_features: int
    allowed_features: Tuple[FeatureKind, ...]
    has_history: bool
    requires_auth: bool

    def allows(self, feature: Any) -> bool:
        kind = FeatureKind.parse(feature)
        return kind is not None and kind in self.allowed_features

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxFeatures": self.max_features,
            "allowedFeatures": [f.value for f in self.allowed_features],
            "hasHistory": self.has_history,
            "requiresAuth": self.requires_auth,
        }


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfidenceScores:
    positive: float
    negative: float
    neutral: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "positive": self.positive,
            "negative": self.negative,
            "neutral": self.neutral,
        }


@dataclass(frozen=True)
class SentimentBreakdown:
    """Boolean view of the signed score plus a confidence bucket."""

    is_positive: bool
    is_negative: bool
    is_neutral: bool
    confidence: str  # low / medium / high

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isPositive": self.is_positive,
            "isNegative": self.is_negative,
            "isNeutral": self.is_neutral,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class SentimentResult:
    sentiment: str  # positive / negative / neutral / mixed
    score: float  # -1.0 to 1.0
    magnitude: float  # 0.0 to 1.0
    intensity: str  # low / medium / high
    word_count: int
    analysis: SentimentBreakdown
    confidence_scores: ConfidenceScores

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "score": self.score,
            "magnitude": self.magnitude,
            "intensity": self.intensity,
            "wordCount": self.word_count,
            "analysis": self.analysis.to_dict(),
            "confidenceScores": self.confidence_scores.to_dict(),
        }


# ---------------------------------------------------------------------------
# Key phrases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyPhrasesResult:
    key_phrases: List[str]
    count: int
    word_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyPhrases": list(self.key_phrases),
            "count": self.count,
            "wordCount": self.word_count,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Entity:
    text: str
    category: str
    offset: int
    length: int
    confidence_score: float
    subcategory: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "text": self.text,
            "category": self.category,
            "offset": self.offset,
            "length": self.length,
            "confidenceScore": self.confidence_score,
        }
        if self.subcategory:
            data["subcategory"] = self.subcategory
        return data


@dataclass(frozen=True)
class EntitiesResult:
    entities: List[Entity]
    entities_by_category: Dict[str, List[Entity]]
    total_entities: int
    categories: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "entitiesByCategory": {
                category: [e.to_dict() for e in members]
                for category, members in self.entities_by_category.items()
            },
            "totalEntities": self.total_entities,
            "categories": list(self.categories),
        }


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SummarySentence:
    text: str
    rank_score: float
    offset: int
    length: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "rankScore": self.rank_score,
            "offset": self.offset,
            "length": self.length,
        }


@dataclass(frozen=True)
class SummaryResult:
    summary: str
    sentences: List[SummarySentence]
    original_length: int
    summary_length: int
    compression_ratio: str  # e.g. "42.5%"
    sentence_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "sentences": [s.to_dict() for s in self.sentences],
            "originalLength": self.original_length,
            "summaryLength": self.summary_length,
            "compressionRatio": self.compression_ratio,
            "sentenceCount": self.sentence_count,
        }


# ---------------------------------------------------------------------------
# Language
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DetectedLanguage:
    name: str
    iso6391_name: str
    confidence_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "iso6391Name": self.iso6391_name,
            "confidenceScore": self.confidence_score,
        }


@dataclass(frozen=True)
class LanguageResult:
    detected_language: DetectedLanguage

    @property
    def confidence(self) -> float:
        return self.detected_language.confidence_score

    @property
    def iso6391_name(self) -> str:
        return self.detected_language.iso6391_name

    @property
    def name(self) -> str:
        return self.detected_language.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detectedLanguage": self.detected_language.to_dict(),
            "confidence": self.confidence,
            "iso6391Name": self.iso6391_name,
            "name": self.name,
        }


FeaturePayload = Union[
    SentimentResult, KeyPhrasesResult, EntitiesResult, SummaryResult, LanguageResult
]


# ---------------------------------------------------------------------------
# Per-feature outcomes and the aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeatureSuccess:
    feature: FeatureKind
    payload: FeaturePayload

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return self.payload.to_dict()


@dataclass(frozen=True)
class FeatureFailure:
    feature: FeatureKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


FeatureOutcome = Union[FeatureSuccess, FeatureFailure]


@dataclass(frozen=True)
class ComprehensiveAnalysisResult:
    """One text, many features. Outcomes are kept in requested order."""

    text: str
    word_count: int
    character_count: int
    features: Dict[FeatureKind, FeatureOutcome]
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def succeeded(self) -> List[FeatureKind]:
        return [k for k, outcome in self.features.items() if outcome.ok]

    @property
    def failed(self) -> List[FeatureKind]:
        return [k for k, outcome in self.features.items() if not outcome.ok]

    def outcome(self, feature: FeatureKind) -> Optional[FeatureOutcome]:
        return self.features.get(feature)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "wordCount": self.word_count,
            "characterCount": self.character_count,
            "timestamp": isoformat(self.timestamp),
            "features": {
                kind.value: outcome.to_dict() for kind, outcome in self.features.items()
            },
        }


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisHistoryRecord:
    """A persisted comprehensive analysis owned by one user."""

    user_id: str
    text: str
    features: List[str]
    result: Dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "text": self.text,
            "features": list(self.features),
            "result": self.result,
            "createdAt": isoformat(self.created_at),
        }
