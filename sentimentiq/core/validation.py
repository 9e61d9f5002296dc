"""
Request validation for analysis calls.

Rules run in a fixed order and the first failure is raised:
text present, text within the length ceiling, at least one feature,
every feature permitted. Nothing here talks to a provider.
"""

from collections import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from sentimentiq.core.gate import FeatureGate
from sentimentiq.core.models import ALL_FEATURES, FeatureKind
from sentimentiq.utils.errors import ValidationError


@dataclass(frozen=True)
class AnalysisLimits:
    """Length bounds that are part of the public contract."""

    comprehensive_max_chars: int = 10000
    single_max_chars: int = 5120  # provider per-document limit
    summary_min_chars: int = 200

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "AnalysisLimits":
        config = config or {}
        defaults = cls()
        return cls(
            comprehensive_max_chars=int(
                config.get("comprehensive_max_chars", defaults.comprehensive_max_chars)
            ),
            single_max_chars=int(config.get("single_max_chars", defaults.single_max_chars)),
            summary_min_chars=int(config.get("summary_min_chars", defaults.summary_min_chars)),
        )


def validate_text(text: Any, max_chars: int) -> str:
    """
    Check that text is a non-blank string no longer than max_chars.

    Raises:
        ValidationError: code "text_required" or "text_too_long".
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(
            "text required: please provide some text to analyze",
            code="text_required",
        )
    if len(text) > max_chars:
        raise ValidationError(
            f"text too long: {len(text):,} characters exceeds the "
            f"{max_chars:,} character limit",
            code="text_too_long",
            details={"length": len(text), "max_chars": max_chars},
        )
    return text


def normalize_features(features: Union[None, str, Iterable[Any]]) -> List[Any]:
    """
    Turn the caller's feature list into an ordered, de-duplicated list.

    None means "everything". Known identifiers are converted to
    FeatureKind; unknown ones are passed through so the permission
    check can reject them.
    """
    if features is None:
        return list(ALL_FEATURES)
    if isinstance(features, (str, FeatureKind)):
        features = [features]
    elif isinstance(features, dict) or not isinstance(features, abc.Iterable):
        raise ValidationError(
            "features must be a list of feature identifiers",
            code="invalid_input",
        )

    seen = set()
    normalized: List[Any] = []
    for item in features:
        kind = FeatureKind.parse(item)
        key = kind if kind is not None else repr(item)
        if key in seen:
            continue
        seen.add(key)
        normalized.append(kind if kind is not None else item)
    return normalized


def validate_features(
    features: Union[None, str, Iterable[Any]],
    tier: Any,
    gate: FeatureGate,
) -> List[FeatureKind]:
    """
    Check feature selection against the tier.

    Raises:
        ValidationError: code "no_features" for an empty selection.
        FeatureNotPermittedError: first feature the tier cannot use.
        FeatureDisabledError: first feature switched off by the operator.
    """
    requested = normalize_features(features)
    if not requested:
        raise ValidationError(
            "select at least one feature to analyze",
            code="no_features",
        )
    return [gate.check(tier, feature) for feature in requested]


def is_summarizable(text: str, min_chars: int) -> bool:
    return len(text) >= min_chars


def validate_summary_length(text: str, min_chars: int) -> None:
    """Raises ValidationError (code "text_too_short") below min_chars."""
    if not is_summarizable(text, min_chars):
        raise ValidationError(
            f"text too short: summarization needs at least {min_chars} characters",
            code="text_too_short",
            details={"length": len(text), "min_chars": min_chars},
        )


def validate_request(
    text: Any,
    features: Union[None, str, Iterable[Any]],
    tier: Any,
    gate: FeatureGate,
    max_chars: int,
) -> List[FeatureKind]:
    """Run every rule in order and return the features to dispatch."""
    validate_text(text, max_chars)
    return validate_features(features, tier, gate)
