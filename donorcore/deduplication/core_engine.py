"""
Core Deduplication Engine

Scores a candidate donor against a collection of existing donors with the
configured match strategies, aggregates the applicable strategy scores
into a weighted mean, and bands the result into confidence levels.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..error_handling import ValidationError, raise_validation_error
from ..logging_config import Timer, get_logger
from ..models import DonorLike, DonorRecord
from .match_strategies import (
    DEFAULT_STRATEGY_WEIGHTS,
    STRATEGY_REGISTRY,
    StrategyName,
    emails_match,
    phones_match,
)
from .similarity_scoring import ScoringParameters, SimilarityScorer

logger = get_logger(__name__)


class Confidence(str, Enum):
    """Confidence band of a duplicate match."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def description(self) -> str:
        return _CONFIDENCE_DESCRIPTIONS[self]


_CONFIDENCE_DESCRIPTIONS = {
    Confidence.HIGH: "Very likely duplicate - manual review recommended",
    Confidence.MEDIUM: "Possible duplicate - review suggested",
    Confidence.LOW: "Weak match - may not be duplicate",
}

DEFAULT_STRATEGIES: Tuple[StrategyName, ...] = (
    StrategyName.EXACT_EMAIL,
    StrategyName.EXACT_PHONE,
    StrategyName.NAME_ADDRESS,
    StrategyName.NAME_PHONE,
    StrategyName.FUZZY_NAME,
)


@dataclass(frozen=True)
class ConfidenceThresholds:
    """Score thresholds for the confidence bands."""

    high: float = 0.9
    medium: float = 0.7
    low: float = 0.5

    def __post_init__(self):
        if not 0.0 <= self.low <= self.medium <= self.high <= 1.0:
            raise_validation_error(
                ValidationError(
                    "Thresholds must satisfy 0 <= low <= medium <= high <= 1",
                    field_name="thresholds",
                    field_value={"high": self.high, "medium": self.medium, "low": self.low},
                )
            )

    def band(self, score: float) -> Optional[Confidence]:
        """Confidence for ``score``, or ``None`` below the low threshold."""
        if score >= self.high:
            return Confidence.HIGH
        if score >= self.medium:
            return Confidence.MEDIUM
        if score >= self.low:
            return Confidence.LOW
        return None


@dataclass(frozen=True)
class DuplicateDetectionOptions:
    """Strategy selection, thresholds and hard requirements for an engine."""

    strategies: Tuple[StrategyName, ...] = DEFAULT_STRATEGIES
    thresholds: ConfidenceThresholds = field(default_factory=ConfidenceThresholds)
    require_exact_email: bool = False
    require_exact_phone: bool = False
    strategy_weights: Mapping[StrategyName, float] = field(
        default_factory=lambda: dict(DEFAULT_STRATEGY_WEIGHTS)
    )
    scoring: ScoringParameters = field(default_factory=ScoringParameters)

    def __post_init__(self):
        strategies = validate_strategy_names(self.strategies)
        overrides = dict(
            zip(validate_strategy_names(self.strategy_weights), self.strategy_weights.values())
        )
        weights = {**DEFAULT_STRATEGY_WEIGHTS, **{n: float(w) for n, w in overrides.items()}}

        negative = [name.value for name, w in weights.items() if w < 0]
        if negative:
            raise_validation_error(
                ValidationError(
                    "Strategy weights must be non-negative",
                    field_name="strategy_weights",
                    field_value=negative,
                )
            )

        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "strategies", strategies)
        object.__setattr__(self, "strategy_weights", weights)


@dataclass(frozen=True)
class DuplicateMatch:
    """An existing donor that may duplicate the candidate."""

    donor: Any
    match_score: float
    match_reasons: Tuple[str, ...]
    match_strategy: str
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        """camelCase payload for API collaborators."""
        return {
            "donor": self.donor,
            "matchScore": self.match_score,
            "matchReasons": list(self.match_reasons),
            "matchStrategy": self.match_strategy,
            "confidence": self.confidence.value,
        }


@dataclass(frozen=True)
class PairScore:
    """Aggregated score of one candidate/existing pair before banding."""

    score: float
    reasons: Tuple[str, ...]
    strategies: Tuple[StrategyName, ...]


class DuplicateDetectionEngine:
    """
    Multi-strategy duplicate detector.

    Engines are constructed explicitly with their options; there is no
    shared default instance. ``find_duplicates`` is pure and deterministic
    and may be called concurrently.
    """

    def __init__(self, options: Optional[DuplicateDetectionOptions] = None):
        self.options = options or DuplicateDetectionOptions()
        self.scorer = SimilarityScorer(self.options.scoring)

    @classmethod
    def from_config(cls, config) -> "DuplicateDetectionEngine":
        """Build an engine from a loaded ``donorcore.config.Config``."""
        dedup = config.deduplication
        options = DuplicateDetectionOptions(
            strategies=tuple(dedup.strategies),
            thresholds=ConfidenceThresholds(**dedup.thresholds.model_dump()),
            require_exact_email=dedup.require_exact_email,
            require_exact_phone=dedup.require_exact_phone,
            strategy_weights=dict(dedup.strategy_weights),
            scoring=ScoringParameters(**dedup.scoring),
        )
        return cls(options)

    def find_duplicates(
        self, candidate: DonorLike, existing_donors: Iterable[DonorLike]
    ) -> List[DuplicateMatch]:
        """
        Find potential duplicates of ``candidate`` among ``existing_donors``.

        Args:
            candidate: Donor being imported or entered (may be partial)
            existing_donors: Stored donors to compare against

        Returns:
            Matches at or above the low threshold, highest score first;
            equal scores keep input order
        """
        candidate_record = DonorRecord.coerce(candidate)
        thresholds = self.options.thresholds
        matches: List[DuplicateMatch] = []
        scanned = 0

        with Timer() as timer:
            for donor in existing_donors:
                scanned += 1
                existing_record = DonorRecord.coerce(donor)

                if not self._passes_requirements(candidate_record, existing_record):
                    continue

                pair = self.score_pair(candidate_record, existing_record)
                confidence = thresholds.band(pair.score)
                if confidence is None:
                    continue

                matches.append(
                    DuplicateMatch(
                        donor=donor,
                        match_score=pair.score,
                        match_reasons=pair.reasons,
                        match_strategy=", ".join(s.value for s in pair.strategies),
                        confidence=confidence,
                    )
                )

            # sorted() is stable, ties stay in input order
            matches = sorted(matches, key=lambda m: m.match_score, reverse=True)

        logger.debug(
            "duplicate_scan_complete",
            donors_scanned=scanned,
            matches_found=len(matches),
            high_confidence=sum(1 for m in matches if m.confidence is Confidence.HIGH),
            duration_ms=timer.duration_ms,
        )
        return matches

    def score_pair(self, candidate: DonorLike, existing: DonorLike) -> PairScore:
        """Weighted mean of the applicable strategy scores for one pair.

        Returns a score of 0.0 when no strategy applies.
        """
        candidate = DonorRecord.coerce(candidate)
        existing = DonorRecord.coerce(existing)

        weighted_total = 0.0
        weight_total = 0.0
        reasons: List[str] = []
        contributing: List[StrategyName] = []

        for name in self.options.strategies:
            strategy = STRATEGY_REGISTRY[name]
            result = strategy(candidate, existing, self.scorer, self.options.strategy_weights[name])
            if not result.applicable:
                continue

            weighted_total += result.score * result.weight
            weight_total += result.weight
            if result.score > 0:
                reasons.extend(result.reasons)
                contributing.append(name)

        score = weighted_total / weight_total if weight_total > 0 else 0.0
        return PairScore(
            score=min(1.0, max(0.0, score)),
            reasons=tuple(reasons),
            strategies=tuple(contributing),
        )

    def _passes_requirements(self, candidate: DonorRecord, existing: DonorRecord) -> bool:
        """Hard AND-gates applied independently of the weighted score."""
        if self.options.require_exact_email and not emails_match(candidate, existing):
            return False
        if self.options.require_exact_phone and not phones_match(candidate, existing):
            return False
        return True


def format_match_reasons(reasons: Sequence[str]) -> str:
    """Join reasons as prose: "A", "A and B", "A, B, and C"."""
    if not reasons:
        return "No specific matches found"
    if len(reasons) == 1:
        return reasons[0]
    if len(reasons) == 2:
        return " and ".join(reasons)
    return ", ".join(reasons[:-1]) + ", and " + reasons[-1]


def validate_strategy_names(names: Iterable[str]) -> Tuple[StrategyName, ...]:
    """Parse strategy names, raising ``ValidationError`` on unknown ones."""
    parsed = []
    for name in names:
        try:
            parsed.append(StrategyName(name))
        except ValueError:
            raise_validation_error(
                ValidationError(
                    f"Unknown duplicate strategy '{name}'",
                    field_name="strategies",
                    field_value=name,
                )
            )
    return tuple(parsed)
