"""
Match Strategies

Each strategy compares a candidate donor with one existing donor and
returns a ``MatchStrategyResult``. A weight of 0 means the strategy does
not apply to the pair; the engine leaves such results out of the weighted
mean instead of counting them as a zero score.

Strategies are registered by name in ``STRATEGY_REGISTRY`` so the engine
never branches on strategy names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from ..models import DonorRecord
from .similarity_scoring import SimilarityScorer, normalize_email, normalize_phone


class StrategyName(str, Enum):
    """Names of the available duplicate-matching strategies."""

    EXACT_EMAIL = "exact_email"
    EXACT_PHONE = "exact_phone"
    NAME_ADDRESS = "name_address"
    NAME_PHONE = "name_phone"
    FUZZY_NAME = "fuzzy_name"
    STUDENT_NAME = "student_name"
    SCHOOL_CONNECTION = "school_connection"


@dataclass(frozen=True)
class MatchStrategyResult:
    """Outcome of one strategy for one donor pair."""

    score: float
    weight: float
    reasons: Tuple[str, ...] = ()

    @property
    def applicable(self) -> bool:
        return self.weight > 0


NOT_APPLICABLE = MatchStrategyResult(score=0.0, weight=0.0)

DEFAULT_STRATEGY_WEIGHTS: Dict[StrategyName, float] = {
    StrategyName.EXACT_EMAIL: 3.0,
    StrategyName.EXACT_PHONE: 2.5,
    StrategyName.NAME_ADDRESS: 2.0,
    StrategyName.NAME_PHONE: 2.2,
    StrategyName.FUZZY_NAME: 1.5,
    StrategyName.STUDENT_NAME: 2.0,
    StrategyName.SCHOOL_CONNECTION: 1.5,
}

StrategyFunction = Callable[[DonorRecord, DonorRecord, SimilarityScorer, float], MatchStrategyResult]


def emails_match(candidate: DonorRecord, existing: DonorRecord) -> bool:
    """True when both donors have an email and they normalize equal."""
    a = normalize_email(candidate.email)
    return bool(a) and a == normalize_email(existing.email)


def phones_match(candidate: DonorRecord, existing: DonorRecord) -> bool:
    """True when both donors have a phone and the digits are equal."""
    a = normalize_phone(candidate.phone)
    return bool(a) and a == normalize_phone(existing.phone)


def both_named(candidate: DonorRecord, existing: DonorRecord) -> bool:
    """True when each donor has a first or last name.

    Two nameless records would otherwise score a perfect name similarity.
    """
    return bool(candidate.full_name.strip()) and bool(existing.full_name.strip())


def exact_email(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.EXACT_EMAIL]):
    if not normalize_email(candidate.email) or not normalize_email(existing.email):
        return NOT_APPLICABLE

    if emails_match(candidate, existing):
        return MatchStrategyResult(1.0, weight, ("Exact email match",))
    return MatchStrategyResult(0.0, weight)


def exact_phone(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.EXACT_PHONE]):
    if not normalize_phone(candidate.phone) or not normalize_phone(existing.phone):
        return NOT_APPLICABLE

    if phones_match(candidate, existing):
        return MatchStrategyResult(1.0, weight, ("Exact phone match",))
    return MatchStrategyResult(0.0, weight)


def name_address(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.NAME_ADDRESS]):
    if not both_named(candidate, existing):
        return NOT_APPLICABLE

    p = scorer.parameters
    name_score = scorer.name_similarity(candidate, existing)
    address_score = scorer.address_similarity(candidate, existing)

    if name_score < p.name_address_name_min or address_score < p.name_address_address_min:
        return NOT_APPLICABLE

    reasons = []
    if name_score > p.name_address_reason_min:
        reasons.append("Very similar name")
    if address_score > p.name_address_reason_min:
        reasons.append("Very similar address")

    score = name_score * p.name_address_name_share + address_score * p.name_address_address_share
    return MatchStrategyResult(score, weight, tuple(reasons))


def name_phone(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.NAME_PHONE]):
    if not normalize_phone(candidate.phone) or not normalize_phone(existing.phone):
        return NOT_APPLICABLE

    if not both_named(candidate, existing):
        return NOT_APPLICABLE

    p = scorer.parameters
    name_score = scorer.name_similarity(candidate, existing)
    if name_score < p.name_phone_name_min or not phones_match(candidate, existing):
        return NOT_APPLICABLE

    score = name_score * p.name_phone_name_share + 1.0 * p.name_phone_phone_share
    return MatchStrategyResult(score, weight, ("Similar name with exact phone match",))


def fuzzy_name(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.FUZZY_NAME]):
    if not both_named(candidate, existing):
        return NOT_APPLICABLE

    p = scorer.parameters
    name_score = scorer.name_similarity(candidate, existing)
    if name_score < p.fuzzy_name_min:
        return NOT_APPLICABLE

    if name_score > p.fuzzy_name_very_similar_reason:
        reasons = ("Very similar full name",)
    elif name_score > p.fuzzy_name_similar_reason:
        reasons = ("Similar full name",)
    else:
        reasons = ()
    return MatchStrategyResult(name_score, weight, reasons)


def student_name(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.STUDENT_NAME]):
    if not candidate.student_name or not existing.student_name:
        return NOT_APPLICABLE

    score = scorer.student_name_similarity(candidate, existing)
    if score < scorer.parameters.student_name_min:
        return NOT_APPLICABLE
    return MatchStrategyResult(score, weight, ("Same student name",))


def school_connection(candidate, existing, scorer, weight=DEFAULT_STRATEGY_WEIGHTS[StrategyName.SCHOOL_CONNECTION]):
    p = scorer.parameters
    components = []
    reasons = []

    if candidate.alumni_year and candidate.alumni_year == existing.alumni_year:
        components.append(p.alumni_year_score)
        reasons.append(f"Same alumni year ({candidate.alumni_year})")

    if candidate.donor_type and candidate.donor_type == existing.donor_type:
        components.append(p.donor_type_score)
        reasons.append(f"Same donor type ({candidate.donor_type})")

    if not components:
        return NOT_APPLICABLE
    return MatchStrategyResult(sum(components) / len(components), weight, tuple(reasons))


STRATEGY_REGISTRY: Dict[StrategyName, StrategyFunction] = {
    StrategyName.EXACT_EMAIL: exact_email,
    StrategyName.EXACT_PHONE: exact_phone,
    StrategyName.NAME_ADDRESS: name_address,
    StrategyName.NAME_PHONE: name_phone,
    StrategyName.FUZZY_NAME: fuzzy_name,
    StrategyName.STUDENT_NAME: student_name,
    StrategyName.SCHOOL_CONNECTION: school_connection,
}
