"""
Similarity Scoring

Normalized edit-distance similarity between strings, plus the composite
name and address similarities that the match strategies are built on.
"""

import re
from dataclasses import dataclass
from typing import Optional

import jellyfish

from ..models import DonorRecord


def levenshtein(a: str, b: str) -> int:
    """Single-character insert/delete/substitute edit distance."""
    return jellyfish.levenshtein_distance(a, b)


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """Return ``1 - levenshtein(a, b) / max(len(a), len(b))``.

    Equal strings (including two empty strings) score 1.0; one empty
    string scores 0.0. Comparison is case-sensitive; callers lower-case
    first when they want otherwise.
    """
    a = a or ""
    b = b or ""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein(a, b) / max(len(a), len(b))


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_phone(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


@dataclass(frozen=True)
class ScoringParameters:
    """Tunable sub-score weights and guard thresholds.

    The defaults were chosen empirically; none of them is an invariant.
    """

    # name similarity: last name is more discriminative than first name
    first_name_weight: float = 0.4
    last_name_weight: float = 0.6

    # address similarity components
    street_weight: float = 0.4
    city_weight: float = 0.3
    zip_weight: float = 0.3

    # name_address strategy
    name_address_name_min: float = 0.8
    name_address_address_min: float = 0.7
    name_address_name_share: float = 0.6
    name_address_address_share: float = 0.4
    name_address_reason_min: float = 0.9

    # name_phone strategy
    name_phone_name_min: float = 0.7
    name_phone_name_share: float = 0.5
    name_phone_phone_share: float = 0.5

    # fuzzy_name strategy
    fuzzy_name_min: float = 0.8
    fuzzy_name_similar_reason: float = 0.9
    fuzzy_name_very_similar_reason: float = 0.95

    # student_name strategy
    student_name_min: float = 0.9

    # school_connection strategy
    alumni_year_score: float = 0.8
    donor_type_score: float = 0.6


class SimilarityScorer:
    """
    Composite similarity between two donor records.

    Wraps the string similarity with the weighting rules for names and
    addresses. All inputs are lower-cased before comparison.
    """

    def __init__(self, parameters: Optional[ScoringParameters] = None):
        self.parameters = parameters or ScoringParameters()

    def name_similarity(self, a: DonorRecord, b: DonorRecord) -> float:
        """Weighted first/last name similarity.

        Args:
            a: First donor
            b: Second donor

        Returns:
            Score in [0, 1]
        """
        p = self.parameters
        first = similarity(_lower(a.first_name), _lower(b.first_name))
        last = similarity(_lower(a.last_name), _lower(b.last_name))
        return first * p.first_name_weight + last * p.last_name_weight

    def address_similarity(self, a: DonorRecord, b: DonorRecord) -> float:
        """Street, city and zip similarity, normalized over the components
        present on both sides.

        Street uses string similarity; city (case-insensitive) and zip are
        exact matches. Returns 0.0 when no component is present on both.
        """
        p = self.parameters
        score = 0.0
        weight = 0.0

        if a.address and b.address:
            score += similarity(_lower(a.address), _lower(b.address)) * p.street_weight
            weight += p.street_weight

        if a.city and b.city:
            score += (1.0 if _lower(a.city) == _lower(b.city) else 0.0) * p.city_weight
            weight += p.city_weight

        if a.zip_code and b.zip_code:
            score += (1.0 if a.zip_code.strip() == b.zip_code.strip() else 0.0) * p.zip_weight
            weight += p.zip_weight

        return score / weight if weight > 0 else 0.0

    def student_name_similarity(self, a: DonorRecord, b: DonorRecord) -> float:
        return similarity(_lower(a.student_name), _lower(b.student_name))


def _lower(value: Optional[str]) -> str:
    return (value or "").strip().lower()
