"""
Donor Duplicate Detection

Multi-strategy fuzzy duplicate detection used when donors are imported or
entered by hand.

Components:
- Similarity Scoring: normalized Levenshtein similarity, name and address
  composites
- Match Strategies: named, independently testable pair comparisons
- Core Engine: weighted aggregation, confidence banding and ranking

Usage:
    from donorcore.deduplication import DuplicateDetectionEngine

    engine = DuplicateDetectionEngine()
    matches = engine.find_duplicates(candidate, existing_donors)
"""

from .core_engine import (
    Confidence,
    ConfidenceThresholds,
    DuplicateDetectionEngine,
    DuplicateDetectionOptions,
    DuplicateMatch,
    PairScore,
    format_match_reasons,
)
from .match_strategies import (
    DEFAULT_STRATEGY_WEIGHTS,
    STRATEGY_REGISTRY,
    MatchStrategyResult,
    StrategyName,
)
from .similarity_scoring import ScoringParameters, SimilarityScorer, levenshtein, similarity

__all__ = [
    # Core engine
    "DuplicateDetectionEngine",
    "DuplicateDetectionOptions",
    "DuplicateMatch",
    "PairScore",
    "Confidence",
    "ConfidenceThresholds",
    "format_match_reasons",
    # Strategies
    "StrategyName",
    "MatchStrategyResult",
    "STRATEGY_REGISTRY",
    "DEFAULT_STRATEGY_WEIGHTS",
    # Similarity scoring
    "SimilarityScorer",
    "ScoringParameters",
    "similarity",
    "levenshtein",
]
