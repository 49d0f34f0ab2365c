"""Donor duplicate detection and segmentation engine."""

from .config import Config, ConfigManager
from .deduplication import (
    Confidence,
    ConfidenceThresholds,
    DuplicateDetectionEngine,
    DuplicateDetectionOptions,
    DuplicateMatch,
    format_match_reasons,
)
from .error_handling import (
    ConfigurationError,
    DonorcoreError,
    SegmentValidationError,
    ValidationError,
)
from .fields import FIELD_DEFINITIONS, FieldRegistry, FieldType, SegmentOperator
from .models import DonorRecord
from .segments import SegmentEvaluator, SegmentGroup, SegmentRule, describe_segment

__version__ = "1.0.0"

__all__ = [
    "Config",
    "ConfigManager",
    "DuplicateDetectionEngine",
    "DuplicateDetectionOptions",
    "DuplicateMatch",
    "Confidence",
    "ConfidenceThresholds",
    "format_match_reasons",
    "DonorcoreError",
    "ValidationError",
    "SegmentValidationError",
    "ConfigurationError",
    "FIELD_DEFINITIONS",
    "FieldRegistry",
    "FieldType",
    "SegmentOperator",
    "DonorRecord",
    "SegmentEvaluator",
    "SegmentGroup",
    "SegmentRule",
    "describe_segment",
]
