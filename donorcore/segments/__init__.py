"""
Donor Segmentation

Nested AND/OR/NOT predicate trees over donor attributes, evaluated in
memory or translated to parameterized SQL.

Components:
- Models: ``SegmentRule`` / ``SegmentGroup`` and their JSON parsing
- Validation: field, operator and value-shape checks against the registry
- Evaluator: compiles a tree into a reusable record predicate
- SQL Builder: WHERE clause translation with the same null semantics
- Templates: pre-built smart segments
- Describe: human-readable rendering

Usage:
    from donorcore.segments import SegmentEvaluator

    evaluator = SegmentEvaluator()
    major = evaluator.filter(tree, donors, active_only=True)
"""

from .describe import describe_rule, describe_segment
from .evaluator import OPERATOR_FUNCTIONS, CompiledSegment, SegmentEvaluator
from .models import (
    Combinator,
    SegmentGroup,
    SegmentNode,
    SegmentQuery,
    SegmentRule,
    parse_segment_tree,
)
from .sql_builder import SQLConditionBuilder, build_segment_sql, build_sql_condition
from .templates import (
    SMART_SEGMENT_TEMPLATES,
    TEMPLATE_CATEGORIES,
    SmartSegmentTemplate,
    get_template,
    templates_by_category,
)
from .validation import validate_segment_tree

__all__ = [
    # Models
    "Combinator",
    "SegmentRule",
    "SegmentGroup",
    "SegmentNode",
    "SegmentQuery",
    "parse_segment_tree",
    "validate_segment_tree",
    # Evaluation
    "SegmentEvaluator",
    "CompiledSegment",
    "OPERATOR_FUNCTIONS",
    # SQL
    "SQLConditionBuilder",
    "build_sql_condition",
    "build_segment_sql",
    # Templates
    "SmartSegmentTemplate",
    "SMART_SEGMENT_TEMPLATES",
    "TEMPLATE_CATEGORIES",
    "get_template",
    "templates_by_category",
    # Description
    "describe_segment",
    "describe_rule",
]
