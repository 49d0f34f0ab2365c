"""Human-readable rendering of segment trees for list views and audit logs."""

from typing import Any, Optional

from ..fields import DEFAULT_REGISTRY, OPERATOR_LABELS, FieldRegistry, SegmentOperator
from .evaluator import SegmentTree
from .models import Combinator, SegmentGroup, SegmentRule, parse_segment_tree

_O = SegmentOperator

EMPTY_AND = "all donors"
EMPTY_OR = "no donors"


def describe_segment(tree: SegmentTree, registry: Optional[FieldRegistry] = None) -> str:
    """Describe ``tree`` in field labels and operator phrases.

    Example:
        ``Donor Type equals alumni AND Lifetime Value is greater than or equal to 1000``
    """
    return _describe_group(parse_segment_tree(tree), registry or DEFAULT_REGISTRY)


def _describe_group(group: SegmentGroup, registry: FieldRegistry) -> str:
    if not group.rules:
        text = EMPTY_AND if group.combinator is Combinator.AND else EMPTY_OR
    else:
        parts = [
            f"({_describe_group(child, registry)})"
            if isinstance(child, SegmentGroup)
            else describe_rule(child, registry)
            for child in group.rules
        ]
        text = f" {group.combinator.value.upper()} ".join(parts)
    return f"NOT ({text})" if group.negate else text


def describe_rule(rule: SegmentRule, registry: Optional[FieldRegistry] = None) -> str:
    definition = (registry or DEFAULT_REGISTRY).lookup(rule.field)
    label = definition.label if definition else rule.field
    operator = rule.operator

    if operator in (_O.IS_NULL, _O.IS_NOT_NULL):
        return f"{label} {OPERATOR_LABELS[operator]}"
    if operator in (_O.IN_LAST_DAYS, _O.NOT_IN_LAST_DAYS):
        phrase = OPERATOR_LABELS[operator].replace("X", _format_value(rule.value))
        return f"{label} {phrase}"
    if operator is _O.BETWEEN and isinstance(rule.value, (list, tuple)) and len(rule.value) == 2:
        low, high = rule.value
        return f"{label} {OPERATOR_LABELS[operator]} {_format_value(low)} and {_format_value(high)}"
    if operator in (_O.IN, _O.NOT_IN) and isinstance(rule.value, (list, tuple)):
        values = ", ".join(_format_value(item) for item in rule.value)
        return f"{label} {OPERATOR_LABELS[operator]} {values}"
    return f"{label} {OPERATOR_LABELS[operator]} {_format_value(rule.value)}"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
