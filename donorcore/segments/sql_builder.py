"""Translate segment trees into parameterized SQL for store-side execution.

The generated condition keeps the in-memory evaluator's semantics,
including its treatment of absent values: negative operators
(``not_equals``, ``not_contains``, ``not_in``) also match NULL columns, and
string null checks treat the empty string as NULL. Date columns are
cast to DATE so timestamps compare by calendar day.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from ..fields import DEFAULT_REGISTRY, FieldRegistry, FieldType, SegmentOperator
from .evaluator import SegmentTree, prepare_operand
from .models import Combinator, SegmentGroup, SegmentRule, parse_segment_tree
from .validation import validate_segment_tree

_O = SegmentOperator

_COMPARISONS = {
    _O.EQUALS: "=",
    _O.GREATER_THAN: ">",
    _O.LESS_THAN: "<",
    _O.GREATER_THAN_OR_EQUAL: ">=",
    _O.LESS_THAN_OR_EQUAL: "<=",
}

ALWAYS_TRUE = "1=1"
ALWAYS_FALSE = "1=0"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLConditionBuilder:
    """Builds a WHERE fragment and its parameter list from a segment tree.

    Args:
        registry: Field registry used for validation and column names
        placeholder: Parameter marker of the target DB-API driver
        today: Reference date for ``in_last_days`` cutoffs
    """

    def __init__(
        self,
        registry: Optional[FieldRegistry] = None,
        placeholder: str = "?",
        today: Optional[date] = None,
    ):
        self.registry = registry or DEFAULT_REGISTRY
        self.placeholder = placeholder
        self.today = today or datetime.now().date()

    def build(self, tree: SegmentTree) -> Tuple[str, List[Any]]:
        root = validate_segment_tree(parse_segment_tree(tree), registry=self.registry)
        params: List[Any] = []
        clause = self._group(root, params)
        return clause, params

    def _group(self, group: SegmentGroup, params: List[Any]) -> str:
        parts = []
        for child in group.rules:
            if isinstance(child, SegmentGroup):
                parts.append(f"({self._group(child, params)})")
            else:
                parts.append(self._rule(child, params))

        if not parts:
            combined = ALWAYS_TRUE if group.combinator is Combinator.AND else ALWAYS_FALSE
        else:
            combined = f" {group.combinator.value.upper()} ".join(parts)
        return f"NOT ({combined})" if group.negate else combined

    def _rule(self, rule: SegmentRule, params: List[Any]) -> str:
        definition = self.registry.lookup(rule.field)
        column = self.registry.attribute_name(rule.field)
        operator = rule.operator
        operand = _sql_value(prepare_operand(definition, rule))
        ph = self.placeholder
        is_string = definition.type is FieldType.STRING
        # timestamp columns compare by calendar date
        value = f"CAST({column} AS DATE)" if definition.type is FieldType.DATE else column

        if operator is _O.IS_NULL:
            return f"({column} IS NULL OR {column} = '')" if is_string else f"{column} IS NULL"
        if operator is _O.IS_NOT_NULL:
            return f"({column} IS NOT NULL AND {column} <> '')" if is_string else f"{column} IS NOT NULL"

        if operator in _COMPARISONS:
            params.append(operand)
            return f"{value} {_COMPARISONS[operator]} {ph}"
        if operator is _O.NOT_EQUALS:
            params.append(operand)
            return f"({column} IS NULL OR {value} <> {ph})"
        if operator is _O.CONTAINS:
            params.append(f"%{_escape_like(operand)}%")
            return f"LOWER({column}) LIKE {ph} ESCAPE '\\'"
        if operator is _O.NOT_CONTAINS:
            params.append(f"%{_escape_like(operand)}%")
            return f"({column} IS NULL OR LOWER({column}) NOT LIKE {ph} ESCAPE '\\')"
        if operator is _O.BETWEEN:
            params.extend(operand)
            return f"{value} BETWEEN {ph} AND {ph}"
        if operator is _O.IN:
            if not operand:
                return ALWAYS_FALSE
            params.extend(operand)
            return f"{column} IN ({', '.join([ph] * len(operand))})"
        if operator is _O.NOT_IN:
            if not operand:
                return ALWAYS_TRUE
            params.extend(operand)
            return f"({column} IS NULL OR {column} NOT IN ({', '.join([ph] * len(operand))}))"
        # in_last_days / not_in_last_days
        params.append(self.today - timedelta(days=operand))
        if operator is _O.IN_LAST_DAYS:
            return f"{value} >= {ph}"
        return f"{value} < {ph}"


def _sql_value(operand: Any) -> Any:
    """Decimals travel as strings so any DB-API driver can bind them."""
    if isinstance(operand, tuple):
        return tuple(_sql_value(v) for v in operand)
    return str(operand) if isinstance(operand, Decimal) else operand


def build_sql_condition(
    tree: SegmentTree,
    registry: Optional[FieldRegistry] = None,
    placeholder: str = "?",
    today: Optional[date] = None,
) -> Tuple[str, List[Any]]:
    """WHERE fragment and parameters for ``tree``."""
    return SQLConditionBuilder(registry, placeholder, today).build(tree)


def build_segment_sql(
    tree: SegmentTree,
    active_only: bool = True,
    table: str = "donors",
    registry: Optional[FieldRegistry] = None,
    placeholder: str = "?",
    today: Optional[date] = None,
) -> Tuple[str, List[Any]]:
    """Full ``SELECT`` over the donor table for ``tree``."""
    condition, params = build_sql_condition(tree, registry, placeholder, today)
    if active_only:
        return f"SELECT * FROM {table} WHERE (is_active IS NULL OR is_active = TRUE) AND ({condition})", params
    return f"SELECT * FROM {table} WHERE {condition}", params
