"""Segment evaluator: compiles predicate trees into per-record predicates.

Operator semantics are registered per ``SegmentOperator`` in
``OPERATOR_FUNCTIONS``. Absent values (``None`` or empty string) are
resolved centrally before dispatch:

- ``is_null`` is true and ``is_not_null`` is false;
- ``not_equals``, ``not_contains`` and ``not_in`` are true;
- every other operator is false.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..fields import DEFAULT_REGISTRY, FieldDefinition, FieldRegistry, FieldType, SegmentOperator
from ..logging_config import get_logger
from .models import Combinator, SegmentGroup, SegmentRule, parse_segment_tree
from .validation import validate_segment_tree
from .values import get_field_value, is_missing, to_bool, to_date, to_days, to_number

logger = get_logger(__name__)

_O = SegmentOperator

Clock = Callable[[], datetime]
NodePredicate = Callable[[Any, date], bool]
SegmentTree = Union[SegmentGroup, Dict[str, Any]]

# Operators that hold when the record has no value at all
TRUE_WHEN_MISSING = frozenset({_O.NOT_EQUALS, _O.NOT_CONTAINS, _O.NOT_IN})


@dataclass(frozen=True)
class RuleContext:
    """Per-call inputs an operator may need besides the two operands."""

    field_type: FieldType
    today: date


def _equals(value, operand, ctx: RuleContext) -> bool:
    return value is not None and value == operand


def _not_equals(value, operand, ctx: RuleContext) -> bool:
    return not _equals(value, operand, ctx)


def _contains(value, operand, ctx: RuleContext) -> bool:
    return operand in str(value).lower()


def _not_contains(value, operand, ctx: RuleContext) -> bool:
    return operand not in str(value).lower()


def _ordered(compare: Callable[[Any, Any], bool]):
    def check(value, operand, ctx: RuleContext) -> bool:
        return value is not None and compare(value, operand)

    return check


def _between(value, operand, ctx: RuleContext) -> bool:
    low, high = operand
    return value is not None and low <= value <= high


def _in(value, operand, ctx: RuleContext) -> bool:
    return value in operand


def _not_in(value, operand, ctx: RuleContext) -> bool:
    return value not in operand


def _in_last_days(value, operand, ctx: RuleContext) -> bool:
    return value is not None and value >= ctx.today - timedelta(days=operand)


def _not_in_last_days(value, operand, ctx: RuleContext) -> bool:
    return value is not None and value < ctx.today - timedelta(days=operand)


OPERATOR_FUNCTIONS: Dict[SegmentOperator, Callable[[Any, Any, RuleContext], bool]] = {
    _O.EQUALS: _equals,
    _O.NOT_EQUALS: _not_equals,
    _O.CONTAINS: _contains,
    _O.NOT_CONTAINS: _not_contains,
    _O.GREATER_THAN: _ordered(lambda a, b: a > b),
    _O.LESS_THAN: _ordered(lambda a, b: a < b),
    _O.GREATER_THAN_OR_EQUAL: _ordered(lambda a, b: a >= b),
    _O.LESS_THAN_OR_EQUAL: _ordered(lambda a, b: a <= b),
    _O.BETWEEN: _between,
    _O.IN: _in,
    _O.NOT_IN: _not_in,
    _O.IN_LAST_DAYS: _in_last_days,
    _O.NOT_IN_LAST_DAYS: _not_in_last_days,
}


def _coerce(field_type: FieldType, value: Any) -> Any:
    """Bring a record or rule value into the field type's comparable form.

    Uncoercible values become ``None`` and never satisfy a comparison.
    """
    if field_type in (FieldType.NUMBER, FieldType.CURRENCY):
        return to_number(value)
    if field_type is FieldType.DATE:
        return to_date(value)
    if field_type is FieldType.BOOLEAN:
        return to_bool(value)
    if field_type is FieldType.STRING:
        return str(value)
    return value


def prepare_operand(definition: FieldDefinition, rule: SegmentRule) -> Any:
    operator = rule.operator
    if operator in (_O.CONTAINS, _O.NOT_CONTAINS):
        return str(rule.value).lower()
    if operator in (_O.IN_LAST_DAYS, _O.NOT_IN_LAST_DAYS):
        return to_days(rule.value)
    if operator is _O.BETWEEN:
        return tuple(_coerce(definition.type, bound) for bound in rule.value)
    if operator in (_O.IN, _O.NOT_IN):
        return tuple(_coerce(definition.type, item) for item in rule.value)
    if operator in (_O.IS_NULL, _O.IS_NOT_NULL):
        return None
    return _coerce(definition.type, rule.value)


class CompiledSegment:
    """A validated tree turned into a reusable record predicate.

    Calling the object evaluates one record against the clock's current
    date. ``filter`` and ``count`` read the clock once per call so every
    record in a batch sees the same "today".
    """

    def __init__(self, tree: SegmentGroup, predicate: NodePredicate, clock: Clock):
        self.tree = tree
        self._predicate = predicate
        self._clock = clock

    def __call__(self, record: Any) -> bool:
        return self._predicate(record, self._today())

    def filter(self, records: Iterable[Any], active_only: bool = False) -> List[Any]:
        today = self._today()
        return [
            record
            for record in records
            if (not active_only or _is_active(record)) and self._predicate(record, today)
        ]

    def count(self, records: Iterable[Any], active_only: bool = False) -> int:
        today = self._today()
        return sum(
            1
            for record in records
            if (not active_only or _is_active(record)) and self._predicate(record, today)
        )

    def _today(self) -> date:
        return self._clock().date()


def _is_active(record: Any) -> bool:
    return get_field_value(record, "isActive") is not False


class SegmentEvaluator:
    """Evaluates segment predicate trees against donor records.

    Trees are parsed and validated against the field registry before they
    are compiled, so contract violations surface as
    ``SegmentValidationError`` and never during evaluation.

    Args:
        registry: Field registry, defaults to the donor registry
        clock: Returns the evaluation "now"; inject a fixed clock in tests
        max_depth: Deepest allowed group nesting (root = 1)
        validate_select_options: Reject select values outside declared options
    """

    def __init__(
        self,
        registry: Optional[FieldRegistry] = None,
        clock: Optional[Clock] = None,
        max_depth: Optional[int] = None,
        validate_select_options: bool = True,
    ):
        self.registry = registry or DEFAULT_REGISTRY
        self.clock = clock or datetime.now
        self.max_depth = max_depth
        self.validate_select_options = validate_select_options

    @classmethod
    def from_config(cls, config, clock: Optional[Clock] = None) -> "SegmentEvaluator":
        """Build an evaluator from a loaded ``donorcore.config.Config``."""
        return cls(
            clock=clock,
            max_depth=config.segments.max_depth,
            validate_select_options=config.segments.validate_select_options,
        )

    def validate(self, tree: SegmentTree) -> SegmentGroup:
        """Parse and validate ``tree``, raising ``SegmentValidationError``."""
        root = parse_segment_tree(tree)
        return validate_segment_tree(
            root,
            registry=self.registry,
            max_depth=self.max_depth,
            validate_select_options=self.validate_select_options,
        )

    def compile(self, tree: SegmentTree) -> CompiledSegment:
        root = self.validate(tree)
        predicate = self._compile_group(root)
        logger.debug("segment_compiled", segment_id=root.id, node_count=_count_nodes(root))
        return CompiledSegment(root, predicate, self.clock)

    def evaluate(self, tree: SegmentTree, record: Any) -> bool:
        """True when ``record`` belongs to the segment described by ``tree``."""
        return self.compile(tree)(record)

    def filter(self, tree: SegmentTree, records: Iterable[Any], active_only: bool = False) -> List[Any]:
        """Records matching ``tree``, in input order."""
        return self.compile(tree).filter(records, active_only=active_only)

    def count(self, tree: SegmentTree, records: Iterable[Any], active_only: bool = False) -> int:
        return self.compile(tree).count(records, active_only=active_only)

    def _compile_group(self, group: SegmentGroup) -> NodePredicate:
        children = [
            self._compile_group(child) if isinstance(child, SegmentGroup) else self._compile_rule(child)
            for child in group.rules
        ]
        # all([]) is True and any([]) is False: empty AND matches, empty OR does not
        combine = all if group.combinator is Combinator.AND else any
        negate = group.negate

        def predicate(record: Any, today: date) -> bool:
            result = combine(child(record, today) for child in children)
            return not result if negate else result

        return predicate

    def _compile_rule(self, rule: SegmentRule) -> NodePredicate:
        definition = self.registry.lookup(rule.field)
        field_type = definition.type
        operator = rule.operator
        operand = prepare_operand(definition, rule)
        function = OPERATOR_FUNCTIONS.get(operator)
        field = rule.field

        def predicate(record: Any, today: date) -> bool:
            raw = get_field_value(record, field)
            missing = is_missing(raw)
            if operator is _O.IS_NULL:
                return missing
            if operator is _O.IS_NOT_NULL:
                return not missing
            if missing:
                return operator in TRUE_WHEN_MISSING
            return function(_coerce(field_type, raw), operand, RuleContext(field_type, today))

        return predicate


def _count_nodes(group: SegmentGroup) -> int:
    return 1 + sum(
        _count_nodes(child) if isinstance(child, SegmentGroup) else 1 for child in group.rules
    )
