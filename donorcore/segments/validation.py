"""Contract validation of segment predicate trees against the field registry.

A tree that passes ``validate_segment_tree`` can be evaluated without any
defensive checks: every field exists, every operator is legal for its
field type, and every value has the shape its operator needs.
"""

from typing import Any, Optional, Tuple

from ..error_handling import SegmentValidationError, raise_validation_error
from ..fields import DEFAULT_REGISTRY, FieldDefinition, FieldRegistry, FieldType, SegmentOperator
from .models import SegmentGroup, SegmentRule
from .values import is_missing, to_bool, to_date, to_days, to_number

_O = SegmentOperator

NULL_CHECK_OPERATORS = frozenset({_O.IS_NULL, _O.IS_NOT_NULL})
LIST_OPERATORS = frozenset({_O.IN, _O.NOT_IN})
DAY_WINDOW_OPERATORS = frozenset({_O.IN_LAST_DAYS, _O.NOT_IN_LAST_DAYS})
TEXT_OPERATORS = frozenset({_O.CONTAINS, _O.NOT_CONTAINS})


def validate_segment_tree(
    tree: SegmentGroup,
    registry: Optional[FieldRegistry] = None,
    max_depth: Optional[int] = None,
    validate_select_options: bool = True,
) -> SegmentGroup:
    """Check every rule of ``tree``; return the tree unchanged.

    Args:
        tree: Parsed root group
        registry: Field registry, defaults to the donor registry
        max_depth: Deepest allowed group nesting (root = 1); ``None`` means
            unbounded
        validate_select_options: Reject select values outside the field's
            declared options

    Raises:
        SegmentValidationError: On the first contract violation found
    """
    validator = _TreeValidator(registry or DEFAULT_REGISTRY, max_depth, validate_select_options)
    validator.visit_group(tree, path=(tree.id,), depth=1)
    return tree


class _TreeValidator:
    def __init__(self, registry: FieldRegistry, max_depth: Optional[int], check_options: bool):
        self.registry = registry
        self.max_depth = max_depth
        self.check_options = check_options

    def visit_group(self, group: SegmentGroup, path: Tuple[Any, ...], depth: int) -> None:
        if self.max_depth is not None and depth > self.max_depth:
            self.fail(
                f"Segment nesting exceeds the maximum depth of {self.max_depth}",
                path,
                error_code="max_depth",
            )
        for child in group.rules:
            child_path = path + (child.id,)
            if isinstance(child, SegmentGroup):
                self.visit_group(child, child_path, depth + 1)
            else:
                self.visit_rule(child, child_path)

    def visit_rule(self, rule: SegmentRule, path: Tuple[Any, ...]) -> None:
        definition = self.registry.lookup(rule.field)
        if definition is None:
            self.fail(f"Unknown field '{rule.field}'", path, rule, error_code="unknown_field")

        if not definition.allows(rule.operator):
            self.fail(
                f"Operator '{rule.operator.value}' is not allowed for "
                f"{definition.type.value} field '{rule.field}'",
                path,
                rule,
                error_code="illegal_operator",
            )

        operator = rule.operator
        if operator in NULL_CHECK_OPERATORS:
            return
        if operator is _O.BETWEEN:
            self.check_between(definition, rule, path)
        elif operator in LIST_OPERATORS:
            self.check_list(definition, rule, path)
        elif operator in DAY_WINDOW_OPERATORS:
            if to_days(rule.value) is None:
                self.fail(
                    f"'{operator.value}' needs a non-negative whole number of days",
                    path,
                    rule,
                )
        elif operator in TEXT_OPERATORS:
            if not isinstance(rule.value, str) or not rule.value:
                self.fail(f"'{operator.value}' needs a non-empty text value", path, rule)
        else:
            self.check_scalar(definition, rule.value, rule, path)

    def check_between(self, definition: FieldDefinition, rule: SegmentRule, path) -> None:
        value = rule.value
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            self.fail("'between' needs a [min, max] pair", path, rule)

        low, high = (self.check_scalar(definition, bound, rule, path) for bound in value)
        if low > high:
            self.fail("'between' lower bound is greater than its upper bound", path, rule)

    def check_list(self, definition: FieldDefinition, rule: SegmentRule, path) -> None:
        if not isinstance(rule.value, (list, tuple)):
            self.fail(f"'{rule.operator.value}' needs a list of values", path, rule)
        for item in rule.value:
            self.check_scalar(definition, item, rule, path)

    def check_scalar(self, definition: FieldDefinition, value: Any, rule: SegmentRule, path) -> Any:
        """Validate one comparison operand and return it coerced."""
        if value is None or isinstance(value, (list, tuple, dict)):
            self.fail(f"'{rule.operator.value}' needs a single value", path, rule)
        if is_missing(value):
            self.fail(
                f"'{rule.operator.value}' needs a non-blank value; use 'is_null' to match missing values",
                path,
                rule,
            )

        if definition.is_numeric:
            coerced = to_number(value)
        elif definition.type is FieldType.DATE:
            coerced = to_date(value)
        elif definition.type is FieldType.BOOLEAN:
            coerced = to_bool(value)
        elif definition.type is FieldType.SELECT:
            coerced = value
            if self.check_options and definition.options and value not in definition.option_values:
                self.fail(
                    f"'{value}' is not an option of '{rule.field}' "
                    f"(expected one of {', '.join(definition.option_values)})",
                    path,
                    rule,
                )
        else:
            coerced = value if isinstance(value, (str, int, float)) else None

        if coerced is None:
            self.fail(
                f"Value {value!r} is not a valid {definition.type.value} for '{rule.field}'",
                path,
                rule,
            )
        return coerced

    def fail(self, message: str, path, rule: Optional[SegmentRule] = None, error_code: str = "malformed_value"):
        raise_validation_error(
            SegmentValidationError(
                message,
                path=path,
                field_name=rule.field if rule else None,
                field_value=rule.value if rule else None,
                error_code=error_code,
            )
        )
