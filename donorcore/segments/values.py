"""Value coercion shared by segment validation, evaluation and SQL translation."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from pydantic.alias_generators import to_snake


def is_missing(value: Any) -> bool:
    """``None`` and the empty string both count as an absent value."""
    return value is None or (isinstance(value, str) and value.strip() == "")


def to_number(value: Any) -> Optional[Decimal]:
    """Coerce ints, floats, Decimals and numeric strings; ``None`` otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def to_date(value: Any) -> Optional[date]:
    """Calendar date of a date, datetime or ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return None


def to_days(value: Any) -> Optional[int]:
    """Non-negative whole number of days, or ``None``."""
    if isinstance(value, bool):
        return None
    number = to_number(value)
    if number is None or number < 0 or number != number.to_integral_value():
        return None
    return int(number)


def get_field_value(record: Any, field: str) -> Any:
    """Read a camelCase field from a mapping or a snake_case attribute.

    Mappings are tried with the camelCase key first and the snake_case key
    second so that both API payloads and database rows work.
    """
    if isinstance(record, Mapping):
        if field in record:
            return record[field]
        return record.get(to_snake(field))
    return getattr(record, to_snake(field), None)
