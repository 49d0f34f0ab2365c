"""Field schema registry for donor records.

Maps every donor attribute that a segment rule may reference to its
semantic type and the comparison operators legal for it. Field names are
the camelCase keys used by segment trees and by the donor JSON payloads.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_snake


class FieldType(str, Enum):
    """Semantic type of a donor attribute."""

    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"


class SegmentOperator(str, Enum):
    """Comparison operators available to segment rules."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    IN_LAST_DAYS = "in_last_days"
    NOT_IN_LAST_DAYS = "not_in_last_days"


OPERATOR_LABELS: Dict[SegmentOperator, str] = {
    SegmentOperator.EQUALS: "equals",
    SegmentOperator.NOT_EQUALS: "does not equal",
    SegmentOperator.GREATER_THAN: "is greater than",
    SegmentOperator.LESS_THAN: "is less than",
    SegmentOperator.GREATER_THAN_OR_EQUAL: "is greater than or equal to",
    SegmentOperator.LESS_THAN_OR_EQUAL: "is less than or equal to",
    SegmentOperator.CONTAINS: "contains",
    SegmentOperator.NOT_CONTAINS: "does not contain",
    SegmentOperator.IN: "is one of",
    SegmentOperator.NOT_IN: "is not one of",
    SegmentOperator.BETWEEN: "is between",
    SegmentOperator.IS_NULL: "is empty",
    SegmentOperator.IS_NOT_NULL: "is not empty",
    SegmentOperator.IN_LAST_DAYS: "in the last X days",
    SegmentOperator.NOT_IN_LAST_DAYS: "not in the last X days",
}


class FieldOption(BaseModel):
    """One allowed value of a select field."""

    value: str
    label: str

    model_config = ConfigDict(frozen=True)


class FieldDefinition(BaseModel):
    """Type and operator contract for a single donor attribute."""

    label: str
    type: FieldType
    operators: List[SegmentOperator]
    options: Optional[List[FieldOption]] = None

    model_config = ConfigDict(frozen=True)

    def allows(self, operator: SegmentOperator) -> bool:
        return operator in self.operators

    @property
    def option_values(self) -> List[str]:
        return [option.value for option in self.options or []]

    @property
    def is_numeric(self) -> bool:
        return self.type in (FieldType.NUMBER, FieldType.CURRENCY)


_O = SegmentOperator

STRING_OPERATORS = [
    _O.EQUALS, _O.NOT_EQUALS, _O.CONTAINS, _O.NOT_CONTAINS, _O.IS_NULL, _O.IS_NOT_NULL,
]
NUMERIC_OPERATORS = [
    _O.EQUALS, _O.NOT_EQUALS, _O.GREATER_THAN, _O.LESS_THAN,
    _O.GREATER_THAN_OR_EQUAL, _O.LESS_THAN_OR_EQUAL, _O.BETWEEN,
]
NULLABLE_NUMERIC_OPERATORS = NUMERIC_OPERATORS + [_O.IS_NULL, _O.IS_NOT_NULL]
SELECT_OPERATORS = [_O.EQUALS, _O.NOT_EQUALS, _O.IN, _O.NOT_IN]
BOOLEAN_OPERATORS = [_O.EQUALS]
DATE_OPERATORS = [
    _O.EQUALS, _O.NOT_EQUALS, _O.GREATER_THAN, _O.LESS_THAN,
    _O.GREATER_THAN_OR_EQUAL, _O.LESS_THAN_OR_EQUAL,
    _O.IN_LAST_DAYS, _O.NOT_IN_LAST_DAYS,
]
NULLABLE_DATE_OPERATORS = DATE_OPERATORS + [_O.IS_NULL, _O.IS_NOT_NULL]


def _options(*pairs: tuple) -> List[FieldOption]:
    return [FieldOption(value=value, label=label) for value, label in pairs]


def _string(label: str, nullable: bool = True) -> FieldDefinition:
    operators = STRING_OPERATORS if nullable else STRING_OPERATORS[:4]
    return FieldDefinition(label=label, type=FieldType.STRING, operators=operators)


FIELD_DEFINITIONS: Dict[str, FieldDefinition] = {
    # Identity
    "firstName": _string("First Name"),
    "lastName": _string("Last Name"),
    "email": _string("Email"),
    "phone": _string("Phone"),
    "city": _string("City"),
    "state": _string("State"),
    "zipCode": _string("Zip Code"),
    "country": _string("Country", nullable=False),
    # School
    "donorType": FieldDefinition(
        label="Donor Type",
        type=FieldType.SELECT,
        operators=SELECT_OPERATORS,
        options=_options(
            ("parent", "Parent"),
            ("alumni", "Alumni"),
            ("community", "Community"),
            ("staff", "Staff"),
            ("board", "Board"),
            ("foundation", "Foundation"),
            ("business", "Business"),
        ),
    ),
    "studentName": _string("Student Name"),
    "gradeLevel": _string("Grade Level"),
    "alumniYear": FieldDefinition(
        label="Alumni Year", type=FieldType.NUMBER, operators=NULLABLE_NUMERIC_OPERATORS
    ),
    "graduationYear": FieldDefinition(
        label="Graduation Year", type=FieldType.NUMBER, operators=NULLABLE_NUMERIC_OPERATORS
    ),
    # Engagement
    "engagementLevel": FieldDefinition(
        label="Engagement Level",
        type=FieldType.SELECT,
        operators=SELECT_OPERATORS,
        options=_options(
            ("new", "New"),
            ("active", "Active"),
            ("engaged", "Engaged"),
            ("at_risk", "At Risk"),
            ("lapsed", "Lapsed"),
        ),
    ),
    "giftSizeTier": FieldDefinition(
        label="Gift Size Tier",
        type=FieldType.SELECT,
        operators=SELECT_OPERATORS,
        options=_options(
            ("grassroots", "Grassroots"),
            ("mid_level", "Mid Level"),
            ("major", "Major"),
            ("principal", "Principal"),
        ),
    ),
    "lifetimeValue": FieldDefinition(
        label="Lifetime Value", type=FieldType.CURRENCY, operators=NUMERIC_OPERATORS
    ),
    "averageGiftSize": FieldDefinition(
        label="Average Gift Size", type=FieldType.CURRENCY, operators=NUMERIC_OPERATORS
    ),
    "totalDonations": FieldDefinition(
        label="Total Donations", type=FieldType.NUMBER, operators=NUMERIC_OPERATORS
    ),
    "lastDonationDate": FieldDefinition(
        label="Last Donation Date", type=FieldType.DATE, operators=NULLABLE_DATE_OPERATORS
    ),
    "firstDonationDate": FieldDefinition(
        label="First Donation Date", type=FieldType.DATE, operators=NULLABLE_DATE_OPERATORS
    ),
    # Communication preferences
    "emailOptIn": FieldDefinition(
        label="Email Opt-In", type=FieldType.BOOLEAN, operators=BOOLEAN_OPERATORS
    ),
    "phoneOptIn": FieldDefinition(
        label="Phone Opt-In", type=FieldType.BOOLEAN, operators=BOOLEAN_OPERATORS
    ),
    "mailOptIn": FieldDefinition(
        label="Mail Opt-In", type=FieldType.BOOLEAN, operators=BOOLEAN_OPERATORS
    ),
    "preferredContactMethod": FieldDefinition(
        label="Preferred Contact Method",
        type=FieldType.SELECT,
        operators=SELECT_OPERATORS,
        options=_options(
            ("email", "Email"),
            ("phone", "Phone"),
            ("mail", "Mail"),
            ("text", "Text"),
        ),
    ),
    # Audit
    "createdAt": FieldDefinition(
        label="Created Date", type=FieldType.DATE, operators=DATE_OPERATORS
    ),
    "updatedAt": FieldDefinition(
        label="Last Updated", type=FieldType.DATE, operators=DATE_OPERATORS
    ),
}


class FieldRegistry:
    """Read-only lookup over a table of field definitions.

    The default instance wraps ``FIELD_DEFINITIONS``; tests and callers with
    custom donor attributes can build their own table.
    """

    def __init__(self, definitions: Optional[Mapping[str, FieldDefinition]] = None):
        self._definitions = dict(FIELD_DEFINITIONS if definitions is None else definitions)

    def lookup(self, field_name: str) -> Optional[FieldDefinition]:
        return self._definitions.get(field_name)

    def attribute_name(self, field_name: str) -> str:
        """snake_case attribute / column name for a camelCase field."""
        return to_snake(field_name)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._definitions

    def __iter__(self):
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)


DEFAULT_REGISTRY = FieldRegistry()


def lookup(field_name: str) -> Optional[FieldDefinition]:
    """Look up a field in the default registry; ``None`` if unknown."""
    return DEFAULT_REGISTRY.lookup(field_name)
