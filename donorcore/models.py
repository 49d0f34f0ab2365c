"""Donor record model consumed by the matching and segmentation engines."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class DonorRecord(BaseModel):
    """A candidate or stored donor.

    Populated from camelCase JSON (``firstName``) or snake_case keyword
    arguments (``first_name``). Unknown keys are kept so that custom fields
    survive a round trip. Blank strings are read as absent values and
    ``isActive: null`` as active. Instances are immutable.
    """

    id: Optional[str] = None

    # Identity
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    # School
    student_name: Optional[str] = None
    grade_level: Optional[str] = None
    alumni_year: Optional[int] = None
    graduation_year: Optional[int] = None
    donor_type: Optional[str] = None

    # Engagement
    lifetime_value: Optional[Decimal] = None
    average_gift_size: Optional[Decimal] = None
    total_donations: Optional[int] = None
    engagement_level: Optional[str] = None
    gift_size_tier: Optional[str] = None
    last_donation_date: Optional[date] = None
    first_donation_date: Optional[date] = None

    # Preferences
    email_opt_in: Optional[bool] = None
    phone_opt_in: Optional[bool] = None
    mail_opt_in: Optional[bool] = None
    preferred_contact_method: Optional[str] = None

    # Audit
    is_active: Optional[bool] = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        # import rows carry empty cells for absent values
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def coerce(cls, record: Union["DonorRecord", Mapping[str, Any]]) -> "DonorRecord":
        """Accept a ``DonorRecord`` or any mapping of donor fields."""
        if isinstance(record, DonorRecord):
            return record
        return cls.model_validate(dict(record))

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


DonorLike = Union[DonorRecord, Mapping[str, Any]]

__all__ = ["DonorRecord", "DonorLike"]
