"""Pre-built smart segment templates."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import SegmentGroup, parse_segment_tree


class SmartSegmentTemplate(BaseModel):
    """A named, categorized segment definition offered as a starting point."""

    id: str
    name: str
    description: str
    category: str
    estimated_count: Optional[str] = Field(default=None, alias="estimatedCount")
    query: SegmentGroup

    model_config = ConfigDict(frozen=True, populate_by_name=True)


def _all(*rules: Dict[str, Any]) -> SegmentGroup:
    numbered = [dict(rule, id=str(index)) for index, rule in enumerate(rules, start=1)]
    return parse_segment_tree({"combinator": "and", "rules": numbered})


def _rule(field: str, operator: str, value: Any) -> Dict[str, Any]:
    return {"field": field, "operator": operator, "value": value}


SMART_SEGMENT_TEMPLATES: List[SmartSegmentTemplate] = [
    SmartSegmentTemplate(
        id="major-donors",
        name="Major Donors",
        description="High-value donors with lifetime giving over $5,000",
        category="Giving Capacity",
        estimated_count="~50 donors",
        query=_all(
            _rule("lifetimeValue", "greater_than_or_equal", 5000),
            _rule("giftSizeTier", "in", ["major", "principal"]),
        ),
    ),
    SmartSegmentTemplate(
        id="lapsed-donors",
        name="Lapsed Donors",
        description="Previous donors who haven't given in over 18 months",
        category="Re-engagement",
        estimated_count="~120 donors",
        query=_all(
            _rule("lastDonationDate", "not_in_last_days", 548),
            _rule("totalDonations", "greater_than", 0),
            _rule("engagementLevel", "equals", "lapsed"),
        ),
    ),
    SmartSegmentTemplate(
        id="new-parents",
        name="New Parents",
        description="Parents who joined the school community in the last 2 years",
        category="Relationship",
        estimated_count="~85 donors",
        query=_all(
            _rule("donorType", "equals", "parent"),
            _rule("createdAt", "in_last_days", 730),
            _rule("engagementLevel", "in", ["new", "active"]),
        ),
    ),
    SmartSegmentTemplate(
        id="engaged-alumni",
        name="Engaged Alumni",
        description="Alumni who actively support the school through giving and engagement",
        category="Relationship",
        estimated_count="~75 donors",
        query=_all(
            _rule("donorType", "equals", "alumni"),
            _rule("engagementLevel", "in", ["active", "engaged"]),
            _rule("lastDonationDate", "in_last_days", 365),
        ),
    ),
    SmartSegmentTemplate(
        id="frequent-small-donors",
        name="Frequent Small Donors",
        description="Loyal donors who give smaller amounts regularly",
        category="Giving Capacity",
        estimated_count="~200 donors",
        query=_all(
            _rule("totalDonations", "greater_than_or_equal", 3),
            _rule("averageGiftSize", "less_than_or_equal", 500),
            _rule("giftSizeTier", "in", ["grassroots", "mid_level"]),
        ),
    ),
    SmartSegmentTemplate(
        id="at-risk-donors",
        name="At-Risk Donors",
        description="Previously active donors showing signs of disengagement",
        category="Re-engagement",
        estimated_count="~45 donors",
        query=_all(
            _rule("engagementLevel", "equals", "at_risk"),
            _rule("lastDonationDate", "in_last_days", 548),
            _rule("lifetimeValue", "greater_than", 1000),
        ),
    ),
    SmartSegmentTemplate(
        id="board-foundation-givers",
        name="Board & Foundation Donors",
        description="High-capacity institutional and board member donors",
        category="Giving Capacity",
        estimated_count="~25 donors",
        query=_all(
            _rule("donorType", "in", ["board", "foundation", "business"]),
            _rule("lifetimeValue", "greater_than", 2500),
        ),
    ),
    SmartSegmentTemplate(
        id="email-engaged",
        name="Email Engaged",
        description="Donors who actively engage with email communications",
        category="Communication",
        estimated_count="~300 donors",
        query=_all(
            _rule("emailOptIn", "equals", True),
            _rule("preferredContactMethod", "equals", "email"),
            _rule("engagementLevel", "in", ["active", "engaged"]),
        ),
    ),
]

# First-seen order of categories across the templates
TEMPLATE_CATEGORIES: List[str] = list(dict.fromkeys(t.category for t in SMART_SEGMENT_TEMPLATES))


def get_template(template_id: str) -> Optional[SmartSegmentTemplate]:
    for template in SMART_SEGMENT_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def templates_by_category(category: Optional[str] = None) -> Dict[str, List[SmartSegmentTemplate]]:
    """Templates grouped by category, or only ``category`` when given."""
    grouped: Dict[str, List[SmartSegmentTemplate]] = {}
    for template in SMART_SEGMENT_TEMPLATES:
        if category is None or template.category == category:
            grouped.setdefault(template.category, []).append(template)
    return grouped
