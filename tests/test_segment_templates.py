"""Tests for the pre-built smart segment templates."""

from datetime import date

import pytest

from donorcore.segments import (
    SMART_SEGMENT_TEMPLATES,
    TEMPLATE_CATEGORIES,
    get_template,
    templates_by_category,
)

TEMPLATE_IDS = [t.id for t in SMART_SEGMENT_TEMPLATES]


class TestTemplateCatalog:

    def test_ids(self):
        assert TEMPLATE_IDS == [
            "major-donors",
            "lapsed-donors",
            "new-parents",
            "engaged-alumni",
            "frequent-small-donors",
            "at-risk-donors",
            "board-foundation-givers",
            "email-engaged",
        ]

    def test_categories_in_first_seen_order(self):
        assert TEMPLATE_CATEGORIES == ["Giving Capacity", "Re-engagement", "Relationship", "Communication"]

    def test_templates_by_category(self):
        grouped = templates_by_category()
        assert {k: len(v) for k, v in grouped.items()} == {
            "Giving Capacity": 3,
            "Re-engagement": 2,
            "Relationship": 2,
            "Communication": 1,
        }
        assert list(templates_by_category("Communication")) == ["Communication"]
        assert templates_by_category("Unknown") == {}

    def test_get_template(self):
        template = get_template("major-donors")
        assert template.name == "Major Donors"
        assert template.estimated_count == "~50 donors"
        assert get_template("missing") is None

    @pytest.mark.parametrize("template_id", TEMPLATE_IDS)
    def test_every_template_validates(self, evaluator, template_id):
        evaluator.validate(get_template(template_id).query)


class TestTemplateSegments:

    def test_major_donors(self, evaluator):
        query = get_template("major-donors").query
        assert evaluator.evaluate(query, {"lifetimeValue": 5000, "giftSizeTier": "major"})
        assert not evaluator.evaluate(query, {"lifetimeValue": 4999, "giftSizeTier": "principal"})

    def test_lapsed_donors(self, evaluator):
        query = get_template("lapsed-donors").query
        lapsed = {"lastDonationDate": date(2024, 1, 15), "totalDonations": 6, "engagementLevel": "lapsed"}
        recent = dict(lapsed, lastDonationDate=date(2026, 1, 15))
        assert evaluator.evaluate(query, lapsed)
        assert not evaluator.evaluate(query, recent)

    def test_email_engaged(self, evaluator):
        query = get_template("email-engaged").query
        donor = {"emailOptIn": True, "preferredContactMethod": "email", "engagementLevel": "engaged"}
        assert evaluator.evaluate(query, donor)
        assert not evaluator.evaluate(query, dict(donor, emailOptIn=False))
