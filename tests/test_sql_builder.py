"""Tests for SQL translation of segment trees."""

from datetime import date

import pytest

from donorcore.error_handling import SegmentValidationError
from donorcore.segments import SQLConditionBuilder, build_segment_sql, build_sql_condition

TODAY = date(2026, 10, 17)


def condition(*rules, combinator="and", negate=False, **kwargs):
    tree = {"combinator": combinator, "not": negate, "rules": list(rules)}
    return build_sql_condition(tree, today=TODAY, **kwargs)


def rule(field, operator, value=None):
    node = {"field": field, "operator": operator}
    if value is not None:
        node["value"] = value
    return node


class TestConditions:

    def test_and_of_comparisons(self):
        clause, params = condition(
            rule("donorType", "equals", "alumni"),
            rule("lifetimeValue", "greater_than_or_equal", 1000),
        )
        assert clause == "donor_type = ? AND lifetime_value >= ?"
        assert params == ["alumni", "1000"]

    def test_or_group(self):
        clause, _ = condition(
            rule("donorType", "equals", "board"),
            rule("donorType", "equals", "staff"),
            combinator="or",
        )
        assert clause == "donor_type = ? OR donor_type = ?"

    def test_negated_nested_group(self):
        inner = {"not": True, "rules": [rule("city", "contains", "Bronx")]}
        clause, params = condition(inner)
        assert clause == "(NOT (LOWER(city) LIKE ? ESCAPE '\\'))"
        assert params == ["%bronx%"]

    def test_empty_groups(self):
        assert condition() == ("1=1", [])
        assert condition(combinator="or") == ("1=0", [])
        assert condition(negate=True) == ("NOT (1=1)", [])

    def test_not_equals_includes_null(self):
        clause, params = condition(rule("donorType", "not_equals", "parent"))
        assert clause == "(donor_type IS NULL OR donor_type <> ?)"
        assert params == ["parent"]

    def test_null_checks(self):
        assert condition(rule("city", "is_null"))[0] == "(city IS NULL OR city = '')"
        assert condition(rule("city", "is_not_null"))[0] == "(city IS NOT NULL AND city <> '')"
        assert condition(rule("alumniYear", "is_null"))[0] == "alumni_year IS NULL"

    def test_not_contains_includes_null(self):
        clause, _ = condition(rule("city", "not_contains", "x"))
        assert clause == "(city IS NULL OR LOWER(city) NOT LIKE ? ESCAPE '\\')"

    def test_like_wildcards_are_escaped(self):
        _, params = condition(rule("firstName", "contains", "50%_Off"))
        assert params == ["%50\\%\\_off%"]

    def test_between(self):
        clause, params = condition(rule("lifetimeValue", "between", [100, "250.50"]))
        assert clause == "lifetime_value BETWEEN ? AND ?"
        assert params == ["100", "250.50"]

    def test_in_and_not_in(self):
        clause, params = condition(rule("giftSizeTier", "in", ["major", "principal"]))
        assert clause == "gift_size_tier IN (?, ?)"
        assert params == ["major", "principal"]

        clause, _ = condition(rule("giftSizeTier", "not_in", ["major"]))
        assert clause == "(gift_size_tier IS NULL OR gift_size_tier NOT IN (?))"

    def test_empty_in_lists(self):
        assert condition(rule("donorType", "in", []))[0] == "1=0"
        assert condition(rule("donorType", "not_in", []))[0] == "1=1"

    def test_day_windows(self):
        clause, params = condition(rule("lastDonationDate", "in_last_days", 30))
        assert clause == "CAST(last_donation_date AS DATE) >= ?"
        assert params == [date(2026, 9, 17)]

        clause, params = condition(rule("lastDonationDate", "not_in_last_days", 548))
        assert clause == "CAST(last_donation_date AS DATE) < ?"
        assert params == [date(2025, 4, 17)]

    def test_date_columns_compare_by_calendar_date(self):
        clause, params = condition(rule("createdAt", "equals", "2026-05-01T15:30:00Z"))
        assert clause == "CAST(created_at AS DATE) = ?"
        assert params == [date(2026, 5, 1)]

        clause, _ = condition(rule("createdAt", "not_equals", "2026-05-01"))
        assert clause == "(created_at IS NULL OR CAST(created_at AS DATE) <> ?)"

        clause, _ = condition(rule("lastDonationDate", "less_than_or_equal", "2026-06-30"))
        assert clause == "CAST(last_donation_date AS DATE) <= ?"

        assert condition(rule("lastDonationDate", "is_null"))[0] == "last_donation_date IS NULL"

    def test_date_and_boolean_params(self):
        _, params = condition(
            rule("createdAt", "greater_than", "2026-01-01T08:00:00Z"),
            rule("emailOptIn", "equals", True),
        )
        assert params == [date(2026, 1, 1), True]

    def test_custom_placeholder(self):
        clause, _ = condition(rule("donorType", "equals", "alumni"), placeholder="%s")
        assert clause == "donor_type = %s"

    def test_invalid_tree_is_rejected(self):
        with pytest.raises(SegmentValidationError):
            condition(rule("lifetimeValue", "contains", "1"))

    def test_builder_instance_reuse(self):
        builder = SQLConditionBuilder(today=TODAY)
        tree = {"rules": [rule("city", "equals", "Bronx")]}
        assert builder.build(tree) == builder.build(tree)


class TestSegmentSql:

    def test_active_only_by_default(self):
        tree = {"rules": [rule("donorType", "equals", "alumni")]}
        sql, params = build_segment_sql(tree, today=TODAY)
        assert sql == "SELECT * FROM donors WHERE (is_active IS NULL OR is_active = TRUE) AND (donor_type = ?)"
        assert params == ["alumni"]

    def test_all_donors(self):
        sql, _ = build_segment_sql({"rules": []}, active_only=False, table="donor_archive")
        assert sql == "SELECT * FROM donor_archive WHERE 1=1"
