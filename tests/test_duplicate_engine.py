"""Tests for the duplicate detection engine."""

import logging

import pytest

from donorcore.deduplication import (
    Confidence,
    ConfidenceThresholds,
    DuplicateDetectionEngine,
    DuplicateDetectionOptions,
    StrategyName,
    format_match_reasons,
)
from donorcore.error_handling import ValidationError
from donorcore.models import DonorRecord


class TestFindDuplicates:
    """End-to-end behaviour of find_duplicates."""

    def test_similar_name_with_same_email_is_high_confidence(self, engine):
        candidate = {"firstName": "Jon", "lastName": "Smith", "email": "jon@x.com"}
        stored = {"firstName": "John", "lastName": "Smith", "email": "JON@X.com"}

        matches = engine.find_duplicates(candidate, [stored])

        assert len(matches) == 1
        match = matches[0]
        assert match.match_score == pytest.approx((3.0 * 1.0 + 1.5 * 0.9) / 4.5)
        assert match.confidence is Confidence.HIGH
        assert "Exact email match" in match.match_reasons
        assert match.match_strategy == "exact_email, fuzzy_name"

    def test_identical_records_are_high_confidence(self, engine, full_donor):
        matches = engine.find_duplicates(dict(full_donor), [full_donor])
        assert matches[0].match_score >= 0.9
        assert matches[0].match_score == pytest.approx(1.0)
        assert matches[0].confidence is Confidence.HIGH

    def test_email_case_difference_still_matches(self, engine, full_donor):
        candidate = dict(full_donor, email=full_donor["email"].upper())
        matches = engine.find_duplicates(candidate, [full_donor])
        assert "Exact email match" in matches[0].match_reasons

    def test_returns_original_donor_object(self, engine, full_donor):
        matches = engine.find_duplicates(dict(full_donor), [full_donor])
        assert matches[0].donor is full_donor

    def test_accepts_donor_records(self, engine, full_donor):
        stored = DonorRecord.coerce(full_donor)
        matches = engine.find_duplicates(DonorRecord.coerce(full_donor), [stored])
        assert matches[0].donor is stored

    def test_unrelated_donor_is_excluded(self, engine, full_donor):
        stranger = {"firstName": "Paul", "lastName": "Brown", "email": "paul@y.com"}
        assert engine.find_duplicates(stranger, [full_donor]) == []

    def test_email_mismatch_counts_against_name_match(self, engine):
        candidate = {"firstName": "Mary", "lastName": "Jones", "email": "mary@a.com"}
        stored = {"firstName": "Mary", "lastName": "Jones", "email": "mjones@b.com"}
        pair = engine.score_pair(candidate, stored)
        # exact_email applies with score 0, fuzzy_name scores 1.0
        assert pair.score == pytest.approx(1.5 / 4.5)
        assert pair.strategies == (StrategyName.FUZZY_NAME,)
        assert engine.find_duplicates(candidate, [stored]) == []

    def test_no_applicable_strategy_scores_zero(self, engine):
        pair = engine.score_pair({"firstName": "Mary"}, {"lastName": "Brown"})
        assert pair.score == 0.0
        assert pair.reasons == ()
        assert pair.strategies == ()

    def test_blank_import_cells_do_not_block_matching(self, engine):
        candidate = {
            "firstName": "Mary",
            "lastName": "Jones",
            "email": "mary@a.com",
            "alumniYear": "",
            "lifetimeValue": "",
            "lastDonationDate": "",
        }
        stored = {"firstName": "Mary", "lastName": "Jones", "email": "MARY@a.com", "isActive": None}
        matches = engine.find_duplicates(candidate, [stored])
        assert len(matches) == 1
        assert matches[0].confidence is Confidence.HIGH

    def test_nameless_donors_are_not_a_name_match(self, engine):
        pair = engine.score_pair({"city": "Bronx"}, {"city": "Queens"})
        assert pair.score == 0.0
        assert engine.find_duplicates({"city": "Bronx"}, [{"city": "Queens"}]) == []

    def test_sorted_by_score_descending(self, engine, full_donor):
        weaker = dict(full_donor, id="weak", email=None, address=None, phone=None, firstName="Margret")
        stronger = dict(full_donor, id="strong")
        matches = engine.find_duplicates(dict(full_donor), [weaker, stronger])
        assert [m.donor["id"] for m in matches] == ["strong", "weak"]
        assert matches[0].match_score > matches[1].match_score

    def test_ties_keep_input_order(self, engine, full_donor):
        donors = [dict(full_donor, id=str(i)) for i in range(5)]
        matches = engine.find_duplicates(dict(full_donor), donors)
        assert [m.donor["id"] for m in matches] == ["0", "1", "2", "3", "4"]

    def test_deterministic(self, engine, full_donor):
        donors = [
            full_donor,
            dict(full_donor, id="2", firstName="Margret"),
            dict(full_donor, id="3", email="other@example.org"),
        ]
        first = engine.find_duplicates(dict(full_donor), donors)
        second = engine.find_duplicates(dict(full_donor), donors)
        assert first == second

    @pytest.mark.parametrize(
        "candidate",
        [
            {"firstName": "Margaret", "lastName": "Okafor"},
            {"email": "MARGARET.OKAFOR@example.org"},
            {"phone": "555 010 2233", "firstName": "Maggie", "lastName": "Okafor"},
            {"firstName": "M", "lastName": "O", "city": "Riverton", "zipCode": "10463"},
            {},
        ],
    )
    def test_scores_are_bounded(self, engine, full_donor, candidate):
        pair = engine.score_pair(candidate, full_donor)
        assert 0.0 <= pair.score <= 1.0


class TestRequirements:
    """require_exact_email / require_exact_phone act as hard gates."""

    @pytest.fixture
    def same_person_no_email(self, full_donor):
        return {
            "firstName": full_donor["firstName"],
            "lastName": full_donor["lastName"],
            "phone": full_donor["phone"],
        }

    def test_matches_without_requirement(self, engine, full_donor, same_person_no_email):
        matches = engine.find_duplicates(same_person_no_email, [full_donor])
        assert matches[0].confidence is Confidence.HIGH

    def test_require_exact_email_excludes_high_scores(self, full_donor, same_person_no_email):
        engine = DuplicateDetectionEngine(DuplicateDetectionOptions(require_exact_email=True))
        assert engine.find_duplicates(same_person_no_email, [full_donor]) == []

    def test_require_exact_phone(self, full_donor):
        engine = DuplicateDetectionEngine(DuplicateDetectionOptions(require_exact_phone=True))
        candidate = dict(full_donor, phone="555-999-0000")
        assert engine.find_duplicates(candidate, [full_donor]) == []
        assert len(engine.find_duplicates(dict(full_donor), [full_donor])) == 1


class TestOptions:

    def test_restricted_strategy_set(self, full_donor):
        options = DuplicateDetectionOptions(strategies=("exact_email",))
        engine = DuplicateDetectionEngine(options)
        candidate = {"email": full_donor["email"]}
        matches = engine.find_duplicates(candidate, [full_donor])
        assert matches[0].match_strategy == "exact_email"
        assert matches[0].match_score == 1.0

    def test_zero_weight_excludes_strategy(self, full_donor):
        options = DuplicateDetectionOptions(strategy_weights={"exact_email": 0})
        engine = DuplicateDetectionEngine(options)
        candidate = {"email": full_donor["email"], "firstName": "Zed", "lastName": "Quill"}
        assert engine.find_duplicates(candidate, [full_donor]) == []

    def test_weights_merge_with_defaults(self):
        options = DuplicateDetectionOptions(strategy_weights={"fuzzy_name": 4.0})
        assert options.strategy_weights[StrategyName.FUZZY_NAME] == 4.0
        assert options.strategy_weights[StrategyName.EXACT_EMAIL] == 3.0

    def test_school_strategies_can_be_enabled(self, full_donor):
        options = DuplicateDetectionOptions(strategies=("student_name", "school_connection"))
        engine = DuplicateDetectionEngine(options)
        candidate = {"studentName": "ada okafor", "alumniYear": 1998, "donorType": "alumni"}
        matches = engine.find_duplicates(candidate, [full_donor])
        assert matches[0].match_reasons == (
            "Same student name",
            "Same alumni year (1998)",
            "Same donor type (alumni)",
        )

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            DuplicateDetectionOptions(strategies=("soundex",))
        assert exc_info.value.field_value == "soundex"

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            DuplicateDetectionOptions(strategy_weights={"exact_email": -1})

    def test_custom_thresholds(self):
        engine = DuplicateDetectionEngine(
            DuplicateDetectionOptions(thresholds=ConfidenceThresholds(high=0.99, medium=0.95, low=0.3))
        )
        candidate = {"firstName": "Mary", "lastName": "Jones", "email": "mary@a.com"}
        stored = {"firstName": "Mary", "lastName": "Jones", "email": "mjones@b.com"}
        matches = engine.find_duplicates(candidate, [stored])
        assert matches[0].confidence is Confidence.LOW


class TestConfidenceThresholds:

    @pytest.mark.parametrize(
        "score,expected",
        [
            (1.0, Confidence.HIGH),
            (0.9, Confidence.HIGH),
            (0.89, Confidence.MEDIUM),
            (0.7, Confidence.MEDIUM),
            (0.5, Confidence.LOW),
            (0.49, None),
        ],
    )
    def test_band(self, score, expected):
        assert ConfidenceThresholds().band(score) is expected

    @pytest.mark.parametrize(
        "high,medium,low",
        [(0.5, 0.7, 0.9), (1.5, 0.7, 0.5), (0.9, 0.7, -0.1)],
    )
    def test_invalid_ordering_rejected(self, high, medium, low):
        with pytest.raises(ValidationError):
            ConfidenceThresholds(high=high, medium=medium, low=low)

    def test_invalid_thresholds_are_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            with pytest.raises(ValidationError):
                ConfidenceThresholds(high=0.5, medium=0.7, low=0.9)
        assert any("contract_violation" in record.getMessage() for record in caplog.records)


class TestPresentation:

    def test_confidence_descriptions(self):
        assert Confidence.HIGH.description == "Very likely duplicate - manual review recommended"
        assert Confidence.MEDIUM.description == "Possible duplicate - review suggested"
        assert Confidence.LOW.description == "Weak match - may not be duplicate"

    @pytest.mark.parametrize(
        "reasons,expected",
        [
            ([], "No specific matches found"),
            (["A"], "A"),
            (["A", "B"], "A and B"),
            (["A", "B", "C"], "A, B, and C"),
        ],
    )
    def test_format_match_reasons(self, reasons, expected):
        assert format_match_reasons(reasons) == expected

    def test_to_dict_uses_camel_case(self, engine, full_donor):
        payload = engine.find_duplicates(dict(full_donor), [full_donor])[0].to_dict()
        assert set(payload) == {"donor", "matchScore", "matchReasons", "matchStrategy", "confidence"}
        assert payload["confidence"] == "high"
        assert isinstance(payload["matchReasons"], list)
