"""Shared fixtures for donorcore tests."""

from datetime import date, datetime

import pytest

from donorcore.deduplication import DuplicateDetectionEngine
from donorcore.segments import SegmentEvaluator

NOW = datetime(2026, 10, 17, 12, 0)


@pytest.fixture
def fixed_clock():
    """Evaluation clock pinned to 2026-10-17 12:00."""
    return lambda: NOW


@pytest.fixture
def evaluator(fixed_clock):
    return SegmentEvaluator(clock=fixed_clock)


@pytest.fixture
def engine():
    return DuplicateDetectionEngine()


@pytest.fixture
def full_donor():
    """A donor with every matching-relevant field populated."""
    return {
        "id": "d-1",
        "firstName": "Margaret",
        "lastName": "Okafor",
        "email": "margaret.okafor@example.org",
        "phone": "(555) 010-2233",
        "address": "42 Linden Avenue",
        "city": "Riverton",
        "state": "NY",
        "zipCode": "10463",
        "studentName": "Ada Okafor",
        "alumniYear": 1998,
        "donorType": "alumni",
    }


@pytest.fixture
def segment_donors():
    """Donors spanning the segment fields used across evaluator tests."""
    return [
        {
            "id": "1",
            "firstName": "Alice",
            "city": "Bronx",
            "donorType": "alumni",
            "lifetimeValue": 1200,
            "totalDonations": 4,
            "lastDonationDate": "2026-09-01",
            "emailOptIn": True,
            "isActive": True,
        },
        {
            "id": "2",
            "firstName": "Bob",
            "city": "Manhattan",
            "donorType": "parent",
            "lifetimeValue": 5000,
            "totalDonations": 10,
            "lastDonationDate": "2024-01-15",
            "emailOptIn": False,
            "isActive": True,
        },
        {
            "id": "3",
            "firstName": "Carmen",
            "city": None,
            "donorType": "alumni",
            "lifetimeValue": "999.99",
            "totalDonations": 1,
            "lastDonationDate": None,
            "emailOptIn": True,
            "isActive": False,
        },
        {
            "id": "4",
            "firstName": "Dev",
            "city": "",
            "donorType": "board",
            "lifetimeValue": 25000,
            "totalDonations": 2,
            "lastDonationDate": date(2026, 10, 17),
            "emailOptIn": True,
        },
    ]
