# server/tests/unit/domain/test_policies.py
from datetime import datetime, timedelta, timezone

import pytest

from reminder_engine.domain.enums import EventCategory, OffsetLabel
from reminder_engine.domain.policies import (
    CATEGORY_DEFAULT_POLICIES,
    adaptive_policy,
    default_policy_for,
    normalize_policy,
    resolve_policy,
)

pytestmark = pytest.mark.unit

NOW = datetime(2030, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
L = OffsetLabel


def test_every_category_has_a_default_policy():
    assert set(CATEGORY_DEFAULT_POLICIES) == set(EventCategory)
    for cat in EventCategory:
        policy = default_policy_for(cat)
        assert policy
        assert L.FALLBACK not in policy


def test_normalize_dedupes_and_keeps_order():
    accepted, rejected = normalize_policy(["one_day_before", "same_day", "ONE_DAY_BEFORE "])
    assert accepted == [L.ONE_DAY_BEFORE, L.SAME_DAY]
    assert rejected == []


def test_normalize_rejects_fallback_and_unknown():
    accepted, rejected = normalize_policy(["fallback", "next_year", L.SAME_DAY])
    assert accepted == [L.SAME_DAY]
    assert rejected == ["fallback", "next_year"]


@pytest.mark.parametrize(
    "remaining, expected",
    [
        (timedelta(seconds=30), [L.FIVE_MINUTES_BEFORE]),
        (timedelta(minutes=2), [L.FIVE_MINUTES_BEFORE]),
        (timedelta(minutes=10), [L.FIFTEEN_MINUTES_BEFORE, L.FIVE_MINUTES_BEFORE]),
        (timedelta(minutes=15), [L.FIFTEEN_MINUTES_BEFORE, L.FIVE_MINUTES_BEFORE]),
        (timedelta(minutes=25), [L.FIFTEEN_MINUTES_BEFORE]),
        (timedelta(hours=2), [L.SAME_DAY]),
    ],
)
def test_adaptive_policy(remaining, expected):
    assert adaptive_policy(remaining) == expected


def test_resolve_keeps_explicit_policy():
    assert resolve_policy(["one_hour_before"], NOW + timedelta(minutes=5), NOW) == [L.ONE_HOUR_BEFORE]


def test_resolve_empty_policy_imminent_event():
    assert resolve_policy([], NOW + timedelta(minutes=20), NOW) == [L.FIFTEEN_MINUTES_BEFORE]


def test_resolve_empty_policy_distant_event_defaults_to_same_day():
    assert resolve_policy(None, NOW + timedelta(days=3), NOW) == [L.SAME_DAY]


def test_resolve_only_unknown_labels_behaves_like_empty():
    assert resolve_policy(["bogus"], NOW + timedelta(minutes=1), NOW) == [L.FIVE_MINUTES_BEFORE]
