# server/tests/unit/domain/test_schedule.py
from datetime import datetime, timedelta, timezone

import pytest

from reminder_engine.core.errors import ComputationError
from reminder_engine.domain.enums import OffsetLabel
from reminder_engine.domain.schedule import (
    DEFAULT_RULES,
    FAR_OFFSETS,
    ScheduleRules,
    compute_fire_time,
    emergency_fire_time,
    morning_anchor,
)

pytestmark = pytest.mark.unit

NOW = datetime(2030, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
L = OffsetLabel


# --- offsets lointains ---------------------------------------------------------

@pytest.mark.parametrize("label", list(FAR_OFFSETS))
def test_far_offsets_are_exact(label):
    event = NOW + timedelta(days=30)
    assert compute_fire_time(event, NOW, label) == event - FAR_OFFSETS[label]


def test_far_offset_in_the_past_is_invalid():
    event = NOW + timedelta(days=2)
    with pytest.raises(ComputationError):
        compute_fire_time(event, NOW, L.THREE_DAYS_BEFORE)


def test_far_offset_exactly_now_is_invalid():
    event = NOW + timedelta(days=1)
    with pytest.raises(ComputationError):
        compute_fire_time(event, NOW, L.ONE_DAY_BEFORE)


# --- same_day_morning ----------------------------------------------------------

def test_morning_anchor_is_nine_local_on_event_day():
    event = NOW + timedelta(days=10, hours=3)  # 15:00 UTC
    fire = compute_fire_time(event, NOW, L.SAME_DAY_MORNING)
    assert fire == datetime(2030, 6, 25, 9, 0, tzinfo=timezone.utc)


def test_morning_anchor_after_event_is_invalid():
    event = datetime(2030, 6, 20, 8, 0, tzinfo=timezone.utc)
    with pytest.raises(ComputationError):
        compute_fire_time(event, NOW, L.SAME_DAY_MORNING)


def test_morning_anchor_already_passed_is_invalid():
    event = NOW + timedelta(hours=3)  # aujourd'hui 15:00, 09:00 est passé
    with pytest.raises(ComputationError):
        compute_fire_time(event, NOW, L.SAME_DAY_MORNING)


def test_morning_anchor_uses_configured_timezone():
    rules = ScheduleRules(timezone="Europe/Paris", morning_hour=9)
    event = datetime(2030, 6, 25, 15, 0, tzinfo=timezone.utc)
    # 09:00 heure de Paris (UTC+2 en été) = 07:00 UTC
    assert morning_anchor(event, rules) == datetime(2030, 6, 25, 7, 0, tzinfo=timezone.utc)


# --- offsets proches -----------------------------------------------------------

def test_near_offset_nominal_when_enough_time():
    event = NOW + timedelta(hours=2)
    assert compute_fire_time(event, NOW, L.ONE_HOUR_BEFORE) == event - timedelta(hours=1)


def test_near_offset_half_remaining_when_short():
    # 90 s restantes, 30 min nominal : moitié du restant, plancher (3 min) non applicable
    event = NOW + timedelta(seconds=90)
    assert compute_fire_time(event, NOW, L.THIRTY_MINUTES_BEFORE) == NOW + timedelta(seconds=45)


def test_near_offset_floor_applies_when_it_fits():
    # 20 min restantes : moitié = 10 min, plancher 5 min → 10 min avant
    event = NOW + timedelta(minutes=20)
    assert compute_fire_time(event, NOW, L.ONE_HOUR_BEFORE) == event - timedelta(minutes=10)
    # 8 min restantes : moitié = 4 min < plancher 5 min → 5 min avant
    event = NOW + timedelta(minutes=8)
    assert compute_fire_time(event, NOW, L.ONE_HOUR_BEFORE) == event - timedelta(minutes=5)


def test_near_offset_fraction_is_floored_to_the_second():
    event = NOW + timedelta(seconds=61)
    # floor(30.5) = 30 s, relevé au plancher (1 min < 61 s restantes)
    assert compute_fire_time(event, NOW, L.FIVE_MINUTES_BEFORE) == event - timedelta(seconds=60)
    event = NOW + timedelta(seconds=59)  # plancher >= restant : ignoré
    assert compute_fire_time(event, NOW, L.FIVE_MINUTES_BEFORE) == event - timedelta(seconds=29)


# --- same_day (paliers) --------------------------------------------------------

@pytest.mark.parametrize(
    "remaining, lead",
    [
        (timedelta(hours=5), timedelta(hours=2)),
        (timedelta(hours=3), timedelta(hours=1)),
        (timedelta(minutes=90), timedelta(minutes=30)),
        (timedelta(minutes=45), timedelta(minutes=15)),
        (timedelta(minutes=20), timedelta(minutes=10)),
        (timedelta(minutes=12), timedelta(minutes=5)),
        (timedelta(minutes=7), timedelta(minutes=3)),
        (timedelta(minutes=4), timedelta(minutes=2)),
    ],
)
def test_same_day_tiers(remaining, lead):
    event = NOW + remaining
    assert compute_fire_time(event, NOW, L.SAME_DAY) == event - lead


# --- urgence / fallback --------------------------------------------------------

@pytest.mark.parametrize(
    "remaining, expected_offset_from_now",
    [
        (timedelta(seconds=30), timedelta(seconds=10)),
        (timedelta(seconds=5), timedelta(seconds=5)),
        (timedelta(minutes=3), timedelta(minutes=2)),
        (timedelta(minutes=8), timedelta(minutes=6)),
        (timedelta(minutes=20), timedelta(minutes=15)),
    ],
)
def test_emergency_tiers(remaining, expected_offset_from_now):
    event = NOW + remaining
    assert emergency_fire_time(event, NOW) == NOW + expected_offset_from_now
    assert compute_fire_time(event, NOW, L.FALLBACK) == NOW + expected_offset_from_now


def test_emergency_rejects_past_event():
    with pytest.raises(ComputationError):
        emergency_fire_time(NOW - timedelta(seconds=1), NOW)


# --- erreurs -------------------------------------------------------------------

def test_unknown_label_is_invalid():
    with pytest.raises(ComputationError):
        compute_fire_time(NOW + timedelta(days=1), NOW, "two_weeks_before")


def test_past_event_is_invalid_for_every_label():
    for label in OffsetLabel:
        with pytest.raises(ComputationError):
            compute_fire_time(NOW - timedelta(minutes=1), NOW, label)


def test_naive_datetimes_are_read_as_utc():
    event = (NOW + timedelta(days=8)).replace(tzinfo=None)
    fire = compute_fire_time(event, NOW.replace(tzinfo=None), L.ONE_WEEK_BEFORE)
    assert fire == NOW + timedelta(days=1)
    assert fire.tzinfo is not None


# --- propriétés sur une plage 10 s .. 10 ans ------------------------------------

SPANS = [
    timedelta(seconds=10),
    timedelta(seconds=59),
    timedelta(minutes=2),
    timedelta(minutes=14),
    timedelta(minutes=31),
    timedelta(hours=3),
    timedelta(hours=23),
    timedelta(days=2),
    timedelta(days=6, hours=23),
    timedelta(days=45),
    timedelta(days=3650),
]


@pytest.mark.parametrize("span", SPANS)
def test_every_valid_fire_time_is_within_now_and_event(span):
    event = NOW + span
    for label in OffsetLabel:
        try:
            fire = compute_fire_time(event, NOW, label, DEFAULT_RULES)
        except ComputationError:
            assert label in FAR_OFFSETS or label is OffsetLabel.SAME_DAY_MORNING
            continue
        assert NOW < fire <= event, (label, span, fire)
