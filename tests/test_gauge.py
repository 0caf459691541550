"""
Tests for petworld_rewards/engine/gauge.py

Tests the remaining feeding hours gauge: decay, rounding, fallbacks and
monotonicity.
"""

import pytest

from petworld_rewards.snapshot import FeedingStateSnapshot
from petworld_rewards.engine.gauge import (
    RemainingFeedingGauge,
    RemainingHours,
    GaugeSource,
    remaining_hours,
    round_half_up,
)


T = 1_735_689_600
HOUR = 3600


def create_test_snapshot(**overrides) -> FeedingStateSnapshot:
    """Create a snapshot fed and claimed at T with 24 banked hours."""
    fields = {
        "token_id": 1,
        "feeding_hours": 24,
        "last_claim_time": T,
        "last_feed_time": T,
        "quality": 0,
        "is_active": True,
        "accumulated_cycles": 0,
    }
    fields.update(overrides)
    return FeedingStateSnapshot(**fields)


@pytest.fixture
def gauge():
    return RemainingFeedingGauge()


class TestRemainingHours:
    """Decay of banked hours against the clock."""

    def test_half_hour_elapsed(self, gauge):
        """Test 30 minutes after a feed leaves 23.5 of 24 hours."""
        reading = gauge.remaining_hours(create_test_snapshot(), T + 1800)
        assert reading.hours == 23.5
        assert reading.source == GaugeSource.COMPUTED

    def test_rounds_half_up(self, gauge):
        """24 - 1.25 = 22.75 rounds to 22.8."""
        reading = gauge.remaining_hours(create_test_snapshot(), T + 4500)
        assert reading.hours == 22.8

    def test_uses_later_action_time(self, gauge):
        """Test decay starts at the later of last feed and last claim."""
        snapshot = create_test_snapshot(last_claim_time=T + HOUR, last_feed_time=T)
        assert gauge.remaining_hours(snapshot, T + 2 * HOUR).hours == 23.0

    def test_starved_is_zero(self, gauge):
        """Test a starved pet reads zero, never negative."""
        assert gauge.remaining_hours(create_test_snapshot(), T + 30 * HOUR).hours == 0.0

    def test_clock_behind_last_action(self, gauge):
        """Test a clock behind the last action counts as no elapsed time."""
        assert gauge.remaining_hours(create_test_snapshot(), T - HOUR).hours == 24.0

    def test_module_level_wrapper(self):
        """Test the module-level remaining_hours function."""
        assert remaining_hours(create_test_snapshot(), T + 1800).hours == 23.5


class TestGaugeFallbacks:
    """Tagged defaults for incomplete or idle pets."""

    def test_inactive(self, gauge):
        """Test an inactive pet reads zero and is not defaulted."""
        reading = gauge.remaining_hours(create_test_snapshot(is_active=False), T + HOUR)
        assert reading.hours == 0.0
        assert reading.source == GaugeSource.INACTIVE
        assert not reading.defaulted

    def test_never_acted_returns_banked_hours(self, gauge):
        """Test a pet never fed or claimed returns its banked hours."""
        snapshot = create_test_snapshot(feeding_hours=10, last_claim_time=0, last_feed_time=0)
        reading = gauge.remaining_hours(snapshot, T)
        assert reading.hours == 10.0
        assert reading.source == GaugeSource.NEVER_ACTED

    def test_missing_field_returns_banked_hours(self, gauge):
        """Test a missing timestamp falls back to the banked hours."""
        snapshot = create_test_snapshot(feeding_hours=12, last_feed_time=None)
        reading = gauge.remaining_hours(snapshot, T + 5 * HOUR)
        assert reading.hours == 12.0
        assert reading.source == GaugeSource.FALLBACK
        assert reading.defaulted

    def test_missing_feeding_hours(self, gauge):
        """Test missing feeding hours fall back to zero."""
        reading = gauge.remaining_hours(create_test_snapshot(feeding_hours=None), T)
        assert reading.hours == 0.0
        assert reading.defaulted

    def test_missing_fields_checked_before_active_flag(self, gauge):
        """Test the missing-field fallback wins over the inactive result."""
        snapshot = create_test_snapshot(feeding_hours=6, last_claim_time=None, is_active=False)
        assert gauge.remaining_hours(snapshot, T).source == GaugeSource.FALLBACK


class TestGaugeMalformedFields:
    """Present but malformed fields are flagged, never computed."""

    @pytest.mark.parametrize("field", ["feeding_hours", "last_feed_time", "last_claim_time"])
    @pytest.mark.parametrize("value", ["160", -50, True])
    def test_malformed_field_is_invalid(self, gauge, field, value):
        """Test a str, negative or bool field yields a defaulted INVALID reading."""
        reading = gauge.remaining_hours(create_test_snapshot(**{field: value}), T + HOUR)

        assert reading.source == GaugeSource.INVALID
        assert reading.source != GaugeSource.COMPUTED
        assert reading.defaulted

    def test_malformed_timestamp_keeps_banked_hours(self, gauge):
        """Test usable banked hours are still reported alongside the flag."""
        reading = gauge.remaining_hours(create_test_snapshot(last_feed_time="soon"), T + HOUR)
        assert reading.hours == 24.0

    @pytest.mark.parametrize("value", ["160", -50, True])
    def test_malformed_feeding_hours_reads_zero(self, gauge, value):
        """Test unusable banked hours count as none."""
        reading = gauge.remaining_hours(create_test_snapshot(feeding_hours=value), T)
        assert reading.hours == 0.0

    def test_malformed_checked_before_active_flag(self, gauge):
        """Test an invalid inactive pet is reported as INVALID, not INACTIVE."""
        snapshot = create_test_snapshot(feeding_hours="24", is_active=False)
        assert gauge.remaining_hours(snapshot, T).source == GaugeSource.INVALID

    def test_invalid_to_dict(self):
        """Test the INVALID tag serializes by value."""
        reading = RemainingHours(hours=0.0, source=GaugeSource.INVALID)
        assert reading.to_dict() == {"hours": 0.0, "source": "invalid"}


class TestGaugeProperties:
    """Invariants across readings."""

    def test_monotonic_and_non_negative(self, gauge):
        """Remaining hours never increase as time moves forward."""
        snapshot = create_test_snapshot(feeding_hours=24, last_claim_time=T - 1234)
        previous = None
        for now in range(T - 2 * HOUR, T + 30 * HOUR, 617):
            hours = gauge.remaining_hours(snapshot, now).hours
            assert hours >= 0.0
            if previous is not None:
                assert hours <= previous
            previous = hours

    def test_to_dict(self):
        """Test RemainingHours serialization."""
        assert RemainingHours(hours=3.5).to_dict() == {"hours": 3.5, "source": "computed"}

    @pytest.mark.parametrize("value,expected", [
        (0.04, 0.0),
        (0.05, 0.1),
        (1.25, 1.3),
        (7.0, 7.0),
    ])
    def test_round_half_up(self, value, expected):
        """Test half-up rounding to one decimal place."""
        assert round_half_up(value) == expected
