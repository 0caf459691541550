"""
Tests for petworld_rewards/snapshot.py

Tests decoding nftFeeding records and snapshot validation.
"""

import pytest

from petworld_rewards.snapshot import (
    FeedingStateSnapshot,
    SnapshotError,
    CHAIN_FIELD_MAP,
)


T = 1_735_689_600


def create_chain_record(**overrides) -> dict:
    record = {
        "feedingHours": "24",
        "lastClaimTime": str(T),
        "lastFeedTime": str(T + 60),
        "quality": "3",
        "isActive": True,
        "accumulatedCycles": "2",
        "accumulatedFood": "48",
        "level": "5",
    }
    record.update(overrides)
    return record


class TestFromChain:
    """Wire record -> snapshot mapping."""

    def test_wire_names(self):
        """Test the nftFeeding wire field names."""
        assert set(CHAIN_FIELD_MAP) == {
            "feedingHours", "lastClaimTime", "lastFeedTime", "quality",
            "isActive", "accumulatedCycles", "accumulatedFood", "level",
        }

    def test_decodes_string_numbers(self):
        """Test decoding numbers web3 returns as strings."""
        snapshot = FeedingStateSnapshot.from_chain("42", create_chain_record())

        assert snapshot.token_id == 42
        assert snapshot.feeding_hours == 24
        assert snapshot.last_claim_time == T
        assert snapshot.last_feed_time == T + 60
        assert snapshot.quality == 3
        assert snapshot.is_active is True
        assert snapshot.accumulated_cycles == 2
        assert snapshot.accumulated_food == 48
        assert snapshot.level == 5
        assert snapshot.is_valid

    def test_accepts_native_ints(self):
        """Test decoding native ints."""
        record = create_chain_record(feedingHours=10, quality=1)
        snapshot = FeedingStateSnapshot.from_chain(1, record)
        assert snapshot.feeding_hours == 10
        assert snapshot.quality == 1

    @pytest.mark.parametrize("raw,expected", [
        (False, False),
        ("true", True),
        ("False", False),
        (1, True),
        (0, False),
        ("1", True),
    ])
    def test_is_active_forms(self, raw, expected):
        """Test the accepted isActive encodings."""
        snapshot = FeedingStateSnapshot.from_chain(1, create_chain_record(isActive=raw))
        assert snapshot.is_active is expected

    def test_missing_field_becomes_none(self):
        """Test a missing field decodes to None and fails validation."""
        record = create_chain_record()
        del record["lastFeedTime"]
        snapshot = FeedingStateSnapshot.from_chain(1, record)

        assert snapshot.last_feed_time is None
        assert "last_feed_time is missing" in snapshot.validate()

    @pytest.mark.parametrize("overrides", [
        {"feedingHours": "many"},
        {"quality": 2.5},
        {"isActive": "maybe"},
        {"isActive": 2},
        {"level": True},
    ])
    def test_unparseable_values(self, overrides):
        """Test an unparseable value raises SnapshotError."""
        with pytest.raises(SnapshotError):
            FeedingStateSnapshot.from_chain(1, create_chain_record(**overrides))

    @pytest.mark.parametrize("raw", ["1_000", "+5", "-5", "0x10", "1e3", "2.0", ""])
    def test_non_decimal_strings_rejected(self, raw):
        """Test only plain decimal digit strings decode as integers."""
        with pytest.raises(SnapshotError):
            FeedingStateSnapshot.from_chain(1, create_chain_record(feedingHours=raw))

    def test_surrounding_whitespace_allowed(self):
        """Test whitespace around a decimal string is ignored."""
        snapshot = FeedingStateSnapshot.from_chain(1, create_chain_record(feedingHours=" 24 "))
        assert snapshot.feeding_hours == 24

    def test_not_a_mapping(self):
        """Test a non-mapping record raises SnapshotError."""
        with pytest.raises(SnapshotError):
            FeedingStateSnapshot.from_chain(1, ["24", "0"])

    @pytest.mark.parametrize("token_id", ["abc", -3, None])
    def test_bad_token_id(self, token_id):
        """Test an unusable token id raises SnapshotError."""
        with pytest.raises(SnapshotError):
            FeedingStateSnapshot.from_chain(token_id, create_chain_record())

    def test_snapshot_error_is_value_error(self):
        """Test SnapshotError is a ValueError."""
        assert issubclass(SnapshotError, ValueError)


class TestValidate:
    """Snapshot validation."""

    def test_defaults_are_valid(self):
        """Test a default snapshot validates."""
        assert FeedingStateSnapshot(token_id=1).validate() == []

    def test_negative_timestamp(self):
        """Test a negative timestamp is reported."""
        errors = FeedingStateSnapshot(token_id=1, last_claim_time=-1).validate()
        assert errors == ["last_claim_time must be >= 0, got -1"]

    def test_bool_is_not_an_int(self):
        """Test a bool is not accepted as an integer."""
        errors = FeedingStateSnapshot(token_id=1, feeding_hours=True).validate()
        assert len(errors) == 1
        assert "feeding_hours" in errors[0]

    def test_optional_fields_may_be_missing(self):
        """Test optional fields may be None."""
        snapshot = FeedingStateSnapshot(token_id=1, accumulated_food=None, level=None)
        assert snapshot.is_valid

    def test_is_active_must_be_bool(self):
        """Test is_active must be a bool."""
        assert not FeedingStateSnapshot(token_id=1, is_active=1).is_valid

    def test_frozen(self):
        """Test snapshots are immutable."""
        snapshot = FeedingStateSnapshot(token_id=1)
        with pytest.raises(Exception):
            snapshot.feeding_hours = 5

    def test_dict_round_trip(self):
        """Test to_dict and from_dict agree."""
        snapshot = FeedingStateSnapshot.from_chain(9, create_chain_record())
        assert FeedingStateSnapshot.from_dict(snapshot.to_dict()) == snapshot
