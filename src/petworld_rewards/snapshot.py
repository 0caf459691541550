"""
petworld_rewards/snapshot.py

Feeding-state snapshot for a single pet NFT.

A snapshot is an immutable view of the feeding contract's `nftFeeding`
record at one instant. The chain-reading collaborator hands us the raw
record; `FeedingStateSnapshot.from_chain` maps the wire names onto typed
fields and `validate()` checks them once, before any calculation runs.

Wire contract (nftFeeding return value):
    feedingHours, lastClaimTime, lastFeedTime, quality, isActive,
    accumulatedCycles, accumulatedFood, level
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger("petworld_rewards.snapshot")


# ============================================================================
# WIRE MAPPING
# ============================================================================

# Chain field name -> snapshot attribute
CHAIN_FIELD_MAP: Dict[str, str] = {
    "feedingHours": "feeding_hours",
    "lastClaimTime": "last_claim_time",
    "lastFeedTime": "last_feed_time",
    "quality": "quality",
    "isActive": "is_active",
    "accumulatedCycles": "accumulated_cycles",
    "accumulatedFood": "accumulated_food",
    "level": "level",
}

# Fields the accrual math depends on
REQUIRED_INT_FIELDS = (
    "feeding_hours",
    "last_claim_time",
    "last_feed_time",
    "quality",
    "accumulated_cycles",
)

# Informational only, validated when present
OPTIONAL_INT_FIELDS = ("accumulated_food", "level")

_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}


class SnapshotError(ValueError):
    """A chain record could not be decoded into a snapshot."""


def _parse_uint(name: str, value: Any) -> Optional[int]:
    """Parse an integer that web3 may hand back as a decimal string."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise SnapshotError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        # Plain ASCII digits only; int() would also take "1_000" or "+5"
        if not (text.isascii() and text.isdigit()):
            raise SnapshotError(f"{name} is not an unsigned integer: {value!r}")
        return int(text, 10)
    raise SnapshotError(f"{name} has unsupported type {type(value).__name__}")


def _parse_bool(name: str, value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise SnapshotError(f"{name} is not a boolean: {value!r}")


# ============================================================================
# SNAPSHOT
# ============================================================================

@dataclass(frozen=True)
class FeedingStateSnapshot:
    """
    Read-only feeding state of one pet.

    Fields may be None when the upstream record omitted them; such a
    snapshot fails validate() and the engine reports it instead of
    guessing a value.
    """
    token_id: int
    feeding_hours: Optional[int] = 0
    last_claim_time: Optional[int] = 0      # Unix seconds, 0 = never claimed
    last_feed_time: Optional[int] = 0       # Unix seconds, 0 = never fed
    quality: Optional[int] = 0              # QualityTier value
    is_active: Optional[bool] = True
    accumulated_cycles: Optional[int] = 0
    accumulated_food: Optional[int] = 0     # informational
    level: Optional[int] = 0                # informational

    def validate(self) -> List[str]:
        """
        Check field types and ranges.

        Returns:
            List of problems (empty if the snapshot is usable)
        """
        errors = []
        for name in REQUIRED_INT_FIELDS:
            value = getattr(self, name)
            if value is None:
                errors.append(f"{name} is missing")
            elif isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be an integer, got {type(value).__name__}")
            elif value < 0:
                errors.append(f"{name} must be >= 0, got {value}")

        for name in OPTIONAL_INT_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be an integer, got {type(value).__name__}")
            elif value < 0:
                errors.append(f"{name} must be >= 0, got {value}")

        if self.is_active is None:
            errors.append("is_active is missing")
        elif not isinstance(self.is_active, bool):
            errors.append(f"is_active must be a bool, got {type(self.is_active).__name__}")

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "FeedingStateSnapshot":
        return cls(**data)

    @classmethod
    def from_chain(cls, token_id: Any, record: Mapping[str, Any]) -> "FeedingStateSnapshot":
        """
        Decode an nftFeeding record.

        Args:
            token_id: NFT token id (int or decimal string)
            record: Mapping keyed by the chain field names

        Returns:
            FeedingStateSnapshot (absent fields are None)

        Raises:
            SnapshotError: If the record is not a mapping or a present
                field cannot be parsed
        """
        if not isinstance(record, Mapping):
            raise SnapshotError(f"Feeding record for token {token_id} is not a mapping")

        parsed_id = _parse_uint("token_id", token_id)
        if parsed_id is None or parsed_id < 0:
            raise SnapshotError(f"Invalid token id: {token_id!r}")

        values: Dict[str, Any] = {}
        for wire_name, attr in CHAIN_FIELD_MAP.items():
            raw = record.get(wire_name)
            if attr == "is_active":
                values[attr] = _parse_bool(wire_name, raw)
            else:
                values[attr] = _parse_uint(wire_name, raw)

        return cls(token_id=parsed_id, **values)
