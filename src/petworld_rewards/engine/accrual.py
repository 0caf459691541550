"""
petworld_rewards/engine/accrual.py

Claimable reward calculation for a single pet.

Turns a FeedingStateSnapshot and the current time into a RewardQuote by
counting the valid reward cycles since the last claim:

- Non-starved: banked feeding hours cover the whole window since the
  last claim, so every full cycle in the window counts.
- Starved: only the banked hours count (1 hour = 1 cycle). If the pet
  was re-fed after it starved, the cycles since that feed also count,
  capped by the same banked-hours value the contract uses for its
  conservative estimate.

The calculation is pure: the same snapshot and `now` always produce an
equal quote, and nothing is cached between calls.

Usage:
    from petworld_rewards.engine.accrual import CycleAccrualCalculator

    calculator = CycleAccrualCalculator()
    quote = calculator.accrue(snapshot, now=1735689600)
    if quote.is_claimable:
        ...
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..config import DEFAULT_SECONDS_PER_CYCLE, SECONDS_PER_HOUR, U64_MAX
from ..snapshot import FeedingStateSnapshot
from .quality import QualityRewardTable

logger = logging.getLogger("petworld_rewards.engine.accrual")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class ErrorKind(Enum):
    """Why a quote could not be computed."""
    INVALID_SNAPSHOT = "invalid_snapshot"
    OVERFLOW = "overflow"


class QuoteStatus(Enum):
    """How a quote was produced."""
    COMPUTED = "computed"
    INACTIVE = "inactive"   # valid zero result, not an error
    FAILED = "failed"       # see RewardQuote.error


@dataclass(frozen=True)
class RewardQuote:
    """Claimable rewards for one token at one instant."""
    token_id: Any
    pwpot: int = 0
    pwbot: int = 0
    cycles: int = 0
    accumulated_cycles: int = 0
    error: Optional[ErrorKind] = None
    status: QuoteStatus = QuoteStatus.COMPUTED
    rate_defaulted: bool = False   # quality was unknown, COMMON rate applied
    detail: str = ""

    @property
    def has_rewards(self) -> bool:
        return self.pwpot > 0 or self.pwbot > 0

    @property
    def is_claimable(self) -> bool:
        """Worth including in a claim transaction."""
        return self.error is None and self.has_rewards and self.cycles > 0

    def to_dict(self) -> dict:
        return {
            "token_id": self.token_id,
            "pwpot": self.pwpot,
            "pwbot": self.pwbot,
            "cycles": self.cycles,
            "accumulated_cycles": self.accumulated_cycles,
            "error": self.error.value if self.error else None,
            "status": self.status.value,
            "rate_defaulted": self.rate_defaulted,
            "detail": self.detail,
        }


def failed_quote(token_id: Any, error: ErrorKind, detail: str = "") -> RewardQuote:
    """Zeroed quote carrying an error."""
    return RewardQuote(
        token_id=token_id,
        error=error,
        status=QuoteStatus.FAILED,
        detail=detail,
    )


def coerce_now(now: Any) -> int:
    """
    Normalize a clock reading to whole Unix seconds.

    Raises:
        ValueError: If `now` is not a non-negative number
    """
    if isinstance(now, bool) or not isinstance(now, (int, float)):
        raise ValueError(f"now must be Unix seconds, got {now!r}")
    if (isinstance(now, float) and not math.isfinite(now)) or now < 0:
        raise ValueError(f"now must be a non-negative timestamp, got {now!r}")
    return int(now)


# ============================================================================
# CALCULATOR
# ============================================================================

class CycleAccrualCalculator:
    """
    Counts valid reward cycles and converts them into reward amounts.

    Args:
        reward_table: Quality -> rate lookup (defaults to the static table)
        seconds_per_cycle: Cycle length in seconds (contract SECONDS_PER_CYCLE)
    """

    def __init__(
        self,
        reward_table: Optional[QualityRewardTable] = None,
        seconds_per_cycle: int = DEFAULT_SECONDS_PER_CYCLE,
    ):
        if seconds_per_cycle < 1:
            raise ValueError(f"seconds_per_cycle must be >= 1, got {seconds_per_cycle}")
        self.reward_table = reward_table or QualityRewardTable()
        self.seconds_per_cycle = seconds_per_cycle

    def count_new_cycles(self, snapshot: FeedingStateSnapshot, now: int) -> int:
        """
        Cycles earned since the last claim, excluding accumulated cycles.

        The snapshot must already be valid.
        """
        last_claim_time = snapshot.last_claim_time
        if now <= last_claim_time:
            return 0

        feeding_hours = snapshot.feeding_hours
        banked_seconds = feeding_hours * SECONDS_PER_HOUR
        elapsed = now - last_claim_time

        if banked_seconds >= elapsed:
            return elapsed // self.seconds_per_cycle

        # Starved during the window: banked hours are the valid cycles
        cycles = feeding_hours

        # Re-fed after starvation. The second window is capped by the same
        # feeding_hours value, matching the contract-side estimate.
        if snapshot.last_feed_time > last_claim_time + banked_seconds:
            time_from_last_feed = max(0, now - snapshot.last_feed_time)
            if time_from_last_feed > 0:
                cycles_from_last_feed = time_from_last_feed // self.seconds_per_cycle
                cycles += min(cycles_from_last_feed, feeding_hours)

        return cycles

    def accrue(self, snapshot: FeedingStateSnapshot, now: Any) -> RewardQuote:
        """
        Compute the claimable rewards for one pet.

        Never raises for bad snapshot data: an invalid snapshot or an
        out-of-range product yields a zeroed quote with `error` set.

        Args:
            snapshot: Feeding state read from chain
            now: Current Unix time in seconds

        Returns:
            RewardQuote
        """
        now = coerce_now(now)
        token_id = getattr(snapshot, "token_id", None)

        if not isinstance(snapshot, FeedingStateSnapshot):
            logger.warning(f"Token {token_id}: not a feeding snapshot ({type(snapshot).__name__})")
            return failed_quote(token_id, ErrorKind.INVALID_SNAPSHOT, "not a feeding snapshot")

        problems = snapshot.validate()
        if problems:
            detail = "; ".join(problems)
            logger.warning(f"Token {token_id}: invalid snapshot ({detail})")
            return failed_quote(token_id, ErrorKind.INVALID_SNAPSHOT, detail)

        if not snapshot.is_active:
            return RewardQuote(
                token_id=token_id,
                accumulated_cycles=snapshot.accumulated_cycles,
                status=QuoteStatus.INACTIVE,
            )

        total_valid_cycles = snapshot.accumulated_cycles + self.count_new_cycles(snapshot, now)

        rate, defaulted = self.reward_table.resolve(snapshot.quality)
        pwpot = rate.pwpot_per_cycle * total_valid_cycles
        pwbot = rate.pwbot_per_cycle * total_valid_cycles

        if total_valid_cycles > U64_MAX or pwpot > U64_MAX or pwbot > U64_MAX:
            logger.warning(
                f"Token {token_id}: reward overflow "
                f"({total_valid_cycles} cycles at {rate.pwpot_per_cycle}/{rate.pwbot_per_cycle})"
            )
            return RewardQuote(
                token_id=token_id,
                cycles=min(total_valid_cycles, U64_MAX),
                accumulated_cycles=snapshot.accumulated_cycles,
                error=ErrorKind.OVERFLOW,
                status=QuoteStatus.FAILED,
                rate_defaulted=defaulted,
                detail="reward amount exceeds u64",
            )

        logger.debug(
            f"Token {token_id}: cycles={total_valid_cycles} "
            f"(accumulated={snapshot.accumulated_cycles}), "
            f"rewards={pwpot} PWPOT, {pwbot} PWBOT"
        )

        return RewardQuote(
            token_id=token_id,
            pwpot=pwpot,
            pwbot=pwbot,
            cycles=total_valid_cycles,
            accumulated_cycles=snapshot.accumulated_cycles,
            rate_defaulted=defaulted,
        )


_DEFAULT_CALCULATOR = CycleAccrualCalculator()


def accrue(snapshot: FeedingStateSnapshot, now: Any) -> RewardQuote:
    """Convenience wrapper using the default calculator."""
    return _DEFAULT_CALCULATOR.accrue(snapshot, now)
