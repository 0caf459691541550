"""
petworld_rewards/engine/gauge.py

"Real" remaining feeding hours for a pet.

The contract stores feedingHours as of the last feed or claim; the hours
actually left are that value minus the time elapsed since the later of
the two actions, floored at zero and rounded to one decimal place.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..config import GAUGE_DECIMALS, SECONDS_PER_HOUR
from ..snapshot import FeedingStateSnapshot
from .accrual import coerce_now

logger = logging.getLogger("petworld_rewards.engine.gauge")


class GaugeSource(Enum):
    """How a RemainingHours value was obtained."""
    COMPUTED = "computed"
    INACTIVE = "inactive"
    NEVER_ACTED = "never_acted"   # no feed or claim yet, banked value returned as-is
    FALLBACK = "fallback"         # required fields missing, best-effort value
    INVALID = "invalid"           # fields present but malformed, best-effort value


@dataclass(frozen=True)
class RemainingHours:
    """Hours of feeding left before starvation."""
    hours: float
    source: GaugeSource = GaugeSource.COMPUTED

    @property
    def defaulted(self) -> bool:
        return self.source in (GaugeSource.FALLBACK, GaugeSource.INVALID)

    def to_dict(self) -> dict:
        return {"hours": self.hours, "source": self.source.value}


def round_half_up(value: float, decimals: int = GAUGE_DECIMALS) -> float:
    """Round non-negative values half-up to `decimals` places."""
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


def _banked_hours(value: Any) -> float:
    """Banked hours for a defaulted reading; unusable values count as none."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0.0
    return float(value)


class RemainingFeedingGauge:
    """Decays banked feeding hours against the clock."""

    def remaining_hours(self, snapshot: FeedingStateSnapshot, now: Any) -> RemainingHours:
        """
        Compute remaining feeding hours.

        Missing fields give a FALLBACK reading and malformed ones an
        INVALID reading; both are flagged `defaulted` and carry the
        banked hours when those are usable.

        Args:
            snapshot: Feeding state read from chain
            now: Current Unix time in seconds

        Returns:
            RemainingHours (never negative, non-increasing in `now`)
        """
        now = coerce_now(now)
        token_id = getattr(snapshot, "token_id", None)

        feeding_hours = getattr(snapshot, "feeding_hours", None)
        last_feed_time = getattr(snapshot, "last_feed_time", None)
        last_claim_time = getattr(snapshot, "last_claim_time", None)

        if feeding_hours is None or last_feed_time is None or last_claim_time is None:
            logger.warning(f"Token {token_id}: feeding info missing required fields, using banked hours")
            return RemainingHours(hours=_banked_hours(feeding_hours), source=GaugeSource.FALLBACK)

        if isinstance(snapshot, FeedingStateSnapshot):
            problems = snapshot.validate()
        else:
            problems = [f"not a feeding snapshot ({type(snapshot).__name__})"]
        if problems:
            logger.warning(f"Token {token_id}: invalid feeding info ({'; '.join(problems)})")
            return RemainingHours(hours=_banked_hours(feeding_hours), source=GaugeSource.INVALID)

        if not snapshot.is_active:
            return RemainingHours(hours=0.0, source=GaugeSource.INACTIVE)

        last_action_time = max(last_feed_time, last_claim_time)

        if last_action_time == 0:
            return RemainingHours(hours=float(feeding_hours), source=GaugeSource.NEVER_ACTED)

        # A clock behind the last action counts as no time elapsed
        elapsed_hours = max(0, now - last_action_time) / SECONDS_PER_HOUR
        remaining = max(0.0, feeding_hours - elapsed_hours)

        return RemainingHours(hours=round_half_up(remaining))


_DEFAULT_GAUGE = RemainingFeedingGauge()


def remaining_hours(snapshot: FeedingStateSnapshot, now: Any) -> RemainingHours:
    """Convenience wrapper using the default gauge."""
    return _DEFAULT_GAUGE.remaining_hours(snapshot, now)
