"""
petworld_rewards/engine/admission.py

Feeding admission control.

A pet may bank at most `hard_cap_hours` of feeding. Before a batch feed,
each pet's headroom (cap minus real remaining hours) is compared with
the requested hours; pets without enough headroom are left out of the
batch instead of failing the whole transaction.

Usage:
    from petworld_rewards.engine.admission import plan_batch_feed

    plan = plan_batch_feed(snapshots, requested_hours=24, now=now)
    for batch in plan.batches:
        submit_feed(batch, plan.requested_hours)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from ..config import DEFAULT_MAX_FEEDING_HOURS, FEED_BATCH_SIZE
from ..snapshot import FeedingStateSnapshot
from .gauge import RemainingFeedingGauge

logger = logging.getLogger("petworld_rewards.engine.admission")


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class AdmissionEstimate:
    """Feeding headroom for one pet."""
    token_id: Any
    max_additional_hours: int
    remaining_hours: float
    hard_cap_hours: int
    defaulted: bool = False   # gauge data missing or malformed, full cap allowed

    def to_dict(self) -> dict:
        return {
            "token_id": self.token_id,
            "max_additional_hours": self.max_additional_hours,
            "remaining_hours": self.remaining_hours,
            "hard_cap_hours": self.hard_cap_hours,
            "defaulted": self.defaulted,
        }


@dataclass
class SkippedPet:
    """A pet left out of a batch feed."""
    token_id: Any
    max_additional_hours: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "token_id": self.token_id,
            "max_additional_hours": self.max_additional_hours,
            "reason": self.reason,
        }


@dataclass
class FeedPlan:
    """Which pets to feed and how to chunk the transactions."""
    requested_hours: int
    hard_cap_hours: int
    eligible: List[Any] = field(default_factory=list)
    skipped: List[SkippedPet] = field(default_factory=list)
    batches: List[List[Any]] = field(default_factory=list)

    @property
    def total_food(self) -> int:
        """PWFOOD needed: one unit per pet per hour."""
        return len(self.eligible) * self.requested_hours

    @property
    def is_empty(self) -> bool:
        return not self.eligible

    def to_dict(self) -> dict:
        return {
            "requested_hours": self.requested_hours,
            "hard_cap_hours": self.hard_cap_hours,
            "eligible": list(self.eligible),
            "skipped": [s.to_dict() for s in self.skipped],
            "batches": [list(b) for b in self.batches],
            "total_food": self.total_food,
        }


# ============================================================================
# ESTIMATOR
# ============================================================================

class FeedingAdmissionEstimator:
    """Derives how many more hours a pet may be fed."""

    def __init__(self, gauge: Optional[RemainingFeedingGauge] = None):
        self.gauge = gauge or RemainingFeedingGauge()

    def estimate(
        self,
        snapshot: FeedingStateSnapshot,
        now: Any,
        hard_cap_hours: int = DEFAULT_MAX_FEEDING_HOURS,
    ) -> AdmissionEstimate:
        """
        Headroom under the cap, with the fallback flagged.

        When the gauge reading is defaulted (missing or malformed fields)
        the pet is treated as having zero banked hours, which allows
        feeding up to the full cap.
        """
        if hard_cap_hours < 0:
            raise ValueError(f"hard_cap_hours must be >= 0, got {hard_cap_hours}")

        token_id = getattr(snapshot, "token_id", None)
        reading = self.gauge.remaining_hours(snapshot, now)

        if reading.defaulted:
            logger.warning(
                f"Token {token_id}: no usable feeding data ({reading.source.value}), "
                f"allowing up to the {hard_cap_hours}h cap"
            )
            return AdmissionEstimate(
                token_id=token_id,
                max_additional_hours=hard_cap_hours,
                remaining_hours=0.0,
                hard_cap_hours=hard_cap_hours,
                defaulted=True,
            )

        # Whole hours only; a partial hour of headroom cannot be fed
        headroom = max(0, math.floor(hard_cap_hours - reading.hours))
        return AdmissionEstimate(
            token_id=token_id,
            max_additional_hours=headroom,
            remaining_hours=reading.hours,
            hard_cap_hours=hard_cap_hours,
        )

    def max_additional_hours(
        self,
        snapshot: FeedingStateSnapshot,
        now: Any,
        hard_cap_hours: int = DEFAULT_MAX_FEEDING_HOURS,
    ) -> int:
        """Maximum additional feeding hours (never negative)."""
        return self.estimate(snapshot, now, hard_cap_hours).max_additional_hours

    def plan_batch_feed(
        self,
        snapshots: Iterable[FeedingStateSnapshot],
        requested_hours: int,
        now: Any,
        hard_cap_hours: int = DEFAULT_MAX_FEEDING_HOURS,
        batch_size: int = FEED_BATCH_SIZE,
    ) -> FeedPlan:
        """
        Split pets into those that can take `requested_hours` and those
        that cannot, and chunk the eligible ones into transactions.

        Args:
            snapshots: Feeding state per pet
            requested_hours: Hours to feed each pet
            now: Current Unix time in seconds
            hard_cap_hours: Maximum banked feeding hours
            batch_size: Maximum token ids per transaction

        Returns:
            FeedPlan (eligible ids keep input order)
        """
        if requested_hours <= 0:
            raise ValueError(f"requested_hours must be > 0, got {requested_hours}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        plan = FeedPlan(requested_hours=requested_hours, hard_cap_hours=hard_cap_hours)

        for snapshot in snapshots:
            estimate = self.estimate(snapshot, now, hard_cap_hours)
            if estimate.max_additional_hours < requested_hours:
                plan.skipped.append(SkippedPet(
                    token_id=estimate.token_id,
                    max_additional_hours=estimate.max_additional_hours,
                    reason=(
                        f"Maximum feeding time ({estimate.max_additional_hours} hours) "
                        f"less than requested feeding time ({requested_hours} hours)"
                    ),
                ))
                continue
            plan.eligible.append(estimate.token_id)

        plan.batches = [
            plan.eligible[i:i + batch_size]
            for i in range(0, len(plan.eligible), batch_size)
        ]

        logger.info(
            f"Feed plan: {len(plan.eligible)} pets in {len(plan.batches)} batches, "
            f"{len(plan.skipped)} skipped, {plan.total_food} PWFOOD"
        )
        return plan


_DEFAULT_ESTIMATOR = FeedingAdmissionEstimator()


def max_additional_hours(
    snapshot: FeedingStateSnapshot,
    now: Any,
    hard_cap_hours: int = DEFAULT_MAX_FEEDING_HOURS,
) -> int:
    """Convenience wrapper using the default estimator."""
    return _DEFAULT_ESTIMATOR.max_additional_hours(snapshot, now, hard_cap_hours)


def plan_batch_feed(
    snapshots: Iterable[FeedingStateSnapshot],
    requested_hours: int,
    now: Any,
    hard_cap_hours: int = DEFAULT_MAX_FEEDING_HOURS,
    batch_size: int = FEED_BATCH_SIZE,
) -> FeedPlan:
    """Convenience wrapper using the default estimator."""
    return _DEFAULT_ESTIMATOR.plan_batch_feed(
        snapshots, requested_hours, now, hard_cap_hours, batch_size
    )
