"""
petworld_rewards - Feeding reward accrual engine for PetWorld NFT pets

Computes, from on-chain feeding state:
- Claimable PWPOT/PWBOT rewards per pet (cycle accrual with starvation
  and re-feeding)
- Real remaining feeding hours
- Batch reward totals with per-pet error isolation
- Feeding headroom under the 7-day cap, and batch-feed plans

Every calculation takes `now` explicitly; nothing reads the clock or
touches the chain.

Usage:
    from petworld_rewards import FeedingStateSnapshot, BatchAccrualAggregator

    snapshot = FeedingStateSnapshot.from_chain(42, nft_feeding_record)
    report = BatchAccrualAggregator().aggregate([snapshot], now)

Metrics Usage:
    from petworld_rewards.metrics import MetricsCollector

    prometheus_output = MetricsCollector(report).collect()
"""

from .snapshot import FeedingStateSnapshot, SnapshotError, CHAIN_FIELD_MAP
from .config import (
    EngineConfig,
    SECONDS_PER_HOUR,
    DEFAULT_SECONDS_PER_CYCLE,
    DEFAULT_MAX_FEEDING_HOURS,
    FEED_BATCH_SIZE,
)
from .engine import (
    QualityTier,
    RewardRate,
    QualityRewardTable,
    CycleAccrualCalculator,
    RewardQuote,
    ErrorKind,
    QuoteStatus,
    RemainingFeedingGauge,
    RemainingHours,
    GaugeSource,
    BatchAccrualAggregator,
    RewardBatchReport,
    FeedingAdmissionEstimator,
    AdmissionEstimate,
    FeedPlan,
    accrue,
    remaining_hours,
    aggregate,
    max_additional_hours,
    plan_batch_feed,
)
from .metrics import MetricsCollector

__version__ = "1.0.0"
__all__ = [
    # Snapshot
    "FeedingStateSnapshot",
    "SnapshotError",
    "CHAIN_FIELD_MAP",
    # Config
    "EngineConfig",
    "SECONDS_PER_HOUR",
    "DEFAULT_SECONDS_PER_CYCLE",
    "DEFAULT_MAX_FEEDING_HOURS",
    "FEED_BATCH_SIZE",
    # Engine
    "QualityTier",
    "RewardRate",
    "QualityRewardTable",
    "CycleAccrualCalculator",
    "RewardQuote",
    "ErrorKind",
    "QuoteStatus",
    "RemainingFeedingGauge",
    "RemainingHours",
    "GaugeSource",
    "BatchAccrualAggregator",
    "RewardBatchReport",
    "FeedingAdmissionEstimator",
    "AdmissionEstimate",
    "FeedPlan",
    "accrue",
    "remaining_hours",
    "aggregate",
    "max_additional_hours",
    "plan_batch_feed",
    # Metrics
    "MetricsCollector",
]
