"""
petworld_rewards/engine/

Pure reward accrual and feeding-gauge calculations.
"""

from .quality import QualityTier, RewardRate, QualityRewardTable, DEFAULT_REWARD_RATES
from .accrual import (
    CycleAccrualCalculator,
    RewardQuote,
    ErrorKind,
    QuoteStatus,
    accrue,
)
from .gauge import RemainingFeedingGauge, RemainingHours, GaugeSource, remaining_hours
from .batch import (
    BatchAccrualAggregator,
    RewardBatchReport,
    aggregate,
    aggregate_chain_records,
)
from .admission import (
    FeedingAdmissionEstimator,
    AdmissionEstimate,
    FeedPlan,
    SkippedPet,
    max_additional_hours,
    plan_batch_feed,
)

__all__ = [
    # Quality table
    "QualityTier",
    "RewardRate",
    "QualityRewardTable",
    "DEFAULT_REWARD_RATES",
    # Accrual
    "CycleAccrualCalculator",
    "RewardQuote",
    "ErrorKind",
    "QuoteStatus",
    "accrue",
    # Gauge
    "RemainingFeedingGauge",
    "RemainingHours",
    "GaugeSource",
    "remaining_hours",
    # Batch
    "BatchAccrualAggregator",
    "RewardBatchReport",
    "aggregate",
    "aggregate_chain_records",
    # Admission
    "FeedingAdmissionEstimator",
    "AdmissionEstimate",
    "FeedPlan",
    "SkippedPet",
    "max_additional_hours",
    "plan_batch_feed",
]
