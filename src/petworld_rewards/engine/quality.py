"""
petworld_rewards/engine/quality.py

Quality tier -> per-cycle reward lookup.

| Tier      | Value | PWPOT/cycle | PWBOT/cycle |
|-----------|-------|-------------|-------------|
| COMMON    | 0     | 1           | 0           |
| GOOD      | 1     | 2           | 0           |
| EXCELLENT | 2     | 3           | 1           |
| RARE      | 3     | 5           | 2           |
| LEGENDARY | 4     | 10          | 5           |

Unknown tiers get the COMMON rate, the same default the feeding
contract's rewardConfigs fallback uses.
"""

import logging
from dataclasses import dataclass, asdict
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger("petworld_rewards.engine.quality")


class QualityTier(IntEnum):
    """Pet rarity classification."""
    COMMON = 0
    GOOD = 1
    EXCELLENT = 2
    RARE = 3
    LEGENDARY = 4


@dataclass(frozen=True)
class RewardRate:
    """Reward tokens credited per valid cycle."""
    pwpot_per_cycle: int
    pwbot_per_cycle: int

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_REWARD_RATES: Dict[QualityTier, RewardRate] = {
    QualityTier.COMMON: RewardRate(pwpot_per_cycle=1, pwbot_per_cycle=0),
    QualityTier.GOOD: RewardRate(pwpot_per_cycle=2, pwbot_per_cycle=0),
    QualityTier.EXCELLENT: RewardRate(pwpot_per_cycle=3, pwbot_per_cycle=1),
    QualityTier.RARE: RewardRate(pwpot_per_cycle=5, pwbot_per_cycle=2),
    QualityTier.LEGENDARY: RewardRate(pwpot_per_cycle=10, pwbot_per_cycle=5),
}


class QualityRewardTable:
    """
    Static lookup from quality tier to reward rate.

    Usage:
        table = QualityRewardTable()
        rate = table.rate_for(QualityTier.RARE)    # RewardRate(5, 2)
        rate = table.rate_for(99)                  # COMMON fallback
    """

    def __init__(self, rates: Optional[Mapping[int, RewardRate]] = None):
        """
        Args:
            rates: Override rates per tier (merged over the defaults)
        """
        self._rates: Dict[int, RewardRate] = {int(k): v for k, v in DEFAULT_REWARD_RATES.items()}
        if rates:
            for tier, rate in rates.items():
                if rate.pwpot_per_cycle < 0 or rate.pwbot_per_cycle < 0:
                    raise ValueError(f"Reward rate for tier {tier} must be non-negative, got {rate}")
                self._rates[int(tier)] = rate

    def resolve(self, quality: Any) -> Tuple[RewardRate, bool]:
        """
        Look up a rate and report whether the COMMON fallback was used.

        Returns:
            (rate, defaulted)
        """
        if isinstance(quality, int) and not isinstance(quality, bool) and quality in self._rates:
            return self._rates[quality], False
        logger.warning(f"Unknown quality tier {quality!r}, using COMMON reward rate")
        return self._rates[int(QualityTier.COMMON)], True

    def rate_for(self, quality: Any) -> RewardRate:
        """Total lookup: unrecognized tiers fall back to COMMON."""
        rate, _ = self.resolve(quality)
        return rate

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for tier, rate in sorted(self._rates.items()):
            try:
                name = QualityTier(tier).name
            except ValueError:
                name = str(tier)
            result[name] = rate.to_dict()
        return result


_DEFAULT_TABLE = QualityRewardTable()


def rate_for(quality: Any) -> RewardRate:
    """Convenience lookup against the default table."""
    return _DEFAULT_TABLE.rate_for(quality)
