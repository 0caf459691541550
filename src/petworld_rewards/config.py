"""
petworld_rewards/config.py

Configuration constants and data classes for petworld_rewards.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import logging
import os

logger = logging.getLogger("petworld_rewards.config")


# Banked feeding hours are always converted with a fixed hour length
SECONDS_PER_HOUR = 3600

# Default reward cycle length (the feeding contract's SECONDS_PER_CYCLE)
DEFAULT_SECONDS_PER_CYCLE = 3600

# Hard cap on banked feeding hours (7 days)
DEFAULT_MAX_FEEDING_HOURS = 168

# Default hours requested per pet by a batch feed
DEFAULT_FEEDING_HOURS_PER_PET = 24

# Maximum token ids per batch-feed transaction
FEED_BATCH_SIZE = 100

# Reward amounts are unsigned 64-bit on chain
U64_MAX = 2 ** 64 - 1

# Remaining-hours gauge precision (decimal places)
GAUGE_DECIMALS = 1

# Environment variable names
ENV_SECONDS_PER_CYCLE = "PETWORLD_SECONDS_PER_CYCLE"
ENV_MAX_FEEDING_HOURS = "PETWORLD_MAX_FEEDING_HOURS"
ENV_FEED_BATCH_SIZE = "PETWORLD_FEED_BATCH_SIZE"
ENV_PARALLEL_WORKERS = "PETWORLD_PARALLEL_WORKERS"


@dataclass
class EngineConfig:
    """Tunables for the accrual engine and the feed planner."""
    seconds_per_cycle: int = DEFAULT_SECONDS_PER_CYCLE
    max_feeding_hours: int = DEFAULT_MAX_FEEDING_HOURS
    feed_batch_size: int = FEED_BATCH_SIZE
    parallel_workers: Optional[int] = None  # None = sequential aggregation

    def validate(self) -> List[str]:
        errors = []
        if self.seconds_per_cycle < 1:
            errors.append(f"seconds_per_cycle must be >= 1, got {self.seconds_per_cycle}")
        if self.max_feeding_hours < 0:
            errors.append(f"max_feeding_hours must be >= 0, got {self.max_feeding_hours}")
        if self.feed_batch_size < 1:
            errors.append(f"feed_batch_size must be >= 1, got {self.feed_batch_size}")
        if self.parallel_workers is not None and self.parallel_workers < 1:
            errors.append(f"parallel_workers must be >= 1 or unset, got {self.parallel_workers}")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "EngineConfig":
        """
        Build a config from PETWORLD_* environment variables.

        Unparseable or out-of-range values are logged and replaced by
        their defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EngineConfig
        """
        env = os.environ if environ is None else environ
        config = cls()

        for name, attr in [
            (ENV_SECONDS_PER_CYCLE, "seconds_per_cycle"),
            (ENV_MAX_FEEDING_HOURS, "max_feeding_hours"),
            (ENV_FEED_BATCH_SIZE, "feed_batch_size"),
            (ENV_PARALLEL_WORKERS, "parallel_workers"),
        ]:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                continue
            try:
                setattr(config, attr, int(raw.strip()))
            except ValueError:
                logger.warning(f"Invalid {name}: {raw!r}, using default")

        # Reset anything that parsed but is out of range
        if config.validate():
            defaults = cls()
            for error in config.validate():
                attr = error.split(" ", 1)[0]
                logger.warning(f"Invalid engine setting from env: {error}")
                setattr(config, attr, getattr(defaults, attr))

        return config
