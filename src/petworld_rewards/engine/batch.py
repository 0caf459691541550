"""
petworld_rewards/engine/batch.py

Batch reward aggregation.

Runs the accrual calculator over many pets and sums the results. Each
pet is isolated: a bad snapshot yields an errored quote for that pet
and contributes nothing to the totals, the rest of the batch is
unaffected. Totals saturate at u64 max; a clipped total is reported as
a warning on the report, not as an error.

Usage:
    from petworld_rewards.engine.batch import BatchAccrualAggregator

    aggregator = BatchAccrualAggregator()
    report = aggregator.aggregate(snapshots, now)

    if report.has_claimable_rewards:
        claim(report.claimable_token_ids())
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import U64_MAX
from ..snapshot import FeedingStateSnapshot, SnapshotError
from .accrual import CycleAccrualCalculator, ErrorKind, RewardQuote, coerce_now, failed_quote

logger = logging.getLogger("petworld_rewards.engine.batch")


def saturating_add(a: int, b: int, limit: int = U64_MAX) -> Tuple[int, bool]:
    """
    Add two non-negative amounts, clipping at `limit`.

    Returns:
        (sum, saturated)
    """
    total = a + b
    if total > limit:
        return limit, True
    return total, False


# ============================================================================
# REPORT
# ============================================================================

@dataclass
class RewardBatchReport:
    """Per-token quotes plus batch totals."""
    per_token: List[RewardQuote] = field(default_factory=list)
    total_pwpot: int = 0
    total_pwbot: int = 0
    saturated: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def total_nfts(self) -> int:
        return len(self.per_token)

    @property
    def nfts_with_rewards(self) -> int:
        return sum(1 for q in self.per_token if q.has_rewards)

    @property
    def total_cycles(self) -> int:
        return sum(q.cycles for q in self.per_token if q.error is None)

    @property
    def has_claimable_rewards(self) -> bool:
        return self.total_pwpot > 0 or self.total_pwbot > 0

    def claimable_token_ids(self) -> List[Any]:
        """Tokens worth including in a claim transaction, in input order."""
        return [q.token_id for q in self.per_token if q.is_claimable]

    def failed_token_ids(self) -> List[Any]:
        return [q.token_id for q in self.per_token if q.error is not None]

    def error_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for q in self.per_token:
            if q.error is not None:
                counts[q.error.value] = counts.get(q.error.value, 0) + 1
        return counts

    def to_dict(self) -> dict:
        return {
            "per_token": [q.to_dict() for q in self.per_token],
            "total_pwpot": self.total_pwpot,
            "total_pwbot": self.total_pwbot,
            "total_nfts": self.total_nfts,
            "nfts_with_rewards": self.nfts_with_rewards,
            "saturated": self.saturated,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class _UndecodedRecord:
    """Placeholder keeping a failed decode in its batch position."""
    token_id: Any
    reason: str


# ============================================================================
# AGGREGATOR
# ============================================================================

class BatchAccrualAggregator:
    """
    Fans snapshots out to the calculator and folds the totals.

    Args:
        calculator: Per-token calculator (defaults to a fresh one)
        max_workers: Run the per-token map on a thread pool of this size;
            None or 1 runs sequentially. Output order is the same either way.
    """

    def __init__(
        self,
        calculator: Optional[CycleAccrualCalculator] = None,
        max_workers: Optional[int] = None,
    ):
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.calculator = calculator or CycleAccrualCalculator()
        self.max_workers = max_workers

    def _quote_one(self, snapshot: Any, now: int) -> RewardQuote:
        if isinstance(snapshot, _UndecodedRecord):
            return failed_quote(snapshot.token_id, ErrorKind.INVALID_SNAPSHOT, snapshot.reason)
        try:
            return self.calculator.accrue(snapshot, now)
        except (TypeError, ValueError, ArithmeticError) as e:
            # accrue validates its input; this only guards odd objects
            token_id = getattr(snapshot, "token_id", None)
            logger.warning(f"Token {token_id}: accrual failed: {e}")
            return failed_quote(token_id, ErrorKind.INVALID_SNAPSHOT, str(e))

    def _quote_all(self, snapshots: Sequence[Any], now: int) -> List[RewardQuote]:
        if self.max_workers is None or self.max_workers == 1 or len(snapshots) < 2:
            return [self._quote_one(s, now) for s in snapshots]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            # map() yields in submission order
            return list(pool.map(lambda s: self._quote_one(s, now), snapshots))

    def fold(self, quotes: Iterable[RewardQuote]) -> RewardBatchReport:
        """Sum quotes into a report; errored quotes add nothing."""
        report = RewardBatchReport()
        for quote in quotes:
            report.per_token.append(quote)
            if quote.error is not None:
                continue

            report.total_pwpot, clipped_pwpot = saturating_add(report.total_pwpot, quote.pwpot)
            report.total_pwbot, clipped_pwbot = saturating_add(report.total_pwbot, quote.pwbot)

            if (clipped_pwpot or clipped_pwbot) and not report.saturated:
                report.saturated = True
                message = f"Batch reward total saturated at token {quote.token_id}; totals are clipped"
                report.warnings.append(message)
                logger.warning(message)

        return report

    def aggregate(self, snapshots: Iterable[FeedingStateSnapshot], now: Any) -> RewardBatchReport:
        """
        Quote every snapshot and sum the rewards.

        Args:
            snapshots: Feeding state per pet
            now: Current Unix time in seconds

        Returns:
            RewardBatchReport (per_token in input order)
        """
        now = coerce_now(now)
        items = list(snapshots)
        report = self.fold(self._quote_all(items, now))

        failed = len(report.failed_token_ids())
        if failed:
            report.warnings.append(f"{failed} of {report.total_nfts} tokens could not be quoted")

        logger.info(
            f"Batch of {report.total_nfts} NFTs: {report.nfts_with_rewards} with rewards, "
            f"{failed} failed, total {report.total_pwpot} PWPOT, {report.total_pwbot} PWBOT"
        )
        return report

    def aggregate_chain_records(
        self,
        records: Union[Mapping[Any, Mapping[str, Any]], Iterable[Tuple[Any, Mapping[str, Any]]]],
        now: Any,
    ) -> RewardBatchReport:
        """
        Decode raw nftFeeding records and aggregate them.

        A record that fails to decode is reported as INVALID_SNAPSHOT at
        its position in the input.

        Args:
            records: token_id -> record mapping, or (token_id, record) pairs
            now: Current Unix time in seconds
        """
        pairs = records.items() if isinstance(records, Mapping) else records

        items: List[Any] = []
        for token_id, record in pairs:
            try:
                items.append(FeedingStateSnapshot.from_chain(token_id, record))
            except SnapshotError as e:
                logger.warning(f"Token {token_id}: could not decode feeding record: {e}")
                items.append(_UndecodedRecord(token_id, str(e)))

        return self.aggregate(items, now)


_DEFAULT_AGGREGATOR = BatchAccrualAggregator()


def aggregate(snapshots: Iterable[FeedingStateSnapshot], now: Any) -> RewardBatchReport:
    """Convenience wrapper using the default aggregator."""
    return _DEFAULT_AGGREGATOR.aggregate(snapshots, now)


def aggregate_chain_records(
    records: Union[Mapping[Any, Mapping[str, Any]], Iterable[Tuple[Any, Mapping[str, Any]]]],
    now: Any,
) -> RewardBatchReport:
    """Convenience wrapper using the default aggregator."""
    return _DEFAULT_AGGREGATOR.aggregate_chain_records(records, now)
