"""
petworld_rewards/cli.py

Developer CLI for quoting rewards from dumped nftFeeding records.

Input files are JSON, either a list of records carrying a `tokenId` key
or an object mapping token id -> record:

    [{"tokenId": 1, "feedingHours": "24", "lastClaimTime": "1735689600", ...}]

Usage:
    petworld-rewards quote feeding.json --now 1735700000
    petworld-rewards quote feeding.json --metrics
    petworld-rewards gauge feeding.json
    petworld-rewards plan-feed feeding.json --hours 24
"""

import json
import logging
import time
from typing import Any, List, Mapping, Tuple

import click

from .config import EngineConfig
from .snapshot import FeedingStateSnapshot, SnapshotError
from .engine.accrual import CycleAccrualCalculator
from .engine.admission import FeedingAdmissionEstimator
from .engine.batch import BatchAccrualAggregator
from .engine.gauge import RemainingFeedingGauge
from .metrics import MetricsCollector

logger = logging.getLogger("petworld_rewards.cli")


def load_records(path: str) -> List[Tuple[Any, Mapping[str, Any]]]:
    """Read (token_id, record) pairs from a JSON dump."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return list(data.items())
    if isinstance(data, list):
        pairs = []
        for index, record in enumerate(data):
            if not isinstance(record, dict):
                raise click.ClickException(f"Record {index} is not an object")
            token_id = record.get("tokenId", record.get("token_id"))
            if token_id is None:
                raise click.ClickException(f"Record {index} has no tokenId")
            pairs.append((token_id, record))
        return pairs
    raise click.ClickException("Expected a JSON list or object of feeding records")


def decode_or_missing(token_id: Any, record: Mapping[str, Any]) -> FeedingStateSnapshot:
    """Decode a record; an undecodable one becomes a snapshot with no feeding data."""
    try:
        return FeedingStateSnapshot.from_chain(token_id, record)
    except SnapshotError as e:
        logger.warning(f"Token {token_id}: {e}")
        return FeedingStateSnapshot(
            token_id=token_id,
            feeding_hours=None,
            last_claim_time=None,
            last_feed_time=None,
        )


def _now_option(f):
    return click.option(
        "--now",
        type=int,
        default=None,
        help="Unix time to evaluate at (default: current time)",
    )(f)


def _resolve_now(now):
    return int(time.time()) if now is None else now


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, verbose):
    """PetWorld feeding reward calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = EngineConfig.from_env()


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_now_option
@click.option("--workers", type=int, default=None, help="Thread pool size for the batch")
@click.option("--metrics", "as_metrics", is_flag=True, help="Print Prometheus text instead of JSON")
@click.pass_obj
def quote(config: EngineConfig, path, now, workers, as_metrics):
    """Quote claimable rewards for every pet in PATH."""
    aggregator = BatchAccrualAggregator(
        calculator=CycleAccrualCalculator(seconds_per_cycle=config.seconds_per_cycle),
        max_workers=workers if workers is not None else config.parallel_workers,
    )
    report = aggregator.aggregate_chain_records(load_records(path), _resolve_now(now))

    if as_metrics:
        click.echo(MetricsCollector(report).collect(), nl=False)
        return

    result = report.to_dict()
    result["claimable_token_ids"] = report.claimable_token_ids()
    _echo_json(result)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_now_option
@click.pass_obj
def gauge(config: EngineConfig, path, now):
    """Show real remaining feeding hours for every pet in PATH."""
    now = _resolve_now(now)
    meter = RemainingFeedingGauge()
    rows = []
    for token_id, record in load_records(path):
        reading = meter.remaining_hours(decode_or_missing(token_id, record), now)
        rows.append({"token_id": token_id, **reading.to_dict()})
    _echo_json(rows)


@main.command("plan-feed")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_now_option
@click.option("--hours", type=int, required=True, help="Hours to feed each pet")
@click.option("--cap", type=int, default=None, help="Maximum banked feeding hours")
@click.option("--batch-size", type=int, default=None, help="Token ids per transaction")
@click.pass_obj
def plan_feed(config: EngineConfig, path, now, hours, cap, batch_size):
    """Plan a batch feed of HOURS per pet for the pets in PATH."""
    snapshots = [decode_or_missing(t, r) for t, r in load_records(path)]
    try:
        plan = FeedingAdmissionEstimator().plan_batch_feed(
            snapshots,
            requested_hours=hours,
            now=_resolve_now(now),
            hard_cap_hours=cap if cap is not None else config.max_feeding_hours,
            batch_size=batch_size if batch_size is not None else config.feed_batch_size,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))
    _echo_json(plan.to_dict())


if __name__ == "__main__":
    main()
