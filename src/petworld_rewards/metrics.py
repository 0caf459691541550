"""
petworld_rewards/metrics.py

Prometheus exposition for batch reward reports.

Renders a RewardBatchReport as Prometheus text so a claim bot or UI
backend can scrape batch results. The collector only reads the report
it was given; there is no global registry.
"""

import logging
from typing import Any, Dict

from .engine.batch import RewardBatchReport

logger = logging.getLogger("petworld_rewards.metrics")


class MetricsCollector:
    """
    Prometheus metrics for one batch report.

    Usage:
        from petworld_rewards.metrics import MetricsCollector

        report = aggregator.aggregate(snapshots, now)
        prometheus_output = MetricsCollector(report).collect()
    """

    # Metric definitions
    METRICS = {
        "petworld_batch_tokens": {
            "type": "gauge",
            "help": "Number of tokens in the batch",
        },
        "petworld_batch_tokens_with_rewards": {
            "type": "gauge",
            "help": "Number of tokens with non-zero claimable rewards",
        },
        "petworld_batch_failed_tokens": {
            "type": "gauge",
            "help": "Number of tokens that could not be quoted, by error kind",
        },
        "petworld_batch_pwpot_total": {
            "type": "gauge",
            "help": "Total claimable PWPOT in the batch",
        },
        "petworld_batch_pwbot_total": {
            "type": "gauge",
            "help": "Total claimable PWBOT in the batch",
        },
        "petworld_batch_cycles_total": {
            "type": "gauge",
            "help": "Total valid reward cycles in the batch",
        },
        "petworld_batch_saturated": {
            "type": "gauge",
            "help": "Whether batch totals were clipped at u64 max (1=yes, 0=no)",
        },
    }

    def __init__(self, report: RewardBatchReport):
        """
        Args:
            report: Batch report to expose
        """
        self.report = report

    def collect(self) -> str:
        """
        Collect all metrics and return in Prometheus format.

        Returns:
            Prometheus-formatted metrics string
        """
        lines = []

        def add_header(name: str):
            metric_def = self.METRICS.get(name, {})
            lines.append(f"# HELP {name} {metric_def.get('help', '')}")
            lines.append(f"# TYPE {name} {metric_def.get('type', 'gauge')}")

        def add_metric(name: str, value: Any):
            add_header(name)
            lines.append(f"{name} {value}")

        try:
            report = self.report
            add_metric("petworld_batch_tokens", report.total_nfts)
            add_metric("petworld_batch_tokens_with_rewards", report.nfts_with_rewards)

            add_header("petworld_batch_failed_tokens")
            for error, count in sorted(report.error_counts().items()):
                lines.append(f'petworld_batch_failed_tokens{{error="{error}"}} {count}')

            add_metric("petworld_batch_pwpot_total", report.total_pwpot)
            add_metric("petworld_batch_pwbot_total", report.total_pwbot)
            add_metric("petworld_batch_cycles_total", report.total_cycles)
            add_metric("petworld_batch_saturated", 1 if report.saturated else 0)

        except Exception as e:
            logger.error(f"Error collecting metrics: {e}")
            lines.append(f"# Error collecting metrics: {e}")

        return "\n".join(lines) + "\n"

    def get_stats(self) -> Dict[str, Any]:
        """
        Get metrics as a dictionary (for JSON output).

        Returns:
            Dictionary of metric values
        """
        report = self.report
        return {
            "tokens": report.total_nfts,
            "tokens_with_rewards": report.nfts_with_rewards,
            "failed_tokens": report.error_counts(),
            "pwpot_total": report.total_pwpot,
            "pwbot_total": report.total_pwbot,
            "cycles_total": report.total_cycles,
            "saturated": report.saturated,
        }
