"""
Population distributions and percentile ranks for wallet metrics.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np

from .models import TRACKED_METRICS, MetricComparison, PopulationSnapshot, WalletMetrics

PERCENT_PRECISION = Decimal("0.01")


def _percent(rank: int, n: int) -> float:
    """rank / n as a percentage, ties rounded half up to 2 places."""

    share = Decimal(100 * rank) / Decimal(n)
    return float(share.quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP))


def build_distribution(wallets: Sequence[WalletMetrics]) -> PopulationSnapshot:
    """Sort every tracked metric across the analyzed wallets."""

    distributions: Dict[str, Tuple[float, ...]] = {}
    for metric in TRACKED_METRICS:
        values = np.sort(np.array([float(getattr(w, metric)) for w in wallets], dtype=float))
        distributions[metric] = tuple(float(v) for v in values)
    return PopulationSnapshot(
        distributions=MappingProxyType(distributions), sample_size=len(wallets)
    )


def percentile_of(value: float, sorted_values: Sequence[float]) -> float:
    """Share of the population at or below value, in percent (2 decimals).

    Ties count as at-or-below, so the maximum of the population ranks 100.
    """

    n = len(sorted_values)
    if n == 0:
        return 0.0
    rank = int(np.searchsorted(np.asarray(sorted_values, dtype=float), float(value), side="right"))
    return _percent(rank, n)


def compare(metrics: WalletMetrics, snapshot: PopulationSnapshot) -> Dict[str, MetricComparison]:
    """Percentile of each of the wallet's metrics against the snapshot."""

    comparisons: Dict[str, MetricComparison] = {}
    for metric, value in metrics.metric_values().items():
        comparisons[metric] = MetricComparison(
            value=value, percentile=percentile_of(value, snapshot.values(metric))
        )
    return comparisons


def percentile_table(snapshot: PopulationSnapshot, metric: str) -> Iterator[Tuple[float, float]]:
    """(percentile, value) rows; the k-th smallest value sits at k/n*100."""

    values = snapshot.values(metric)
    n = len(values)
    for k, value in enumerate(values, 1):
        yield _percent(k, n), value


def summarize(snapshot: PopulationSnapshot) -> Dict[str, Dict[str, float]]:
    """Count, min, median and max of every metric distribution."""

    summary: Dict[str, Dict[str, float]] = {}
    for metric in TRACKED_METRICS:
        values: List[float] = list(snapshot.values(metric))
        if not values:
            summary[metric] = {"count": 0, "min": 0.0, "median": 0.0, "max": 0.0}
            continue
        summary[metric] = {
            "count": len(values),
            "min": values[0],
            "median": float(np.median(values)),
            "max": values[-1],
        }
    return summary
