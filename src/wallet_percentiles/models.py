"""
Data models for wallet sampling and percentile scoring.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Mapping, Optional, Tuple

from .statistics import calculate_sample_size

TRACKED_METRICS: Tuple[str, ...] = (
    "transaction_count_rpc",
    "balance",
    "total_received",
    "total_sent",
    "total_fees",
    "transaction_count_api",
    "contract_interactions",
)

METRIC_PRECISION = Decimal("0.000001")


def quantize(amount: Decimal) -> Decimal:
    """Round an ETH amount to the 6-digit precision stored on WalletMetrics."""
    return Decimal(amount).quantize(METRIC_PRECISION, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SampleParameters:
    """Inputs to the sample size derivation."""
    confidence_level: int = 95
    margin_of_error: float = 0.05
    population_size: Optional[int] = None
    proportion: float = 0.5

    def sample_size(self) -> int:
        return calculate_sample_size(
            self.confidence_level, self.margin_of_error,
            self.population_size, self.proportion)


@dataclass(frozen=True)
class AggregateResult:
    """Totals accumulated from a wallet's explorer transaction history."""
    total_txs_api: int = 0
    total_eth_sent: Decimal = Decimal("0")
    total_eth_received: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")
    contract_interactions: int = 0

    def __add__(self, other: "AggregateResult") -> "AggregateResult":
        return AggregateResult(
            total_txs_api=self.total_txs_api + other.total_txs_api,
            total_eth_sent=self.total_eth_sent + other.total_eth_sent,
            total_eth_received=self.total_eth_received + other.total_eth_received,
            total_fees=self.total_fees + other.total_fees,
            contract_interactions=self.contract_interactions + other.contract_interactions,
        )


@dataclass(frozen=True)
class WalletMetrics:
    """On-chain metrics for one wallet."""
    address: str
    transaction_count_rpc: int
    balance: Decimal
    total_received: Decimal = Decimal("0")
    total_sent: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")
    transaction_count_api: int = 0
    contract_interactions: int = 0

    @classmethod
    def from_aggregate(cls, address: str, transaction_count_rpc: int,
                       balance: Decimal, aggregate: AggregateResult) -> "WalletMetrics":
        return cls(
            address=address,
            transaction_count_rpc=transaction_count_rpc,
            balance=quantize(balance),
            total_received=quantize(aggregate.total_eth_received),
            total_sent=quantize(aggregate.total_eth_sent),
            total_fees=quantize(aggregate.total_fees),
            transaction_count_api=aggregate.total_txs_api,
            contract_interactions=aggregate.contract_interactions,
        )

    def metric_values(self) -> Dict[str, float]:
        """Numeric value of every tracked metric."""
        return {metric: float(getattr(self, metric)) for metric in TRACKED_METRICS}

    def to_dict(self) -> Dict[str, object]:
        """JSON-ready record: counts stay integers, ETH amounts become floats."""
        data: Dict[str, object] = {"address": self.address}
        for metric in TRACKED_METRICS:
            value = getattr(self, metric)
            data[metric] = value if isinstance(value, int) else float(value)
        return data


@dataclass(frozen=True)
class MetricComparison:
    """A wallet's value for one metric and its percentile in the population."""
    value: float
    percentile: float


@dataclass(frozen=True)
class PopulationSnapshot:
    """Sorted metric values of every successfully analyzed wallet.

    Built once per batch run and read-only afterwards.
    """
    distributions: Mapping[str, Tuple[float, ...]]
    sample_size: int
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def values(self, metric: str) -> Tuple[float, ...]:
        return self.distributions.get(metric, ())


@dataclass
class BatchResult:
    """Outcome of one sampling-and-enrichment run."""
    sample_size: int
    addresses: List[str]
    wallets: List[WalletMetrics]
    failed: List[str]
    snapshot: PopulationSnapshot
