import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from tenacity import retry_if_result

from .api_clients import TransactionAggregator
from .chain import ChainReader
from .exceptions import ChainReadError
from .models import AggregateResult, WalletMetrics, quantize
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


def _no_api_transactions(result: AggregateResult) -> bool:
    return result.total_txs_api == 0


class WalletAnalyzer:
    """Builds the metric record of a single wallet."""

    def __init__(self, chain_reader: ChainReader, aggregator: TransactionAggregator,
                 zero_result_retry: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.chain_reader = chain_reader
        self.aggregator = aggregator
        self.zero_result_retry = zero_result_retry or RetryPolicy(max_attempts=6, initial_delay=2.0)
        self._sleep = sleep

    def _aggregate(self, address: str) -> AggregateResult:
        """Aggregate explorer history, re-polling while it reports nothing.

        A wallet with on-chain activity but no explorer transactions usually
        means the explorer is lagging behind the node.
        """
        return self.zero_result_retry.call(
            self.aggregator.aggregate, address,
            retry=retry_if_result(_no_api_transactions),
            sleep=self._sleep, log=logger,
            description=f"explorer transactions for {address}")

    def analyze(self, address: str) -> WalletMetrics:
        """Analyze a wallet, raising on any failure."""
        transaction_count = self.chain_reader.get_transaction_count(address)
        if transaction_count is None:
            raise ChainReadError(f"Could not read transaction count for {address}")

        balance = self.chain_reader.get_balance(address)
        if balance is None:
            raise ChainReadError(f"Could not read balance for {address}")

        if transaction_count == 0:
            return WalletMetrics(
                address=address,
                transaction_count_rpc=0,
                balance=quantize(balance),
                total_received=quantize(Decimal("0")),
                total_sent=quantize(Decimal("0")),
                total_fees=quantize(Decimal("0")),
            )

        aggregate = self._aggregate(address)
        return WalletMetrics.from_aggregate(address, transaction_count, balance, aggregate)

    def try_analyze(self, address: str) -> Optional[WalletMetrics]:
        """Analyze a wallet; None marks a wallet that should be skipped."""
        try:
            return self.analyze(address)
        except Exception as e:
            logger.error(f"Error analyzing wallet {address}: {e}")
            return None
