import time
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional

import requests

from .config import Config
from .exceptions import EmptyPageError, ExplorerAPIError, RetryExhaustedError
from .models import AggregateResult
from .utils import addresses_equal, wei_to_ether

# Set up logging
logger = logging.getLogger(__name__)


class TransactionAggregator(ABC):
    """Summarizes a wallet's transaction history from a block explorer."""

    @abstractmethod
    def aggregate(self, address: str) -> AggregateResult:
        """Total sent, received, fees and contract interactions for an address."""


class BlockscoutAggregator(TransactionAggregator):
    """Client for the Blockscout v2 REST API.

    Pages are requested with the block number and index of the previous
    page's ``next_page_params``. An empty page is treated as API lag and
    retried with geometric backoff.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        if not config.blockscout_api:
            raise ValueError("Blockscout API URL is not configured")
        self.config = config
        self.base_url = config.blockscout_api.rstrip("/")
        self.session = session or requests.Session()
        self.retry_policy = config.blockscout_retry
        self._sleep = sleep

    def _make_request(self, address: str, cursor: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Fetch one page of transactions for an address."""
        url = f"{self.base_url}/addresses/{address}/transactions"
        params: Dict[str, Any] = {"filter": "to | from"}
        if cursor:
            params["block_number"] = cursor.get("block_number")
            params["index"] = cursor.get("index")

        logger.info(f"Fetching Blockscout transactions for {address} (cursor: {cursor})")
        response = self.session.get(url, params=params, timeout=self.config.request_timeout)
        response.raise_for_status()

        data = response.json()
        if not data.get("items"):
            raise EmptyPageError(f"No transactions found for {address}")
        return data

    def iter_pages(self, address: str) -> Iterator[List[Dict[str, Any]]]:
        """Yield transaction pages until the API stops returning a cursor."""
        cursor: Optional[Dict[str, Any]] = None
        while True:
            data = self.retry_policy.call(
                self._make_request, address, cursor,
                sleep=self._sleep, log=logger,
                description=f"Blockscout transactions for {address}")
            yield data["items"]

            cursor = data.get("next_page_params")
            if not cursor:
                return

    @staticmethod
    def summarize(address: str, transactions: List[Dict[str, Any]]) -> AggregateResult:
        sent = Decimal("0")
        received = Decimal("0")
        fees = Decimal("0")
        contract_interactions = 0

        for tx in transactions:
            sender = tx.get("from") or {}
            recipient = tx.get("to") or {}

            if addresses_equal(sender.get("hash"), address):
                sent += wei_to_ether(tx.get("value") or "0")
                fees += wei_to_ether((tx.get("fee") or {}).get("value") or "0")
            elif addresses_equal(recipient.get("hash"), address):
                received += wei_to_ether(tx.get("value") or "0")

            if recipient.get("is_contract"):
                contract_interactions += 1

        return AggregateResult(
            total_txs_api=len(transactions),
            total_eth_sent=sent,
            total_eth_received=received,
            total_fees=fees,
            contract_interactions=contract_interactions,
        )

    def aggregate(self, address: str) -> AggregateResult:
        """Walk every page; raises RetryExhaustedError if a page never loads."""
        total = AggregateResult()
        for transactions in self.iter_pages(address):
            total += self.summarize(address, transactions)
        return total


class ScrollscanAggregator(TransactionAggregator):
    """Client for Etherscan-style ``txlist`` APIs (Scrollscan).

    Pages are numbered, hold up to ``scrollscan_page_size`` transactions and
    the walk stops at ``scrollscan_max_transactions``. When a page keeps
    failing the totals gathered so far are returned.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        if not config.scrollscan_api:
            raise ValueError("Scrollscan API URL is not configured")
        self.config = config
        self.base_url = config.scrollscan_api
        self.api_key = config.scrollscan_api_key
        self.page_size = config.scrollscan_page_size
        self.max_transactions = config.scrollscan_max_transactions
        self.session = session or requests.Session()
        self.retry_policy = config.scrollscan_retry
        self._sleep = sleep

    def _make_request(self, address: str, page: int) -> List[Dict[str, Any]]:
        """Fetch one page of the address's normal transactions."""
        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": "latest",
            "sort": "asc",
            "page": page,
            "offset": self.page_size,
            "apikey": self.api_key,
        }

        logger.info(f"Fetching Scrollscan transactions for {address} (page: {page})")
        response = self.session.get(self.base_url, params=params,
                                    timeout=self.config.request_timeout)
        response.raise_for_status()

        data = response.json()
        result = data.get("result")
        if isinstance(result, list) and not result:
            raise EmptyPageError(f"No transactions found for {address}")
        if data.get("status") != "1" or not isinstance(result, list):
            raise ExplorerAPIError(
                f"Scrollscan API error: {data.get('message', 'Unknown error')} ({result})")
        return result

    def iter_pages(self, address: str) -> Iterator[List[Dict[str, Any]]]:
        """Yield pages until one comes back short of a full page."""
        page = 1
        while True:
            transactions = self.retry_policy.call(
                self._make_request, address, page,
                sleep=self._sleep, log=logger,
                description=f"Scrollscan transactions for {address} (page: {page})")
            yield transactions

            if len(transactions) < self.page_size:
                return

            # Rate limiting
            self._sleep(self.config.page_delay)
            page += 1

    @staticmethod
    def summarize(address: str, transactions: List[Dict[str, Any]]) -> AggregateResult:
        sent = Decimal("0")
        received = Decimal("0")
        fees = Decimal("0")
        contract_interactions = 0

        for tx in transactions:
            from_address = tx.get("from")
            to_address = tx.get("to")
            if not from_address or not to_address:
                logger.warning(
                    f"Skipping transaction {tx.get('hash', 'unknown')} due to missing from or to address")
                continue

            if addresses_equal(from_address, address):
                sent += wei_to_ether(tx.get("value") or "0")
                fees += wei_to_ether(
                    Decimal(tx.get("gasUsed") or "0") * Decimal(tx.get("gasPrice") or "0"))

            if addresses_equal(to_address, address):
                received += wei_to_ether(tx.get("value") or "0")

            method_id = tx.get("methodId")
            if method_id and method_id != "0x":
                contract_interactions += 1

        return AggregateResult(
            total_txs_api=len(transactions),
            total_eth_sent=sent,
            total_eth_received=received,
            total_fees=fees,
            contract_interactions=contract_interactions,
        )

    def aggregate(self, address: str) -> AggregateResult:
        total = AggregateResult()
        try:
            for transactions in self.iter_pages(address):
                total += self.summarize(address, transactions)
                if total.total_txs_api >= self.max_transactions:
                    logger.info(
                        f"Reached limit of {self.max_transactions} transactions for {address}. Stopping.")
                    break
        except RetryExhaustedError as e:
            logger.error(
                f"Max retries reached for {address}: {e}. Returning totals gathered so far.")
        return total


def build_aggregator(config: Config, session: Optional[requests.Session] = None,
                     sleep: Callable[[float], None] = time.sleep) -> TransactionAggregator:
    """Pick the explorer provider named by the configuration."""
    if config.use_blockscout:
        return BlockscoutAggregator(config, session=session, sleep=sleep)
    return ScrollscanAggregator(config, session=session, sleep=sleep)
