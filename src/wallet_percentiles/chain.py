import logging
import random
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3
from web3.types import RPCEndpoint

from .config import Config
from .exceptions import RetryExhaustedError, RPCError
from .utils import hex_to_int

# Set up logging
logger = logging.getLogger(__name__)

BALANCE_PRECISION = Decimal("0.0001")


class ChainReader:
    """Client for the node JSON-RPC endpoint."""

    def __init__(self, config: Config, w3: Optional[Web3] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(
                config.rpc_url, request_kwargs={"timeout": config.request_timeout}))
        self.w3 = w3
        self.retry_policy = config.rpc_retry
        self._sleep = sleep

    def _rpc(self, method: str, params: List[Any]) -> Any:
        """Issue one JSON-RPC call and return its result member."""
        response = self.w3.provider.make_request(RPCEndpoint(method), params)
        if "error" in response:
            raise RPCError(f"{method} failed: {response['error']}")
        if "result" not in response:
            raise RPCError(f"{method} returned no result")
        return response["result"]

    def _with_retries(self, description: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run fn under the RPC retry policy; None once retries are exhausted."""
        try:
            return self.retry_policy.call(
                fn, *args, sleep=self._sleep, log=logger, description=description,
                before_sleep=self.retry_policy.log_retries_left(description, logger))
        except RetryExhaustedError as e:
            logger.error(f"Failed to fetch {description}: {e.__cause__}")
            return None

    def get_current_block_height(self) -> Optional[int]:
        """Get the current block number. Single attempt."""
        try:
            return hex_to_int(self._rpc("eth_blockNumber", []))
        except Exception as e:
            logger.error(f"Error fetching the current block: {e}")
            return None

    def get_transaction_count(self, address: str) -> Optional[int]:
        """Number of transactions sent from an address."""
        def fetch() -> int:
            return hex_to_int(self._rpc("eth_getTransactionCount", [address, "latest"]))

        return self._with_retries(f"transaction count for address {address}", fetch)

    def get_balance(self, address: str) -> Optional[Decimal]:
        """Balance of an address in ETH, rounded to 4 decimal places."""
        def fetch() -> Decimal:
            wei = hex_to_int(self._rpc("eth_getBalance", [address, "latest"]))
            return Decimal(Web3.from_wei(wei, "ether")).quantize(
                BALANCE_PRECISION, rounding=ROUND_HALF_UP)

        return self._with_retries(f"balance for address {address}", fetch)

    def get_transaction_count_in_block(self, block_number: int) -> Optional[int]:
        """Number of transactions included in a block."""
        def fetch() -> int:
            block = self._rpc("eth_getBlockByNumber", [Web3.to_hex(block_number), False])
            if not block or block.get("transactions") is None:
                raise RPCError(f"Block data is incomplete for block {block_number}")
            return len(block["transactions"])

        return self._with_retries(f"transaction count for block {block_number}", fetch)

    def get_transaction_by_index(self, block_number: int, index: int) -> Optional[Dict[str, Any]]:
        """Transaction object at a position within a block."""
        def fetch() -> Optional[Dict[str, Any]]:
            return self._rpc("eth_getTransactionByBlockNumberAndIndex",
                             [Web3.to_hex(block_number), Web3.to_hex(index)])

        return self._with_retries(
            f"transaction for block {block_number}, index {index}", fetch)

    def get_random_transaction_address(self, block_number: int,
                                       rng: Optional[random.Random] = None) -> Optional[str]:
        """Sender of a uniformly chosen transaction in a block, if any."""
        rng = rng or random
        transaction_count = self.get_transaction_count_in_block(block_number)
        if transaction_count is None:
            return None
        if transaction_count == 0:
            logger.warning(f"No transactions found in block {block_number}")
            return None

        random_index = rng.randrange(transaction_count)
        transaction = self.get_transaction_by_index(block_number, random_index)

        if transaction and transaction.get("from"):
            return transaction["from"]

        logger.warning(
            f"No valid transaction found at block {block_number}, index {random_index}")
        return None
