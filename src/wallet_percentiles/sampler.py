"""
Random wallet selection from chain history.
"""

import logging
import random
from typing import List, Optional, Set

from .chain import ChainReader
from .exceptions import SamplingExhaustedError
from .utils import normalize_address

logger = logging.getLogger(__name__)


def get_sample_addresses(chain_reader: ChainReader, current_block: int, sample_size: int,
                         rng: Optional[random.Random] = None,
                         max_draws: Optional[int] = None,
                         unique: bool = False) -> List[str]:
    """Draw sender addresses from random transactions in random blocks.

    Each draw picks a block uniformly in [0, current_block) and a transaction
    uniformly within it. Empty blocks and failed lookups do not count towards
    the sample. The same address may be drawn more than once unless ``unique``
    is set.

    Args:
        chain_reader: Source of block and transaction data.
        current_block: Exclusive upper bound for block numbers.
        sample_size: Number of addresses to return.
        rng: Random source, defaults to the ``random`` module.
        max_draws: Maximum number of block draws, unbounded when None.
        unique: Skip addresses that are already in the sample.

    Raises:
        SamplingExhaustedError: when ``max_draws`` is reached first.
    """
    rng = rng or random
    addresses: List[str] = []
    seen: Set[str] = set()
    draws = 0

    while len(addresses) < sample_size:
        if max_draws is not None and draws >= max_draws:
            raise SamplingExhaustedError(
                f"Collected {len(addresses)} of {sample_size} addresses in {draws} draws",
                addresses,
            )
        draws += 1

        block_number = rng.randrange(current_block)
        address = chain_reader.get_random_transaction_address(block_number, rng=rng)
        if not address:
            continue

        key = normalize_address(address)
        if unique and key in seen:
            logger.debug(f"Skipping duplicate address {address}")
            continue
        seen.add(key)
        addresses.append(address)
        logger.debug(f"Sampled {len(addresses)}/{sample_size}: {address} (block {block_number})")

    logger.info(f"Selected {len(addresses)} random addresses in {draws} draws")
    return addresses
