"""
Batch run: sample wallets, analyze them one by one, build the distribution.
"""

import logging
import random
from typing import Any, Callable, Dict, List, Optional

from .analyzer import WalletAnalyzer
from .chain import ChainReader
from .exceptions import BatchError, SamplingExhaustedError
from .models import BatchResult, SampleParameters, WalletMetrics, PopulationSnapshot
from .percentiles import build_distribution, compare
from .sampler import get_sample_addresses

logger = logging.getLogger(__name__)


def run_batch(params: SampleParameters, chain_reader: ChainReader, analyzer: WalletAnalyzer,
              rng: Optional[random.Random] = None, max_draws: Optional[int] = None,
              unique: bool = False,
              progress: Optional[Callable[[int, int, Optional[WalletMetrics]], None]] = None
              ) -> BatchResult:
    """Build the population snapshot from a fresh random sample.

    Addresses are analyzed sequentially. Wallets that fail analysis are
    recorded in ``failed`` and left out of the distribution.

    Raises:
        BatchError: if the current block height cannot be read.
    """
    sample_size = params.sample_size()
    logger.info(f"Sample size to analyze: {sample_size}")

    current_block = chain_reader.get_current_block_height()
    if not current_block:
        raise BatchError("Could not retrieve the current block number")
    logger.info(f"Current block number: {current_block}")

    try:
        addresses = get_sample_addresses(chain_reader, current_block, sample_size,
                                         rng=rng, max_draws=max_draws, unique=unique)
    except SamplingExhaustedError as e:
        logger.warning(f"Sampling stopped early: {e}")
        addresses = e.addresses

    wallets: List[WalletMetrics] = []
    failed: List[str] = []
    for i, address in enumerate(addresses, 1):
        metrics = analyzer.try_analyze(address)
        if metrics is None:
            failed.append(address)
        else:
            wallets.append(metrics)
        if progress is not None:
            progress(i, len(addresses), metrics)

    if not wallets:
        logger.error("No wallet data found to calculate percentiles")
    elif failed:
        logger.warning(f"{len(failed)} of {len(addresses)} wallets could not be analyzed")

    return BatchResult(
        sample_size=sample_size,
        addresses=addresses,
        wallets=wallets,
        failed=failed,
        snapshot=build_distribution(wallets),
    )


def compare_wallet(address: str, analyzer: WalletAnalyzer,
                   snapshot: PopulationSnapshot) -> Dict[str, Any]:
    """Analyze one wallet and rank it against the snapshot."""
    metrics = analyzer.try_analyze(address)
    if metrics is None:
        return {"address": address, "error": f"Could not analyze wallet {address}"}

    comparisons = compare(metrics, snapshot)
    return {
        "address": address,
        "metrics": metrics.to_dict(),
        "comparisons": {
            metric: {"value": c.value, "percentile": c.percentile}
            for metric, c in comparisons.items()
        },
    }
