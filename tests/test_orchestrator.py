import random
from decimal import Decimal

import pytest

from wallet_percentiles.exceptions import BatchError
from wallet_percentiles.models import TRACKED_METRICS, SampleParameters
from wallet_percentiles.orchestrator import compare_wallet, run_batch
from wallet_percentiles.percentiles import build_distribution

from conftest import make_wallet

# ceil(1.96^2 * 0.25 / 0.5^2) == 4
SMALL_SAMPLE = SampleParameters(confidence_level=95, margin_of_error=0.5)


class StubChain:
    def __init__(self, height, senders):
        self.height = height
        self.senders = list(senders)

    def get_current_block_height(self):
        return self.height

    def get_random_transaction_address(self, block_number, rng=None):
        return self.senders.pop(0) if self.senders else None


class StubAnalyzer:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.seen = []

    def try_analyze(self, address):
        self.seen.append(address)
        if address in self.failing:
            return None
        return make_wallet(address, transaction_count_rpc=len(self.seen),
                           balance=Decimal(len(self.seen)))


def test_batch_skips_failed_wallets():
    chain = StubChain(1000, ["0x1", None, "0x2", "0x3", "0x4"])
    analyzer = StubAnalyzer(failing={"0x3"})

    result = run_batch(SMALL_SAMPLE, chain, analyzer, rng=random.Random(5))

    assert result.sample_size == 4
    assert result.addresses == ["0x1", "0x2", "0x3", "0x4"]
    assert analyzer.seen == result.addresses
    assert result.failed == ["0x3"]
    assert [w.address for w in result.wallets] == ["0x1", "0x2", "0x4"]
    assert result.snapshot.sample_size == 3
    for metric in TRACKED_METRICS:
        assert len(result.snapshot.values(metric)) == 3


def test_batch_reports_progress():
    chain = StubChain(1000, ["0x1", "0x2", "0x3", "0x4"])
    calls = []

    run_batch(SMALL_SAMPLE, chain, StubAnalyzer(failing={"0x2"}), rng=random.Random(5),
              progress=lambda done, total, metrics: calls.append((done, total, metrics is None)))

    assert calls == [(1, 4, False), (2, 4, True), (3, 4, False), (4, 4, False)]


def test_batch_uses_partial_sample_when_draws_run_out():
    chain = StubChain(1000, ["0x1", "0x2"])

    result = run_batch(SMALL_SAMPLE, chain, StubAnalyzer(), rng=random.Random(5), max_draws=10)

    assert result.addresses == ["0x1", "0x2"]
    assert result.snapshot.sample_size == 2


def test_batch_requires_block_height():
    with pytest.raises(BatchError):
        run_batch(SMALL_SAMPLE, StubChain(None, []), StubAnalyzer())


def test_compare_wallet(population):
    snapshot = build_distribution(population)

    result = compare_wallet("0xabc", StubAnalyzer(), snapshot)

    assert result["address"] == "0xabc"
    assert result["metrics"]["address"] == "0xabc"
    assert set(result["comparisons"]) == set(TRACKED_METRICS)
    assert result["comparisons"]["transaction_count_rpc"] == {"value": 1.0, "percentile": 33.33}


def test_compare_wallet_failure(population):
    result = compare_wallet("0xbad", StubAnalyzer(failing={"0xbad"}), build_distribution(population))
    assert result == {"address": "0xbad", "error": "Could not analyze wallet 0xbad"}
