import random

import pytest

from wallet_percentiles.exceptions import SamplingExhaustedError
from wallet_percentiles.sampler import get_sample_addresses


class ScriptedChain:
    """Returns a scripted sequence of sender addresses, one per draw."""

    def __init__(self, senders):
        self.senders = list(senders)
        self.blocks = []

    def get_random_transaction_address(self, block_number, rng=None):
        self.blocks.append(block_number)
        return self.senders.pop(0) if self.senders else None


def test_collects_non_null_addresses_and_keeps_duplicates():
    chain = ScriptedChain([None, "0xa", None, "0xb", "0xa", "0xc"])
    addresses = get_sample_addresses(chain, 1000, 3, rng=random.Random(7))
    assert addresses == ["0xa", "0xb", "0xa"]
    assert len(chain.blocks) == 5


def test_unique_sampling_skips_repeats_case_insensitively():
    chain = ScriptedChain(["0xAA", "0xaa", "0xbb"])
    addresses = get_sample_addresses(chain, 1000, 2, rng=random.Random(7), unique=True)
    assert addresses == ["0xAA", "0xbb"]


def test_block_numbers_within_chain_height():
    chain = ScriptedChain(["0x1"] * 50)
    get_sample_addresses(chain, 10, 50, rng=random.Random(3))
    assert all(0 <= b < 10 for b in chain.blocks)


def test_draw_limit_raises_with_partial_sample():
    chain = ScriptedChain(["0xa", None, None, None, None])
    with pytest.raises(SamplingExhaustedError) as exc_info:
        get_sample_addresses(chain, 100, 3, rng=random.Random(1), max_draws=4)
    assert exc_info.value.addresses == ["0xa"]
    assert len(chain.blocks) == 4


def test_zero_sample_size_draws_nothing():
    chain = ScriptedChain(["0xa"])
    assert get_sample_addresses(chain, 100, 0) == []
    assert chain.blocks == []
