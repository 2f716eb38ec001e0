"""Shared fixtures for wallet percentile tests."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
import requests

from wallet_percentiles.config import Config
from wallet_percentiles.models import WalletMetrics
from wallet_percentiles.retry import RetryPolicy

ADDRESS = "0x" + "ab" * 20
OTHER = "0x" + "cd" * 20
CONTRACT = "0x" + "ef" * 20


def rpc_ok(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


class FakeProvider:
    """Stands in for a web3 HTTPProvider.

    ``handlers`` maps an RPC method to a callable taking the params list and
    returning the raw JSON-RPC response (or raising).
    """

    def __init__(self, handlers):
        self.handlers = handlers
        self.calls = []

    def make_request(self, method, params):
        self.calls.append((method, params))
        return self.handlers[method](params)

    def count(self, method):
        return sum(1 for m, _ in self.calls if m == method)


def fake_w3(handlers):
    return SimpleNamespace(provider=FakeProvider(handlers))


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def config():
    return Config(
        rpc_url="http://node.test",
        blockscout_api="https://blockscout.test/api/v2/",
        scrollscan_api="https://scrollscan.test/api",
        scrollscan_api_key="KEY",
        rpc_retry=RetryPolicy(max_attempts=4),
    )


def make_wallet(address, **values):
    fields = {
        "transaction_count_rpc": 0,
        "balance": Decimal("0"),
        "total_received": Decimal("0"),
        "total_sent": Decimal("0"),
        "total_fees": Decimal("0"),
        "transaction_count_api": 0,
        "contract_interactions": 0,
    }
    fields.update(values)
    return WalletMetrics(address=address, **fields)


@pytest.fixture
def population():
    """Three wallets with distinct values for every metric."""
    return [
        make_wallet("0x1", transaction_count_rpc=5, balance=Decimal("0.5"),
                    total_received=Decimal("1"), total_sent=Decimal("0.2"),
                    total_fees=Decimal("0.001"), transaction_count_api=6,
                    contract_interactions=1),
        make_wallet("0x2", transaction_count_rpc=1, balance=Decimal("2"),
                    total_received=Decimal("3"), total_sent=Decimal("1"),
                    total_fees=Decimal("0.01"), transaction_count_api=2,
                    contract_interactions=0),
        make_wallet("0x3", transaction_count_rpc=50, balance=Decimal("0.1"),
                    total_received=Decimal("0.5"), total_sent=Decimal("4"),
                    total_fees=Decimal("0.1"), transaction_count_api=60,
                    contract_interactions=30),
    ]
