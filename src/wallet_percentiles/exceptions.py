"""
Exception types raised by the sampling and enrichment pipeline.
"""


class WalletPercentilesError(Exception):
    """Base class for all errors raised by this package."""


class RPCError(WalletPercentilesError):
    """A node JSON-RPC call failed or returned an error member."""


class ExplorerAPIError(WalletPercentilesError):
    """A block-explorer API request failed."""


class EmptyPageError(ExplorerAPIError):
    """The explorer returned no transactions; treated as API lag."""


class RetryExhaustedError(WalletPercentilesError):
    """A retry policy ran out of attempts."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class ChainReadError(WalletPercentilesError):
    """The chain reader could not produce a value for a wallet."""


class SamplingExhaustedError(WalletPercentilesError):
    """The random sampler hit its draw limit before filling the sample."""

    def __init__(self, message: str, addresses):
        super().__init__(message)
        self.addresses = list(addresses)


class BatchError(WalletPercentilesError):
    """The batch run could not start."""
