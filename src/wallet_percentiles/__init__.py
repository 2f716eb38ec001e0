"""Random wallet sampling and percentile scoring for EVM chains."""

__version__ = "0.1.0"
