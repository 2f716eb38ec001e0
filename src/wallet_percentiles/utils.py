"""
Utility functions for address handling and unit conversion.
"""

from typing import Any, Optional
from decimal import Decimal, InvalidOperation
import re
import logging

logger = logging.getLogger(__name__)

WEI_PER_ETHER = Decimal('1000000000000000000')


def is_valid_ethereum_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address."""
    if not address:
        return False

    # Remove 0x prefix if present
    if address.startswith('0x'):
        address = address[2:]

    # Check if it's 40 hex characters
    return bool(re.match(r'^[0-9a-fA-F]{40}$', address))


def normalize_address(address: Optional[str]) -> str:
    """Normalize an Ethereum address to lowercase with 0x prefix."""
    if not address:
        return ""

    address = address.lower()
    if not address.startswith('0x'):
        address = '0x' + address

    return address


def addresses_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison; empty addresses never match."""
    if not a or not b:
        return False
    return normalize_address(a) == normalize_address(b)


def wei_to_ether(wei: Any) -> Decimal:
    """Convert Wei to Ether."""
    try:
        return Decimal(str(wei)) / WEI_PER_ETHER
    except (ValueError, TypeError, InvalidOperation) as e:
        logger.warning(f"Error converting wei to ether: {wei}, error: {e}")
        return Decimal('0')


def hex_to_int(value: str) -> int:
    """Parse a 0x-prefixed hexadecimal quantity returned by the node."""
    return int(value, 16)


def format_number(number: Any, decimals: int = 2) -> str:
    """Format a number with K/M/B suffixes."""
    try:
        num = float(number)
        if num == 0:
            return "0"

        if num >= 1_000_000_000:
            return f"{num / 1_000_000_000:.{decimals}f}B"
        elif num >= 1_000_000:
            return f"{num / 1_000_000:.{decimals}f}M"
        elif num >= 1_000:
            return f"{num / 1_000:.{decimals}f}K"
        else:
            return f"{num:.{decimals}f}"
    except (ValueError, TypeError, OverflowError) as e:
        logger.warning(f"Error formatting number {number}: {e}")
        return str(number)
