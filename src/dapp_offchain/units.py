"""
Unit Conversion Helpers

Conversions between integer base units and decimal display strings at the
fixed 18-decimal token scale, plus address normalization helpers.
"""

import re
from typing import Any

from web3 import Web3


TOKEN_DECIMALS = 18

_AMOUNT_RE = re.compile(r"^(\d*)(?:\.(\d*))?$")


def format_units(value: int, decimals: int = TOKEN_DECIMALS) -> str:
    """
    Render an integer amount in base units as a decimal string

    Trailing fractional zeros are dropped, so 950 * 10**18 renders as "950"
    and 5 * 10**17 as "0.5".

    Args:
        value: Amount in base units
        decimals: Decimal scale of the token

    Returns:
        Decimal string
    """
    value = int(value)
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    if fraction_str:
        return f"{sign}{whole}.{fraction_str}"
    return f"{sign}{whole}"


def parse_units(amount: str, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Parse a user-entered decimal string into integer base units

    Args:
        amount: Non-negative decimal string such as "50" or "0.25"
        decimals: Decimal scale of the token

    Returns:
        Amount in base units

    Raises:
        ValueError: If the amount is not a non-negative decimal or has more
            fractional digits than the scale allows
    """
    text = str(amount).strip()
    match = _AMOUNT_RE.match(text)
    if not match or text in ("", "."):
        raise ValueError(f"Invalid amount: {amount!r}")

    whole, fraction = match.group(1), match.group(2) or ""
    if len(fraction) > decimals:
        if fraction[decimals:].strip("0"):
            raise ValueError(f"Too many decimals in amount: {amount!r}")
        fraction = fraction[:decimals]

    return int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


def normalize_address(address: Any) -> str:
    """Checksum an address when it is a valid EVM address, else return it as text"""
    text = str(address or "")
    if Web3.is_address(text):
        return Web3.to_checksum_address(text)
    return text


def same_address(left: str | None, right: str | None) -> bool:
    """Compare two addresses ignoring checksum casing"""
    if not left or not right:
        return False
    return left.lower() == right.lower()


def short_address(address: str) -> str:
    """Shorten an address for display: 0x1234...abcd"""
    if not address or len(address) <= 10:
        return address or ""
    return f"{address[:6]}...{address[-4:]}"


def to_hex_string(value: Any) -> str:
    """Render a transaction hash (bytes or str) as a 0x-prefixed string"""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)
