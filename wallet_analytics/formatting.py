"""
Display formatting for base-unit amounts and addresses.

Conversion goes through Decimal so 18-decimal values keep every digit
until the final rounding.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Union


WEI_PER_ETHER = 18
WEI_PER_GWEI = 9


def _to_decimal(raw: Union[str, int]) -> Decimal:
    try:
        return Decimal(str(raw).strip() or "0")
    except InvalidOperation:
        return Decimal(0)


def format_token_amount(raw: Union[str, int], decimals: Union[str, int], places: int = 4) -> str:
    """Scale a base-unit amount by 10**decimals and round to `places`."""
    try:
        scale = int(decimals)
    except (TypeError, ValueError):
        scale = 0
    value = _to_decimal(raw)
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        # Default precision would round amounts wider than 28 digits
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + places + 2)
        amount = value.scaleb(-scale)
        return f"{amount.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def format_ether(wei: Union[str, int], places: int = 4) -> str:
    """Wei to ether, e.g. "1000000000000000000" -> "1.0000"."""
    return format_token_amount(wei, WEI_PER_ETHER, places)


def format_gwei(wei: Union[str, int], places: int = 2) -> str:
    """Wei to gwei, e.g. "25000000000" -> "25.00"."""
    return format_token_amount(wei, WEI_PER_GWEI, places)


def shorten_address(address: str, chars: int = 4) -> str:
    """0x1234...abcd"""
    if len(address) <= 2 + chars * 2:
        return address
    return f"{address[:chars + 2]}...{address[-chars:]}"


def format_number(value: int) -> str:
    """Thousands separators, e.g. 1234567 -> "1,234,567"."""
    return f"{value:,}"
