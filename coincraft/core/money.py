"""Peso/centavo conversion. Amounts are stored as integer centavos."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

PESO_SIGN = "₱"


def to_centavos(pesos: Union[int, float, str, Decimal]) -> int:
    # str() first so 19.99 becomes Decimal("19.99"), not its binary expansion
    amount = Decimal(str(pesos)) * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_centavos(centavos: int) -> Decimal:
    return Decimal(centavos) / 100


def format_php(centavos: int) -> str:
    """1234550 -> '₱12,345.50'; negative amounts keep the sign before the peso sign."""
    sign = "-" if centavos < 0 else ""
    return f"{sign}{PESO_SIGN}{from_centavos(abs(centavos)):,.2f}"
