"""
scrt_client.tx.build
====================

Fee helpers used before signing.

The fee charged for a transaction is derived from the gas limit and the gas
price in the fee denom:

    fee = floor(gas_limit * gas_price) + 1

The amount is always at least one minimal unit.

Examples
--------
    from scrt_client.tx.build import gas_to_fee, make_fee

    gas_to_fee(200_000, 0.25)                  # -> 50001
    make_fee(200_000, 0.25, "uscrt").to_amino()
    # {'amount': [{'amount': '50001', 'denom': 'uscrt'}], 'gas': '200000'}
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Union

from .types import Coin, StdFee

Number = Union[int, float, str, Decimal]

DEFAULT_FEE_DENOM = "uscrt"

__all__ = ["DEFAULT_FEE_DENOM", "gas_to_fee", "make_fee"]


def _as_decimal(value: Number) -> Decimal:
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def gas_to_fee(gas_limit: int, gas_price: Number) -> int:
    """
    Return the fee amount, in minimal units of the fee denom, for `gas_limit`
    at `gas_price` per unit of gas. Always >= 1.

    Raises:
        ValueError: negative gas limit or negative / non-finite gas price.
    """
    gas_limit = int(gas_limit)
    if gas_limit < 0:
        raise ValueError(f"gas_limit must be >= 0, got {gas_limit}")
    price = _as_decimal(gas_price)
    if not price.is_finite() or price < 0:
        raise ValueError(f"gas_price must be a finite non-negative number, got {gas_price!r}")
    return int((Decimal(gas_limit) * price).to_integral_value(rounding=ROUND_FLOOR)) + 1


def make_fee(gas_limit: int, gas_price: Number, denom: str = DEFAULT_FEE_DENOM) -> StdFee:
    """Build the `StdFee` for one fee denom."""
    amount = gas_to_fee(gas_limit, gas_price)
    return StdFee(amount=(Coin(denom=denom, amount=str(amount)),), gas=str(int(gas_limit)))
