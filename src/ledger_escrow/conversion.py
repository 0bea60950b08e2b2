"""
Paired conversion offers that cross each other inside one atomic transaction.

Party A sells `amount` of X for Y at price 1/unit_price; party B sells
amount/unit_price of Y for X at price unit_price. Against an empty book the
two offers match completely, so the pair behaves as a trade at `unit_price`
(units of X per unit of Y).

Rounding: both amounts truncate onto the stroop grid and B's amount is
derived from A's *quantised* amount, so the legs describe the same trade
to within one stroop of the buying asset.
"""

from __future__ import annotations

import logging
from typing import Tuple

from .core.amounts import Amount, ConversionRate, Numeric, Price
from .core.datatypes import Asset, public_key_of
from .core.exc import ValidationError
from .core.operations import CreateConversionOffer

logger = logging.getLogger(__name__)


def build_conversion_pair(
    party_a,
    asset_sell: Asset,
    party_b,
    asset_buy: Asset,
    amount: Numeric,
    unit_price,
) -> Tuple[CreateConversionOffer, CreateConversionOffer]:
    """Return the (A, B) offers converting `amount` of `asset_sell` into `asset_buy`.

    `unit_price` is a ConversionRate or any exact numeric (Decimal, Fraction,
    int, str); it prices `asset_sell` per unit of `asset_buy`.
    """
    a = public_key_of(party_a)
    b = public_key_of(party_b)
    if a == b:
        raise ValidationError(f"conversion parties must differ, got {a} twice")
    if asset_sell == asset_buy:
        raise ValidationError(f"cannot convert {asset_sell} into itself")

    rate = ConversionRate.of(unit_price)
    rate.check_assets(asset_sell, asset_buy)

    sell_amount = Amount.of(amount)
    if sell_amount.is_zero():
        raise ValidationError(f"conversion amount {amount} is zero on the stroop grid")
    buy_amount = sell_amount.div_by_rate(rate.ratio)
    if buy_amount.is_zero():
        raise ValidationError(f"counter amount for {sell_amount} at {rate} is zero on the stroop grid")

    op_a = CreateConversionOffer(
        selling=asset_sell,
        buying=asset_buy,
        amount=sell_amount,
        price=Price.of(1 / rate.ratio),
        source=a,
    )
    op_b = CreateConversionOffer(
        selling=asset_buy,
        buying=asset_sell,
        amount=buy_amount,
        price=Price.of(rate.ratio),
        source=b,
    )
    logger.debug("conversion pair %s %s -> %s %s at %s", sell_amount, asset_sell, buy_amount, asset_buy, rate)
    return op_a, op_b


__all__ = ["build_conversion_pair"]
