import pytest
from decimal import Decimal
from fractions import Fraction

from stellar_sdk import Keypair

from ledger_escrow.conversion import build_conversion_pair
from ledger_escrow.core import Amount, ConversionRate, CreateConversionOffer, ValidationError


A = Keypair.random()
B = Keypair.random()


def test_conversion_pair_worked_example(assets):
    x, y = assets["VTHB"], assets["OLEV"]
    op_a, op_b = build_conversion_pair(A, x, B, y, 10000, 10)
    print("op_a ->", op_a.amount, op_a.price, "; op_b ->", op_b.amount, op_b.price)

    assert isinstance(op_a, CreateConversionOffer) and isinstance(op_b, CreateConversionOffer)
    assert (op_a.selling, op_a.buying, op_a.source) == (x, y, A.public_key)
    assert op_a.amount == Amount.of(10000)
    assert op_a.price.value == Decimal("0.1")

    assert (op_b.selling, op_b.buying, op_b.source) == (y, x, B.public_key)
    assert op_b.amount == Amount.of(1000)
    assert op_b.price.value == Decimal("10")


@pytest.mark.parametrize(
    "amount,price",
    [
        ("10000", Fraction(10)),
        ("1000", Fraction(1, 1200)),
        ("123.4567891", Fraction(7, 3)),
        ("0.0100000", Fraction(3, 1000)),
        ("98765.4321", Decimal("1.0000001")),
    ],
)
def test_legs_balance_within_one_stroop(assets, amount, price):
    op_a, op_b = build_conversion_pair(A, assets["VTHB"], B, assets["OLEV"], Decimal(amount), price)
    ratio = Fraction(price)
    # op_b is truncated from op_a / price, so op_b * price undershoots op_a by < one stroop of price
    gap = op_a.amount.as_fraction() - op_b.amount.as_fraction() * ratio
    print(f"[balance] amount={amount} price={price} gap={float(gap)}")
    assert gap >= 0
    assert gap < Fraction(1, 10 ** 7) * max(ratio, 1)


def test_prices_are_reciprocal_on_the_grid(assets):
    op_a, op_b = build_conversion_pair(A, assets["VTHB"], B, assets["OLEV"], 1000, Fraction(1, 1200))
    assert str(op_a.price) == "1200.000000000000000"
    assert str(op_b.price) == "0.000833333333333"


def test_accepts_tagged_rate_for_matching_assets(assets):
    x, y = assets["VTHB"], assets["OLEV"]
    rate = ConversionRate.of(10, selling=x, buying=y)
    op_a, _ = build_conversion_pair(A, x, B, y, 100, rate)
    assert op_a.amount == Amount.of(100)
    with pytest.raises(ValidationError):
        build_conversion_pair(A, y, B, x, 100, rate)


@pytest.mark.parametrize(
    "args,why",
    [
        (("VTHB", "VTHB", 100, 10), "same asset"),
        (("VTHB", "OLEV", 0, 10), "zero amount"),
        (("VTHB", "OLEV", Decimal("0.00000001"), 10), "amount truncates to zero"),
        (("VTHB", "OLEV", Decimal("0.0000001"), 10), "counter amount truncates to zero"),
        (("VTHB", "OLEV", 100, 0), "zero price"),
    ],
)
def test_rejects_degenerate_pairs(assets, args, why):
    sell, buy, amount, price = args
    print(f"[conversion-invalid] {why} -> expect ValidationError")
    with pytest.raises(ValidationError):
        build_conversion_pair(A, assets[sell], B, assets[buy], amount, price)


def test_rejects_same_party(assets):
    with pytest.raises(ValidationError):
        build_conversion_pair(A, assets["VTHB"], A.public_key, assets["OLEV"], 100, 10)
