import pytest
from decimal import Decimal
from fractions import Fraction

from stellar_sdk import Keypair

from ledger_escrow.core.amounts import Amount, Price, ConversionRate, to_fraction
from ledger_escrow.core.datatypes import Asset
from ledger_escrow.core.exc import AmountDomainError, ValidationError


# -----------------------------
# Amount construction & quantisation
# -----------------------------


def test_amount_truncates_to_seven_digits():
    print("[amount-truncate] 1.23456789 -> expect 1.2345678 (toward zero)")
    a = Amount.of(Decimal("1.23456789"))
    assert a.stroops == 12345678
    assert str(a) == "1.2345678"


@pytest.mark.parametrize(
    "value,expected",
    [
        (10000, "10000.0000000"),
        ("0.5", "0.5000000"),
        (Fraction(1, 3), "0.3333333"),
        (Decimal("0"), "0.0000000"),
    ],
)
def test_amount_from_supported_inputs(value, expected):
    assert str(Amount.of(value)) == expected


@pytest.mark.parametrize(
    "call,name",
    [
        (lambda: Amount.of(Decimal("-0.0001")), "Amount.of(-0.0001)"),
        (lambda: Amount(-1), "Amount(-1)"),
        (lambda: Amount.of(0.1), "Amount.of(float)"),
        (lambda: Amount.of("ten"), "Amount.of('ten')"),
        (lambda: Amount.of(Decimal("NaN")), "Amount.of(NaN)"),
    ],
)
def test_amount_rejects_bad_inputs(call, name):
    print(f"[amount-invalid] {name} -> expect AmountDomainError")
    with pytest.raises(AmountDomainError):
        call()


def test_amount_domain_error_is_a_validation_error():
    with pytest.raises(ValidationError):
        Amount.of("-1")


def test_amount_arithmetic_and_ordering():
    a = Amount.of("1.5")
    b = Amount.of("0.25")
    assert a + b == Amount.of("1.75")
    assert a - b == Amount.of("1.25")
    assert b < a
    with pytest.raises(AmountDomainError):
        b - a


def test_div_by_rate_is_exact_for_rationals():
    print("[div-by-rate] 1000 / (1/1200) -> expect exactly 1200000")
    assert Amount.of(1000).div_by_rate(Fraction(1, 1200)) == Amount.of(1200000)
    with pytest.raises(AmountDomainError):
        Amount.of(1).div_by_rate(0)


# -----------------------------
# Price
# -----------------------------


def test_price_truncates_to_fifteen_digits():
    p = Price.of(Fraction(1, 1200))
    print("price(1/1200) ->", p)
    assert str(p) == "0.000833333333333"
    assert Price.of(Fraction(1, 10)).value == Decimal("0.1")


def test_price_rejects_zero_after_truncation():
    with pytest.raises(AmountDomainError):
        Price.of(Fraction(1, 10 ** 16))
    with pytest.raises(AmountDomainError):
        Price(Decimal("0"))


# -----------------------------
# ConversionRate
# -----------------------------


def test_rate_from_string_fraction_and_inverse():
    r = ConversionRate.of("1/1200")
    assert r.ratio == Fraction(1, 1200)
    assert r.inverse().ratio == Fraction(1200)
    assert to_fraction(r) == Fraction(1, 1200)


def test_rate_rejects_non_positive():
    with pytest.raises(AmountDomainError):
        ConversionRate.of(0)
    with pytest.raises(AmountDomainError):
        ConversionRate.of("-2")


def test_rate_asset_tags_are_checked():
    x = Asset("VTHB", Keypair.random().public_key)
    y = Asset("OLEV", Keypair.random().public_key)
    r = ConversionRate.of(10, selling=x, buying=y)
    r.check_assets(x, y)
    with pytest.raises(ValidationError):
        r.check_assets(y, x)
    # inverse swaps the tags
    r.inverse().check_assets(y, x)
