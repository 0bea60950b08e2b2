"""
Amount primitives: Amount (integer stroops), Price (15-digit offer price) and
ConversionRate (exact positive rational).

- Amount: integer stroops at the core; Decimal only at the I/O boundary.
- Non-negative domain: negative values are rejected at input.
- Rounding semantics: every quantisation truncates toward zero onto its grid,
  so an offer never promises more than the rate allows.
- Floats are rejected outright; rates such as 1/1200 must stay exact until
  they are quantised into an operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import TYPE_CHECKING, Optional, Union

from .constants import AMOUNT_DECIMALS, MAX_STROOPS, PRICE_DECIMALS, STROOPS_PER_UNIT
from .exc import AmountDomainError, ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from .datatypes import Asset


Numeric = Union["Amount", Fraction, Decimal, int, str]

_PRICE_SCALE: int = 10 ** PRICE_DECIMALS


def to_fraction(x: Numeric) -> Fraction:
    """Convert a supported numeric input into an exact Fraction."""
    if isinstance(x, bool) or isinstance(x, float):
        raise AmountDomainError(f"unsupported numeric input {x!r}; use Decimal, Fraction, int or str")
    if isinstance(x, Amount):
        return Fraction(x.stroops, STROOPS_PER_UNIT)
    if isinstance(x, ConversionRate):
        return x.ratio
    if isinstance(x, (Fraction, int)):
        return Fraction(x)
    if isinstance(x, Decimal):
        if not x.is_finite():
            raise AmountDomainError(f"non-finite value {x!r}")
        return Fraction(x)
    if isinstance(x, str):
        try:
            return Fraction(x.strip())
        except (ValueError, ZeroDivisionError) as exc:
            raise AmountDomainError(f"malformed numeric string {x!r}") from exc
    raise AmountDomainError(f"unsupported numeric input {x!r}")


def _truncate(f: Fraction, scale: int) -> int:
    """Return floor(f * scale) for a non-negative Fraction."""
    if f < 0:
        raise AmountDomainError(f"negative value not allowed: {f}")
    return (f.numerator * scale) // f.denominator


# ----------------------------
# Amount (integer stroops)
# ----------------------------

@dataclass(frozen=True, order=True)
class Amount:
    """Asset amount in integer stroops (non-negative, 7 fractional digits)."""
    stroops: int

    def __post_init__(self):
        if isinstance(self.stroops, bool) or not isinstance(self.stroops, int):
            raise AmountDomainError("Amount must be built from integer stroops")
        if self.stroops < 0:
            raise AmountDomainError("Amount must be >= 0 stroops")
        if self.stroops > MAX_STROOPS:
            raise AmountDomainError(f"Amount exceeds ledger maximum: {self.stroops} stroops")

    # ------------- constructors -------------

    @staticmethod
    def zero() -> "Amount":
        return Amount(0)

    @classmethod
    def of(cls, x: Numeric) -> "Amount":
        """Quantise any supported numeric input down to the stroop grid."""
        if isinstance(x, Amount):
            return x
        return cls(_truncate(to_fraction(x), STROOPS_PER_UNIT))

    # ------------- views -------------

    def is_zero(self) -> bool:
        return self.stroops == 0

    def to_decimal(self) -> Decimal:
        return Decimal(self.stroops).scaleb(-AMOUNT_DECIMALS)

    def as_fraction(self) -> Fraction:
        return Fraction(self.stroops, STROOPS_PER_UNIT)

    def __str__(self) -> str:
        whole, frac = divmod(self.stroops, STROOPS_PER_UNIT)
        return f"{whole}.{frac:0{AMOUNT_DECIMALS}d}"

    # ------------- arithmetic -------------

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            raise AmountDomainError("Amount arithmetic requires Amount operands")
        return Amount(self.stroops + other.stroops)

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            raise AmountDomainError("Amount arithmetic requires Amount operands")
        if self.stroops < other.stroops:
            raise AmountDomainError("Amount subtraction underflow")
        return Amount(self.stroops - other.stroops)

    def div_by_rate(self, rate: Numeric) -> "Amount":
        """Return self / rate, truncated onto the stroop grid."""
        r = to_fraction(rate)
        if r <= 0:
            raise AmountDomainError(f"rate must be > 0, got {r}")
        return Amount.of(self.as_fraction() / r)


# ----------------------------
# Price (15-digit offer price)
# ----------------------------

@dataclass(frozen=True, order=True)
class Price:
    """Offer price (units of buying asset per unit of selling asset), 15 fractional digits."""
    value: Decimal

    def __post_init__(self):
        if not isinstance(self.value, Decimal) or not self.value.is_finite():
            raise AmountDomainError(f"Price must be a finite Decimal, got {self.value!r}")
        if self.value <= 0:
            raise AmountDomainError(f"Price must be > 0, got {self.value}")

    @classmethod
    def of(cls, x: Numeric) -> "Price":
        """Quantise a positive value down onto the 15-digit price grid."""
        if isinstance(x, Price):
            return x
        units = _truncate(to_fraction(x), _PRICE_SCALE)
        if units == 0:
            raise AmountDomainError(f"price {x} truncates to zero on the {PRICE_DECIMALS}-digit grid")
        return cls(Decimal(units).scaleb(-PRICE_DECIMALS))

    def as_fraction(self) -> Fraction:
        return Fraction(self.value)

    def __str__(self) -> str:
        return format(self.value, f".{PRICE_DECIMALS}f")


# ----------------------------
# ConversionRate (exact rational)
# ----------------------------

@dataclass(frozen=True)
class ConversionRate:
    """Directional unit price: units of `selling` paid per unit of `buying`.

    The ratio is kept exact; it is only quantised when it becomes an offer
    amount or price. Asset tags are optional and, when present, are checked
    by the builders against the assets a rate is used with.
    """

    ratio: Fraction
    selling: Optional["Asset"] = None
    buying: Optional["Asset"] = None

    def __post_init__(self):
        if not isinstance(self.ratio, Fraction):
            raise AmountDomainError("ConversionRate ratio must be a Fraction")
        if self.ratio <= 0:
            raise AmountDomainError(f"ConversionRate must be > 0, got {self.ratio}")

    @classmethod
    def of(cls, x: Union["ConversionRate", Numeric], selling=None, buying=None) -> "ConversionRate":
        if isinstance(x, ConversionRate):
            if selling is None and buying is None:
                return x
            return cls(x.ratio, selling, buying)
        return cls(to_fraction(x), selling, buying)

    def inverse(self) -> "ConversionRate":
        return ConversionRate(1 / self.ratio, self.buying, self.selling)

    def check_assets(self, selling: "Asset", buying: "Asset") -> None:
        """Raise ValidationError if the rate is tagged for a different asset pair."""
        if self.selling is not None and self.selling != selling:
            raise ValidationError(f"rate prices {self.selling}, used for {selling}")
        if self.buying is not None and self.buying != buying:
            raise ValidationError(f"rate prices against {self.buying}, used for {buying}")

    def __str__(self) -> str:
        return str(self.ratio)


def parse_decimal(s: str) -> Decimal:
    """Parse a ledger-formatted decimal string (I/O boundary helper)."""
    try:
        d = Decimal(str(s))
    except (InvalidOperation, TypeError) as exc:
        raise AmountDomainError(f"malformed decimal {s!r}") from exc
    if not d.is_finite():
        raise AmountDomainError(f"non-finite decimal {s!r}")
    return d


__all__ = [
    "Numeric",
    "to_fraction",
    "Amount",
    "Price",
    "ConversionRate",
    "parse_decimal",
]
