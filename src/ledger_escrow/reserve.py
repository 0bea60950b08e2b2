"""Minimum native balance an account must hold for its ledger entries."""

from __future__ import annotations

from decimal import Decimal

from .core.amounts import Amount, Numeric, to_fraction
from .core.constants import BASE_RESERVE
from .core.exc import ValidationError


def minimum_balance(
    margin: Numeric,
    trust_lines: int,
    offers: int = 1,
    signers: int = 1,
    entries: int = 0,
    *,
    base_reserve: Numeric = BASE_RESERVE,
) -> Amount:
    """Return (2 + trust_lines + offers + signers + entries) * base_reserve + margin.

    Example: minimum_balance(Decimal("0.5"), 3, 1, 4, 0) -> 5.5

    margin and base_reserve take int, str, Decimal or Fraction. Floats raise
    AmountDomainError; write 0.5 as Decimal("0.5") or "0.5".
    """
    counts = {"trust_lines": trust_lines, "offers": offers, "signers": signers, "entries": entries}
    for name, n in counts.items():
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValidationError(f"{name} must be a non-negative integer, got {n!r}")
    slots = 2 + trust_lines + offers + signers + entries
    return Amount.of(slots * to_fraction(base_reserve) + to_fraction(margin))


def escrow_minimum_balance(trust_lines: int, signers: int, *, base_reserve: Decimal = BASE_RESERVE) -> Amount:
    """Reserve an escrow needs before any margin: its trust lines, one transient offer, its signers."""
    return minimum_balance(0, trust_lines, 1, signers, 0, base_reserve=base_reserve)


__all__ = ["minimum_balance", "escrow_minimum_balance"]
