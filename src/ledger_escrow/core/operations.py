"""
Operation variants carried by a transaction.

Each operation is an immutable record. `source` overrides the transaction's
source account; None means "the transaction source".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from .amounts import Amount, Price
from .constants import MAX_THRESHOLD
from .datatypes import Asset
from .exc import ValidationError


class Operation:
    """Base class for every operation variant."""

    kind: ClassVar[str] = "operation"
    source: Optional[str]

    def effective_source(self, tx_source: str) -> str:
        return self.source if self.source is not None else tx_source

    def touches(self, account_id: str, tx_source: str) -> bool:
        """True if the operation reads or writes `account_id`."""
        return self.effective_source(tx_source) == account_id or getattr(self, "destination", None) == account_id


@dataclass(frozen=True)
class CreateAccount(Operation):
    kind: ClassVar[str] = "create_account"
    destination: str
    starting_balance: Amount
    source: Optional[str] = None

    def __post_init__(self):
        if self.starting_balance.is_zero():
            raise ValidationError("starting balance must be > 0")


@dataclass(frozen=True)
class ChangeTrust(Operation):
    """Create, update or (with limit 0) remove a trust line. limit=None means the ledger maximum."""

    kind: ClassVar[str] = "change_trust"
    asset: Asset
    limit: Optional[Amount] = None
    source: Optional[str] = None

    def __post_init__(self):
        if self.asset.is_native():
            raise ValidationError("cannot change trust on the native asset")

    def is_removal(self) -> bool:
        return self.limit is not None and self.limit.is_zero()


@dataclass(frozen=True)
class SetSignerOptions(Operation):
    kind: ClassVar[str] = "set_options"
    signer_key: Optional[str] = None
    signer_weight: Optional[int] = None
    master_weight: Optional[int] = None
    low_threshold: Optional[int] = None
    med_threshold: Optional[int] = None
    high_threshold: Optional[int] = None
    source: Optional[str] = None

    def __post_init__(self):
        if (self.signer_key is None) != (self.signer_weight is None):
            raise ValidationError("signer_key and signer_weight must be given together")
        for name in ("signer_weight", "master_weight", "low_threshold", "med_threshold", "high_threshold"):
            v = getattr(self, name)
            if v is not None and (v < 0 or v > MAX_THRESHOLD):
                raise ValidationError(f"{name} must be within 0..{MAX_THRESHOLD}, got {v}")

    def changes_thresholds(self) -> bool:
        return any(
            v is not None
            for v in (self.master_weight, self.low_threshold, self.med_threshold, self.high_threshold)
        )


@dataclass(frozen=True)
class Payment(Operation):
    kind: ClassVar[str] = "payment"
    destination: str
    asset: Asset
    amount: Amount
    source: Optional[str] = None

    def __post_init__(self):
        if self.amount.is_zero():
            raise ValidationError("payment amount must be > 0")


@dataclass(frozen=True)
class CreateConversionOffer(Operation):
    """New sell offer: sell `amount` of `selling` for `buying` at `price` (buying per selling)."""

    kind: ClassVar[str] = "manage_sell_offer"
    selling: Asset
    buying: Asset
    amount: Amount
    price: Price
    source: Optional[str] = None

    def __post_init__(self):
        if self.selling == self.buying:
            raise ValidationError(f"offer sells and buys the same asset {self.selling}")
        if self.amount.is_zero():
            raise ValidationError("offer amount must be > 0")


@dataclass(frozen=True)
class MergeAccount(Operation):
    """Destroy the source account, moving its native balance to `destination`."""

    kind: ClassVar[str] = "account_merge"
    destination: str
    source: Optional[str] = None


__all__ = [
    "Operation",
    "CreateAccount",
    "ChangeTrust",
    "SetSignerOptions",
    "Payment",
    "CreateConversionOffer",
    "MergeAccount",
]
