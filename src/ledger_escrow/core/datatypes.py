"""
Core datatypes describing ledger state, aligned with the ledger's account model.

These datatypes are intentionally minimal and immutable so that builders can
stay deterministic and testable given a snapshot.

Notes:
- Amounts use Amount (integer stroops). Signers include the master key with
  its master weight, the way the ledger reports them.
- An EscrowAccount is an account whose master weight is 0 and whose three
  thresholds equal its signer count (unanimous weight-1 multisig).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from stellar_sdk import Keypair

from .amounts import Amount
from .constants import MAX_THRESHOLD
from .exc import ValidationError

_ASSET_CODE = re.compile(r"^[A-Za-z0-9]{1,12}$")


# ---------------------------------------------------------------------------
# Asset
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Asset:
    """Native currency (code and issuer both None) or an issued (code, issuer) pair."""

    code: Optional[str] = None
    issuer: Optional[str] = None

    def __post_init__(self):
        if self.code is None and self.issuer is None:
            return
        if self.code is None or self.issuer is None:
            raise ValidationError("issued asset requires both code and issuer")
        if not _ASSET_CODE.match(self.code):
            raise ValidationError(f"invalid asset code {self.code!r}")

    @staticmethod
    def native() -> "Asset":
        return Asset()

    def is_native(self) -> bool:
        return self.code is None

    def __str__(self) -> str:
        return "native" if self.is_native() else f"{self.code}:{self.issuer}"


# ---------------------------------------------------------------------------
# Account state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrustLine:
    """Authorisation to hold a non-native asset, with its current balance and limit."""

    asset: Asset
    balance: Amount
    limit: Amount

    def is_removable(self) -> bool:
        return self.balance.is_zero()


@dataclass(frozen=True)
class Thresholds:
    master_weight: int = 1
    low: int = 0
    med: int = 0
    high: int = 0

    def __post_init__(self):
        for name in ("master_weight", "low", "med", "high"):
            v = getattr(self, name)
            if v < 0 or v > MAX_THRESHOLD:
                raise ValidationError(f"{name} must be within 0..{MAX_THRESHOLD}, got {v}")

    def level(self, name: str) -> int:
        """Return the threshold for an operation class ("low", "med" or "high")."""
        if name not in ("low", "med", "high"):
            raise ValidationError(f"unknown threshold level {name!r}")
        return getattr(self, name)


@dataclass(frozen=True)
class AccountSnapshot:
    """Point-in-time view of an account as loaded from the ledger.

    Fields:
    - account_id: public key of the account.
    - sequence: current sequence number; the next transaction uses sequence + 1.
    - native_balance: native currency balance.
    - trust_lines: non-native balances in ledger order.
    - signers: (public key, weight) pairs, master key included.
    - thresholds: master weight and low/med/high thresholds.
    - num_subentries: trust lines + offers + extra signers + data entries.
    """

    account_id: str
    sequence: int
    native_balance: Amount = field(default_factory=Amount.zero)
    trust_lines: Tuple[TrustLine, ...] = ()
    signers: Tuple[Tuple[str, int], ...] = ()
    thresholds: Thresholds = field(default_factory=Thresholds)
    num_subentries: int = 0

    def next_sequence(self) -> int:
        return self.sequence + 1

    def trust_line(self, asset: Asset) -> Optional[TrustLine]:
        for line in self.trust_lines:
            if line.asset == asset:
                return line
        return None

    def trusts(self, asset: Asset) -> bool:
        return asset.is_native() or self.trust_line(asset) is not None

    def balance_of(self, asset: Asset) -> Amount:
        if asset.is_native():
            return self.native_balance
        line = self.trust_line(asset)
        return line.balance if line is not None else Amount.zero()

    def signer_weights(self) -> Dict[str, int]:
        weights = {key: w for key, w in self.signers}
        # The master key always counts, even when the ledger omits it.
        weights.setdefault(self.account_id, self.thresholds.master_weight)
        return weights


# ---------------------------------------------------------------------------
# Escrow account
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EscrowAccount:
    """A jointly-controlled account requiring every registered signer to co-sign."""

    keypair: Keypair
    signer_keys: Tuple[str, ...]
    trust_assets: Tuple[Asset, ...] = ()

    @property
    def account_id(self) -> str:
        return self.keypair.public_key

    @property
    def thresholds(self) -> Thresholds:
        k = len(self.signer_keys)
        return Thresholds(master_weight=0, low=k, med=k, high=k)

    @classmethod
    def from_snapshot(cls, keypair: Keypair, snapshot: AccountSnapshot) -> "EscrowAccount":
        keys = tuple(k for k, w in snapshot.signers if k != snapshot.account_id and w > 0)
        assets = tuple(line.asset for line in snapshot.trust_lines)
        return cls(keypair=keypair, signer_keys=keys, trust_assets=assets)


def public_key_of(party) -> str:
    """Accept a Keypair, an EscrowAccount or a public key string; return the public key."""
    if isinstance(party, Keypair):
        return party.public_key
    if isinstance(party, EscrowAccount):
        return party.account_id
    if isinstance(party, str):
        return party
    raise ValidationError(f"cannot derive a public key from {party!r}")


def public_keys_of(parties: Iterable) -> Tuple[str, ...]:
    return tuple(public_key_of(p) for p in parties)


__all__ = [
    "Asset",
    "TrustLine",
    "Thresholds",
    "AccountSnapshot",
    "EscrowAccount",
    "public_key_of",
    "public_keys_of",
]
