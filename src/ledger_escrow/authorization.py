"""
Pre-submission checks: signature weight against account thresholds, and
sequence freshness.

Each source account of a transaction must collect signed weight at least
equal to the highest threshold its operations need. For a unanimous
weight-1 escrow that means every registered signer; for weighted signer
sets it is any subset reaching the threshold.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Tuple

from .core.datatypes import AccountSnapshot
from .core.exc import AuthorizationError, SequenceConflictError
from .core.operations import MergeAccount, Operation, SetSignerOptions
from .core.transaction import Transaction

_LEVELS = ("low", "med", "high")


def required_threshold(op: Operation) -> str:
    """Threshold level the ledger applies to an operation."""
    if isinstance(op, (SetSignerOptions, MergeAccount)):
        return "high"
    return "med"


def signing_weight(snapshot: AccountSnapshot, keys: Iterable[str]) -> int:
    weights = snapshot.signer_weights()
    return sum(weights.get(k, 0) for k in set(keys))


def required_levels(tx: Transaction) -> Dict[str, str]:
    """Map each source account to the highest threshold level its operations need."""
    levels: Dict[str, str] = {}
    for op in tx.operations:
        acct = op.effective_source(tx.source)
        need = required_threshold(op)
        if acct not in levels or _LEVELS.index(need) > _LEVELS.index(levels[acct]):
            levels[acct] = need
    # The transaction source also authorises the fee and sequence bump.
    levels.setdefault(tx.source, "low")
    return levels


def authorization_shortfall(
    tx: Transaction,
    snapshots: Mapping[str, AccountSnapshot],
    signed_keys: Iterable[str],
) -> Dict[str, Tuple[int, int]]:
    """Return {account: (signed_weight, required_weight)} for every under-signed account.

    Accounts without a snapshot do not exist yet (they are created by this
    transaction) and carry only their master key at weight 1.
    """
    keys = set(signed_keys)
    short: Dict[str, Tuple[int, int]] = {}
    for acct, level in required_levels(tx).items():
        snap = snapshots.get(acct)
        if snap is None:
            have = 1 if acct in keys else 0
            need = 1
        else:
            have = signing_weight(snap, keys)
            # A threshold of 0 still needs a signature of non-zero weight.
            need = max(snap.thresholds.level(level), 1)
        if have < need:
            short[acct] = (have, need)
    return short


def check_authorization(
    tx: Transaction,
    snapshots: Mapping[str, AccountSnapshot],
    signed_keys: Iterable[str],
) -> None:
    """Raise AuthorizationError unless every source account meets its threshold."""
    short = authorization_shortfall(tx, snapshots, signed_keys)
    if short:
        detail = ", ".join(f"{acct} {have}/{need}" for acct, (have, need) in short.items())
        raise AuthorizationError(f"signature weight below threshold: {detail}", accounts=short)


def check_sequence(tx: Transaction, snapshot: AccountSnapshot) -> None:
    """Raise SequenceConflictError if `tx` was not built from `snapshot`'s current sequence."""
    if snapshot.account_id != tx.source:
        raise SequenceConflictError(f"snapshot of {snapshot.account_id} does not describe source {tx.source}")
    if tx.sequence != snapshot.next_sequence():
        raise SequenceConflictError(
            f"transaction sequence {tx.sequence} is stale; account is at {snapshot.sequence}",
            transaction_code="tx_bad_seq",
        )


__all__ = [
    "required_threshold",
    "signing_weight",
    "required_levels",
    "authorization_shortfall",
    "check_authorization",
    "check_sequence",
]
