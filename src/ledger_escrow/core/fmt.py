"""
Formatting helpers for logs and printed output (non-core).

Nothing here feeds back into transaction assembly.
"""

from __future__ import annotations

from typing import List

from .operations import (
    ChangeTrust,
    CreateAccount,
    CreateConversionOffer,
    MergeAccount,
    Operation,
    Payment,
    SetSignerOptions,
)
from .transaction import Transaction


def short_key(public_key: str, width: int = 6) -> str:
    """Abbreviate a public key for display: 'GABCDE…WXYZ'."""
    if len(public_key) <= 2 * width:
        return public_key
    return f"{public_key[:width]}…{public_key[-4:]}"


def describe_operation(op: Operation, tx_source: str) -> str:
    """One-line human-readable rendering of an operation."""
    src = short_key(op.effective_source(tx_source))
    if isinstance(op, CreateAccount):
        return f"[{src}] create_account {short_key(op.destination)} balance={op.starting_balance}"
    if isinstance(op, ChangeTrust):
        limit = "max" if op.limit is None else str(op.limit)
        return f"[{src}] change_trust {op.asset.code} limit={limit}"
    if isinstance(op, SetSignerOptions):
        parts = []
        if op.signer_key is not None:
            parts.append(f"signer={short_key(op.signer_key)}:{op.signer_weight}")
        if op.master_weight is not None:
            parts.append(f"master={op.master_weight}")
        if op.changes_thresholds():
            parts.append(f"thresholds={op.low_threshold}/{op.med_threshold}/{op.high_threshold}")
        return f"[{src}] set_options {' '.join(parts)}"
    if isinstance(op, Payment):
        code = "native" if op.asset.is_native() else op.asset.code
        return f"[{src}] payment {op.amount} {code} -> {short_key(op.destination)}"
    if isinstance(op, CreateConversionOffer):
        return (
            f"[{src}] sell {op.amount} {op.selling.code or 'native'} "
            f"for {op.buying.code or 'native'} @ {op.price}"
        )
    if isinstance(op, MergeAccount):
        return f"[{src}] account_merge -> {short_key(op.destination)}"
    return f"[{src}] {op.kind}"


def describe_transaction(tx: Transaction) -> List[str]:
    lines = [
        f"source={short_key(tx.source)} seq={tx.sequence} fee={tx.fee} "
        f"ops={tx.operation_count} signatures={len(tx.signatures)}"
    ]
    lines.extend(f"  {i:>2}. {describe_operation(op, tx.source)}" for i, op in enumerate(tx.operations, 1))
    return lines


__all__ = [
    "short_key",
    "describe_operation",
    "describe_transaction",
]
