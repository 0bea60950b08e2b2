"""
Transactions and the immutable draft that assembles them.

A Transaction is an ordered, atomic list of operations bound to one source
account and sequence number. `TransactionDraft` accumulates operations
without mutation and checks ordering invariants once, in `build()`:

- at most MAX_OPERATIONS operations, at least one;
- an account merge is the last operation touching the merged account;
- every trust-line removal for a merged account precedes its merge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Tuple

from .constants import BASE_FEE_STROOPS, MAX_OPERATIONS
from .exc import InvariantViolation, ValidationError
from .operations import ChangeTrust, MergeAccount, Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signature:
    """A decorated signature: the signer's 4-byte key hint plus the ed25519 signature."""

    hint: bytes
    signature: bytes


@dataclass(frozen=True)
class Transaction:
    """Unsigned or partially signed transaction (immutable; signing returns a copy)."""

    source: str
    sequence: int
    operations: Tuple[Operation, ...]
    fee: int
    time_bounds: Tuple[int, int] = (0, 0)
    signatures: Tuple[Signature, ...] = ()

    @property
    def operation_count(self) -> int:
        return len(self.operations)

    def source_accounts(self) -> List[str]:
        """Distinct effective source accounts, in first-use order."""
        seen: List[str] = []
        for op in self.operations:
            acct = op.effective_source(self.source)
            if acct not in seen:
                seen.append(acct)
        return seen

    def with_signature(self, sig: Signature) -> "Transaction":
        if sig in self.signatures:
            return self
        return replace(self, signatures=self.signatures + (sig,))


def validate_ordering(source: str, operations: Tuple[Operation, ...]) -> None:
    """Raise if the operation list breaks count or merge-ordering invariants."""
    if not operations:
        raise ValidationError("transaction needs at least one operation")
    if len(operations) > MAX_OPERATIONS:
        raise ValidationError(f"transaction has {len(operations)} operations (max {MAX_OPERATIONS})")

    for i, op in enumerate(operations):
        if not isinstance(op, MergeAccount):
            continue
        merged = op.effective_source(source)
        if op.destination == merged:
            raise InvariantViolation(f"account {merged} cannot merge into itself")
        for later in operations[i + 1:]:
            if isinstance(later, ChangeTrust) and later.effective_source(source) == merged:
                raise InvariantViolation(f"trust line {later.asset} changed after merging {merged}")
            if later.touches(merged, source):
                raise InvariantViolation(
                    f"{later.kind} references {merged} after it was merged"
                )


@dataclass(frozen=True)
class TransactionDraft:
    """Immutable accumulator of operations for one source account."""

    source: str
    sequence: int
    base_fee: int = BASE_FEE_STROOPS
    time_bounds: Tuple[int, int] = (0, 0)
    operations: Tuple[Operation, ...] = field(default=())

    def __post_init__(self):
        if self.base_fee <= 0:
            raise ValidationError(f"base fee must be > 0, got {self.base_fee}")
        if self.sequence <= 0:
            raise ValidationError(f"sequence must be > 0, got {self.sequence}")

    def append(self, *ops: Operation) -> "TransactionDraft":
        for op in ops:
            if not isinstance(op, Operation):
                raise ValidationError(f"not an operation: {op!r}")
        return replace(self, operations=self.operations + tuple(ops))

    def extend(self, ops: Iterable[Operation]) -> "TransactionDraft":
        return self.append(*tuple(ops))

    def fee_for(self, count: int) -> int:
        return self.base_fee * count

    def build(self) -> Transaction:
        validate_ordering(self.source, self.operations)
        tx = Transaction(
            source=self.source,
            sequence=self.sequence,
            operations=self.operations,
            fee=self.fee_for(len(self.operations)),
            time_bounds=self.time_bounds,
        )
        logger.debug("built transaction source=%s seq=%d ops=%d fee=%d",
                     tx.source, tx.sequence, tx.operation_count, tx.fee)
        return tx


__all__ = [
    "Signature",
    "Transaction",
    "TransactionDraft",
    "validate_ordering",
]
