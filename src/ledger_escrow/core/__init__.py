"""
Ledger Escrow Core
==================

Unified exports for the fixed-point primitives, ledger datatypes, operation
variants and transaction assembly used by the builders.
All amounts live on the 7-digit stroop grid; prices on a 15-digit grid.
"""

# NOTE:
#   The `core` package is free of network I/O. Builders in the parent package
#   combine these primitives with a ledger client snapshot.

from .constants import (
    AMOUNT_DECIMALS,
    STROOPS_PER_UNIT,
    PRICE_DECIMALS,
    BASE_FEE_STROOPS,
    BASE_RESERVE,
    ESCROW_MARGIN_RESERVE,
    MAX_OPERATIONS,
    MAX_THRESHOLD,
)

from .amounts import (
    Amount,
    Price,
    ConversionRate,
    to_fraction,
)

from .datatypes import (
    Asset,
    TrustLine,
    Thresholds,
    AccountSnapshot,
    EscrowAccount,
    public_key_of,
)

from .operations import (
    Operation,
    CreateAccount,
    ChangeTrust,
    SetSignerOptions,
    Payment,
    CreateConversionOffer,
    MergeAccount,
)

from .transaction import (
    Signature,
    Transaction,
    TransactionDraft,
    validate_ordering,
)

from .exc import (
    LedgerEscrowError,
    ValidationError,
    AmountDomainError,
    InvariantViolation,
    InsufficientReserveError,
    NotFoundError,
    NetworkRejectionError,
    SequenceConflictError,
    AuthorizationError,
)

__all__ = [
    # constants
    "AMOUNT_DECIMALS",
    "STROOPS_PER_UNIT",
    "PRICE_DECIMALS",
    "BASE_FEE_STROOPS",
    "BASE_RESERVE",
    "ESCROW_MARGIN_RESERVE",
    "MAX_OPERATIONS",
    "MAX_THRESHOLD",
    # amounts
    "Amount",
    "Price",
    "ConversionRate",
    "to_fraction",
    # datatypes
    "Asset",
    "TrustLine",
    "Thresholds",
    "AccountSnapshot",
    "EscrowAccount",
    "public_key_of",
    # operations
    "Operation",
    "CreateAccount",
    "ChangeTrust",
    "SetSignerOptions",
    "Payment",
    "CreateConversionOffer",
    "MergeAccount",
    # transactions
    "Signature",
    "Transaction",
    "TransactionDraft",
    "validate_ordering",
    # exceptions
    "LedgerEscrowError",
    "ValidationError",
    "AmountDomainError",
    "InvariantViolation",
    "InsufficientReserveError",
    "NotFoundError",
    "NetworkRejectionError",
    "SequenceConflictError",
    "AuthorizationError",
]
