"""
Core exception types for ledger_escrow.

These are dependency-free and may be imported by all modules. Builders never
catch them; a rejected transaction has zero effect so errors only need to say
"rejected, and why".
"""

__all__ = [
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


class LedgerEscrowError(Exception):
    """Base class for every error raised by this package."""
    pass


class ValidationError(LedgerEscrowError, ValueError):
    """Raised for malformed inputs: bad amounts, mismatched assets, empty signer lists."""
    pass


class AmountDomainError(ValidationError):
    """Raised when an amount or price falls outside its non-negative fixed-point domain."""
    pass


class InvariantViolation(LedgerEscrowError):
    """Raised when an assembled operation list would break an ordering invariant."""
    pass


class InsufficientReserveError(LedgerEscrowError):
    """Raised when an account cannot hold the minimum balance for its entries.

    Attributes
    ----------
    required : Any
        Minimum balance the account needs.
    available : Any
        Balance the account would hold.
    transaction_code : str | None
        Ledger result code, when the ledger reported the shortfall.
    operation_codes : list[str]
        Per-operation result codes, in operation order.
    """

    def __init__(
        self,
        required=None,
        available=None,
        *,
        account=None,
        message=None,
        transaction_code=None,
        operation_codes=None,
    ):
        if message is None:
            who = f" for {account}" if account else ""
            message = f"Balance {available} below required reserve {required}{who}"
        super().__init__(message)
        self.required = required
        self.available = available
        self.account = account
        self.transaction_code = transaction_code
        self.operation_codes = list(operation_codes or [])


class NotFoundError(LedgerEscrowError):
    """Raised when the ledger has no record of the requested account."""

    def __init__(self, account_id):
        super().__init__(f"Account not found: {account_id}")
        self.account_id = account_id


class NetworkRejectionError(LedgerEscrowError):
    """Raised when the ledger rejects a submitted transaction.

    Attributes
    ----------
    transaction_code : str | None
        Transaction-level result code (e.g. ``tx_failed``).
    operation_codes : list[str]
        Per-operation result codes, in operation order.
    """

    def __init__(self, message, *, transaction_code=None, operation_codes=None):
        super().__init__(message)
        self.transaction_code = transaction_code
        self.operation_codes = list(operation_codes or [])


class SequenceConflictError(NetworkRejectionError):
    """Raised when a transaction was built from a stale account snapshot."""
    pass


class AuthorizationError(NetworkRejectionError):
    """Raised when collected signatures do not meet an account threshold.

    ``accounts`` maps each under-signed account to ``(signed_weight, required)``.
    """

    def __init__(self, message, *, accounts=None, transaction_code=None, operation_codes=None):
        super().__init__(message, transaction_code=transaction_code, operation_codes=operation_codes)
        self.accounts = dict(accounts or {})
