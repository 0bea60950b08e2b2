"""
Ledger Escrow Core Constants
============================

Network-wide constants for the native currency and the order book. Amounts
live on a 7-digit grid (stroops); offer prices on a 15-digit grid.
"""

# NOTE: These are defaults only. Builders take the live values from NetworkConfig.

from decimal import Decimal

# ---------------------------------------------------------------------------
# Native currency grid
# ---------------------------------------------------------------------------

#: Number of fractional digits carried by every asset amount.
AMOUNT_DECIMALS: int = 7

#: Integer bridge: number of stroops per 1 unit of any asset.
STROOPS_PER_UNIT: int = 10 ** AMOUNT_DECIMALS

#: Largest amount representable on the ledger (int64 stroops).
MAX_STROOPS: int = 2 ** 63 - 1

#: Number of fractional digits carried by offer prices.
PRICE_DECIMALS: int = 15


# ---------------------------------------------------------------------------
# Fees and reserves
# ---------------------------------------------------------------------------

#: Fee per operation, in stroops (0.00001 native).
BASE_FEE_STROOPS: int = 100

#: Reserve per ledger entry, in native units.
BASE_RESERVE: Decimal = Decimal("0.5")

#: Extra native balance kept on top of an escrow's reserve.
ESCROW_MARGIN_RESERVE: Decimal = Decimal("0.5")

#: Largest number of operations allowed in one transaction.
MAX_OPERATIONS: int = 100

#: Largest signer weight / threshold value.
MAX_THRESHOLD: int = 255


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

__all__ = [
    "AMOUNT_DECIMALS",
    "STROOPS_PER_UNIT",
    "MAX_STROOPS",
    "PRICE_DECIMALS",
    "BASE_FEE_STROOPS",
    "BASE_RESERVE",
    "ESCROW_MARGIN_RESERVE",
    "MAX_OPERATIONS",
    "MAX_THRESHOLD",
]
