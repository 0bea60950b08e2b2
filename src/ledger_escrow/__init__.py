# Top-level API for ledger_escrow.
"""
Top-level API for ledger_escrow.

This module exposes the stable interface for assembling multi-party escrow
settlements on a ledger with trust lines, weighted multisig and an on-ledger
order book:
  - minimum_balance: reserve computation
  - build_conversion_pair: crossed offer pair at a given rate
  - create_escrow: create, lock and fund a unanimous-multisig escrow
  - create_contract: settle an escrow through two conversions atomically

Builders return unsigned Transactions; `envelope` signs and serialises them
and `client` talks to the ledger.
"""

from __future__ import annotations

from .config import NetworkConfig
from .reserve import minimum_balance, escrow_minimum_balance
from .conversion import build_conversion_pair
from .escrow import create_escrow, creation_signers
from .settlement import create_contract, settlement_amounts, settlement_signers

from .core import (
    Amount,
    Price,
    ConversionRate,
    Asset,
    AccountSnapshot,
    EscrowAccount,
    Transaction,
    TransactionDraft,
)

__all__ = [
    # configuration
    "NetworkConfig",
    # builders
    "minimum_balance",
    "escrow_minimum_balance",
    "build_conversion_pair",
    "create_escrow",
    "creation_signers",
    "create_contract",
    "settlement_amounts",
    "settlement_signers",
    # core types
    "Amount",
    "Price",
    "ConversionRate",
    "Asset",
    "AccountSnapshot",
    "EscrowAccount",
    "Transaction",
    "TransactionDraft",
]

# NOTE:
# Network I/O lives in `ledger_escrow.client` and serialisation in
# `ledger_escrow.envelope`; import them explicitly.
