"""
Ledger clients: the collaborator that loads account snapshots, submits
transactions and signs them.

- HorizonClient: HTTP client for a Horizon server over a requests.Session.
  Blocking calls run in a worker thread so builders can await them.
- OfflineLedgerClient: fixed snapshots, no network; for offline assembly and
  co-signing from a known state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import requests
from stellar_sdk import Keypair

from . import envelope
from .config import NetworkConfig
from .core.amounts import Amount
from .core.datatypes import AccountSnapshot, Asset, Thresholds, TrustLine
from .core.exc import (
    AuthorizationError,
    InsufficientReserveError,
    LedgerEscrowError,
    NetworkRejectionError,
    NotFoundError,
    SequenceConflictError,
)
from .core.transaction import Transaction

logger = logging.getLogger(__name__)

_SEQUENCE_CODES = {"tx_bad_seq"}
_AUTH_CODES = {"tx_bad_auth", "tx_bad_auth_extra", "op_bad_auth"}
_RESERVE_CODES = {"op_low_reserve", "tx_insufficient_balance"}


@dataclass(frozen=True)
class SubmitResult:
    hash: str
    ledger: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class LedgerClient(Protocol):
    async def load_account(self, public_key: str) -> AccountSnapshot: ...

    async def submit_transaction(self, tx: Transaction) -> SubmitResult: ...

    def sign(self, tx: Transaction, keypair: Keypair) -> Transaction: ...


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

def parse_account(payload: Mapping[str, Any]) -> AccountSnapshot:
    """Convert a Horizon account record into an AccountSnapshot."""
    account_id = payload["account_id"]
    native = Amount.zero()
    lines: List[TrustLine] = []
    for b in payload.get("balances", []):
        kind = b.get("asset_type")
        if kind == "native":
            native = Amount.of(b["balance"])
        elif kind in ("credit_alphanum4", "credit_alphanum12"):
            lines.append(
                TrustLine(
                    asset=Asset(b["asset_code"], b["asset_issuer"]),
                    balance=Amount.of(b["balance"]),
                    limit=Amount.of(b["limit"]),
                )
            )
        # liquidity pool shares are not escrow assets; skip them
    t = payload.get("thresholds", {})
    signers = tuple(
        (s["key"], int(s["weight"]))
        for s in payload.get("signers", [])
        if s.get("type", "ed25519_public_key") == "ed25519_public_key"
    )
    master = dict(signers).get(account_id, 1)
    return AccountSnapshot(
        account_id=account_id,
        sequence=int(payload["sequence"]),
        native_balance=native,
        trust_lines=tuple(lines),
        signers=signers,
        thresholds=Thresholds(
            master_weight=master,
            low=int(t.get("low_threshold", 0)),
            med=int(t.get("med_threshold", 0)),
            high=int(t.get("high_threshold", 0)),
        ),
        num_subentries=int(payload.get("subentry_count", 0)),
    )


def rejection_error(result_codes: Mapping[str, Any], detail: str = "") -> LedgerEscrowError:
    """Map Horizon result codes onto the matching error type.

    Sequence and authorisation failures take precedence over reserve
    failures; anything unrecognised is a plain NetworkRejectionError.
    """
    tx_code = result_codes.get("transaction")
    op_codes = list(result_codes.get("operations") or [])
    codes = {tx_code, *op_codes}
    msg = f"transaction rejected: {tx_code} {op_codes}"
    if detail:
        msg = f"{msg} ({detail})"
    if codes & _SEQUENCE_CODES:
        return SequenceConflictError(msg, transaction_code=tx_code, operation_codes=op_codes)
    if codes & _AUTH_CODES:
        return AuthorizationError(msg, transaction_code=tx_code, operation_codes=op_codes)
    if codes & _RESERVE_CODES:
        return InsufficientReserveError(message=msg, transaction_code=tx_code, operation_codes=op_codes)
    return NetworkRejectionError(msg, transaction_code=tx_code, operation_codes=op_codes)


# ---------------------------------------------------------------------------
# Horizon
# ---------------------------------------------------------------------------

class HorizonClient:
    """LedgerClient backed by a Horizon HTTP API."""

    def __init__(self, config: NetworkConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.config.horizon_url.rstrip('/')}/{path.lstrip('/')}"

    def _get_account(self, public_key: str) -> Dict[str, Any]:
        r = self.session.get(self._url(f"accounts/{public_key}"), timeout=self.config.request_timeout)
        if r.status_code == 404:
            raise NotFoundError(public_key)
        r.raise_for_status()
        return r.json()

    def _post_transaction(self, xdr: str) -> Dict[str, Any]:
        r = self.session.post(self._url("transactions"), data={"tx": xdr}, timeout=self.config.request_timeout)
        if r.status_code == 400:
            out = r.json()
            codes = (out.get("extras") or {}).get("result_codes") or {}
            raise rejection_error(codes, detail=str(out.get("title", "")))
        r.raise_for_status()
        return r.json()

    def _fund(self, public_key: str) -> Dict[str, Any]:
        if not self.config.friendbot_url:
            raise NetworkRejectionError("network has no faucet configured")
        r = self.session.get(self.config.friendbot_url, params={"addr": public_key}, timeout=self.config.request_timeout)
        r.raise_for_status()
        return r.json()

    async def load_account(self, public_key: str) -> AccountSnapshot:
        logger.debug("load_account %s", public_key)
        payload = await asyncio.to_thread(self._get_account, public_key)
        return parse_account(payload)

    async def submit_transaction(self, tx: Transaction) -> SubmitResult:
        xdr = envelope.encode(tx, self.config)
        logger.debug("submit source=%s seq=%d ops=%d sigs=%d", tx.source, tx.sequence, tx.operation_count, len(tx.signatures))
        out = await asyncio.to_thread(self._post_transaction, xdr)
        logger.info("accepted %s (ledger %s)", out.get("hash"), out.get("ledger"))
        return SubmitResult(hash=out["hash"], ledger=out.get("ledger"), raw=out)

    async def fund(self, public_key: str) -> Dict[str, Any]:
        """Ask the test faucet to create and fund `public_key`."""
        return await asyncio.to_thread(self._fund, public_key)

    def sign(self, tx: Transaction, keypair: Keypair) -> Transaction:
        return envelope.sign(tx, keypair, self.config)


# ---------------------------------------------------------------------------
# Offline
# ---------------------------------------------------------------------------

class OfflineLedgerClient:
    """LedgerClient over fixed snapshots; submission is refused."""

    def __init__(self, config: NetworkConfig, snapshots: Iterable[AccountSnapshot] = ()) -> None:
        self.config = config
        self.snapshots: Dict[str, AccountSnapshot] = {s.account_id: s for s in snapshots}

    def put(self, snapshot: AccountSnapshot) -> None:
        self.snapshots[snapshot.account_id] = snapshot

    async def load_account(self, public_key: str) -> AccountSnapshot:
        try:
            return self.snapshots[public_key]
        except KeyError:
            raise NotFoundError(public_key) from None

    async def submit_transaction(self, tx: Transaction) -> SubmitResult:
        raise NetworkRejectionError("offline client cannot submit transactions")

    def sign(self, tx: Transaction, keypair: Keypair) -> Transaction:
        return envelope.sign(tx, keypair, self.config)


__all__ = [
    "SubmitResult",
    "LedgerClient",
    "parse_account",
    "rejection_error",
    "HorizonClient",
    "OfflineLedgerClient",
]
