from __future__ import annotations

import hashlib
from decimal import Decimal
from typing import Callable, Dict, Iterable

import pytest
from stellar_sdk import Keypair

from ledger_escrow.config import NetworkConfig
from ledger_escrow.client import OfflineLedgerClient
from ledger_escrow.core import AccountSnapshot, Amount, Asset, Thresholds, TrustLine


MAX_LIMIT = Amount.of("922337203685.4775807")


# -----------------------------
# Test helpers (pure functions)
# -----------------------------


def _key(name: str) -> Keypair:
    """Deterministic keypair derived from a name."""
    return Keypair.from_raw_ed25519_seed(hashlib.sha256(name.encode()).digest())


def _escrow_snapshot(
    escrow_key: Keypair,
    signers: Iterable[Keypair],
    holdings: Dict[Asset, Decimal],
    *,
    sequence: int = 200,
    native: str = "5.5",
) -> AccountSnapshot:
    """Snapshot of a configured escrow: master weight 0, thresholds = signer count."""
    signers = list(signers)
    k = len(signers)
    return AccountSnapshot(
        account_id=escrow_key.public_key,
        sequence=sequence,
        native_balance=Amount.of(native),
        trust_lines=tuple(TrustLine(a, Amount.of(v), MAX_LIMIT) for a, v in holdings.items()),
        signers=tuple((s.public_key, 1) for s in signers) + ((escrow_key.public_key, 0),),
        thresholds=Thresholds(master_weight=0, low=k, med=k, high=k),
    )


class RecordingClient(OfflineLedgerClient):
    """Offline client that remembers which accounts were loaded."""

    def __init__(self, config, snapshots=()):
        super().__init__(config, snapshots)
        self.loaded = []

    async def load_account(self, public_key):
        self.loaded.append(public_key)
        return await super().load_account(public_key)


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture()
def config() -> NetworkConfig:
    return NetworkConfig.testnet()


@pytest.fixture()
def parties() -> Dict[str, Keypair]:
    return {n: _key(n) for n in ("alice", "bob", "mto1", "mto2", "escrow")}


@pytest.fixture()
def assets() -> Dict[str, Asset]:
    return {c: Asset(c, _key(f"{c}-issuer").public_key) for c in ("OLEV", "VTHB", "VGBP")}


@pytest.fixture()
def client_factory(config) -> Callable[..., RecordingClient]:
    def make(*snapshots: AccountSnapshot) -> RecordingClient:
        return RecordingClient(config, snapshots)
    return make


@pytest.fixture()
def make_escrow_snapshot() -> Callable[..., AccountSnapshot]:
    return _escrow_snapshot
