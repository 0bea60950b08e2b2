"""Network configuration threaded explicitly through every builder and client call."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional, Tuple

from stellar_sdk import Network

from .core.amounts import parse_decimal
from .core.constants import BASE_FEE_STROOPS, BASE_RESERVE
from .core.datatypes import AccountSnapshot
from .core.exc import ValidationError
from .core.transaction import TransactionDraft

TESTNET_HORIZON_URL = "https://horizon-testnet.stellar.org"
TESTNET_FRIENDBOT_URL = "https://friendbot.stellar.org"
PUBLIC_HORIZON_URL = "https://horizon.stellar.org"

ENV_PREFIX = "LEDGER_ESCROW_"


@dataclass(frozen=True)
class NetworkConfig:
    """Which network to talk to and its fee/reserve parameters.

    Fields:
    - horizon_url: base URL of the Horizon API server.
    - network_passphrase: passphrase mixed into every transaction hash.
    - friendbot_url: test faucet; None on networks without one.
    - base_fee: fee per operation, in stroops.
    - base_reserve: reserve per ledger entry, in native units.
    - tx_timeout: seconds a built transaction stays valid (0 = unbounded).
    - request_timeout: HTTP timeout for client calls, in seconds.
    """

    horizon_url: str
    network_passphrase: str
    friendbot_url: Optional[str] = None
    base_fee: int = BASE_FEE_STROOPS
    base_reserve: Decimal = BASE_RESERVE
    tx_timeout: int = 0
    request_timeout: int = 60

    def __post_init__(self):
        if not self.horizon_url:
            raise ValidationError("horizon_url is required")
        if not self.network_passphrase:
            raise ValidationError("network_passphrase is required")
        if self.base_fee <= 0:
            raise ValidationError(f"base_fee must be > 0, got {self.base_fee}")
        if self.base_reserve < 0:
            raise ValidationError(f"base_reserve must be >= 0, got {self.base_reserve}")
        if self.tx_timeout < 0:
            raise ValidationError(f"tx_timeout must be >= 0, got {self.tx_timeout}")

    def time_bounds(self, now: Optional[int] = None) -> Tuple[int, int]:
        if self.tx_timeout == 0:
            return (0, 0)
        now = int(time.time()) if now is None else now
        return (0, now + self.tx_timeout)

    def draft(self, snapshot: AccountSnapshot) -> TransactionDraft:
        """Empty draft for the next transaction from `snapshot`'s account."""
        return TransactionDraft(
            source=snapshot.account_id,
            sequence=snapshot.next_sequence(),
            base_fee=self.base_fee,
            time_bounds=self.time_bounds(),
        )

    @classmethod
    def testnet(cls, **overrides) -> "NetworkConfig":
        params = dict(
            horizon_url=TESTNET_HORIZON_URL,
            network_passphrase=Network.TESTNET_NETWORK_PASSPHRASE,
            friendbot_url=TESTNET_FRIENDBOT_URL,
        )
        params.update(overrides)
        return cls(**params)

    @classmethod
    def public(cls, **overrides) -> "NetworkConfig":
        params = dict(
            horizon_url=PUBLIC_HORIZON_URL,
            network_passphrase=Network.PUBLIC_NETWORK_PASSPHRASE,
        )
        params.update(overrides)
        return cls(**params)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NetworkConfig":
        """Build a config from LEDGER_ESCROW_* variables on top of a network preset.

        LEDGER_ESCROW_NETWORK selects the preset ("testnet" by default, or "public").
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            v = env.get(ENV_PREFIX + name)
            return v if v not in (None, "") else None

        network = (get("NETWORK") or "testnet").lower()
        if network not in ("testnet", "public"):
            raise ValidationError(f"{ENV_PREFIX}NETWORK must be 'testnet' or 'public', got {network!r}")

        overrides = {}
        if get("HORIZON_URL"):
            overrides["horizon_url"] = get("HORIZON_URL")
        if get("NETWORK_PASSPHRASE"):
            overrides["network_passphrase"] = get("NETWORK_PASSPHRASE")
        if get("FRIENDBOT_URL"):
            overrides["friendbot_url"] = get("FRIENDBOT_URL")
        if get("BASE_FEE"):
            overrides["base_fee"] = int(get("BASE_FEE"))
        if get("BASE_RESERVE"):
            overrides["base_reserve"] = parse_decimal(get("BASE_RESERVE"))
        if get("TX_TIMEOUT"):
            overrides["tx_timeout"] = int(get("TX_TIMEOUT"))
        if get("REQUEST_TIMEOUT"):
            overrides["request_timeout"] = int(get("REQUEST_TIMEOUT"))

        preset = cls.testnet if network == "testnet" else cls.public
        return preset(**overrides)


__all__ = ["NetworkConfig", "ENV_PREFIX"]
