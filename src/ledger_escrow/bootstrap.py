"""
Bootstrap helpers for test networks: faucet funding, asset issuance, plain
account creation and single payments.

Each builder returns an unsigned Transaction plus any keypairs it generated;
callers sign with every listed key and submit.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from stellar_sdk import Keypair

from .config import NetworkConfig
from .core.amounts import Amount, Numeric
from .core.datatypes import Asset, public_key_of
from .core.exc import ValidationError
from .core.operations import ChangeTrust, CreateAccount, Payment
from .core.transaction import Transaction

logger = logging.getLogger(__name__)

#: Native balance given to a fresh asset distributor account.
DISTRIBUTOR_STARTING_BALANCE = Decimal("9900")


async def fund_account(client, keypair: Optional[Keypair] = None) -> Keypair:
    """Create an account through the test faucet; `client` must expose `fund`."""
    keypair = keypair or Keypair.random()
    await client.fund(keypair.public_key)
    logger.info("funded %s from faucet", keypair.public_key)
    return keypair


async def create_account(
    client,
    config: NetworkConfig,
    parent,
    starting_balance: Numeric,
    assets: Iterable[Asset] = (),
    *,
    new_keypair: Optional[Keypair] = None,
) -> Tuple[Keypair, Transaction]:
    """New account funded by `parent`, trusting each of `assets`.

    Signers: parent and the new keypair.
    """
    parent_id = public_key_of(parent)
    keypair = new_keypair or Keypair.random()
    assets = tuple(assets)
    if any(a.is_native() for a in assets):
        raise ValidationError("native asset needs no trust line")

    snapshot = await client.load_account(parent_id)
    draft = config.draft(snapshot).append(
        CreateAccount(destination=keypair.public_key, starting_balance=Amount.of(starting_balance))
    )
    draft = draft.extend(ChangeTrust(asset=a, source=keypair.public_key) for a in assets)
    return keypair, draft.build()


async def issue_asset(
    client,
    config: NetworkConfig,
    issuer,
    code: str,
    amount: Numeric,
    *,
    starting_balance: Numeric = DISTRIBUTOR_STARTING_BALANCE,
    distributor: Optional[Keypair] = None,
) -> Tuple[Asset, Keypair, Transaction]:
    """Issue `amount` of `code` from `issuer` into a new distributor account.

    Signers: issuer and the distributor.
    """
    issuer_id = public_key_of(issuer)
    asset = Asset(code, issuer_id)
    distributor = distributor or Keypair.random()

    snapshot = await client.load_account(issuer_id)
    tx = (
        config.draft(snapshot)
        .append(CreateAccount(destination=distributor.public_key, starting_balance=Amount.of(starting_balance)))
        .append(ChangeTrust(asset=asset, source=distributor.public_key))
        .append(Payment(destination=distributor.public_key, asset=asset, amount=Amount.of(amount)))
        .build()
    )
    logger.info("issuing %s %s to distributor %s", amount, code, distributor.public_key)
    return asset, distributor, tx


async def payment(client, config: NetworkConfig, from_party, to_party, asset: Asset, amount: Numeric) -> Transaction:
    """Single payment sourced from `from_party`. Signer: from_party."""
    source = public_key_of(from_party)
    snapshot = await client.load_account(source)
    return (
        config.draft(snapshot)
        .append(Payment(destination=public_key_of(to_party), asset=asset, amount=Amount.of(amount)))
        .build()
    )


__all__ = [
    "DISTRIBUTOR_STARTING_BALANCE",
    "fund_account",
    "create_account",
    "issue_asset",
    "payment",
]
