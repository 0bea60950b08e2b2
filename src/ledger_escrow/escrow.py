"""
Escrow account creation: one atomic transaction that creates, configures and
funds a jointly-controlled account.

Operation order (transaction source = funding party):
  1. create_account      (source: fee party)      escrow with `starting_balance`
  2. change_trust × T    (source: escrow)          one per trust asset
  3. set_options × K     (source: escrow)          each signer at weight 1
  4. set_options         (source: escrow)          master 0, thresholds K/K/K
  5. payment             (source: funding party)   `amount` of `source_asset`
  6. payment             (source: fee party)       fee reimbursement, native

The fee party pays the escrow's reserve and refunds the funding party the
network fee, base_fee × (operation count + 1). Registered signers do not sign
here; the funding party, fee party and escrow key do.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Tuple

from stellar_sdk import Keypair

from .config import NetworkConfig
from .core.amounts import Amount, Numeric
from .core.constants import MAX_THRESHOLD
from .core.datatypes import Asset, EscrowAccount, public_key_of, public_keys_of
from .core.exc import InsufficientReserveError, ValidationError
from .core.operations import ChangeTrust, CreateAccount, Payment, SetSignerOptions
from .core.transaction import Transaction
from .reserve import escrow_minimum_balance

logger = logging.getLogger(__name__)


def _check_inputs(
    source_asset: Asset,
    amount: Amount,
    starting_balance: Amount,
    trust_assets: Tuple[Asset, ...],
    signer_keys: Tuple[str, ...],
    config: NetworkConfig,
) -> None:
    if not signer_keys:
        raise ValidationError("escrow needs at least one signer")
    if len(signer_keys) > MAX_THRESHOLD:
        raise ValidationError(f"escrow supports at most {MAX_THRESHOLD} signers, got {len(signer_keys)}")
    if len(set(signer_keys)) != len(signer_keys):
        raise ValidationError("duplicate signer keys")
    if any(a.is_native() for a in trust_assets):
        raise ValidationError("native asset needs no trust line")
    if len(set(trust_assets)) != len(trust_assets):
        raise ValidationError("duplicate trust assets")
    if not source_asset.is_native() and source_asset not in trust_assets:
        raise ValidationError(f"escrow must trust its funding asset {source_asset}")
    if amount.is_zero():
        raise ValidationError("escrow funding amount must be > 0")

    required = escrow_minimum_balance(len(trust_assets), len(signer_keys), base_reserve=config.base_reserve)
    if starting_balance < required:
        raise InsufficientReserveError(required, starting_balance, account="escrow")


def fee_reimbursement(config: NetworkConfig, operation_count: int) -> Amount:
    """Native amount covering the fee of `operation_count` operations plus the refund itself."""
    return Amount(config.base_fee * (operation_count + 1))


async def create_escrow(
    client,
    config: NetworkConfig,
    funding_party,
    fee_party,
    source_asset: Asset,
    amount: Numeric,
    starting_balance: Numeric,
    trust_assets: Iterable[Asset],
    signer_keys: Sequence,
    *,
    escrow_keypair: Optional[Keypair] = None,
) -> Tuple[EscrowAccount, Transaction]:
    """Build the unsigned transaction that creates, locks and funds a new escrow.

    `funding_party` and `fee_party` are Keypairs or public keys; `signer_keys`
    are the parties that must all co-sign the eventual settlement.
    """
    funder = public_key_of(funding_party)
    payer = public_key_of(fee_party)
    signers = public_keys_of(signer_keys)
    assets = tuple(trust_assets)
    amount = Amount.of(amount)
    starting_balance = Amount.of(starting_balance)
    _check_inputs(source_asset, amount, starting_balance, assets, signers, config)

    keypair = escrow_keypair or Keypair.random()
    escrow = EscrowAccount(keypair=keypair, signer_keys=signers, trust_assets=assets)
    account = escrow.account_id
    if account in (funder, payer):
        raise ValidationError("escrow key must be a fresh account")

    snapshot = await client.load_account(funder)

    ops = [CreateAccount(destination=account, starting_balance=starting_balance, source=payer)]
    ops.extend(ChangeTrust(asset=asset, source=account) for asset in assets)
    ops.extend(SetSignerOptions(signer_key=key, signer_weight=1, source=account) for key in signers)
    k = len(signers)
    ops.append(
        SetSignerOptions(master_weight=0, low_threshold=k, med_threshold=k, high_threshold=k, source=account)
    )
    ops.append(Payment(destination=account, asset=source_asset, amount=amount, source=funder))
    ops.append(
        Payment(
            destination=funder,
            asset=Asset.native(),
            amount=fee_reimbursement(config, len(ops)),
            source=payer,
        )
    )

    tx = config.draft(snapshot).extend(ops).build()
    logger.info("escrow %s: %d trust lines, %d signers, funded %s %s",
                account, len(assets), k, amount, source_asset)
    return escrow, tx


def creation_signers(funding_party, fee_party, escrow: EscrowAccount) -> Tuple[str, ...]:
    """Public keys that must sign the creation transaction."""
    return (public_key_of(funding_party), public_key_of(fee_party), escrow.account_id)


__all__ = ["create_escrow", "creation_signers", "fee_reimbursement"]
