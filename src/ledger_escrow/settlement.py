"""
Settlement contract: drain an escrow through two conversions, pay the
recipient, remove trust lines and merge the escrow away, atomically.

Operation order (transaction source = escrow):
  1. conversion pair  escrow sells asset_in  -> intermediate  (market maker 1, rate1)
  2. conversion pair  escrow sells intermediate -> asset_out  (market maker 2, rate2)
  3. payment          escrow -> recipient, gross / rate1 / rate2 of asset_out
  4. change_trust 0   one per non-native trust line held by the escrow
  5. account_merge    escrow -> market maker 1 (terminal)

Step 4 must follow the conversions and precede the merge: the ledger refuses
to merge an account that still has trust lines. `TransactionDraft.build`
enforces that ordering.

The ledger also refuses to remove a trust line that holds a balance. A
non-native asset_in balance must therefore equal the gross amount, and every
other trust line must be empty before the contract is built.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from .config import NetworkConfig
from .conversion import build_conversion_pair
from .core.amounts import Amount, ConversionRate, Numeric
from .core.datatypes import AccountSnapshot, Asset, EscrowAccount, public_key_of
from .core.exc import ValidationError
from .core.operations import ChangeTrust, MergeAccount, Operation, Payment
from .core.transaction import Transaction

logger = logging.getLogger(__name__)


def _check_assets(snapshot: AccountSnapshot, asset_in: Asset, asset_out: Asset, intermediate: Asset) -> None:
    if len({asset_in, asset_out, intermediate}) != 3:
        raise ValidationError("asset_in, asset_out and intermediate asset must all differ")
    for asset in (asset_in, asset_out, intermediate):
        if not snapshot.trusts(asset):
            raise ValidationError(f"escrow {snapshot.account_id} has no trust line for {asset}")


def _check_balances(snapshot: AccountSnapshot, asset_in: Asset, gross: Amount) -> None:
    # every removed line must be empty once the conversions have run
    if not asset_in.is_native() and snapshot.balance_of(asset_in) != gross:
        raise ValidationError(
            f"escrow holds {snapshot.balance_of(asset_in)} {asset_in}, settlement converts exactly {gross}"
        )
    for line in snapshot.trust_lines:
        if line.asset != asset_in and not line.asset.is_native() and not line.is_removable():
            raise ValidationError(
                f"escrow holds {line.balance} {line.asset}, which would block removing that trust line"
            )


def trust_line_teardown(snapshot: AccountSnapshot) -> List[ChangeTrust]:
    """ChangeTrust-to-zero for each live non-native trust line, in snapshot order."""
    ops: List[ChangeTrust] = []
    seen = set()
    for line in snapshot.trust_lines:
        if line.asset.is_native() or line.asset in seen:
            continue
        seen.add(line.asset)
        if line.limit.is_zero():
            continue
        ops.append(ChangeTrust(asset=line.asset, limit=Amount.zero(), source=snapshot.account_id))
    return ops


async def create_contract(
    client,
    config: NetworkConfig,
    escrow,
    market_maker1,
    market_maker2,
    recipient,
    asset_in: Asset,
    asset_out: Asset,
    intermediate_asset: Asset,
    rate1,
    rate2,
    gross_amount: Numeric,
) -> Transaction:
    """Build the unsigned settlement transaction for `escrow`.

    rate1 prices asset_in per unit of intermediate_asset; rate2 prices
    intermediate_asset per unit of asset_out. Returns a transaction that needs
    the escrow's registered signers (see `settlement_signers`).
    """
    account = public_key_of(escrow)
    mm1 = public_key_of(market_maker1)
    mm2 = public_key_of(market_maker2)
    to = public_key_of(recipient)
    if account in (mm1, mm2, to):
        raise ValidationError("escrow cannot be its own counterparty")

    r1 = ConversionRate.of(rate1)
    r2 = ConversionRate.of(rate2)
    gross = Amount.of(gross_amount)
    if gross.is_zero():
        raise ValidationError("gross amount must be > 0")

    snapshot = await client.load_account(account)
    _check_assets(snapshot, asset_in, asset_out, intermediate_asset)
    _check_balances(snapshot, asset_in, gross)

    first = build_conversion_pair(account, asset_in, mm1, intermediate_asset, gross, r1)
    second = build_conversion_pair(account, intermediate_asset, mm2, asset_out, first[1].amount, r2)
    # Pay out exactly what the second conversion delivers; nothing of asset_out is left behind.
    payout = second[1].amount

    ops: List[Operation] = [*first, *second]
    ops.append(Payment(destination=to, asset=asset_out, amount=payout, source=account))
    ops.extend(trust_line_teardown(snapshot))
    ops.append(MergeAccount(destination=mm1, source=account))

    tx = config.draft(snapshot).extend(ops).build()
    logger.info("settlement %s: %s %s -> %s %s to %s (%d ops)",
                account, gross, asset_in, payout, asset_out, to, tx.operation_count)
    return tx


def settlement_amounts(gross_amount: Numeric, rate1, rate2) -> Tuple[Amount, Amount]:
    """(intermediate, final) amounts a settlement produces for the given rates."""
    gross = Amount.of(gross_amount)
    mid = gross.div_by_rate(ConversionRate.of(rate1).ratio)
    return mid, mid.div_by_rate(ConversionRate.of(rate2).ratio)


def settlement_signers(escrow: EscrowAccount, market_maker1, market_maker2) -> Tuple[str, ...]:
    """Keys that must sign: every registered escrow signer, plus each market maker for its own offer."""
    keys = list(escrow.signer_keys)
    for mm in (public_key_of(market_maker1), public_key_of(market_maker2)):
        if mm not in keys:
            keys.append(mm)
    return tuple(keys)


__all__ = ["create_contract", "trust_line_teardown", "settlement_amounts", "settlement_signers"]
