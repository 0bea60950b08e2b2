#!/usr/bin/env python3
"""End-to-end escrow settlement on a test network.

Steps:
  1) issue the settlement asset and two local currencies
  2) create and stock two market-maker accounts
  3) create the two counterparty wallets and make a deposit
  4) create a unanimous escrow between the counterparties and fund it
  5) assemble the settlement contract, collect all signatures, print its XDR
     (and submit it with --submit)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from decimal import Decimal
from fractions import Fraction

from ledger_escrow import NetworkConfig, create_contract, create_escrow, minimum_balance
from ledger_escrow.authorization import check_authorization
from ledger_escrow.bootstrap import create_account, fund_account, issue_asset, payment
from ledger_escrow.client import HorizonClient
from ledger_escrow.core.constants import ESCROW_MARGIN_RESERVE
from ledger_escrow.core.fmt import describe_transaction
from ledger_escrow.envelope import encode, sign_all

ISSUE_AMOUNT = 1000 * 1000000
STOCK_AMOUNT = 100 * 1000000


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create and settle a four-party escrow on testnet.")
    p.add_argument("--deposit", default="10000", help="Amount the sender deposits into escrow")
    p.add_argument("--rate1", default="10", help="asset_in per unit of settlement asset")
    p.add_argument("--rate2", default="1/1200", help="settlement asset per unit of asset_out")
    p.add_argument("--submit", action="store_true", help="Submit the signed contract")
    p.add_argument("--log-level", default="INFO")
    return p.parse_args()


async def submit_signed(client, tx, *keys):
    return await client.submit_transaction(sign_all(tx, keys, client.config))


async def run(args: argparse.Namespace) -> str:
    config = NetworkConfig.from_env()
    client = HorizonClient(config)
    deposit = Decimal(args.deposit)
    started = time.time()

    def step(msg: str) -> None:
        nonlocal started
        print(f"*** {msg} ({time.time() - started:.1f}s)")
        started = time.time()

    issuer_keys = [await fund_account(client) for _ in range(3)]
    issued = []
    for issuer, code in zip(issuer_keys, ("OLEV", "VTHB", "VGBP")):
        asset, distributor, tx = await issue_asset(client, config, issuer, code, ISSUE_AMOUNT)
        await submit_signed(client, tx, issuer, distributor)
        issued.append((asset, distributor))
        print(f"{asset.code} {asset.issuer}")
    (system, system_dist), (vthb, vthb_dist), (vgbp, vgbp_dist) = issued
    step("assets issued")

    root = await fund_account(client)
    mto1, tx = await create_account(client, config, root, 500, [vthb, system])
    await submit_signed(client, tx, root, mto1)
    mto2, tx = await create_account(client, config, root, 500, [vgbp, system])
    await submit_signed(client, tx, root, mto2)
    for dist, to, asset in ((vthb_dist, mto1, vthb), (vgbp_dist, mto2, vgbp),
                            (system_dist, mto1, system), (system_dist, mto2, system)):
        tx = await payment(client, config, dist, to, asset, STOCK_AMOUNT)
        await submit_signed(client, tx, dist)
    print("mto1", mto1.public_key)
    print("mto2", mto2.public_key)
    step("market makers created")

    alice, tx = await create_account(client, config, mto1, Decimal("2.5"), [vthb])
    await submit_signed(client, tx, mto1, alice)
    bob, tx = await create_account(client, config, mto2, Decimal("2.5"), [vgbp])
    await submit_signed(client, tx, mto2, bob)
    tx = await payment(client, config, mto1, alice, vthb, deposit)
    result = await submit_signed(client, tx, mto1)
    print("alice", alice.public_key)
    print("bob", bob.public_key)
    print("deposit", result.hash)
    step("wallets created")

    trust_assets = [system, vthb, vgbp]
    signers = [mto1, mto2, alice, bob]
    escrow, tx = await create_escrow(
        client, config, alice, mto1, vthb, deposit,
        minimum_balance(ESCROW_MARGIN_RESERVE, len(trust_assets), 1, len(signers), 0,
                        base_reserve=config.base_reserve),
        trust_assets, signers,
    )
    print("\n".join(describe_transaction(tx)))
    result = await submit_signed(client, tx, alice, mto1, escrow.keypair)
    print("escrow", escrow.account_id, result.hash)
    step("escrow created")

    contract = await create_contract(
        client, config, escrow, mto1, mto2, bob, vthb, vgbp, system,
        Fraction(args.rate1), Fraction(args.rate2), deposit,
    )
    print("\n".join(describe_transaction(contract)))
    contract = sign_all(contract, [alice, mto1, bob, mto2], config)
    snapshots = {s.account_id: s for s in [
        await client.load_account(escrow.account_id),
        await client.load_account(mto1.public_key),
        await client.load_account(mto2.public_key),
    ]}
    check_authorization(contract, snapshots, [k.public_key for k in (alice, mto1, bob, mto2)])
    step("contract signed")

    if args.submit:
        result = await client.submit_transaction(contract)
        print("settled", result.hash)
    return encode(contract, config)


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    xdr = asyncio.run(run(args))
    print("\n\nsubmit this contract via horizon")
    print(f"\n\n{xdr}\n\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
