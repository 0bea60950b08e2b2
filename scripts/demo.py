"""Offline walkthrough: escrow creation and settlement assembled from fixed snapshots.

Scenarios covered:
S1) Reserve for a four-signer, three-asset escrow
S2) Escrow creation transaction (no network)
S3) Settlement contract VTHB -> OLEV -> VGBP, signed by all four parties
S4) Base64 envelope round trip and signature verification
"""
from __future__ import annotations

import argparse
import asyncio
import hashlib
from decimal import Decimal
from fractions import Fraction

from stellar_sdk import Keypair

from ledger_escrow import NetworkConfig, create_contract, create_escrow, minimum_balance
from ledger_escrow.authorization import authorization_shortfall
from ledger_escrow.client import OfflineLedgerClient
from ledger_escrow.core import AccountSnapshot, Amount, Asset, Thresholds, TrustLine
from ledger_escrow.core.constants import ESCROW_MARGIN_RESERVE
from ledger_escrow.core.fmt import describe_transaction
from ledger_escrow.envelope import decode, encode, sign_all, signed_by


def key(name: str) -> Keypair:
    return Keypair.from_raw_ed25519_seed(hashlib.sha256(name.encode()).digest())


def header(title: str) -> None:
    print(f"\n=== {title} ===")


async def run(deposit: Decimal, rate1: Fraction, rate2: Fraction) -> None:
    config = NetworkConfig.testnet()
    alice, bob, mto1, mto2, escrow_key = (key(n) for n in ("alice", "bob", "mto1", "mto2", "escrow"))
    olev = Asset("OLEV", key("olev-issuer").public_key)
    vthb = Asset("VTHB", key("vthb-issuer").public_key)
    vgbp = Asset("VGBP", key("vgbp-issuer").public_key)
    trust_assets = [olev, vthb, vgbp]
    signers = [mto1, mto2, alice, bob]

    header("S1 reserve")
    reserve = minimum_balance(ESCROW_MARGIN_RESERVE, len(trust_assets), 1, len(signers), 0)
    print(f"escrow starting balance = {reserve}")

    header("S2 escrow creation")
    client = OfflineLedgerClient(config, [AccountSnapshot(alice.public_key, sequence=100)])
    escrow, tx = await create_escrow(
        client, config, alice, mto1, vthb, deposit, reserve, trust_assets, signers, escrow_keypair=escrow_key
    )
    print("\n".join(describe_transaction(tx)))

    header("S3 settlement")
    k = len(signers)
    client.put(
        AccountSnapshot(
            escrow.account_id,
            sequence=200,
            native_balance=reserve,
            trust_lines=(
                TrustLine(olev, Amount.zero(), Amount.of("922337203685.4775807")),
                TrustLine(vthb, Amount.of(deposit), Amount.of("922337203685.4775807")),
                TrustLine(vgbp, Amount.zero(), Amount.of("922337203685.4775807")),
            ),
            signers=tuple((s.public_key, 1) for s in signers) + ((escrow.account_id, 0),),
            thresholds=Thresholds(master_weight=0, low=k, med=k, high=k),
        )
    )
    contract = await create_contract(
        client, config, escrow, mto1, mto2, bob, vthb, vgbp, olev, rate1, rate2, deposit
    )
    print("\n".join(describe_transaction(contract)))

    snapshots = {s: await client.load_account(s) for s in [escrow.account_id]}
    signed_keys = [alice.public_key, mto1.public_key]
    print("after 2 signatures, short:", authorization_shortfall(contract, snapshots, signed_keys))
    contract = sign_all(contract, signers, config)

    header("S4 envelope")
    xdr = encode(contract, config)
    print(f"xdr length={len(xdr)}")
    back = decode(xdr, config)
    print("round trip equal:", back == contract)
    print("signed by:", len(signed_by(back, [s.public_key for s in signers], config)), "of", k)


def main() -> int:
    p = argparse.ArgumentParser(description="Offline escrow settlement walkthrough.")
    p.add_argument("--deposit", default="10000")
    p.add_argument("--rate1", default="10")
    p.add_argument("--rate2", default="1/1200")
    args = p.parse_args()
    asyncio.run(run(Decimal(args.deposit), Fraction(args.rate1), Fraction(args.rate2)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
