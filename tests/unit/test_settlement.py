import asyncio

import pytest
from dataclasses import replace
from decimal import Decimal
from fractions import Fraction

from ledger_escrow.core import (
    Amount,
    Asset,
    ChangeTrust,
    EscrowAccount,
    MergeAccount,
    Payment,
    ValidationError,
)
from ledger_escrow.settlement import (
    create_contract,
    settlement_amounts,
    settlement_signers,
    trust_line_teardown,
)


@pytest.fixture()
def signers(parties):
    return [parties[n] for n in ("mto1", "mto2", "alice", "bob")]


@pytest.fixture()
def escrow(parties, assets, signers):
    return EscrowAccount(
        keypair=parties["escrow"],
        signer_keys=tuple(s.public_key for s in signers),
        trust_assets=(assets["OLEV"], assets["VTHB"], assets["VGBP"]),
    )


@pytest.fixture()
def holdings(assets):
    return {assets["OLEV"]: Decimal(0), assets["VTHB"]: Decimal(10000), assets["VGBP"]: Decimal(0)}


def _contract(client, config, escrow, parties, assets, rate1=Fraction(10), rate2=Fraction(1, 1200), gross=10000):
    return asyncio.run(
        create_contract(
            client, config, escrow, parties["mto1"], parties["mto2"], parties["bob"],
            assets["VTHB"], assets["VGBP"], assets["OLEV"], rate1, rate2, gross,
        )
    )


def test_operation_sequence(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    tx = _contract(client, config, escrow, parties, assets)
    kinds = [type(op).__name__ for op in tx.operations]
    print("[contract-order]", kinds)
    assert kinds == [
        "CreateConversionOffer", "CreateConversionOffer",
        "CreateConversionOffer", "CreateConversionOffer",
        "Payment",
        "ChangeTrust", "ChangeTrust", "ChangeTrust",
        "MergeAccount",
    ]
    assert tx.source == escrow.account_id
    assert tx.sequence == 201
    assert tx.fee == 100 * 9


def test_conversions_chain_through_intermediate(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    tx = _contract(client, config, escrow, parties, assets)
    e, m1, m2 = escrow.account_id, parties["mto1"].public_key, parties["mto2"].public_key
    a1, b1, a2, b2 = tx.operations[:4]

    assert (a1.source, a1.selling, a1.buying, a1.amount) == (e, assets["VTHB"], assets["OLEV"], Amount.of(10000))
    assert (b1.source, b1.selling, b1.buying, b1.amount) == (m1, assets["OLEV"], assets["VTHB"], Amount.of(1000))
    assert (a2.source, a2.selling, a2.buying, a2.amount) == (e, assets["OLEV"], assets["VGBP"], Amount.of(1000))
    assert (b2.source, b2.selling, b2.buying, b2.amount) == (m2, assets["VGBP"], assets["OLEV"], Amount.of(1200000))
    assert a2.price.value == Decimal(1200)


def test_final_payment_is_gross_over_both_rates(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    tx = _contract(client, config, escrow, parties, assets)
    pay = tx.operations[4]
    assert isinstance(pay, Payment)
    assert pay.destination == parties["bob"].public_key
    assert pay.asset == assets["VGBP"]
    print("final payment ->", pay.amount)
    assert str(pay.amount) == "1200000.0000000"


@pytest.mark.parametrize(
    "gross,rate1,rate2",
    [
        ("10000", Fraction(10), Fraction(1, 1200)),
        ("333.3333333", Fraction(3), Fraction(7, 11)),
        ("1", Fraction(1, 3), Fraction(3, 1)),
        ("2500.5", Decimal("1.2345"), Decimal("0.9876")),
    ],
)
def test_final_payment_within_tolerance(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, gross, rate1, rate2):
    holdings = {assets["OLEV"]: Decimal(0), assets["VTHB"]: Decimal(gross), assets["VGBP"]: Decimal(0)}
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    tx = _contract(client, config, escrow, parties, assets, rate1=rate1, rate2=rate2, gross=Decimal(gross))
    pay = next(op for op in tx.operations if isinstance(op, Payment))
    exact = Fraction(Decimal(gross)) / Fraction(rate1) / Fraction(rate2)
    # two truncations: the intermediate leg's error is amplified by 1/rate2
    tolerance = Fraction(1, 10 ** 7) * (1 + 1 / Fraction(rate2))
    assert 0 <= exact - pay.amount.as_fraction() < tolerance
    assert pay.amount == settlement_amounts(Decimal(gross), rate1, rate2)[1]


def test_payout_matches_what_escrow_receives(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    tx = _contract(client, config, escrow, parties, assets, rate1=Fraction(3), rate2=Fraction(7, 11))
    received = tx.operations[3].amount
    assert tx.operations[4].amount == received


def test_merge_is_last_and_after_every_trust_removal(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    tx = _contract(client, config, escrow, parties, assets)
    merge_at = max(i for i, op in enumerate(tx.operations) if isinstance(op, MergeAccount))
    removals = [i for i, op in enumerate(tx.operations) if isinstance(op, ChangeTrust) and op.is_removal()]
    assert merge_at == len(tx.operations) - 1
    assert removals and all(i < merge_at for i in removals)
    merge = tx.operations[merge_at]
    assert merge.destination == parties["mto1"].public_key
    assert merge.source == escrow.account_id


def test_teardown_follows_snapshot_order_and_skips_zero_limits(make_escrow_snapshot, parties, assets, signers):
    snap = make_escrow_snapshot(
        parties["escrow"], signers,
        {assets["VGBP"]: Decimal(0), assets["OLEV"]: Decimal(0), assets["VTHB"]: Decimal(1)},
    )
    lines = list(snap.trust_lines)
    lines[1] = replace(lines[1], balance=Amount.zero(), limit=Amount.zero())
    snap = replace(snap, trust_lines=tuple(lines))
    ops = trust_line_teardown(snap)
    assert [op.asset for op in ops] == [assets["VGBP"], assets["VTHB"]]
    assert all(op.limit == Amount.zero() and op.source == snap.account_id for op in ops)


def test_extra_trust_lines_are_removed_too(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    extra = Asset("EURT", parties["bob"].public_key)
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, {**holdings, extra: Decimal(0)}))
    tx = _contract(client, config, escrow, parties, assets)
    removed = [op.asset for op in tx.operations if isinstance(op, ChangeTrust)]
    assert extra in removed and len(removed) == 4


def test_missing_trust_line_rejected(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers):
    client = client_factory(
        make_escrow_snapshot(parties["escrow"], signers, {assets["VTHB"]: Decimal(10000), assets["OLEV"]: Decimal(0)})
    )
    with pytest.raises(ValidationError):
        _contract(client, config, escrow, parties, assets)


def test_insufficient_escrow_balance_rejected(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    with pytest.raises(ValidationError):
        _contract(client, config, escrow, parties, assets, gross=Decimal("10000.0000001"))


def test_excess_escrow_balance_rejected(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    # 1000 VTHB would be left on a line the contract removes
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    print("[balance] escrow holds 10000 VTHB, settling 9000 -> expect ValidationError")
    with pytest.raises(ValidationError):
        _contract(client, config, escrow, parties, assets, gross=Decimal(9000))


@pytest.mark.parametrize("code", ["OLEV", "VGBP", "EURT"])
def test_leftover_balance_on_other_line_rejected(
    client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings, code
):
    asset = assets.get(code) or Asset(code, parties["bob"].public_key)
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, {**holdings, asset: Decimal(5)}))
    with pytest.raises(ValidationError) as ei:
        _contract(client, config, escrow, parties, assets)
    assert code in str(ei.value)


def test_escrow_cannot_be_counterparty(client_factory, make_escrow_snapshot, config, escrow, parties, assets, signers, holdings):
    client = client_factory(make_escrow_snapshot(parties["escrow"], signers, holdings))
    with pytest.raises(ValidationError):
        asyncio.run(
            create_contract(
                client, config, escrow, escrow, parties["mto2"], parties["bob"],
                assets["VTHB"], assets["VGBP"], assets["OLEV"], 10, Fraction(1, 1200), 10000,
            )
        )


def test_settlement_signers(escrow, parties):
    keys = settlement_signers(escrow, parties["mto1"], parties["mto2"])
    assert keys == escrow.signer_keys
    outsider = parties["escrow"]
    assert settlement_signers(escrow, parties["mto1"], outsider)[-1] == outsider.public_key
