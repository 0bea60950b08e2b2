"""
Envelope codec: Transaction <-> the ledger's binary XDR envelope and its
base64 text form, plus signing and signature verification.

The base64 text is what travels to remote co-signers; each holder decodes it,
appends a signature with `sign`, and re-encodes it. Signing never changes
the transaction hash, so signatures collected independently combine.
"""

from __future__ import annotations

import base64
import logging
from fractions import Fraction
from typing import Iterable, List, Optional, Tuple

from stellar_sdk import Account
from stellar_sdk import AccountMerge as SdkAccountMerge
from stellar_sdk import Asset as SdkAsset
from stellar_sdk import ChangeTrust as SdkChangeTrust
from stellar_sdk import CreateAccount as SdkCreateAccount
from stellar_sdk import Keypair, ManageSellOffer
from stellar_sdk import Payment as SdkPayment
from stellar_sdk import SetOptions, Signer, TransactionBuilder, TransactionEnvelope
from stellar_sdk.decorated_signature import DecoratedSignature
from stellar_sdk.exceptions import BadSignatureError

from .config import NetworkConfig
from .core.amounts import Amount, Price
from .core.constants import MAX_STROOPS
from .core.datatypes import Asset
from .core.exc import ValidationError
from .core.operations import (
    ChangeTrust,
    CreateAccount,
    CreateConversionOffer,
    MergeAccount,
    Operation,
    Payment,
    SetSignerOptions,
)
from .core.transaction import Signature, Transaction

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Assets and accounts
# ---------------------------------------------------------------------------

def _to_sdk_asset(asset: Asset) -> SdkAsset:
    return SdkAsset.native() if asset.is_native() else SdkAsset(asset.code, asset.issuer)


def _from_sdk_asset(asset) -> Asset:
    if not isinstance(asset, SdkAsset):
        raise ValidationError(f"unsupported asset type {type(asset).__name__}")
    return Asset.native() if asset.is_native() else Asset(asset.code, asset.issuer)


def _account_id(account) -> Optional[str]:
    """Plain public key from a str, a muxed account or None."""
    if account is None or isinstance(account, str):
        return account
    return account.account_id


def _amount(value) -> Amount:
    return Amount.of(str(value))


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _to_sdk_operation(op: Operation):
    if isinstance(op, CreateAccount):
        return SdkCreateAccount(destination=op.destination, starting_balance=str(op.starting_balance), source=op.source)
    if isinstance(op, ChangeTrust):
        limit = None if op.limit is None else str(op.limit)
        return SdkChangeTrust(asset=_to_sdk_asset(op.asset), limit=limit, source=op.source)
    if isinstance(op, SetSignerOptions):
        signer = None
        if op.signer_key is not None:
            signer = Signer.ed25519_public_key(op.signer_key, op.signer_weight)
        return SetOptions(
            master_weight=op.master_weight,
            low_threshold=op.low_threshold,
            med_threshold=op.med_threshold,
            high_threshold=op.high_threshold,
            signer=signer,
            source=op.source,
        )
    if isinstance(op, Payment):
        return SdkPayment(destination=op.destination, asset=_to_sdk_asset(op.asset), amount=str(op.amount), source=op.source)
    if isinstance(op, CreateConversionOffer):
        return ManageSellOffer(
            selling=_to_sdk_asset(op.selling),
            buying=_to_sdk_asset(op.buying),
            amount=str(op.amount),
            price=str(op.price),
            offer_id=0,
            source=op.source,
        )
    if isinstance(op, MergeAccount):
        return SdkAccountMerge(destination=op.destination, source=op.source)
    raise ValidationError(f"unsupported operation {op!r}")


def _from_sdk_operation(op) -> Operation:
    source = _account_id(op.source)
    if isinstance(op, SdkCreateAccount):
        return CreateAccount(
            destination=_account_id(op.destination), starting_balance=_amount(op.starting_balance), source=source
        )
    if isinstance(op, SdkChangeTrust):
        limit = _amount(op.limit)
        return ChangeTrust(
            asset=_from_sdk_asset(op.asset),
            limit=None if limit.stroops == MAX_STROOPS else limit,
            source=source,
        )
    if isinstance(op, SetOptions):
        key = weight = None
        if op.signer is not None:
            key = op.signer.signer_key.encoded_signer_key
            weight = op.signer.weight
        return SetSignerOptions(
            signer_key=key,
            signer_weight=weight,
            master_weight=op.master_weight,
            low_threshold=op.low_threshold,
            med_threshold=op.med_threshold,
            high_threshold=op.high_threshold,
            source=source,
        )
    if isinstance(op, SdkPayment):
        return Payment(
            destination=_account_id(op.destination),
            asset=_from_sdk_asset(op.asset),
            amount=_amount(op.amount),
            source=source,
        )
    if isinstance(op, ManageSellOffer):
        if op.offer_id != 0:
            raise ValidationError(f"only new offers are supported, got offer id {op.offer_id}")
        return CreateConversionOffer(
            selling=_from_sdk_asset(op.selling),
            buying=_from_sdk_asset(op.buying),
            amount=_amount(op.amount),
            price=Price.of(Fraction(op.price.n, op.price.d)),
            source=source,
        )
    if isinstance(op, SdkAccountMerge):
        return MergeAccount(destination=_account_id(op.destination), source=source)
    raise ValidationError(f"unsupported ledger operation {type(op).__name__}")


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

def to_envelope(tx: Transaction, config: NetworkConfig) -> TransactionEnvelope:
    """Build the ledger envelope for `tx`, carrying its signatures."""
    builder = TransactionBuilder(
        source_account=Account(tx.source, tx.sequence - 1),
        network_passphrase=config.network_passphrase,
        base_fee=tx.fee // tx.operation_count,
    )
    builder.add_time_bounds(*tx.time_bounds)
    for op in tx.operations:
        builder.append_operation(_to_sdk_operation(op))
    te = builder.build()
    te.signatures = [DecoratedSignature(s.hint, s.signature) for s in tx.signatures]
    return te


def from_envelope(te: TransactionEnvelope) -> Transaction:
    inner = te.transaction
    time_bounds: Tuple[int, int] = (0, 0)
    pre = getattr(inner, "preconditions", None)
    if pre is not None and pre.time_bounds is not None:
        time_bounds = (pre.time_bounds.min_time, pre.time_bounds.max_time)
    return Transaction(
        source=_account_id(inner.source),
        sequence=inner.sequence,
        operations=tuple(_from_sdk_operation(op) for op in inner.operations),
        fee=inner.fee,
        time_bounds=time_bounds,
        signatures=tuple(Signature(s.signature_hint, s.signature) for s in te.signatures),
    )


def encode(tx: Transaction, config: NetworkConfig) -> str:
    """Base64 text of the XDR envelope, for out-of-band transport."""
    return to_envelope(tx, config).to_xdr()


def decode(xdr: str, config: NetworkConfig) -> Transaction:
    return from_envelope(TransactionEnvelope.from_xdr(xdr.strip(), config.network_passphrase))


def encode_binary(tx: Transaction, config: NetworkConfig) -> bytes:
    """Raw XDR bytes of the envelope."""
    return base64.b64decode(encode(tx, config))


def decode_binary(data: bytes, config: NetworkConfig) -> Transaction:
    return decode(base64.b64encode(data).decode("ascii"), config)


def transaction_hash(tx: Transaction, config: NetworkConfig) -> bytes:
    return to_envelope(tx, config).hash()


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------

def sign(tx: Transaction, keypair: Keypair, config: NetworkConfig) -> Transaction:
    """Return a copy of `tx` with one more signature, from `keypair`."""
    data = transaction_hash(tx, config)
    sig = Signature(keypair.signature_hint(), keypair.sign(data))
    logger.debug("signed %s by %s", data.hex(), keypair.public_key)
    return tx.with_signature(sig)


def sign_all(tx: Transaction, keypairs: Iterable[Keypair], config: NetworkConfig) -> Transaction:
    for kp in keypairs:
        tx = sign(tx, kp, config)
    return tx


def signed_by(tx: Transaction, public_keys: Iterable[str], config: NetworkConfig) -> List[str]:
    """Public keys (from `public_keys`, in order) holding a valid signature on `tx`."""
    data = transaction_hash(tx, config)
    found: List[str] = []
    for key in public_keys:
        kp = Keypair.from_public_key(key)
        hint = kp.signature_hint()
        for sig in tx.signatures:
            if sig.hint != hint:
                continue
            try:
                kp.verify(data, sig.signature)
            except BadSignatureError:
                continue
            found.append(key)
            break
    return found


__all__ = [
    "to_envelope",
    "from_envelope",
    "encode",
    "decode",
    "encode_binary",
    "decode_binary",
    "transaction_hash",
    "sign",
    "sign_all",
    "signed_by",
]
