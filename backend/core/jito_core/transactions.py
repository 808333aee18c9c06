from __future__ import annotations

import base64
import binascii
from typing import Iterable, List

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.transaction import VersionedTransaction

from .errors import TransactionDecodeError


def decode_transaction(tx_b64: str) -> VersionedTransaction:
    """Deserialize a base64 versioned transaction."""

    if not tx_b64 or not isinstance(tx_b64, str):
        raise TransactionDecodeError("Transaction payload is empty")
    try:
        raw = base64.b64decode(tx_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TransactionDecodeError(f"Transaction is not valid base64: {exc}") from exc
    try:
        return VersionedTransaction.from_bytes(raw)
    except Exception as exc:
        raise TransactionDecodeError(f"Failed to deserialize transaction: {exc}") from exc


def decode_transactions(blobs: Iterable[str]) -> List[VersionedTransaction]:
    return [decode_transaction(b) for b in blobs]


def encode_transaction(tx: VersionedTransaction) -> str:
    return base64.b64encode(bytes(tx)).decode("ascii")


def signature_of(tx: VersionedTransaction) -> str:
    """Base58 form of the fee-payer signature."""

    if not tx.signatures:
        raise TransactionDecodeError("Transaction carries no signatures")
    return str(tx.signatures[0])


def build_signed_transaction(
    signer: Keypair, instructions: List[Instruction], blockhash: Hash
) -> VersionedTransaction:
    """Compile a v0 message paid by ``signer`` and sign it."""

    message = MessageV0.try_compile(signer.pubkey(), instructions, [], blockhash)
    return VersionedTransaction(message, [signer])


def sign_as(tx: VersionedTransaction, signer: Keypair) -> VersionedTransaction:
    """Add ``signer``'s signature to its slot, keeping the other signatures."""

    message = tx.message
    required = message.header.num_required_signatures
    keys = list(message.account_keys)[:required]
    pub = signer.pubkey()
    try:
        idx = keys.index(pub)
    except ValueError:
        raise TransactionDecodeError(f"Signer {pub} is not a required signer of this transaction") from None
    sigs = list(tx.signatures)
    sigs[idx] = signer.sign_message(to_bytes_versioned(message))
    return VersionedTransaction.populate(message, sigs)
