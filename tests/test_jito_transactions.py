import base64

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from backend.core.jito_core.errors import TransactionDecodeError
from backend.core.jito_core.transactions import (
    decode_transaction,
    encode_transaction,
    sign_as,
    signature_of,
)
from conftest import signed_user_tx


def test_decode_roundtrip_keeps_signature():
    b64, tx = signed_user_tx()
    decoded = decode_transaction(b64)
    assert signature_of(decoded) == str(tx.signatures[0])
    assert encode_transaction(decoded) == b64


@pytest.mark.parametrize("blob", ["", "%%%not-base64%%%", base64.b64encode(b"garbage").decode()])
def test_decode_rejects_malformed(blob):
    with pytest.raises(TransactionDecodeError):
        decode_transaction(blob)


def test_sign_as_fills_payer_slot_and_keeps_maker_signature():
    maker, payer = Keypair(), Keypair()
    ix = transfer(TransferParams(from_pubkey=maker.pubkey(), to_pubkey=payer.pubkey(), lamports=5))
    message = MessageV0.try_compile(payer.pubkey(), [ix], [], Hash.new_unique())
    unsigned = VersionedTransaction.populate(message, [Signature.default(), Signature.default()])

    maker_signed = sign_as(unsigned, maker)
    fully_signed = sign_as(maker_signed, payer)

    assert fully_signed.signatures[1] == maker_signed.signatures[1]
    assert fully_signed.signatures[0] != Signature.default()
    assert fully_signed.verify_with_results() == [True, True]


def test_sign_as_rejects_foreign_signer():
    _, tx = signed_user_tx()
    with pytest.raises(TransactionDecodeError):
        sign_as(tx, Keypair())
