"""Fee and tip instruction builders."""

from __future__ import annotations

import logging

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import TransferParams as SplTransferParams
from spl.token.instructions import get_associated_token_address
from spl.token.instructions import transfer as spl_transfer

from .config import NATIVE_MINT
from .errors import FeeTransferError

log = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
# legacy divisor applied when an asset fee falls back to lamports
NATIVE_FALLBACK_DIVISOR = 1000


def compute_fee(making_amount: int, fee_bps: int = 100) -> int:
    """Fee in base units: ``floor(making_amount * fee_bps / 10_000)``."""

    if making_amount < 0:
        raise ValueError(f"making_amount must be non-negative, got {making_amount}")
    return int(making_amount) * int(fee_bps) // BPS_DENOMINATOR


def native_transfer(payer: Pubkey, recipient: Pubkey, lamports: int) -> Instruction:
    return transfer(TransferParams(from_pubkey=payer, to_pubkey=recipient, lamports=int(lamports)))


def token_transfer(payer: Pubkey, recipient: Pubkey, mint: str, amount: int) -> Instruction:
    """SPL transfer between the associated token accounts of ``payer`` and ``recipient``."""

    mint_pub = Pubkey.from_string(mint)
    source = get_associated_token_address(payer, mint_pub)
    dest = get_associated_token_address(recipient, mint_pub)
    log.debug("token fee transfer %s -> %s (%s units of %s)", source, dest, amount, mint)
    return spl_transfer(
        SplTransferParams(
            program_id=TOKEN_PROGRAM_ID,
            source=source,
            dest=dest,
            owner=payer,
            amount=int(amount),
        )
    )


def build_fee_instruction(
    payer: Pubkey,
    fee_wallet: Pubkey,
    input_mint: str,
    fee: int,
    fallback_mode: str = "error",
) -> Instruction:
    """Instruction moving ``fee`` base units of ``input_mint`` to ``fee_wallet``.

    With ``fallback_mode="native"`` a token transfer that cannot be built is
    replaced by a lamport transfer of ``fee // 1000``. That conversion ignores
    the asset decimals and matches the legacy fee path.
    The default, ``"error"``, raises ``FeeTransferError``.
    """

    if input_mint == NATIVE_MINT:
        return native_transfer(payer, fee_wallet, fee)
    try:
        return token_transfer(payer, fee_wallet, input_mint, fee)
    except Exception as exc:
        if fallback_mode != "native":
            raise FeeTransferError(f"Could not build token fee transfer for mint {input_mint}: {exc}") from exc
        lamports = fee // NATIVE_FALLBACK_DIVISOR
        log.warning(
            "token fee transfer for %s failed (%s); falling back to %s lamports",
            input_mint,
            exc,
            lamports,
        )
        return native_transfer(payer, fee_wallet, lamports)


def build_tip_instruction(payer: Pubkey, tip_account: Pubkey, lamports: int) -> Instruction:
    return native_transfer(payer, tip_account, lamports)
