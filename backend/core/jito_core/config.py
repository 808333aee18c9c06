from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dotenv import dotenv_values
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .errors import ConfigurationError, CredentialError

NATIVE_MINT = "So11111111111111111111111111111111111111112"
DEFAULT_FEE_WALLET = "FeegNqsGa7ppvuLRLj5xvqEu11cC1tXpWmwqdoqsMXnN"
FALLBACK_MODES = {"error", "native"}

# field name -> environment key
ENV_KEYS: Dict[str, str] = {
    "block_engine_url": "BLOCK_ENGINE_URL",
    "auth_keypair": "AUTH_KEYPAIR_PATH",
    "rpc_url": "RPC_URL",
    "bundle_transaction_limit": "BUNDLE_TRANSACTION_LIMIT",
    "tip_lamports": "JITO_TIP_LAMPORTS",
    "fee_wallet": "FEE_WALLET",
    "fee_bps": "FEE_BPS",
    "fee_fallback_mode": "FEE_FALLBACK_MODE",
    "default_making_amount": "DEFAULT_MAKING_AMOUNT",
}


def _as_int(value: Optional[str], default: int, key: str, invalid: List[str]) -> int:
    """Parse an integer setting; a malformed value is recorded in ``invalid`` and the default kept."""

    if value is None or not str(value).strip():
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        invalid.append(key)
        return default


def redacted(url: Optional[str]) -> str:
    """Hide query strings (API keys) when printing an endpoint."""

    if not url:
        return ""
    base, sep, _ = url.partition("?")
    return f"{base}?***" if sep else base


@dataclass(frozen=True)
class BundleSettings:
    """Process-wide settings for bundle submission. Built once, never mutated."""

    block_engine_url: Optional[str] = None
    auth_keypair: Optional[str] = None
    rpc_url: Optional[str] = None
    bundle_transaction_limit: int = 5
    tip_lamports: int = 1000
    fee_wallet: str = DEFAULT_FEE_WALLET
    fee_bps: int = 100
    fee_fallback_mode: str = "error"
    default_making_amount: int = 50_000_000
    native_mint: str = NATIVE_MINT
    # environment keys whose values could not be parsed
    invalid: Tuple[str, ...] = ()

    def require(self, *names: str) -> None:
        """Raise ``ConfigurationError`` listing every empty field in ``names``.

        Malformed values recorded by :func:`load_settings` are reported on
        every call, whatever ``names`` asks for.
        """

        missing = [ENV_KEYS.get(n, n.upper()) for n in names if not getattr(self, n)]
        if missing or self.invalid:
            raise ConfigurationError(missing, self.invalid)

    def fee_wallet_pubkey(self) -> Pubkey:
        try:
            return Pubkey.from_string(self.fee_wallet)
        except ValueError as exc:
            raise ConfigurationError(invalid=[ENV_KEYS["fee_wallet"]]) from exc

    def signer(self) -> Keypair:
        """Parse the JSON byte-array secret into a ``Keypair``."""

        self.require("auth_keypair")
        try:
            data = json.loads(self.auth_keypair or "")
            if not isinstance(data, list) or not all(isinstance(b, int) for b in data):
                raise ValueError("expected a JSON array of integers")
            raw = bytes(data)
            return Keypair.from_bytes(raw) if len(raw) == 64 else Keypair.from_seed(raw)
        except Exception as exc:
            raise CredentialError() from exc

    def describe(self) -> Dict[str, Any]:
        """Log-safe view: which values are present, never the secret itself."""

        return {
            "block_engine_url": self.block_engine_url or "",
            "rpc_url": redacted(self.rpc_url),
            "auth_keypair_set": bool(self.auth_keypair),
            "bundle_transaction_limit": self.bundle_transaction_limit,
            "tip_lamports": self.tip_lamports,
            "fee_wallet": self.fee_wallet,
            "fee_bps": self.fee_bps,
            "fee_fallback_mode": self.fee_fallback_mode,
            "invalid": list(self.invalid),
        }


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str | Path] = None,
) -> BundleSettings:
    """Build ``BundleSettings`` from a ``.env`` file and the environment.

    Values in the ``.env`` file take precedence over ``env`` (which defaults
    to ``os.environ``). Missing or malformed values are not an error here;
    malformed ones fall back to their default and are listed in ``invalid``.
    Both are reported by :meth:`BundleSettings.require` when a request needs
    the settings.
    """

    source: Dict[str, Optional[str]] = dict(os.environ if env is None else env)
    path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if path.exists():
        for key, value in dotenv_values(path).items():
            if value not in (None, ""):
                source[key] = value

    def _get(name: str) -> Optional[str]:
        value = source.get(ENV_KEYS[name])
        value = value.strip() if isinstance(value, str) else value
        return value or None

    defaults = {f.name: f.default for f in fields(BundleSettings)}
    invalid: List[str] = []
    mode = (_get("fee_fallback_mode") or defaults["fee_fallback_mode"]).lower()
    if mode not in FALLBACK_MODES:
        invalid.append(ENV_KEYS["fee_fallback_mode"])
        mode = defaults["fee_fallback_mode"]
    fee_wallet = _get("fee_wallet") or defaults["fee_wallet"]
    try:
        Pubkey.from_string(fee_wallet)
    except ValueError:
        invalid.append(ENV_KEYS["fee_wallet"])

    return BundleSettings(
        block_engine_url=_get("block_engine_url"),
        auth_keypair=_get("auth_keypair"),
        rpc_url=_get("rpc_url"),
        bundle_transaction_limit=_as_int(
            _get("bundle_transaction_limit"), defaults["bundle_transaction_limit"], "BUNDLE_TRANSACTION_LIMIT", invalid
        ),
        tip_lamports=_as_int(_get("tip_lamports"), defaults["tip_lamports"], "JITO_TIP_LAMPORTS", invalid),
        fee_wallet=fee_wallet,
        fee_bps=_as_int(_get("fee_bps"), defaults["fee_bps"], "FEE_BPS", invalid),
        fee_fallback_mode=mode,
        default_making_amount=_as_int(
            _get("default_making_amount"), defaults["default_making_amount"], "DEFAULT_MAKING_AMOUNT", invalid
        ),
        invalid=tuple(invalid),
    )
