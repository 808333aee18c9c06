from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Tuple, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T", int, float)


def _env(source: Mapping[str, str], key: str, default: str) -> str:
    value = (source.get(key) or "").strip()
    return value or default


def _number(source: Mapping[str, str], key: str, default: T, cast: Callable[[str], T], invalid: List[str]) -> T:
    raw = (source.get(key) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        log.warning("%s=%r is not a number; using %s", key, raw, default)
        invalid.append(key)
        return default


@dataclass(frozen=True)
class JupiterConfig:
    """Configuration container for Jupiter Limit Order API interactions."""

    # Base URL (override-able via env if Jupiter moves the API)
    limit_base: str = "https://api.jup.ag/limit/v2"

    # Auth (Pro tier may require this)
    api_key: Optional[str] = field(default=None, repr=False)

    timeout: float = 20.0

    # Cancellation polling: attempts x interval is the longest a caller waits
    cancel_poll_attempts: int = 30
    cancel_poll_interval_s: float = 2.0

    # environment keys that were malformed and replaced by their default
    invalid: Tuple[str, ...] = ()


def get_config(env: Optional[Mapping[str, str]] = None) -> JupiterConfig:
    """Return a ``JupiterConfig`` with environment overrides applied."""

    source = os.environ if env is None else env
    invalid: List[str] = []
    return JupiterConfig(
        limit_base=_env(source, "JUP_LIMIT_BASE", JupiterConfig.limit_base).rstrip("/"),
        api_key=(source.get("JUP_API_KEY") or "").strip() or None,
        timeout=_number(source, "JUP_TIMEOUT_S", JupiterConfig.timeout, float, invalid),
        cancel_poll_attempts=_number(
            source, "CANCEL_POLL_ATTEMPTS", JupiterConfig.cancel_poll_attempts, int, invalid
        ),
        cancel_poll_interval_s=_number(
            source, "CANCEL_POLL_INTERVAL_S", JupiterConfig.cancel_poll_interval_s, float, invalid
        ),
        invalid=tuple(invalid),
    )
