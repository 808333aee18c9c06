from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from ..errors import BundleRejectedError, UpstreamAPIError


def normalize_block_engine_url(url: str) -> str:
    """Accept ``host``, ``host:port`` or a full URL; return an https base URL."""

    url = (url or "").strip().rstrip("/")
    if not url:
        raise ValueError("block engine url is empty")
    if "://" not in url:
        url = f"https://{url}"
    return url


class BlockEngineClient:
    """JSON-RPC client for the Jito block engine bundle API."""

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 20) -> None:
        self.base_url = normalize_block_engine_url(url)
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def bundles_url(self) -> str:
        return f"{self.base_url}/api/v1/bundles"

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _call(self, method: str, params: List[Any]) -> Dict[str, Any]:
        body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            resp = self.session.post(self.bundles_url, json=body, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamAPIError(f"Block engine {method} transport error: {exc}") from exc
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            return payload
        if resp.status_code >= 400:
            raise UpstreamAPIError(f"Block engine {method} failed: HTTP {resp.status_code} {resp.text}", resp.text)
        if not isinstance(payload, dict):
            raise UpstreamAPIError(f"Block engine {method} returned non-JSON body", resp.text)
        return payload

    @staticmethod
    def _error_message(payload: Dict[str, Any]) -> str:
        err = payload.get("error")
        if isinstance(err, dict):
            return str(err.get("message") or err)
        return str(err)

    def get_tip_accounts(self) -> List[str]:
        payload = self._call("getTipAccounts", [])
        if payload.get("error"):
            raise UpstreamAPIError(f"Failed to get tip accounts: {self._error_message(payload)}")
        return [str(a) for a in (payload.get("result") or [])]

    def send_bundle(self, encoded_transactions: List[str]) -> str:
        """Submit base64 transactions as one bundle and return the bundle id."""

        payload = self._call("sendBundle", [list(encoded_transactions), {"encoding": "base64"}])
        if payload.get("error"):
            raise BundleRejectedError(self._error_message(payload))
        bundle_id = payload.get("result")
        if not bundle_id:
            raise BundleRejectedError("relay returned no bundle id")
        return str(bundle_id)

    def get_bundle_statuses(self, bundle_ids: List[str]) -> List[Optional[Dict[str, Any]]]:
        payload = self._call("getBundleStatuses", [list(bundle_ids)])
        if payload.get("error"):
            raise UpstreamAPIError(f"Failed to get bundle statuses: {self._error_message(payload)}")
        result = payload.get("result") or {}
        return list(result.get("value") or [])
