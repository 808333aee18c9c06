from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from ..config import JupiterConfig
from ..errors import JupiterHTTPError


class JupLimitClient:
    """Client for the Jupiter Limit Order v2 API."""

    def __init__(self, cfg: JupiterConfig, session: Optional[requests.Session] = None) -> None:
        self.cfg = cfg
        self.session = session or requests.Session()
        self.timeout = cfg.timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.cfg.api_key:
            headers["x-api-key"] = self.cfg.api_key
        return headers

    @staticmethod
    def _check(resp: requests.Response) -> Any:
        if resp.status_code >= 400:
            raise JupiterHTTPError(resp.status_code, resp.text)
        return resp.json()

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build a limit order; the response carries ``order`` and an unsigned ``tx``."""

        url = f"{self.cfg.limit_base}/createOrder"
        resp = self.session.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        return self._check(resp)

    def cancel_orders(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Build cancellation transactions; the response carries ``txs``."""

        url = f"{self.cfg.limit_base}/cancelOrders"
        resp = self.session.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        return self._check(resp)

    def open_orders(self, wallet: str) -> List[Dict[str, Any]]:
        url = f"{self.cfg.limit_base}/openOrders"
        resp = self.session.get(url, params={"wallet": wallet}, headers=self._headers(), timeout=self.timeout)
        return self._check(resp)

    def order_history(self, wallet: str, page: int = 1) -> Dict[str, Any]:
        url = f"{self.cfg.limit_base}/orderHistory"
        params = {"wallet": wallet, "page": page}
        resp = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        return self._check(resp)
