# backend/routes/bundle_api.py
"""Order and bundle routes used by the limit-order UI."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from solders.pubkey import Pubkey

from backend.core.jito_core.clients import LedgerClient
from backend.core.jito_core.config import BundleSettings
from backend.core.jito_core.errors import InvalidWalletError
from backend.core.jito_core.listeners import BundleResultListener
from backend.core.jito_core.services import BundleService, ServerOrderService
from backend.core.jupiter_core.services import LimitOrderService
from backend.core.logging import log

router = APIRouter(prefix="/api", tags=["bundles"])

# ---------- dependencies ----------
# Settings, listener and order service are built once by the app factory.


def get_settings(request: Request) -> BundleSettings:
    return request.app.state.settings


def get_listener(request: Request) -> BundleResultListener:
    return request.app.state.bundle_listener


def get_order_service(request: Request) -> LimitOrderService:
    return request.app.state.order_service


def get_bundle_service(
    settings: BundleSettings = Depends(get_settings),
    listener: BundleResultListener = Depends(get_listener),
) -> BundleService:
    return BundleService.from_settings(settings, listener=listener)


def get_server_order_service(
    settings: BundleSettings = Depends(get_settings),
    orders: LimitOrderService = Depends(get_order_service),
) -> ServerOrderService:
    return ServerOrderService.from_settings(settings, orders=orders)


def get_ledger(settings: BundleSettings = Depends(get_settings)) -> LedgerClient:
    settings.require("rpc_url")
    return LedgerClient(settings.rpc_url or "")


def _require_wallet(wallet: Optional[str]) -> str:
    if not wallet or not wallet.strip():
        raise HTTPException(400, "Wallet address is required")
    wallet = wallet.strip()
    try:
        Pubkey.from_string(wallet)
    except ValueError as exc:
        raise InvalidWalletError(wallet) from exc
    return wallet


# ---------- request bodies ----------
class SubmitBundleRequest(BaseModel):
    signedTransaction: str
    orderId: str
    makingAmount: Optional[int] = Field(default=None, ge=0)
    inputMint: Optional[str] = None


class SubmitCancelBundleRequest(BaseModel):
    signedTransactions: List[str] = Field(min_length=1)
    orderIds: List[str] = Field(default_factory=list)


class CreateOrderRequest(BaseModel):
    inputMint: str
    outputMint: str
    maker: str
    makingAmount: str
    takingAmount: str


# ---------- bundle submission ----------
@router.post("/submit-jito-bundle")
def submit_jito_bundle(req: SubmitBundleRequest, svc: BundleService = Depends(get_bundle_service)):
    log.banner("JITO BUNDLE SUBMISSION - Order Creation", source="bundle_api")
    log.start_timer("submit-jito-bundle")
    receipt = svc.submit_order_bundle(
        req.signedTransaction,
        req.orderId,
        making_amount=req.makingAmount,
        input_mint=req.inputMint,
    )
    log.end_timer("submit-jito-bundle", source="bundle_api")
    log.success(f"bundle {receipt.bundle_id} sent for order {req.orderId}", source="bundle_api")
    return {"success": True, "bundleId": receipt.bundle_id, "signature": receipt.signature}


@router.post("/submit-cancel-bundle")
def submit_cancel_bundle(req: SubmitCancelBundleRequest, svc: BundleService = Depends(get_bundle_service)):
    log.route(f"cancel bundle for {req.orderIds} ({len(req.signedTransactions)} txs)", source="bundle_api")
    receipt = svc.submit_cancel_bundle(req.signedTransactions, req.orderIds)
    log.success(f"cancel bundle {receipt.bundle_id} sent", source="bundle_api")
    return {"success": True, "bundleId": receipt.bundle_id, "signatures": receipt.signatures}


@router.get("/bundle-status")
def bundle_status(bundleId: str, svc: BundleService = Depends(get_bundle_service)):
    return {"success": True, "status": svc.bundle_status(bundleId)}


# ---------- orders ----------
@router.post("/create-order-jito")
def create_order_jito(req: CreateOrderRequest, svc: ServerOrderService = Depends(get_server_order_service)):
    log.route(
        f"create order maker={req.maker} {req.makingAmount} -> {req.takingAmount}",
        source="bundle_api",
    )
    result = svc.create_and_send(
        input_mint=req.inputMint,
        output_mint=req.outputMint,
        maker=req.maker,
        making_amount=req.makingAmount,
        taking_amount=req.takingAmount,
    )
    return {"success": True, "orderId": result.order_id, "signature": result.signature}


@router.get("/open-orders")
def open_orders(wallet: Optional[str] = None, orders: LimitOrderService = Depends(get_order_service)):
    wallet = _require_wallet(wallet)
    log.route(f"open orders for {wallet}", source="bundle_api")
    found = orders.open_orders(wallet)
    return {"success": True, "orders": [o.raw for o in found]}


# ---------- wallet ----------
@router.get("/wallet/holdings")
def wallet_holdings(wallet: Optional[str] = None, ledger: LedgerClient = Depends(get_ledger)):
    wallet = _require_wallet(wallet)
    holdings = ledger.token_holdings(wallet)
    return {"success": True, "lamports": holdings[0]["balance"], "holdings": holdings}


# ---------- health ----------
@router.get("/health")
def health(settings: BundleSettings = Depends(get_settings)):
    missing = [
        key
        for key, value in (
            ("BLOCK_ENGINE_URL", settings.block_engine_url),
            ("AUTH_KEYPAIR_PATH", settings.auth_keypair),
            ("RPC_URL", settings.rpc_url),
        )
        if not value
    ]
    invalid = list(settings.invalid)
    return {
        "ok": not missing and not invalid,
        "missing": missing,
        "invalid": invalid,
        "config": settings.describe(),
    }
