"""FastAPI backend for Jito-bundled Jupiter limit orders.

Run with ``uvicorn backend.limit_backend_app:app`` or ``python -m backend.limit_backend_app``.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core.jito_core.config import BundleSettings, load_settings
from backend.core.jito_core.errors import BundleError
from backend.core.jito_core.listeners import BundleResultListener, LoggingBundleListener
from backend.core.jupiter_core.config import get_config
from backend.core.jupiter_core.errors import JupiterHTTPError, JupiterResponseError
from backend.core.jupiter_core.services import LimitOrderService
from backend.core.logging import log
from backend.routes.bundle_api import router as bundle_router

ROOT_DIR = Path(__file__).resolve().parents[1]


def _load_env_file() -> Optional[str]:
    try:
        found = find_dotenv(usecwd=True)
    except Exception:  # pragma: no cover - fallback if find_dotenv misbehaves
        found = ""
    if not found and (ROOT_DIR / ".env").exists():
        found = str(ROOT_DIR / ".env")
    if found:
        load_dotenv(found, override=False)
    return found or None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BundleError)
    async def _bundle_error(request: Request, exc: BundleError):
        log.error(f"{request.url.path}: {exc}", source=type(exc).__name__)
        return _error(exc.status_code, str(exc))

    @app.exception_handler(JupiterHTTPError)
    @app.exception_handler(JupiterResponseError)
    async def _jupiter_error(request: Request, exc: Exception):
        log.error(f"{request.url.path}: {exc}", source="jupiter")
        return _error(502, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return _error(400, "; ".join(parts) or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return _error(405, "Method not allowed")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        log.exception(f"{request.url.path}: unhandled {type(exc).__name__}", source="app")
        return _error(500, str(exc) or "Internal server error")


def create_app(
    settings: Optional[BundleSettings] = None,
    order_service: Optional[LimitOrderService] = None,
    listener: Optional[BundleResultListener] = None,
) -> FastAPI:
    """Build the app. Settings are resolved once here and shared read-only by every request."""

    if settings is None:
        settings = load_settings(env_file=_load_env_file())

    app = FastAPI(title="Jito Limit Orders API", version="0.1.0")
    app.state.settings = settings
    app.state.order_service = order_service or LimitOrderService(get_config())
    app.state.bundle_listener = listener or LoggingBundleListener()

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    app.include_router(bundle_router)

    log.banner("Jito Limit Orders API", source="app", payload=settings.describe())
    if settings.invalid:
        bad = ", ".join(settings.invalid)
        log.warning(f"malformed settings, requests will fail until fixed: {bad}", source="app")
    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "backend.limit_backend_app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
    )


if __name__ == "__main__":
    main()
