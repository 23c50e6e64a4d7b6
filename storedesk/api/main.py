"""
Stub dashboard API.

Serves the same endpoints and envelopes as the real store backend from
in-memory state, for local development and integration tests.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storedesk.api.backend import StubBackend
from storedesk.api.routes import auth, customers, orders, products, settings

logger = logging.getLogger(__name__)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} field error(s)")
    errors: list[dict[str, Any]] = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


def create_app(backend: StubBackend | None = None) -> FastAPI:
    app = FastAPI(
        title="Storedesk Stub API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.backend = backend if backend is not None else StubBackend()

    # --- Routers ---
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(customers.router, prefix="/customers", tags=["Customers"])
    app.include_router(orders.router, prefix="/orders", tags=["Orders"])
    app.include_router(products.router, prefix="/products", tags=["Products"])
    app.include_router(settings.router, prefix="/api/settings", tags=["Settings"])

    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]

    # CORS (dashboard dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "stub-api"}

    return app
