"""SportShop FastAPI application.

Serves the Commerce domain over HTTP and processes commands synchronously.
Each request runs inside the commerce domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commerce.domain import commerce
from commerce.utils.logging import bind_request_context, clear_context, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
configure_logging()
commerce.init()


def create_app() -> FastAPI:
    from commerce.api import (
        cart_router,
        coupon_router,
        order_router,
        register_exception_handlers,
        review_router,
    )

    application = FastAPI(
        title="SportShop API",
        description="Sports e-commerce: carts, checkout, orders, coupons and reviews",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the commerce domain context and bind request log context."""
        bind_request_context(
            request_id=request.headers.get("x-request-id", uuid4().hex),
            method=request.method,
            path=request.url.path,
        )
        try:
            with commerce.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    register_exception_handlers(application)
    application.include_router(cart_router)
    application.include_router(order_router)
    application.include_router(coupon_router)
    application.include_router(review_router)

    @application.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": commerce.name})

    return application


app = create_app()
