"""Checkout FastAPI application.

Processes checkout commands synchronously over HTTP. Every ``/checkouts``
request runs inside the checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV picks the domain.toml overlay (memory providers by default,
# PostgreSQL under "production").
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from checkout.domain import checkout
from checkout.payment.processor import reset_processor
from checkout.referral.registry import reset_registry
from checkout.utils.logging import clear_context, configure_logging

configure_logging()
checkout.init()

_DOMAIN_PREFIX = "/checkouts"


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Release the collaborator HTTP clients
    reset_registry()
    reset_processor()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Checkout API",
    description="Checkout orchestration and referral discounts",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context for checkout requests."""
    clear_context()
    if request.url.path.startswith(_DOMAIN_PREFIX):
        with checkout.domain_context():
            return await call_next(request)
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import checkout_router, register_exception_handlers  # noqa: E402

app.include_router(checkout_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": checkout.name})
