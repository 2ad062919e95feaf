"""Dispatch FastAPI application.

Admin, rider and customer surface over the dispatch domain. Each request is
wrapped in the dispatch domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager
from uuid import uuid4

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
from dispatch.domain import dispatch  # noqa: E402
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from dispatch.notification import relay
from dispatch.utils.logging import bind_request_context, clear_request_context

dispatch.init()

_DOMAIN_PREFIXES = ("/deliveries", "/riders", "/settings", "/financials")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # Let queued notifications finish before the process exits
    relay.drain(timeout=10.0)
    relay.shutdown()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Dispatch API",
    description="Delivery dispatch: lifecycle, rider assignment, bulk operations and SLA tracking",
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
    """Push the dispatch domain context for domain routes."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    bind_request_context(request_id=request.headers.get("x-request-id") or uuid4().hex[:12])
    try:
        with dispatch.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from dispatch.api import (  # noqa: E402
    delivery_router,
    financials_router,
    register_dispatch_exception_handlers,
    rider_router,
    settings_router,
)

app.include_router(delivery_router)
app.include_router(rider_router)
app.include_router(settings_router)
app.include_router(financials_router)

register_exception_handlers(app)
register_dispatch_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": dispatch.name})
