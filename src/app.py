"""Subscription delivery FastAPI application.

Web server for the fulfillment domain: operational calendar administration,
payment webhooks, order tracking and driver routes. Commands are processed
synchronously within each request.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

import os

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from fulfillment.domain import fulfillment
from fulfillment.errors import OrderFulfillmentError
from fulfillment.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay from [tool.protean] in pyproject.toml
configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("PROTEAN_ENV") == "production",
)
fulfillment.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Subscription Delivery API",
    description="Order fulfillment and delivery scheduling",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.exception_handler(OrderFulfillmentError)
async def order_fulfillment_error_handler(request: Request, exc: OrderFulfillmentError):
    logger.error("order_fulfillment_error", path=request.url.path, step=exc.step, payment_intent_id=exc.payment_intent_id)
    return JSONResponse(
        status_code=500,
        content={"error": "Order creation failed, retry later", "step": exc.step},
    )


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the fulfillment domain context for each request."""
    with fulfillment.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from fulfillment.api.routes import (  # noqa: E402
    customer_router,
    driver_router,
    operational_date_router,
    order_router,
    webhook_router,
)

app.include_router(operational_date_router)
app.include_router(webhook_router)
app.include_router(order_router)
app.include_router(driver_router)
app.include_router(customer_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"fulfillment": {"name": fulfillment.name}},
        }
    )
