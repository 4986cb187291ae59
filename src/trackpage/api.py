"""FastAPI REST API for trackpage status pages."""

import asyncio
import html
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from . import __version__
from .auth import require_admin
from .carriers import classify
from .context import AppContext
from .errors import (
    ConfigurationError,
    OrderNotFoundError,
    PageStoreError,
    StatusPageNotFoundError,
    TrackpageError,
    UpstreamError,
    ValidationError,
)
from .models import StatusPage

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---


class StatusPageCreateRequest(BaseModel):
    """Request body for generating a status page."""

    order_number: str = Field(
        default="",
        validation_alias=AliasChoices("order_number", "orderNumber"),
        description="Order number, with or without the leading '#'",
    )
    tracking_number: str = Field(
        default="",
        validation_alias=AliasChoices("tracking_number", "trackingNumber"),
    )
    custom_pickup_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("custom_pickup_date", "customPickupDate"),
        description="ISO 8601 date or datetime the label was created / package picked up",
    )


class StatusPageCreateResponse(BaseModel):
    success: bool = True
    page_id: str
    url: str
    data: dict[str, Any]


class StatusPageResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class SaveResponse(BaseModel):
    success: bool = True
    message: str


class CarrierSchema(BaseModel):
    carrier: str
    carrierCode: str
    trackingUrl: str


class HealthResponse(BaseModel):
    status: str
    shopify_connected: bool
    durable_storage: bool
    authenticated: bool = True


class ErrorResponse(BaseModel):
    success: bool = False
    detail: str
    error_type: str


# --- Global Exception Handler ---


# Map exception types to HTTP status codes (most specific class wins)
ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    OrderNotFoundError: 404,
    StatusPageNotFoundError: 404,
    UpstreamError: 502,
    ConfigurationError: 503,
    PageStoreError: 500,
}


def status_code_for(exc: TrackpageError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


async def trackpage_error_handler(request: Request, exc: TrackpageError) -> JSONResponse:
    """Map TrackpageError subclasses to appropriate HTTP responses."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "detail": str(exc), "error_type": type(exc).__name__},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "detail": "Internal server error", "error_type": "InternalError"},
    )


# --- Background Maintenance ---


async def _run_periodic(interval: float, job: Callable[[], int], name: str) -> None:
    """Run a blocking maintenance job in a worker thread every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(job)
        except Exception:
            logger.exception(f"Maintenance job {name} failed")


# --- Helper Functions ---


def get_context(request: Request) -> AppContext:
    """Get the AppContext owned by the running app."""
    return request.app.state.context


def page_url(request: Request, context: AppContext, page_id: str) -> str:
    base = context.settings.public_base_url or str(request.base_url).rstrip("/")
    return f"{base}/track/{page_id}"


def render_page_html(page: StatusPage) -> str:
    """Plain HTML rendering of a status page for customers."""
    rows = "\n".join(
        "<li class=\"{cls}\"><strong>{status}</strong> {date} {time}<br>{location}</li>".format(
            cls="current" if e.current else ("delivered" if e.is_delivered else "done"),
            status=html.escape(e.status),
            date=html.escape(e.date),
            time=html.escape(e.time),
            location=html.escape(e.location),
        )
        for e in reversed(page.events)
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Order {html.escape(page.order_number)}</title></head>
<body>
<h1>Order {html.escape(page.order_number)}</h1>
<p>{html.escape(page.carrier.carrier)} tracking
<a href="{html.escape(page.carrier.tracking_url)}">{html.escape(page.tracking_number)}</a></p>
<p>Shipping to {html.escape(page.destination)}</p>
<ul>
{rows}
</ul>
</body>
</html>
"""


# --- FastAPI App ---


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        context: Pre-built services. When omitted they are built from the
            environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.context is None:
            app.state.context = AppContext.build()
        context: AppContext = app.state.context
        settings = context.settings
        service = context.service
        if context.store is not None:
            await asyncio.to_thread(service.prune_store)

        tasks = [
            asyncio.create_task(
                _run_periodic(settings.cache_sweep_interval, service.sweep_cache, "cache sweep")
            ),
            asyncio.create_task(
                _run_periodic(settings.prune_interval, service.prune_store, "store prune")
            ),
        ]
        logger.info("trackpage API started")

        yield

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        context.close()
        logger.info("trackpage API shutting down...")

    app = FastAPI(
        title="trackpage API",
        description="REST API for generating shareable order status pages",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TrackpageError, trackpage_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    # --- Admin Endpoints ---

    @app.get("/api/health", response_model=HealthResponse)
    def health_check(
        _: str = Depends(require_admin),
        ctx: AppContext = Depends(get_context),
    ):
        """Report which integrations are configured."""
        return HealthResponse(
            status="ok",
            shopify_connected=ctx.settings.shopify_configured,
            durable_storage=ctx.store is not None,
        )

    @app.post(
        "/api/status-pages",
        response_model=StatusPageCreateResponse,
        status_code=201,
        responses={code: {"model": ErrorResponse} for code in (400, 404, 502, 503)},
    )
    def create_status_page(
        body: StatusPageCreateRequest,
        request: Request,
        _: str = Depends(require_admin),
        ctx: AppContext = Depends(get_context),
    ):
        """Generate a status page for an order; it stays temporary until saved."""
        page = ctx.service.create_page(
            body.order_number, body.tracking_number, body.custom_pickup_date
        )
        return StatusPageCreateResponse(
            page_id=page.id,
            url=page_url(request, ctx, page.id),
            data=page.to_dict(),
        )

    @app.post("/api/status-pages/{page_id}/save", response_model=SaveResponse)
    def save_status_page(
        page_id: str,
        _: str = Depends(require_admin),
        ctx: AppContext = Depends(get_context),
    ):
        """Promote a temporary page to durable storage."""
        result = ctx.service.save_page(page_id)
        return SaveResponse(message=result.message)

    @app.get("/api/carriers/classify", response_model=CarrierSchema)
    def classify_tracking_number(
        tracking_number: str = Query(..., min_length=1),
        _: str = Depends(require_admin),
    ):
        """Identify the carrier for a tracking number."""
        return CarrierSchema(**classify(tracking_number).to_dict())

    # --- Public Endpoints ---

    @app.get(
        "/api/status/{page_id}",
        response_model=StatusPageResponse,
        responses={404: {"model": ErrorResponse}},
    )
    def get_status(page_id: str, ctx: AppContext = Depends(get_context)):
        """
        Get a status page for customers.

        Pages older than the refresh threshold are regenerated from current
        order data before being returned.
        """
        page = ctx.service.get_page(page_id)
        return StatusPageResponse(data=page.to_dict())

    @app.get("/track/{page_id}", response_class=HTMLResponse)
    def track_page(page_id: str, ctx: AppContext = Depends(get_context)):
        """Customer-facing HTML view of a status page."""
        return HTMLResponse(render_page_html(ctx.service.get_page(page_id)))

    return app


app = create_app()
