import logging
import math
from contextlib import asynccontextmanager
from typing import Annotated

import anyio
from fastapi import FastAPI, Response, Request, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ventspace.config import settings, get_settings
from ventspace.broadcast import Broadcaster, Subscription
from ventspace.errors import RateLimited, SubmissionError
from ventspace.ingestion import IngestionService
from ventspace.logging_utils import setup_logging, RequestLoggingMiddleware, log_submission_data
from ventspace.metrics import (
    record_submission_outcome,
    set_subscriber_count,
    get_metrics,
    get_metrics_content_type,
)
from ventspace.models import RECENT_LIMIT
from ventspace.rate_limiter import RateLimiter
from ventspace.schemas import (
    ErrorResponse,
    HealthResponse,
    MessageCreate,
    MessageResponse,
)
from ventspace.storage import MessageStore, create_message_store
from ventspace.utils import format_timestamp, utc_now


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/messages"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: pick the message store once and wire the ingestion pipeline
    - Shutdown: release the store
    """
    current = get_settings()
    store = create_message_store(current.DATABASE_URL)
    rate_limiter = RateLimiter()
    broadcaster = Broadcaster(queue_size=current.SUBSCRIBER_QUEUE_SIZE)

    app.state.message_store = store
    app.state.rate_limiter = rate_limiter
    app.state.broadcaster = broadcaster
    app.state.ingestion = IngestionService(rate_limiter, store, broadcaster)
    logger.info(f"Message board ready, storage={store.backend}")

    yield

    store.close()


app = FastAPI(
    title="VentSpace",
    description="Real-time moderated message board",
    version="1.0.0",
    lifespan=lifespan,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Browser clients may be served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_ingestion(request: Request) -> IngestionService:
    return request.app.state.ingestion


def get_store(request: Request) -> MessageStore:
    return request.app.state.message_store


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(SubmissionError)
async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    """Render a SubmissionError as {detail, category} with its status code."""
    body = ErrorResponse(
        detail=exc.detail,
        category=exc.category,
        reason_category=getattr(exc, "reason_category", None),
    )
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    """
    Malformed submissions are reported as invalid_data (400).
    Other routes keep FastAPI's default 422 response.
    """
    if request.method != "POST" or request.url.path != SUBMIT_PATH:
        return await request_validation_exception_handler(request, exc)

    logger.warning(f"Invalid submission body: {exc.errors()}")
    record_submission_outcome("invalid_data")
    log_submission_data(request=request, result="invalid_data")
    body = ErrorResponse(detail="Invalid message data", category="invalid_data")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))


# =============================================================================
# Health Check Route
# =============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health(store: MessageStore = Depends(get_store)) -> HealthResponse:
    """
    Liveness probe with the current server time and active storage backend.
    """
    return HealthResponse(
        status="ok",
        timestamp=format_timestamp(utc_now()),
        storage=store.backend,
    )


# =============================================================================
# Messages Routes
# =============================================================================

@app.get(SUBMIT_PATH, response_model=list[MessageResponse])
async def list_messages(
    limit: Annotated[int, Query(ge=1, le=RECENT_LIMIT, description="Maximum number of messages to return")] = RECENT_LIMIT,
    store: MessageStore = Depends(get_store),
) -> list[MessageResponse]:
    """
    List the most recent messages, newest first (at most 100).
    """
    messages = store.list_recent(limit)
    logger.info(f"GET {SUBMIT_PATH}: returned {len(messages)} messages (limit={limit})")
    return messages


@app.post(
    SUBMIT_PATH,
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Content rejected or invalid data"},
        429: {"model": ErrorResponse, "description": "Rate limited"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    }
)
async def create_message(
    payload: MessageCreate,
    request: Request,
    ingestion: IngestionService = Depends(get_ingestion),
) -> MessageResponse:
    """
    Submit a message.

    - One post per client every 5 seconds
    - Text is moderated before it is stored
    - Accepted messages are pushed to every WebSocket subscriber
    """
    client_id = request.client.host if request.client else "unknown"

    try:
        message = ingestion.submit(client_id, payload.text, payload.emoji)
    except SubmissionError as e:
        record_submission_outcome(e.category)
        log_submission_data(
            request=request,
            result=e.category,
            reason_category=getattr(e, "reason_category", None),
        )
        raise

    record_submission_outcome("accepted")
    log_submission_data(request=request, result="accepted", message_id=message.id)
    return message


# =============================================================================
# Real-time Route
# =============================================================================

async def _forward_events(websocket: WebSocket, subscription: Subscription, cancel_scope: anyio.CancelScope) -> None:
    try:
        async for event in subscription:
            await websocket.send_json(event)
    except WebSocketDisconnect:
        pass
    cancel_scope.cancel()


async def _wait_for_disconnect(websocket: WebSocket, cancel_scope: anyio.CancelScope) -> None:
    # Client messages carry no meaning; drain them until the socket closes
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            break
    cancel_scope.cancel()


@app.websocket("/ws")
async def message_feed(websocket: WebSocket) -> None:
    """
    Push every newly accepted message as {"event": "newMessage", "data": {...}}.
    Messages posted before the connection opened are not replayed.
    """
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    # Subscribe before accepting so nothing published after the handshake is missed
    subscription = broadcaster.subscribe()
    set_subscriber_count(broadcaster.subscriber_count)
    try:
        await websocket.accept()
        async with anyio.create_task_group() as tg:
            tg.start_soon(_forward_events, websocket, subscription, tg.cancel_scope)
            tg.start_soon(_wait_for_disconnect, websocket, tg.cancel_scope)
    finally:
        subscription.close()
        set_subscriber_count(broadcaster.subscriber_count)


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics.
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
