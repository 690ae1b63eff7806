"""FastAPI routes for order notifications.

Thin adapters over the status tracker, the resend service and the mailer. The caller's
user id arrives in the ``X-User-Id`` header. Handlers are plain functions so
FastAPI runs them in its threadpool; the store and resend calls block.
"""

import json
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, Request, Response
from order_notifications.api.schemas import (
    EmailHealthResponse,
    EmailRequest,
    EmailResponse,
    NotificationResponse,
    OrderEventResponse,
    ResendResponse,
    StatsResponse,
    StatusResponse,
)
from order_notifications.ingestion.order_event import DeserializationError, parse_order_event
from order_notifications.ingestion.source import ConsumedMessage
from order_notifications.notification.notification import NotificationNotFoundError
from order_notifications.notification.repository import DEFAULT_PAGE_SIZE
from order_notifications.service import NotificationService
from protean.exceptions import ValidationError

router = APIRouter(prefix="/notifications", tags=["notifications"])
test_router = APIRouter(prefix="/api/test", tags=["test"])

MAX_PAGE_SIZE = 1000


def get_service(request: Request) -> NotificationService:
    return request.app.state.service


ServiceDep = Annotated[NotificationService, Depends(get_service)]
UserIdHeader = Annotated[int, Header(alias="X-User-Id")]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@router.get("/my", response_model=list[NotificationResponse])
def my_notifications(service: ServiceDep, user_id: UserIdHeader) -> list[NotificationResponse]:
    """The caller's notifications, newest first."""
    return [NotificationResponse.from_notification(n) for n in service.tracker.query_by_user(user_id)]


@router.get("/order/{order_id}", response_model=list[NotificationResponse])
def order_notifications(order_id: int, service: ServiceDep, user_id: UserIdHeader) -> list[NotificationResponse]:
    """The caller's notifications for one order. Other users' orders look empty."""
    results = service.tracker.query_by_order(order_id, user_id=user_id)
    return [NotificationResponse.from_notification(n) for n in results]


@router.get("/pending", response_model=list[NotificationResponse])
def pending_notifications(
    service: ServiceDep,
    response: Response,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[NotificationResponse]:
    """A page of PENDING notifications, oldest first.

    ``X-Total-Count`` carries the number of PENDING notifications overall.
    """
    response.headers["X-Total-Count"] = str(service.tracker.count_pending())
    results = service.tracker.query_pending(limit=limit, offset=offset)
    return [NotificationResponse.from_notification(n) for n in results]


@router.get("/stats", response_model=StatsResponse)
def notification_stats(service: ServiceDep, user_id: UserIdHeader) -> StatsResponse:
    stats = service.tracker.stats(user_id)
    return StatsResponse(
        user_id=stats.user_id,
        total=stats.total,
        pending=stats.pending,
        sent=stats.sent,
        failed=stats.failed,
    )


# ---------------------------------------------------------------------------
# Read tracking
# ---------------------------------------------------------------------------
@router.put("/{notification_id}/read", response_model=StatusResponse)
def mark_as_read(notification_id: str, service: ServiceDep, user_id: UserIdHeader) -> StatusResponse:
    try:
        service.tracker.mark_read(notification_id, user_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return StatusResponse()


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------
@router.post("/order/{order_id}/resend", response_model=ResendResponse)
def resend_notification(order_id: int, service: ServiceDep) -> ResendResponse:
    resent = service.recovery.resend(order_id)
    return ResendResponse(
        order_id=order_id,
        resent=resent,
        message="Notification resent successfully" if resent else "Failed to resend notification",
    )


# ---------------------------------------------------------------------------
# Ad-hoc mail
# ---------------------------------------------------------------------------
@router.post("/test-email", response_model=EmailResponse)
def send_test_email(
    email: EmailRequest, service: ServiceDep, user_id: UserIdHeader, response: Response
) -> EmailResponse:
    """Send a plain e-mail and wait for the delivery outcome."""
    try:
        notification, sent = service.mailer.send(user_id, email.to, email.subject, email.body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    if not sent:
        response.status_code = 500
    return EmailResponse(
        notification_id=str(notification.id),
        sent=sent,
        message="Test email sent successfully" if sent else "Failed to send test email",
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/email/health", response_model=EmailHealthResponse)
def email_health(service: ServiceDep) -> EmailHealthResponse:
    transport = type(service.transport).__name__
    if not service.transport.check_connection():
        raise HTTPException(status_code=503, detail=f"Mail transport {transport} is unreachable")
    return EmailHealthResponse(status="ok", transport=transport)


# ---------------------------------------------------------------------------
# Event injection
# ---------------------------------------------------------------------------
@test_router.post("/order-event", response_model=OrderEventResponse)
def inject_order_event(service: ServiceDep, event: Annotated[dict, Body()]) -> OrderEventResponse:
    """Feed one order event through the consumer as if it came from the bus."""
    payload = json.dumps(event)
    try:
        parse_order_event(payload)
    except DeserializationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    message = ConsumedMessage(
        topic=service.settings.order_events_topic,
        partition=-1,
        offset=-1,
        payload=payload,
        headers={"source": "api"},
    )
    notification = service.consumer.handle_message(message)
    if notification is None:
        return OrderEventResponse(processed=False, message="Order event produced no notification")
    return OrderEventResponse(
        processed=True,
        notification_id=str(notification.id),
        message="Order event processed successfully",
    )
