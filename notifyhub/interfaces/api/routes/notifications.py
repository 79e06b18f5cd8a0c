"""Endpoints and websocket handler for the notification delivery gateway."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from notifyhub.application.use_cases.notifications import (
    count_unread_notifications,
    create_notification,
    list_notifications as list_notifications_uc,
    list_unread_notifications as list_unread_notifications_uc,
    mark_all_notifications_read,
    mark_notifications_read,
)
from notifyhub.config import get_settings
from notifyhub.domain.entities import Identity
from notifyhub.domain.exceptions import NotificationValidationError, TransientStoreError
from notifyhub.infrastructure.database import SessionLocal, get_db
from notifyhub.infrastructure.notifications import connection_registry, serialize_delivery
from notifyhub.interfaces.api.dependencies import (
    get_current_identity,
    require_publisher,
    resolve_identity,
)
from notifyhub.interfaces.api.schemas import (
    NotificationCreate,
    NotificationCreateResponse,
    NotificationItem,
    NotificationMarkReadRequest,
    NotificationMarkReadResponse,
    NotificationUnreadCount,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"


@contextmanager
def _gateway_errors() -> Iterator[None]:
    """Translate core errors into HTTP responses."""

    try:
        yield
    except NotificationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except TransientStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        ) from exc


def _resolve_limit(limit: int | None, *, only_unread: bool) -> int | None:
    """Cap the read history by default; unread items are always returned in full."""

    if limit is not None or only_unread:
        return limit
    return get_settings().notification_list_limit


@router.get("/", response_model=list[NotificationItem])
def list_notifications(
    only_unread: bool = Query(False, description="Return only unread notifications"),
    limit: int | None = Query(None, gt=0, le=500),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> list[NotificationItem]:
    """Return the caller's notifications, newest first."""

    with _gateway_errors():
        deliveries = list_notifications_uc(
            db,
            identity=identity,
            only_unread=only_unread,
            limit=_resolve_limit(limit, only_unread=only_unread),
        )
    return [NotificationItem.from_delivery(delivery) for delivery in deliveries]


@router.get("/unread", response_model=list[NotificationItem])
def list_unread_notifications(
    limit: int | None = Query(None, gt=0, le=500),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> list[NotificationItem]:
    """Return the caller's unread notifications, newest first."""

    with _gateway_errors():
        deliveries = list_unread_notifications_uc(db, identity=identity, limit=limit)
    return [NotificationItem.from_delivery(delivery) for delivery in deliveries]


@router.get("/unread/count", response_model=NotificationUnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> NotificationUnreadCount:
    with _gateway_errors():
        count = count_unread_notifications(db, identity=identity)
    return NotificationUnreadCount(unread_count=count)


@router.post("/mark-read", response_model=NotificationMarkReadResponse)
def mark_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> NotificationMarkReadResponse:
    """Mark the caller's notifications as read; foreign ids are ignored."""

    with _gateway_errors():
        updated = mark_notifications_read(
            db, identity=identity, notification_ids=payload.ids
        )
    return NotificationMarkReadResponse(updated_count=updated)


@router.patch("/mark-all-read", response_model=NotificationMarkReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> NotificationMarkReadResponse:
    with _gateway_errors():
        updated = mark_all_notifications_read(db, identity=identity)
    return NotificationMarkReadResponse(updated_count=updated)


@router.patch("/{notification_id}", response_model=NotificationMarkReadResponse)
def mark_one_read(
    notification_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> NotificationMarkReadResponse:
    """Mark a single notification as read for the caller."""

    with _gateway_errors():
        updated = mark_notifications_read(
            db, identity=identity, notification_ids=[notification_id]
        )
    return NotificationMarkReadResponse(updated_count=updated)


@router.post(
    "/",
    response_model=NotificationCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def publish_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_publisher),
) -> NotificationCreateResponse:
    """Create a notification and fan it out to the addressed users."""

    with _gateway_errors():
        result = create_notification(
            db,
            message=payload.message,
            role_targets=payload.role_targets,
            recipient_username=payload.recipient_username,
            target_url=payload.target_url,
        )
    logger.info(
        "%s published notification %s", identity.username, result.notification.id
    )
    notification = result.notification
    return NotificationCreateResponse(
        notification=NotificationItem(
            id=notification.id or 0,
            message=notification.message,
            created_at=notification.created_at,
            is_read=False,
            target_url=notification.target_url,
        ),
        delivered_count=result.delivered_count,
    )


def _pending_payload(identity: Identity) -> list[dict]:
    with SessionLocal() as session:
        deliveries = list_unread_notifications_uc(session, identity=identity)
    return [serialize_delivery(delivery) for delivery in deliveries]


def _acknowledge(identity: Identity, ids: object) -> int:
    with SessionLocal() as session:
        return mark_notifications_read(session, identity=identity, notification_ids=ids)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    try:
        identity = resolve_identity(websocket.query_params.get("token"))
    except HTTPException:
        await websocket.close(code=1008)
        return

    try:
        pending = await run_in_threadpool(_pending_payload, identity)
    except TransientStoreError:
        await websocket.close(code=1011)
        return

    if not await connection_registry.connect(identity.user_id, websocket):
        return
    try:
        await websocket.send_json({"type": "init", "data": pending})
        while True:
            try:
                message = await websocket.receive_json()
            except (ValueError, KeyError, TypeError):
                # Binary frames carry no text payload.
                message = None

            if not isinstance(message, dict):
                await websocket.send_json(
                    {"type": "error", "detail": "Messages must be JSON objects"}
                )
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
            elif message_type == "ack":
                try:
                    updated = await run_in_threadpool(
                        _acknowledge, identity, message.get("ids")
                    )
                except (NotificationValidationError, TransientStoreError) as exc:
                    await websocket.send_json({"type": "error", "detail": str(exc)})
                else:
                    await websocket.send_json(
                        {"type": "ack", "data": {"updated_count": updated}}
                    )
    except WebSocketDisconnect:
        pass
    finally:
        connection_registry.disconnect(identity.user_id, websocket)
