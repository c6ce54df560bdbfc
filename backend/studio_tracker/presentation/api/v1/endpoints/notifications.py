"""Notification endpoints — feed, read/delete actions, permission and the live event stream."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from studio_tracker.application.schemas import (
    NotificationActionResponse,
    NotificationFeedResponse,
    NotificationOpenResponse,
    NotificationPermissionRequest,
    NotificationPermissionResponse,
    NotificationResponse,
)
from studio_tracker.application.services import NotificationEngine, SSEManager
from studio_tracker.domain.entities import Session
from studio_tracker.infrastructure.dependencies import (
    get_browser_notifier,
    get_current_session,
    get_notification_engine,
    get_sse_manager,
)
from studio_tracker.infrastructure.notifications.browser_notifier import BrowserNotifier

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _action_result(success: bool) -> NotificationActionResponse:
    if not success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The notification store rejected the change",
        )
    return NotificationActionResponse(success=True)


@router.get("", response_model=NotificationFeedResponse)
async def get_feed(
    session: Session = Depends(get_current_session),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationFeedResponse:
    """The signed-in user's newest notifications and unread count."""
    return NotificationFeedResponse(
        status=engine.status.value,
        unread_count=engine.unread_count,
        notifications=[
            NotificationResponse.model_validate(n, from_attributes=True)
            for n in engine.notifications
        ],
    )


@router.post("/read-all", response_model=NotificationActionResponse)
async def mark_all_read(
    session: Session = Depends(get_current_session),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationActionResponse:
    return _action_result(await engine.mark_all_read())


@router.delete("", response_model=NotificationActionResponse)
async def delete_all(
    session: Session = Depends(get_current_session),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationActionResponse:
    return _action_result(await engine.delete_all())


@router.post("/{notification_id}/read", response_model=NotificationActionResponse)
async def mark_read(
    notification_id: str,
    session: Session = Depends(get_current_session),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationActionResponse:
    return _action_result(await engine.mark_read(notification_id))


@router.post("/{notification_id}/open", response_model=NotificationOpenResponse)
async def open_notification(
    notification_id: str,
    session: Session = Depends(get_current_session),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationOpenResponse:
    """Mark a notification read and return where the client should navigate."""
    return NotificationOpenResponse(link=await engine.open(notification_id))


@router.delete("/{notification_id}", response_model=NotificationActionResponse)
async def delete_notification(
    notification_id: str,
    session: Session = Depends(get_current_session),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationActionResponse:
    return _action_result(await engine.delete(notification_id))


@router.get("/permission", response_model=NotificationPermissionResponse)
async def get_permission(
    notifier: BrowserNotifier = Depends(get_browser_notifier),
) -> NotificationPermissionResponse:
    return NotificationPermissionResponse(permission=notifier.permission)


@router.put("/permission", response_model=NotificationPermissionResponse)
async def set_permission(
    data: NotificationPermissionRequest,
    notifier: BrowserNotifier = Depends(get_browser_notifier),
) -> NotificationPermissionResponse:
    """Record the browser's answer to the notification permission prompt."""
    return NotificationPermissionResponse(permission=notifier.set_permission(data.permission))


@router.get("/stream")
async def event_stream(
    sse: SSEManager = Depends(get_sse_manager),
) -> StreamingResponse:
    """SSE stream of live events.

    Clients connect via EventSource and receive 'toast',
    'notification_unread', 'chat_update', 'native_notification',
    'notification_permission_request' and 'session' events.
    """
    return StreamingResponse(
        sse.subscribe(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
