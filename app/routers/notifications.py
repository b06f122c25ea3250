"""Notification router: reminder derivation and the notification feed."""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlmodel import Session
import logging

from app.schemas.notification import DerivationResponse, NotificationFeed, UnreadCount
from app.services.notification_service import (
    DEFAULT_FEED_LIMIT,
    DerivationError,
    NotificationService,
    serialize_notification,
    unread_count,
)
from app.middleware.auth import get_current_user, verify_user_access, CurrentUser
from app.realtime.connection_manager import connection_manager
from app.db.config import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])  # No prefix since main.py adds /api prefix


def get_notification_service(session: Session = Depends(get_session)) -> NotificationService:
    """Dependency for getting NotificationService instance."""
    return NotificationService(session)


@router.get("/{user_id}/notifications", response_model=NotificationFeed)
async def list_notifications(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
    limit: int = Query(DEFAULT_FEED_LIMIT, ge=1, le=DEFAULT_FEED_LIMIT),
):
    """Newest-first notification feed with the unread count."""
    verify_user_access(user_id, current_user)

    notifications = service.list_notifications(user_id, limit=limit)
    return {
        "notifications": notifications,
        "count": len(notifications),
        "unread_count": unread_count(notifications)
    }


@router.get("/{user_id}/notifications/unread-count", response_model=UnreadCount)
async def get_unread_count(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Number of unread notifications."""
    verify_user_access(user_id, current_user)
    return {"count": service.count_unread(user_id)}


@router.post("/{user_id}/notifications/derive", response_model=DerivationResponse)
async def derive_notifications(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Scan the user's documents and create any reminders that are due."""
    verify_user_access(user_id, current_user)

    try:
        result = service.derive_notifications(user_id)
    except DerivationError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Derivation incomplete: {str(e)}"
        )

    if result.created:
        await connection_manager.notify_notifications_changed(
            user_id, "notifications_created", count=len(result.created)
        )

    return {
        "status": result.status,
        "created": [serialize_notification(n) for n in result.created],
        "created_count": len(result.created),
        "skipped_duplicates": result.skipped_duplicates,
        "documents_scanned": result.documents_scanned,
        "errors": result.errors
    }


@router.patch("/{user_id}/notifications/read-all", status_code=status.HTTP_204_NO_CONTENT)
async def mark_all_read(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark every unread notification as read."""
    verify_user_access(user_id, current_user)

    changed = service.mark_all_read(user_id)
    if changed:
        await connection_manager.notify_notifications_changed(user_id, "notifications_read", count=changed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{user_id}/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    user_id: str,
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark one notification as read. Unknown IDs are a no-op."""
    verify_user_access(user_id, current_user)

    if service.mark_read(notification_id, user_id):
        await connection_manager.notify_notifications_changed(user_id, "notifications_read", count=1)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{user_id}/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    user_id: str,
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Delete a notification."""
    verify_user_access(user_id, current_user)

    if not service.delete_notification(notification_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
