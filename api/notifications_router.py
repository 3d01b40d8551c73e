"""
Notifications API Router.

REST endpoints over the notification log plus an explicit trigger for the
notification sync (the same call the daemon makes on its timer).
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_context
from api.response_models import (
    MutationResponse,
    NotificationListResponse,
    SyncResponse,
    UnreadCountResponse,
)
from krocs.context import AppContext
from krocs.notifier import sync_notifications

logger = logging.getLogger(__name__)

notifications_router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"],
)


@notifications_router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """List the notification log, newest first."""
    items = ctx.notifications.unread() if unread_only else ctx.notifications.all()
    return {
        "items": [n.to_dict() for n in items],
        "total": len(items),
        "unread": ctx.notifications.unread_count(),
    }


@notifications_router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(ctx: AppContext = Depends(get_context)) -> dict:
    return {"unread": ctx.notifications.unread_count()}


@notifications_router.post("/sync", response_model=SyncResponse)
def sync(ctx: AppContext = Depends(get_context)) -> dict:
    """Evaluate every notification rule now and append anything new."""
    try:
        emitted = sync_notifications(ctx)
    except sqlite3.Error as e:
        logger.error(f"Notification sync failed: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return {
        "emitted": [n.to_dict() for n in emitted],
        "total": len(ctx.notifications.all()),
    }


@notifications_router.post("/read-all", response_model=MutationResponse)
def mark_all_read(ctx: AppContext = Depends(get_context)) -> dict:
    marked = ctx.notifications.mark_all_as_read()
    return {"success": True, "marked": marked}


@notifications_router.post("/{notification_id}/read", response_model=MutationResponse)
def mark_read(notification_id: str, ctx: AppContext = Depends(get_context)) -> dict:
    if not ctx.notifications.mark_as_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True, "id": notification_id}


@notifications_router.delete("", response_model=MutationResponse)
def clear_notifications(ctx: AppContext = Depends(get_context)) -> dict:
    """Physically wipe the log. Re-arms every de-duplicated rule."""
    ctx.notifications.clear()
    return {"success": True}
