"""
Notifications API - announcements, read receipts, admin publishing
"""
import datetime as dt
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from canteen.models.user import User
from canteen.models.notification import NotificationType, NotificationScope
from canteen.api.auth import get_current_user
from canteen.services import analytics
from canteen.services.store import CanteenStore, get_store

router = APIRouter()


class NotificationRequest(BaseModel):
    """action='read' marks notification_id as read; anything else publishes (admins only)"""
    action: Optional[Literal["read", "create"]] = None
    notification_id: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    type: Optional[NotificationType] = None
    scope: Optional[NotificationScope] = None


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType
    scope: NotificationScope
    read_by: List[str]
    created_at: Optional[dt.datetime]

    class Config:
        from_attributes = True


@router.get("/")
async def list_notifications(
    scope: Optional[NotificationScope] = None,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """Notifications for a scope; defaults to the caller's own audience"""
    if scope is None:
        scope = NotificationScope(current_user.role.value)

    notifications = await store.get_notifications(scope)
    return {
        "notifications": [NotificationResponse.model_validate(n) for n in notifications],
        "unread_count": analytics.unread_count(notifications, current_user.id),
    }


@router.post("/")
async def post_notification(
    data: NotificationRequest,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    if data.action == "read":
        if not data.notification_id:
            raise HTTPException(status_code=400, detail="notification_id required.")
        await store.mark_notification_as_read(data.notification_id, current_user.id)
        return {"success": True}

    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")

    if not data.title or not data.message or not data.type or not data.scope:
        raise HTTPException(status_code=400, detail="title, message, type, and scope are required.")

    notification = await store.add_notification({
        "title": data.title,
        "message": data.message,
        "type": data.type,
        "scope": data.scope,
    })
    return {"notification": NotificationResponse.model_validate(notification)}
