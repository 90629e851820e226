"""Rutas de notificaciones"""
from fastapi import APIRouter, Depends, Body
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Optional
from uuid import UUID

from app.core.config import settings
from shared.database.session import get_db
from shared.auth.dependencies import get_current_user
from shared.exception.exceptions import ValidationFailedError
from shared.utils.response import success_response
from services.notifications.models.notification import (
    NotificationResponse,
    NotificationsListResponse,
    MarkReadRequest
)
from services.notifications.services.notification_service import NotificationService


router = APIRouter()


@router.get("")
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """
    Notificaciones del usuario actual (más recientes primero) y cantidad sin leer
    """
    notifications, unread_count = await NotificationService.list_for(
        db,
        user_id=UUID(current_user["user_id"]),
        limit=settings.NOTIFICATIONS_PAGE_SIZE
    )
    return success_response(NotificationsListResponse(
        notifications=[NotificationResponse.from_model(n) for n in notifications],
        unread_count=unread_count
    ))


@router.post("")
async def mark_notifications_read(
    request: Optional[MarkReadRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Marcar como leída una notificación, o todas si no se envía notificationId"""
    notification_id = None
    if request is not None and request.notification_id:
        try:
            notification_id = UUID(request.notification_id)
        except ValueError:
            raise ValidationFailedError("Invalid notificationId")

    updated = await NotificationService.mark_read(
        db,
        user_id=UUID(current_user["user_id"]),
        notification_id=notification_id
    )
    return success_response({"updated": updated}, "Notifications marked as read")
