"""Modelos Pydantic para notificaciones"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: str
    read: bool
    event_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, notification) -> "NotificationResponse":
        return cls(
            id=str(notification.id),
            user_id=str(notification.user_id),
            title=notification.title,
            message=notification.message,
            type=notification.type,
            read=notification.is_read,
            event_id=str(notification.event_id) if notification.event_id else None,
            created_at=notification.created_at
        )


class NotificationsListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


class MarkReadRequest(BaseModel):
    # Sin id se marcan todas como leídas
    notification_id: Optional[str] = Field(default=None, alias="notificationId")

    class Config:
        populate_by_name = True
