"""Modelos Pydantic para endpoints de administración"""
from pydantic import BaseModel, Field
from typing import List
from datetime import date, datetime

from app.core.config import settings
from services.event_management.models.event import EventResponse


class DashboardOverview(BaseModel):
    total_events: int
    approved_events: int
    pending_events: int
    total_tickets: int
    verified_tickets: int
    total_users: int
    total_revenue: float


class RecentTicket(BaseModel):
    id: str
    event_id: str
    event_title: str
    event_date: date
    attendee_name: str
    attendee_email: str
    price: float
    verified: bool
    created_at: datetime

    @classmethod
    def from_model(cls, ticket) -> "RecentTicket":
        return cls(
            id=str(ticket.id),
            event_id=str(ticket.event_id),
            event_title=ticket.event_title,
            event_date=ticket.event_date,
            attendee_name=ticket.attendee_name,
            attendee_email=ticket.attendee_email,
            price=float(ticket.price),
            verified=ticket.verified,
            created_at=ticket.created_at
        )


class DashboardStatsResponse(BaseModel):
    overview: DashboardOverview
    recent_events: List[EventResponse]
    recent_tickets: List[RecentTicket]
    top_events: List[EventResponse]


class CleanupRequest(BaseModel):
    action: str = Field(..., min_length=1)
    days_old: int = Field(settings.CLEANUP_DEFAULT_DAYS_OLD, alias="daysOld", ge=0)

    class Config:
        populate_by_name = True


class CleanupResult(BaseModel):
    action: str
    items_processed: int = Field(0, alias="itemsProcessed")
    items_deleted: int = Field(0, alias="itemsDeleted")
    errors: List[str] = []

    class Config:
        populate_by_name = True
