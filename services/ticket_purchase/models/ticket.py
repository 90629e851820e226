"""Modelos Pydantic para reserva de tickets"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime


class BookTicketRequest(BaseModel):
    event_id: str = Field(..., alias="eventId")
    attendee_name: Optional[str] = Field(None, alias="attendeeName", max_length=200)
    attendee_email: Optional[EmailStr] = Field(None, alias="attendeeEmail")

    class Config:
        populate_by_name = True


class TicketResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    attendee_name: str
    attendee_email: str
    event_title: str
    event_date: date
    event_time: str
    event_location: str
    price: float
    ticket_type: str
    quantity: int
    qr_data: str
    verification_token: str
    verified: bool
    verified_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_model(cls, ticket) -> "TicketResponse":
        return cls(
            id=str(ticket.id),
            event_id=str(ticket.event_id),
            user_id=str(ticket.user_id),
            attendee_name=ticket.attendee_name,
            attendee_email=ticket.attendee_email,
            event_title=ticket.event_title,
            event_date=ticket.event_date,
            event_time=ticket.event_time,
            event_location=ticket.event_location,
            price=float(ticket.price),
            ticket_type=ticket.ticket_type,
            quantity=ticket.quantity,
            qr_data=ticket.qr_data,
            verification_token=ticket.verification_token,
            verified=ticket.verified,
            verified_at=ticket.verified_at,
            created_at=ticket.created_at
        )
