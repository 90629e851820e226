"""Modelos Pydantic para eventos"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date as date_type, datetime
import re

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    date: date_type
    time: str
    location: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    price: float = Field(0, ge=0)
    host: str = Field(..., min_length=1)
    capacity: Optional[int] = Field(None, ge=1)
    image_url: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        value = value.strip()
        if not _TIME_PATTERN.match(value):
            raise ValueError("time must be HH:MM")
        # Normalizado a HH:MM para que el orden por string sea cronológico
        hour, minute = value.split(":")
        return f"{int(hour):02d}:{minute}"

    @field_validator("title", "description", "location", "category", "host")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("field must not be blank")
        return value


class EventOwner(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class EventResponse(BaseModel):
    id: str
    owner_id: str
    title: str
    description: str
    date: date_type
    time: str
    location: str
    category: str
    price: float
    host: str
    image_url: Optional[str] = None
    is_approved: bool
    capacity: Optional[int] = None
    attendees_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, event) -> "EventResponse":
        return cls(
            id=str(event.id),
            owner_id=str(event.owner_id),
            title=event.title,
            description=event.description,
            date=event.date,
            time=event.time,
            location=event.location,
            category=event.category,
            price=float(event.price),
            host=event.host,
            image_url=event.image_url,
            is_approved=event.is_approved,
            capacity=event.capacity,
            attendees_count=event.attendees_count,
            created_at=event.created_at,
            updated_at=event.updated_at
        )
