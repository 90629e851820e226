"""Modelos SQLAlchemy"""
from sqlalchemy import (
    Column, String, Integer, BigInteger, Boolean, DateTime, Date, ForeignKey,
    Numeric, Text, UniqueConstraint, Uuid
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
from shared.database.connection import Base


def utcnow() -> datetime:
    """Fecha/hora actual en UTC sin tzinfo (todas las columnas se guardan en UTC)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    reset_password_token = Column(String, nullable=True)
    reset_password_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relaciones
    events = relationship("Event", back_populates="owner")


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String, nullable=False)  # "HH:MM" tal como lo escribe el organizador
    location = Column(String, nullable=False)
    category = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    host = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)  # Gate de visibilidad pública
    capacity = Column(Integer, nullable=True)  # None = sin límite
    attendees_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relaciones
    owner = relationship("User", back_populates="events")


class Ticket(Base):
    __tablename__ = "tickets"
    # Un solo ticket por (usuario, evento); cierra la carrera check-then-insert
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_tickets_user_event"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)

    # Datos del asistente y snapshot del evento al momento de la compra (inmutables)
    attendee_name = Column(String, nullable=False)
    attendee_email = Column(String, nullable=False)
    event_title = Column(String, nullable=False)
    event_date = Column(Date, nullable=False)
    event_time = Column(String, nullable=False)
    event_location = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)

    qr_data = Column(Text, nullable=False)  # Payload serializado, contenido exacto del QR
    verification_token = Column(String(32), nullable=False)
    issued_at = Column(DateTime, nullable=False)
    issued_at_ms = Column(BigInteger, nullable=False)  # Entrada del HMAC, no se recalcula desde issued_at
    ticket_type = Column(String, nullable=False, default="General")
    quantity = Column(Integer, nullable=False, default=1)

    verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime, nullable=True)
    verified_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relaciones
    event = relationship("Event")
    user = relationship("User", foreign_keys=[user_id])


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="event")  # event, ticket, system
    is_read = Column(Boolean, nullable=False, default=False)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
