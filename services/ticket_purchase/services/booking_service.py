"""Servicio de reserva y emisión de tickets"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Dict, List, Optional
from datetime import datetime, timedelta, timezone
from uuid import UUID
import uuid
import logging

from shared.database.models import Event, Ticket, User
from shared.exception.exceptions import (
    NotFoundError,
    ForbiddenError,
    ConflictError,
    DuplicateBookingError,
    InternalError,
)
from shared.utils.ids import parse_uuid
from shared.utils.qr_generator import TicketSigner, build_ticket_payload, serialize_payload
from services.notifications.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _issue_timestamp():
    """Instante de emisión truncado a milisegundos (naive UTC, epoch ms)"""
    now = datetime.now(timezone.utc)
    now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
    return now.replace(tzinfo=None), (now - _EPOCH) // timedelta(milliseconds=1)


class BookingService:
    """
    Reserva un ticket por (usuario, evento).

    El ticket se escribe una sola vez: el id se genera antes del insert para
    poder calcular el token de verificación y embeber el payload del QR.
    """

    def __init__(self, signer: TicketSigner):
        self.signer = signer

    async def book(
        self,
        db: AsyncSession,
        requester: Dict,
        event_id: str,
        attendee_name: Optional[str] = None,
        attendee_email: Optional[str] = None
    ) -> Ticket:
        event_uuid = parse_uuid(event_id)
        event = await db.get(Event, event_uuid) if event_uuid else None
        if event is None:
            raise NotFoundError("Event not found")

        is_admin = bool(requester.get("is_admin"))
        if not event.is_approved and not is_admin:
            raise ForbiddenError("Event is not approved for booking")

        user = await db.get(User, UUID(requester["user_id"]))
        if user is None:
            raise NotFoundError("User not found")

        # Fast path; la constraint única cubre la carrera
        if await self._has_ticket(db, user.id, event.id):
            raise DuplicateBookingError()

        # Fast path; el UPDATE condicional de abajo es el que garantiza el cupo
        if event.capacity is not None and event.attendees_count >= event.capacity:
            raise ConflictError("Event is sold out")

        user_id, target_event_id = user.id, event.id
        ticket_id = uuid.uuid4()
        issued_at, issued_at_ms = _issue_timestamp()
        token = self.signer.generate_token(str(ticket_id), str(user.id), str(event.id), issued_at_ms)

        ticket = Ticket(
            id=ticket_id,
            user_id=user.id,
            event_id=event.id,
            attendee_name=(attendee_name or "").strip() or user.name,
            attendee_email=attendee_email or user.email,
            # Snapshot inmutable del evento
            event_title=event.title,
            event_date=event.date,
            event_time=event.time,
            event_location=event.location,
            price=event.price,
            verification_token=token,
            issued_at=issued_at,
            issued_at_ms=issued_at_ms,
            verified=False,
        )
        ticket.qr_data = serialize_payload(build_ticket_payload(ticket, token))
        try:
            # Reserva del cupo e insert en la misma transacción
            claimed = await db.execute(
                update(Event)
                .where(
                    Event.id == target_event_id,
                    or_(Event.capacity.is_(None), Event.attendees_count < Event.capacity)
                )
                .values(attendees_count=Event.attendees_count + 1)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount == 0:
                await db.rollback()
                logger.info(f"Booking rejected, event sold out: {target_event_id}")
                raise ConflictError("Event is sold out")
            db.add(ticket)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info(f"Duplicate booking rejected by constraint: user={user_id} event={target_event_id}")
            raise DuplicateBookingError()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to persist ticket for event {target_event_id}: {type(e).__name__}", exc_info=True)
            raise InternalError("Failed to book ticket") from e

        await db.refresh(ticket)
        await db.refresh(event)
        logger.info(f"Ticket booked: {ticket.id} user={ticket.user_id} event={ticket.event_id}")

        await NotificationService.notify(
            db,
            user_id=ticket.user_id,
            title="Ticket Booked",
            message=f'Your ticket for "{ticket.event_title}" on {ticket.event_date.isoformat()} is confirmed.',
            type="ticket",
            event_id=ticket.event_id
        )
        return ticket

    @staticmethod
    async def _has_ticket(db: AsyncSession, user_id: UUID, event_id: UUID) -> bool:
        result = await db.execute(
            select(Ticket.id).where(Ticket.user_id == user_id, Ticket.event_id == event_id)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_user_tickets(db: AsyncSession, user_id: str) -> List[Ticket]:
        """Tickets del usuario, más recientes primero"""
        result = await db.execute(
            select(Ticket)
            .where(Ticket.user_id == UUID(user_id))
            .order_by(Ticket.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_ticket(db: AsyncSession, ticket_id: str, requester: Dict) -> Ticket:
        """Ticket por id; solo su dueño o un admin"""
        ticket_uuid = parse_uuid(ticket_id)
        ticket = await db.get(Ticket, ticket_uuid) if ticket_uuid else None
        if ticket is None:
            raise NotFoundError("Ticket not found")
        if str(ticket.user_id) != requester.get("user_id") and not requester.get("is_admin"):
            raise ForbiddenError("Not authorized to view this ticket")
        return ticket
