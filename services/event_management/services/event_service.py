"""Servicio de gestión de eventos"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, delete as sql_delete
from typing import Dict, List, Optional
from uuid import UUID
import logging

from shared.database.models import Event, Ticket
from shared.database.session import commit_or_rollback
from shared.exception.exceptions import NotFoundError, ForbiddenError
from shared.utils.ids import parse_uuid
from services.notifications.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _is_admin(requester: Optional[Dict]) -> bool:
    return bool(requester and requester.get("is_admin"))


def _is_owner(event: Event, requester: Optional[Dict]) -> bool:
    return bool(requester) and str(event.owner_id) == str(requester.get("user_id"))


class EventService:
    """Servicio para gestionar eventos y su flujo de aprobación"""

    @staticmethod
    async def list_visible(
        db: AsyncSession,
        requester: Optional[Dict] = None,
        category: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[Event]:
        """
        Obtener eventos visibles para el solicitante

        Admin ve todos; el resto solo los aprobados. Orden ascendente por fecha.
        """
        stmt = select(Event)

        if not _is_admin(requester):
            stmt = stmt.where(Event.is_approved.is_(True))

        if category:
            stmt = stmt.where(Event.category == category)

        if search:
            stmt = stmt.where(
                or_(
                    Event.title.ilike(f"%{search}%"),
                    Event.location.ilike(f"%{search}%")
                )
            )

        stmt = stmt.order_by(Event.date.asc(), Event.time.asc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_pending(db: AsyncSession) -> List[Event]:
        """Eventos pendientes de aprobación, más recientes primero"""
        result = await db.execute(
            select(Event)
            .where(Event.is_approved.is_(False))
            .order_by(Event.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def _load(db: AsyncSession, event_id) -> Event:
        event_uuid = parse_uuid(event_id)
        event = await db.get(Event, event_uuid) if event_uuid else None
        if event is None:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    async def get_event(
        db: AsyncSession,
        event_id: str,
        requester: Optional[Dict] = None
    ) -> Event:
        """Evento por id; los no aprobados solo los ven su dueño y los admins"""
        event = await EventService._load(db, event_id)
        if not event.is_approved and not (_is_admin(requester) or _is_owner(event, requester)):
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    async def create_event(db: AsyncSession, data: Dict, requester: Dict) -> Event:
        """
        Crear evento.

        Se aprueba automáticamente solo si lo crea un admin; si no, queda
        pendiente y se avisa al creador y a los administradores.
        """
        is_admin = _is_admin(requester)
        event = Event(
            owner_id=UUID(requester["user_id"]),
            is_approved=is_admin,
            attendees_count=0,
            **data
        )
        db.add(event)
        await commit_or_rollback(db, "create event")
        await db.refresh(event)

        logger.info(f"Event created: {event.id} by {event.owner_id} (approved={event.is_approved})")

        if not is_admin:
            await NotificationService.notify(
                db,
                user_id=event.owner_id,
                title="Event Pending Approval",
                message=f'Your event "{event.title}" has been submitted and is pending admin approval.',
                type="event",
                event_id=event.id
            )
            await NotificationService.notify_admins(
                db,
                title="New Event Pending Approval",
                message=f'A new event "{event.title}" is waiting for your approval.',
                type="event",
                event_id=event.id
            )

        return event

    @staticmethod
    async def approve_event(db: AsyncSession, event_id: str) -> Event:
        """Aprobar evento (idempotente; solo la primera transición notifica)"""
        event = await EventService._load(db, event_id)
        if event.is_approved:
            return event

        event.is_approved = True
        await commit_or_rollback(db, "approve event")
        await db.refresh(event)
        logger.info(f"Event approved: {event.id}")

        await NotificationService.notify(
            db,
            user_id=event.owner_id,
            title="Event Approved",
            message=f'Your event "{event.title}" has been approved and is now visible.',
            type="event",
            event_id=event.id
        )
        return event

    @staticmethod
    async def delete_event(db: AsyncSession, event_id: str, requester: Dict) -> UUID:
        """
        Eliminar evento junto con todos sus tickets (misma transacción).

        Puede hacerlo el dueño o un admin. Si un admin elimina un evento pendiente
        de otro usuario cuenta como rechazo y se notifica al dueño.
        """
        event = await EventService._load(db, event_id)
        is_admin = _is_admin(requester)
        is_owner = _is_owner(event, requester)
        if not (is_admin or is_owner):
            # Un pendiente ajeno ni siquiera es visible
            if not event.is_approved:
                raise NotFoundError("Event not found")
            raise ForbiddenError("Not authorized to delete this event")

        rejected = is_admin and not is_owner and not event.is_approved
        deleted_id, owner_id, title = event.id, event.owner_id, event.title

        await db.execute(sql_delete(Ticket).where(Ticket.event_id == deleted_id))
        await db.execute(sql_delete(Event).where(Event.id == deleted_id))
        await commit_or_rollback(db, "delete event")
        logger.info(f"Event deleted: {deleted_id} by {requester.get('user_id')} (rejected={rejected})")

        if rejected:
            await NotificationService.notify(
                db,
                user_id=owner_id,
                title="Event Rejected",
                message=f'Your event "{title}" was not approved by an administrator.',
                type="event"
            )
        return deleted_id
