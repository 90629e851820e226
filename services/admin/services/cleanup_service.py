"""Tareas de limpieza ejecutadas a demanda por un administrador"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, case, delete as sql_delete
from sqlalchemy.exc import SQLAlchemyError
from datetime import timedelta
import logging

from shared.database.models import Event, Ticket, utcnow
from shared.database.session import commit_or_rollback
from shared.exception.exceptions import ValidationFailedError
from services.admin.models.admin import CleanupResult

logger = logging.getLogger(__name__)

CLEANUP_OLD_EVENTS = "cleanup-old-events"
CLEANUP_UNVERIFIED_TICKETS = "cleanup-unverified-tickets"


class CleanupService:
    """
    Limpieza de datos viejos.

    Sin locks: no ejecutar dos limpiezas en paralelo.
    """

    @staticmethod
    async def run(db: AsyncSession, action: str, days_old: int) -> CleanupResult:
        handlers = {
            CLEANUP_OLD_EVENTS: CleanupService.cleanup_old_events,
            CLEANUP_UNVERIFIED_TICKETS: CleanupService.cleanup_unverified_tickets,
        }
        handler = handlers.get(action)
        if handler is None:
            raise ValidationFailedError(f"Unknown cleanup action: {action}")

        cutoff = utcnow() - timedelta(days=days_old)
        logger.info(f"Cleanup started: action={action} cutoff={cutoff.isoformat()}")
        result = await handler(db, cutoff)
        logger.info(
            f"Cleanup finished: action={action} processed={result.items_processed} "
            f"deleted={result.items_deleted} errors={len(result.errors)}"
        )
        return result

    @staticmethod
    async def cleanup_old_events(db: AsyncSession, cutoff) -> CleanupResult:
        """Eliminar eventos con fecha anterior al corte, junto con sus tickets"""
        result = CleanupResult(action=CLEANUP_OLD_EVENTS)
        rows = await db.execute(select(Event.id).where(Event.date < cutoff.date()))
        event_ids = list(rows.scalars().all())
        result.items_processed = len(event_ids)

        # Uno por uno: un fallo no aborta el resto del lote
        for event_id in event_ids:
            try:
                await db.execute(sql_delete(Ticket).where(Ticket.event_id == event_id))
                await db.execute(sql_delete(Event).where(Event.id == event_id))
                await db.commit()
                result.items_deleted += 1
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Failed to delete event {event_id}", exc_info=True)
                result.errors.append(f"Failed to delete event {event_id}: {type(e).__name__}")

        return result

    @staticmethod
    async def cleanup_unverified_tickets(db: AsyncSession, cutoff) -> CleanupResult:
        """Eliminar tickets no verificados creados antes del corte"""
        result = CleanupResult(action=CLEANUP_UNVERIFIED_TICKETS)
        condition = (Ticket.verified.is_(False), Ticket.created_at < cutoff)

        rows = await db.execute(
            select(Ticket.event_id, func.count(Ticket.id))
            .where(*condition)
            .group_by(Ticket.event_id)
        )
        per_event = rows.all()
        result.items_processed = sum(count for _, count in per_event)
        if not per_event:
            return result

        deleted = await db.execute(
            sql_delete(Ticket).where(*condition).execution_options(synchronize_session=False)
        )
        # Liberar los cupos que ocupaban
        for event_id, count in per_event:
            await db.execute(
                update(Event)
                .where(Event.id == event_id)
                .values(attendees_count=case(
                    (Event.attendees_count > count, Event.attendees_count - count),
                    else_=0
                ))
                .execution_options(synchronize_session=False)
            )
        await commit_or_rollback(db, "delete unverified tickets")

        result.items_deleted = deleted.rowcount or 0
        return result
