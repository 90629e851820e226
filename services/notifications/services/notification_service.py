"""Relay de notificaciones (best-effort, modelo pull por polling)"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Tuple
from uuid import UUID
import logging

from shared.database.models import Notification, User
from shared.database.session import commit_or_rollback

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("event", "ticket", "system")


class NotificationService:
    """
    Inserta y lista notificaciones.

    La entrega es best-effort: un fallo al insertar se loguea y nunca
    se propaga a la operación que la disparó.
    """

    @staticmethod
    async def _deliver(db: AsyncSession, notifications: List[Notification]) -> List[Notification]:
        if not notifications:
            return []
        # El rollback expira todo lo cargado en la sesión; se recarga para el llamador
        loaded = [obj for obj in db.identity_map.values() if not isinstance(obj, Notification)]
        db.add_all(notifications)
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.error(
                f"Failed to deliver {len(notifications)} notification(s)",
                exc_info=True
            )
            for obj in loaded:
                await db.refresh(obj)
            return []
        return notifications

    @staticmethod
    async def notify(
        db: AsyncSession,
        user_id: UUID,
        title: str,
        message: str,
        type: str = "event",
        event_id: Optional[UUID] = None
    ) -> Optional[Notification]:
        """Insertar una notificación para un usuario"""
        if type not in NOTIFICATION_TYPES:
            type = "system"
        delivered = await NotificationService._deliver(db, [
            Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                event_id=event_id
            )
        ])
        return delivered[0] if delivered else None

    @staticmethod
    async def notify_admins(
        db: AsyncSession,
        title: str,
        message: str,
        type: str = "event",
        event_id: Optional[UUID] = None
    ) -> List[Notification]:
        """Fan-out a todos los administradores"""
        try:
            result = await db.execute(select(User.id).where(User.is_admin.is_(True)))
            admin_ids = result.scalars().all()
        except SQLAlchemyError:
            logger.error("Failed to load admins for notification fan-out", exc_info=True)
            return []

        return await NotificationService._deliver(db, [
            Notification(
                user_id=admin_id,
                title=title,
                message=message,
                type=type,
                event_id=event_id
            )
            for admin_id in admin_ids
        ])

    @staticmethod
    async def list_for(
        db: AsyncSession,
        user_id: UUID,
        limit: int = 20
    ) -> Tuple[List[Notification], int]:
        """Notificaciones del usuario, más recientes primero, y cantidad sin leer"""
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        notifications = list(result.scalars().all())

        stmt_unread = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        )
        unread_count = (await db.execute(stmt_unread)).scalar() or 0

        return notifications, unread_count

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        user_id: UUID,
        notification_id: Optional[UUID] = None
    ) -> int:
        """
        Marcar como leída una notificación (solo si pertenece al usuario),
        o todas las del usuario si no se indica id.
        """
        stmt = update(Notification).where(Notification.user_id == user_id)
        if notification_id is not None:
            stmt = stmt.where(Notification.id == notification_id)
        stmt = stmt.values(is_read=True).execution_options(synchronize_session="fetch")

        result = await db.execute(stmt)
        await commit_or_rollback(db, "update notifications")
        return result.rowcount or 0
