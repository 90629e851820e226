"""Servicio para cálculo de estadísticas del dashboard"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from shared.database.models import Event, Ticket, User
from services.admin.models.admin import DashboardOverview, DashboardStatsResponse, RecentTicket
from services.event_management.models.event import EventResponse

RECENT_LIMIT = 5


class StatsService:
    """Servicio para operaciones de estadísticas"""

    @staticmethod
    async def _count(db: AsyncSession, stmt) -> int:
        result = await db.execute(stmt)
        return result.scalar() or 0

    @staticmethod
    async def get_dashboard_stats(db: AsyncSession) -> DashboardStatsResponse:
        """
        Estadísticas globales del dashboard de administración

        Returns:
            Totales, recaudación (suma de precios de tickets), actividad reciente
            y eventos aprobados con más asistentes
        """
        total_events = await StatsService._count(db, select(func.count(Event.id)))
        approved_events = await StatsService._count(
            db, select(func.count(Event.id)).where(Event.is_approved.is_(True))
        )
        total_tickets = await StatsService._count(db, select(func.count(Ticket.id)))
        verified_tickets = await StatsService._count(
            db, select(func.count(Ticket.id)).where(Ticket.verified.is_(True))
        )
        total_users = await StatsService._count(db, select(func.count(User.id)))

        result_revenue = await db.execute(select(func.coalesce(func.sum(Ticket.price), 0)))
        total_revenue = float(result_revenue.scalar() or 0)

        result_recent_events = await db.execute(
            select(Event).order_by(Event.created_at.desc()).limit(RECENT_LIMIT)
        )
        result_recent_tickets = await db.execute(
            select(Ticket).order_by(Ticket.created_at.desc()).limit(RECENT_LIMIT)
        )
        result_top_events = await db.execute(
            select(Event)
            .where(Event.is_approved.is_(True))
            .order_by(Event.attendees_count.desc(), Event.date.asc())
            .limit(RECENT_LIMIT)
        )

        return DashboardStatsResponse(
            overview=DashboardOverview(
                total_events=total_events,
                approved_events=approved_events,
                pending_events=total_events - approved_events,
                total_tickets=total_tickets,
                verified_tickets=verified_tickets,
                total_users=total_users,
                total_revenue=total_revenue
            ),
            recent_events=[EventResponse.from_model(e) for e in result_recent_events.scalars().all()],
            recent_tickets=[RecentTicket.from_model(t) for t in result_recent_tickets.scalars().all()],
            top_events=[EventResponse.from_model(e) for e in result_top_events.scalars().all()]
        )
