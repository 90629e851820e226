"""Rutas de administración"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
import logging

from shared.database.session import get_db
from shared.auth.dependencies import get_current_admin
from shared.utils.response import success_response
from services.admin.models.admin import CleanupRequest
from services.admin.services.cleanup_service import CleanupService
from services.admin.services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard")
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_admin)
):
    """Estadísticas globales para el panel de administración"""
    stats = await StatsService.get_dashboard_stats(db)
    return success_response(stats)


@router.post("/cleanup")
async def run_cleanup(
    payload: CleanupRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_admin)
):
    """
    Ejecutar una tarea de limpieza

    Acciones: cleanup-old-events, cleanup-unverified-tickets
    """
    logger.info(f"Cleanup requested by {current_user['user_id']}: {payload.action}")
    result = await CleanupService.run(db, payload.action, payload.days_old)
    return success_response(result, "Cleanup completed")
