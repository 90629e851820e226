"""Rutas de gestión de eventos"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Optional

from shared.database.session import get_db
from shared.auth.dependencies import get_current_user, get_current_admin, get_optional_user
from shared.utils.response import success_response
from services.event_management.models.event import EventCreate, EventResponse
from services.event_management.services.event_service import EventService


router = APIRouter()


@router.get("")
async def list_events(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: Optional[Dict] = Depends(get_optional_user)
):
    """Listar eventos (anónimos y usuarios ven solo aprobados)"""
    events = await EventService.list_visible(db, current_user, category=category, search=search)
    return success_response([EventResponse.from_model(e) for e in events])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Crear evento (pendiente de aprobación salvo que lo cree un admin)"""
    event = await EventService.create_event(db, payload.model_dump(), current_user)
    message = "Event created successfully" if event.is_approved else "Event submitted for approval"
    return success_response(EventResponse.from_model(event), message)


@router.get("/pending")
async def list_pending_events(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_admin)
):
    """Eventos pendientes de aprobación (solo admin)"""
    events = await EventService.list_pending(db)
    return success_response([EventResponse.from_model(e) for e in events])


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[Dict] = Depends(get_optional_user)
):
    event = await EventService.get_event(db, event_id, current_user)
    return success_response(EventResponse.from_model(event))


@router.post("/{event_id}/approve")
async def approve_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_admin)
):
    """Aprobar evento (idempotente)"""
    event = await EventService.approve_event(db, event_id)
    return success_response(EventResponse.from_model(event), "Event approved")


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Eliminar evento y sus tickets (dueño o admin)"""
    deleted_id = await EventService.delete_event(db, event_id, current_user)
    return success_response({"id": str(deleted_id)}, "Event deleted")
