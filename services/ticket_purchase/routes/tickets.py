"""Rutas de reserva y consulta de tickets"""
from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict

from shared.database.session import get_db
from shared.auth.dependencies import get_current_user
from shared.utils.qr_generator import TicketSigner, get_ticket_signer, render_qr_png, render_qr_svg
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from shared.utils.response import success_response
from services.ticket_purchase.models.ticket import BookTicketRequest, TicketResponse
from services.ticket_purchase.services.booking_service import BookingService


router = APIRouter()


@router.post("/book-ticket", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["booking"])
async def book_ticket(
    request: Request,
    payload: BookTicketRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user),
    signer: TicketSigner = Depends(get_ticket_signer)
):
    """
    Reservar un ticket para un evento

    Un ticket por usuario y evento; nombre y email del asistente por defecto
    son los del usuario.
    """
    service = BookingService(signer)
    ticket = await service.book(
        db,
        requester=current_user,
        event_id=payload.event_id,
        attendee_name=payload.attendee_name,
        attendee_email=payload.attendee_email
    )
    return success_response(TicketResponse.from_model(ticket), "Ticket booked successfully")


@router.get("")
async def get_my_tickets(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    '''Tickets del usuario autenticado'''
    tickets = await BookingService.list_user_tickets(db, current_user["user_id"])
    return success_response([TicketResponse.from_model(t) for t in tickets])


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    ticket = await BookingService.get_ticket(db, ticket_id, current_user)
    return success_response(TicketResponse.from_model(ticket))


@router.get("/{ticket_id}/qrcode")
async def get_ticket_qrcode(
    ticket_id: str,
    format: str = Query("svg", pattern="^(svg|png)$"),
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    '''QR del ticket generado a partir del payload guardado'''
    ticket = await BookingService.get_ticket(db, ticket_id, current_user)
    if format == "png":
        return Response(content=render_qr_png(ticket.qr_data), media_type="image/png")
    return Response(content=render_qr_svg(ticket.qr_data), media_type="image/svg+xml")
