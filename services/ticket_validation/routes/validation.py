"""Rutas de verificación de tickets"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict

from shared.database.session import get_db
from shared.auth.dependencies import get_current_admin
from shared.exception.exceptions import ValidationFailedError
from shared.utils.qr_generator import TicketSigner, get_ticket_signer
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from shared.utils.response import success_response
from services.ticket_validation.models.ticket import VerifyTicketRequest
from services.ticket_validation.services.ticket_service import TicketVerificationService


router = APIRouter()


@router.post("/verify")
@limiter.limit(RATE_LIMITS["validation"])
async def verify_ticket(
    request: Request,
    payload: VerifyTicketRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_admin),
    signer: TicketSigner = Depends(get_ticket_signer)
):
    """
    Verificar ticket en puerta (solo admin)

    Un ticket inválido no es un error HTTP: se responde 200 con valid=false
    y el motivo. Un segundo escaneo devuelve valid=true y alreadyVerified=true.
    """
    if not payload.ticket_id and not payload.qr_data:
        raise ValidationFailedError("ticketId or qrData is required")

    service = TicketVerificationService(signer)
    result = await service.verify(
        db,
        verifier_id=current_user["user_id"],
        ticket_id=payload.ticket_id,
        qr_data=payload.qr_data
    )
    return success_response(result, result.message)
