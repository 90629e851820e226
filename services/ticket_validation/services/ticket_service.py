"""Servicio de verificación de tickets en puerta"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update
from typing import Any, Dict, Optional, Tuple, Union
from uuid import UUID
import logging

from shared.database.models import Ticket, utcnow
from shared.database.session import commit_or_rollback
from shared.utils.ids import parse_uuid
from shared.utils.qr_generator import TicketSigner, parse_payload
from services.ticket_validation.models.ticket import VerificationResult

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = "not found"
REASON_MALFORMED = "malformed payload"
REASON_TAMPERED = "tampered or stale data"
REASON_BAD_SIGNATURE = "bad signature"


def resolve_input(
    ticket_id: Optional[str] = None,
    qr_data: Union[str, Dict[str, Any], None] = None
) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    """
    Resolver la entrada a (ticket_id, payload).

    El payload explícito gana sobre el id; un string que no es JSON se toma
    como id de ticket (escáner que solo lee el id).
    """
    if qr_data is not None and qr_data != "":
        payload = parse_payload(qr_data)
        if payload is not None:
            raw_id = payload.get("ticketId")
            return (str(raw_id) if raw_id is not None else None), payload
        if isinstance(qr_data, str):
            return qr_data.strip(), None
    return ticket_id, None


def _ticket_details(ticket: Ticket) -> Dict[str, Any]:
    return {
        "id": str(ticket.id),
        "attendee_name": ticket.attendee_name,
        "attendee_email": ticket.attendee_email,
        "ticket_type": ticket.ticket_type,
        "quantity": ticket.quantity,
        "price": float(ticket.price),
        "purchase_date": ticket.issued_at,
    }


def _event_details(ticket: Ticket) -> Dict[str, Any]:
    # Snapshot guardado al comprar, nunca lo que trae el QR
    return {
        "id": str(ticket.event_id),
        "title": ticket.event_title,
        "date": ticket.event_date,
        "time": ticket.event_time,
        "location": ticket.event_location,
    }


class TicketVerificationService:
    """
    Verifica tickets en la puerta.

    Nunca lanza por un ticket inválido: todo rechazo es un VerificationResult
    con valid=False y un motivo. La transición Issued -> Verified es única.
    """

    def __init__(self, signer: TicketSigner):
        self.signer = signer

    def _invalid(self, reason: str, message: str, ticket: Optional[Ticket] = None) -> VerificationResult:
        logger.warning(
            f"Ticket verification rejected: reason={reason} "
            f"ticket={ticket.id if ticket is not None else None}"
        )
        return VerificationResult(valid=False, reason=reason, message=message)

    def _valid(self, ticket: Ticket, already_verified: bool, message: str) -> VerificationResult:
        return VerificationResult(
            valid=True,
            already_verified=already_verified,
            message=message,
            verified_at=ticket.verified_at,
            ticket=_ticket_details(ticket),
            event=_event_details(ticket),
            verified_by=str(ticket.verified_by) if ticket.verified_by else None,
        )

    async def verify(
        self,
        db: AsyncSession,
        verifier_id: str,
        ticket_id: Optional[str] = None,
        qr_data: Union[str, Dict[str, Any], None] = None
    ) -> VerificationResult:
        raw_id, payload = resolve_input(ticket_id, qr_data)
        if payload is not None and raw_id is None:
            return self._invalid(REASON_MALFORMED, "QR payload does not contain a ticket id")

        ticket_uuid = parse_uuid(raw_id) if raw_id else None
        ticket = await db.get(Ticket, ticket_uuid) if ticket_uuid else None
        if ticket is None:
            return self._invalid(REASON_NOT_FOUND, "Ticket not found")

        if payload is not None and str(payload.get("eventId")) != str(ticket.event_id):
            return self._invalid(REASON_TAMPERED, "Ticket does not match this event", ticket)

        token = payload.get("verificationToken") if payload is not None else None
        if token is not None:
            # Mismas entradas que en la emisión, tomadas del registro guardado
            if not self.signer.verify_token(
                token,
                str(ticket.id),
                str(ticket.user_id),
                str(ticket.event_id),
                ticket.issued_at_ms
            ):
                return self._invalid(REASON_BAD_SIGNATURE, "Invalid ticket signature", ticket)

        if ticket.verified:
            logger.info(f"Ticket already verified: {ticket.id} at {ticket.verified_at}")
            return self._valid(ticket, True, "Ticket already verified")

        # UPDATE condicional: dos escaneos simultáneos no pueden verificar dos veces
        result = await db.execute(
            update(Ticket)
            .where(Ticket.id == ticket.id, Ticket.verified.is_(False))
            .values(verified=True, verified_at=utcnow(), verified_by=UUID(verifier_id))
            .execution_options(synchronize_session=False)
        )
        await commit_or_rollback(db, "verify ticket")
        await db.refresh(ticket)

        if result.rowcount == 0:
            logger.info(f"Ticket verified concurrently: {ticket.id}")
            return self._valid(ticket, True, "Ticket already verified")

        logger.info(f"Ticket verified: {ticket.id} by {verifier_id}")
        return self._valid(ticket, False, "Ticket verified successfully")
