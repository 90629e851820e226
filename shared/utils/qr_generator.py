"""Firma, payload y renderizado QR de tickets"""
import hashlib
import hmac
import io
import json
from typing import Optional, Union

import qrcode
import qrcode.image.svg

from app.core.config import settings

# Largo del token imprimible (hex); autenticador compacto, no compromiso del payload completo
TOKEN_LENGTH = 16


class TicketSigner:
    """
    Genera y verifica tokens de verificación de tickets.

    El secret se inyecta (config de proceso) para que los tests puedan usar uno fijo.
    El token cubre solo {ticket_id, user_id, event_id, issued_at_ms}; los campos de
    display del payload no están firmados y nunca se usan como fuente de verdad.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Ticket signing secret must not be empty")
        self._secret = secret.encode("utf-8")

    def generate_token(self, ticket_id: str, user_id: str, event_id: str, issued_at_ms: int) -> str:
        message = f"{ticket_id}-{user_id}-{event_id}-{issued_at_ms}"
        signature = hmac.new(self._secret, message.encode("utf-8"), hashlib.sha256).hexdigest()
        return signature[:TOKEN_LENGTH]

    def verify_token(
        self,
        token: str,
        ticket_id: str,
        user_id: str,
        event_id: str,
        issued_at_ms: int
    ) -> bool:
        """Comparación completa en tiempo constante (no por prefijo)"""
        if not isinstance(token, str) or not token:
            return False
        expected = self.generate_token(ticket_id, user_id, event_id, issued_at_ms)
        return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def build_ticket_payload(ticket, verification_token: str) -> dict:
    """
    Payload del QR a partir del ticket persistido (snapshot del evento incluido).

    Claves: ticketId, eventId, eventName, attendeeName, attendeeEmail, eventDate,
    eventTime, eventLocation, price, purchaseDate, verificationToken, timestamp
    """
    return {
        "ticketId": str(ticket.id),
        "eventId": str(ticket.event_id),
        "eventName": ticket.event_title,
        "attendeeName": ticket.attendee_name,
        "attendeeEmail": ticket.attendee_email,
        "eventDate": ticket.event_date.isoformat(),
        "eventTime": ticket.event_time,
        "eventLocation": ticket.event_location,
        "price": float(ticket.price),
        "purchaseDate": ticket.issued_at.isoformat(),
        "verificationToken": verification_token,
        "timestamp": ticket.issued_at_ms,
    }


def serialize_payload(payload: dict) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def parse_payload(raw: Union[str, dict, None]) -> Optional[dict]:
    """Decodificar payload escaneado; None si no es un objeto JSON"""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _make_qr(data: str, image_factory=None) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,  # tamaño automático según el largo del payload
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=4,
        image_factory=image_factory,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def render_qr_svg(data: str) -> bytes:
    """Generar QR como SVG (escalable, para impresión/pantalla)"""
    img = _make_qr(data, image_factory=qrcode.image.svg.SvgPathImage).make_image()
    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue()


def render_qr_png(data: str) -> bytes:
    """Generar QR como PNG"""
    img = _make_qr(data).make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def get_ticket_signer() -> TicketSigner:
    """Dependency de FastAPI: signer con el secret configurado"""
    return TicketSigner(settings.TICKET_SIGNING_SECRET)
