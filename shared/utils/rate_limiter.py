"""
Rate limiting usando slowapi
Storage en memoria por defecto; RATE_LIMIT_STORAGE_URI=redis://... para compartirlo entre instancias
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, Response
from starlette.responses import JSONResponse
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


def get_real_client_ip(request: Request) -> str:
    """
    Obtener IP real del cliente considerando proxies/load balancers.
    """
    # X-Forwarded-For puede tener múltiples IPs: client, proxy1, proxy2
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fallback a IP directa
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
    headers_enabled=False,  # Deshabilitado para compatibilidad con response_model de FastAPI
)
logger.info(
    f"Rate limiter inicializado con storage: "
    f"{settings.RATE_LIMIT_STORAGE_URI.split('@')[-1]}"
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Handler para rate limit exceeded, con el envelope estándar.
    """
    retry_after = exc.detail.split(" ")[-1] if exc.detail else "60"

    logger.warning(
        f"Rate limit exceeded - IP: {get_real_client_ip(request)}, "
        f"Path: {request.url.path}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Too many requests. Please wait before trying again.",
            "code": "rate_limit_exceeded",
        },
        headers={"Retry-After": str(retry_after) if retry_after.isdigit() else "60"},
    )


# ============ RATE LIMITS PRE-DEFINIDOS ============

RATE_LIMITS = {
    # Login/registro: restrictivo contra fuerza bruta
    "auth": "10/minute",

    # Reservas de tickets
    "booking": "10/minute",

    # Validación en puerta: moderado
    "validation": "60/minute",

    # Default: fallback
    "default": "60/minute",
}
