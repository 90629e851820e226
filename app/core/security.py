"""Hash y verificación de contraseñas con bcrypt"""
import logging

import bcrypt

from app.core.config import settings

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hashear contraseña (salt aleatorio, rounds según BCRYPT_ROUNDS)"""
    # bcrypt solo usa los primeros 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verificar contraseña contra el hash almacenado"""
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        logger.warning("Stored password hash is malformed")
        return False
