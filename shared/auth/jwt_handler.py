"""Manejo de JWT tokens (sesión sin estado en servidor)"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import JWTError, jwt
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def build_claims(user) -> Dict:
    '''Claims de sesión a partir de un usuario'''
    return {
        'sub': str(user.id),
        'email': user.email,
        'is_admin': bool(user.is_admin),
    }


def _encode(data: Dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({'exp': expire, 'type': token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    '''Crear token de acceso JWT (minutos)'''
    return _encode(
        data,
        ACCESS_TOKEN_TYPE,
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    '''Crear token de refresh JWT (días)'''
    return _encode(
        data,
        REFRESH_TOKEN_TYPE,
        expires_delta or timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    )


def issue_session(user) -> Dict[str, str]:
    '''Emitir par access/refresh para un usuario'''
    claims = build_claims(user)
    return {
        'access_token': create_access_token(claims),
        'refresh_token': create_refresh_token(claims),
    }


def decode_token(token: Optional[str], expected_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict]:
    '''
    Decodificar y validar token JWT.

    Falla cerrado: cualquier token ausente, malformado, expirado, mal firmado
    o de otro tipo devuelve None, nunca lanza.
    '''
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    except Exception:
        logger.warning("Unexpected error decoding token", exc_info=True)
        return None

    if payload.get('type') != expected_type or not payload.get('sub'):
        return None
    return payload

