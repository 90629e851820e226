"""Dependencies de autenticación para FastAPI"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional, Dict
import logging

from app.core.config import settings
from shared.auth.jwt_handler import decode_token
from shared.exception.exceptions import UnauthenticatedError, ForbiddenError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    '''Token de acceso desde la cookie de sesión; fallback a Authorization: Bearer'''
    token = request.cookies.get(settings.ACCESS_COOKIE_NAME)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


def _user_from_payload(payload: Dict) -> Dict:
    return {
        'user_id': payload['sub'],
        'email': payload.get('email'),
        'is_admin': bool(payload.get('is_admin', False)),
    }


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[Dict]:
    '''Obtener usuario si está autenticado, None si no lo está (para endpoints públicos)'''
    payload = decode_token(_extract_token(request, credentials))
    if payload is None:
        return None
    return _user_from_payload(payload)


async def get_current_user(
    current_user: Optional[Dict] = Depends(get_optional_user)
) -> Dict:
    '''Obtener usuario actual desde token JWT'''
    if current_user is None:
        raise UnauthenticatedError('Not authenticated')
    return current_user


async def get_current_admin(
    current_user: Dict = Depends(get_current_user)
) -> Dict:
    '''Verificar que el usuario sea admin'''
    if not current_user.get('is_admin'):
        logger.warning(f"Admin access denied for user {current_user.get('user_id')}")
        raise ForbiddenError('Admin access required')
    return current_user
