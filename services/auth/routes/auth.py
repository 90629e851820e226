"""Rutas de autenticación (sesión por cookies JWT)"""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
import logging

from app.core.config import settings
from shared.database.session import get_db
from shared.auth.dependencies import get_current_user
from shared.auth.jwt_handler import issue_session
from shared.auth.session_cookies import set_session_cookies, clear_session_cookies
from shared.exception.exceptions import NotFoundError
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from shared.utils.response import success_response, error_response
from services.auth.models.auth import RegisterRequest, LoginRequest, UserResponse
from services.auth.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["auth"])
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Registrar usuario (nunca admin por este endpoint)"""
    user = await AuthService.register(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password
    )
    return success_response(UserResponse.from_model(user), "User registered successfully")


@router.post("/login")
@limiter.limit(RATE_LIMITS["auth"])
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login: setea cookies de access y refresh token"""
    user = await AuthService.authenticate(db, payload.email, payload.password)
    tokens = issue_session(user)
    set_session_cookies(response, tokens["access_token"], tokens["refresh_token"])

    logger.info(f"User logged in: {user.id}")
    return success_response(UserResponse.from_model(user), "Logged in successfully")


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Renovar sesión con el refresh token de la cookie.

    Si el refresh token no es válido o el usuario ya no existe se limpian
    las cookies (logout forzado) y se responde 401.
    """
    refreshed = await AuthService.refresh(db, request.cookies.get(settings.REFRESH_COOKIE_NAME))
    if refreshed is None:
        logger.info("Refresh rejected, clearing session cookies")
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=error_response("Invalid refresh token", "unauthenticated")
        )
        clear_session_cookies(response)
        return response

    user, tokens = refreshed
    response = JSONResponse(content=success_response(
        UserResponse.from_model(user),
        "Token refreshed successfully"
    ))
    set_session_cookies(response, tokens["access_token"], tokens["refresh_token"])
    return response


@router.post("/logout")
async def logout(response: Response):
    """Limpiar cookies de sesión (no hay lista de revocación)"""
    clear_session_cookies(response)
    return success_response(True, "Logged out successfully")


@router.get("/profile")
async def get_profile(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Perfil del usuario autenticado"""
    user = await AuthService.get_user_by_id(db, current_user["user_id"])
    if user is None:
        raise NotFoundError("User not found")
    return success_response(UserResponse.from_model(user))
