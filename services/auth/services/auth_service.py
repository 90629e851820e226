"""Servicio de credenciales de usuario"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple, Dict
from uuid import UUID
import logging

from app.core.security import hash_password, verify_password
from shared.auth.jwt_handler import decode_token, issue_session, REFRESH_TOKEN_TYPE
from shared.database.models import User
from shared.database.session import commit_or_rollback
from shared.exception.exceptions import ConflictError, UnauthenticatedError

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Registro, login y lookup de usuarios"""

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == normalize_email(email))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
        try:
            user_uuid = UUID(str(user_id))
        except ValueError:
            return None
        return await db.get(User, user_uuid)

    @staticmethod
    async def register(
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        is_admin: bool = False
    ) -> User:
        """
        Registrar usuario nuevo

        Email duplicado -> ConflictError (también si otro request lo insertó en paralelo)
        """
        email = normalize_email(email)
        if await AuthService.get_user_by_email(db, email):
            raise ConflictError("User already exists")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            is_admin=is_admin
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User already exists")
        await commit_or_rollback(db, "register user")
        await db.refresh(user)

        logger.info(f"User registered: {user.id}")
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> User:
        """Validar credenciales; mismo mensaje para usuario inexistente y password incorrecta"""
        user = await AuthService.get_user_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise UnauthenticatedError("Invalid email or password")
        return user

    @staticmethod
    async def refresh(db: AsyncSession, refresh_token: Optional[str]) -> Optional[Tuple[User, Dict[str, str]]]:
        """
        Revalidar refresh token y emitir un par nuevo.

        None si el token no es válido o el usuario ya no existe; el caller
        debe forzar logout.
        """
        claims = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
        if claims is None:
            return None
        user = await AuthService.get_user_by_id(db, claims["sub"])
        if user is None:
            return None
        # Se reemite con los datos actuales del usuario (p. ej. si cambió is_admin)
        return user, issue_session(user)
