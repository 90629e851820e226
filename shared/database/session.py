"""Sesiones de base de datos"""
from shared.database.connection import get_db
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from shared.exception.exceptions import InternalError

logger = logging.getLogger(__name__)


async def commit_or_rollback(session: AsyncSession, action: str):
    """Confirmar la transacción; ante un error de storage hacer rollback y reportar Internal"""
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Database error while trying to {action}: {type(e).__name__}", exc_info=True)
        raise InternalError(f"Failed to {action}") from e


__all__ = ["get_db", "commit_or_rollback"]
