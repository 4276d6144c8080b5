"""Transaction boundary shared by the services."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tagvault.exceptions import AlreadyExistsException, InternalException

logger = logging.getLogger(__name__)


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any error.

    Uniqueness violations become AlreadyExistsException and other database
    errors become InternalException. Cancellation is not an Exception and
    passes through untouched; the session owner cleans up.
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.info(f"Uniqueness violation: {e.orig}")
        raise AlreadyExistsException("record", "unique constraint violated") from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Database error: {type(e).__name__}: {e}")
        raise InternalException(f"database error: {type(e).__name__}") from e
    except Exception:
        await session.rollback()
        raise
