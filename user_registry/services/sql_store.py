"""
User Registry — SQLAlchemy Record Store
========================================

What:  UserStore implementation on top of an async SQLAlchemy session.
Why:   Keeps every SQL statement and every driver exception in one module.
How:   Builds select/count statements, flushes writes inside the request's
       transaction, and translates SQLAlchemy/driver errors into the
       application exception hierarchy.
Who:   Constructed per request by the users router; consumed by UserService.

Transaction Boundary:
    The store never commits. Writes are flushed so ids and constraint
    violations surface immediately; get_db_session commits or rolls back
    once the request finishes.

Query plans (PostgreSQL):
    get_by_id:    SELECT ... WHERE id = :id          → primary key lookup
    get_by_email: SELECT ... WHERE email = :email    → uq_users_email lookup
    list_page:    SELECT ... ORDER BY created_at DESC, id DESC OFFSET :o LIMIT :l
                  → idx_users_created_at; plus one COUNT(*) with the same filter
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence, Tuple

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from user_registry.config import settings
from user_registry.exceptions import (
    DuplicateEmailError,
    InvalidInputError,
    StoreUnavailableError,
)
from user_registry.models.user import User
from user_registry.services.store_base import UserStore

logger = logging.getLogger(__name__)

# PostgreSQL names the index, SQLite names table.column
EMAIL_UNIQUE_MARKERS = ("uq_users_email", "users.email")


class SQLAlchemyUserStore(UserStore):
    """
    Record store backed by the `users` table.

    Error translation:
        IntegrityError on users.email  → DuplicateEmailError
        Other IntegrityError           → InvalidInputError
        Any other SQLAlchemy/driver/timeout failure → StoreUnavailableError
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @contextmanager
    def _translate_errors(self, operation: str, email: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            detail = str(exc.orig).lower()
            if any(marker in detail for marker in EMAIL_UNIQUE_MARKERS):
                raise DuplicateEmailError(email=email) from exc
            logger.warning("Integrity error during %s: %s", operation, detail)
            raise InvalidInputError(
                message="The user record violates a data constraint",
                context={"operation": operation},
            ) from exc
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.error(
                "Store failure during %s: %s",
                operation,
                type(exc).__name__,
                exc_info=True,
            )
            raise StoreUnavailableError(
                retry_after=settings.store_retry_after,
                context={"operation": operation, "error_type": type(exc).__name__},
            ) from exc

    async def insert(self, candidate: User) -> User:
        with self._translate_errors("insert", email=candidate.email):
            self._session.add(candidate)
            await self._session.flush()  # Assigns id without committing
        logger.debug("Inserted user %s", candidate.id)
        return candidate

    async def get_by_id(self, user_id: int) -> Optional[User]:
        with self._translate_errors("get_by_id"):
            result = await self._session.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        with self._translate_errors("get_by_email"):
            result = await self._session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    async def list_page(
        self,
        search: Optional[str],
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[User], int]:
        query = select(User)
        count_query = select(func.count(User.id))

        if search:
            # autoescape: '%' and '_' typed by the client match literally
            predicate = or_(
                User.name.icontains(search, autoescape=True),
                User.email.icontains(search, autoescape=True),
            )
            query = query.where(predicate)
            count_query = count_query.where(predicate)

        # id breaks ties between rows created in the same clock tick
        query = (
            query.order_by(desc(User.created_at), desc(User.id))
            .offset(offset)
            .limit(limit)
        )

        with self._translate_errors("list_page"):
            result = await self._session.execute(query)
            users = list(result.scalars().all())
            count_result = await self._session.execute(count_query)
            total = count_result.scalar() or 0

        return users, total

    async def save(self, user: User) -> User:
        with self._translate_errors("save", email=user.email):
            self._session.add(user)
            await self._session.flush()
        return user

    async def delete(self, user: User) -> None:
        with self._translate_errors("delete"):
            await self._session.delete(user)
            await self._session.flush()
        logger.debug("Deleted user %s", user.id)
