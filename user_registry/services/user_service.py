"""
User Registry — User Service (Use-Case Layer)
==============================================

What:  The five user use cases: create, read one, read page, update, delete.
Why:   Enforces the rules the store alone does not: email uniqueness before
       writes, existence before mutation, and validated pagination.
How:   Composes calls on an injected UserStore and returns API schemas.
Who:   Called by the /users route handlers.

Design Decision:
    UserService holds nothing but its store. A new instance is built for
    each request around that request's session, so there is no shared
    mutable state and no locking. Uniqueness is finally decided by the
    unique index behind the store; the pre-check here only gives a clean
    error on the common path.

    This layer neither logs nor swallows: every failure leaves as one of
    NotFoundError, DuplicateEmailError, InvalidInputError, or
    StoreUnavailableError, and the HTTP layer decides what to log.

Store calls per operation:
    create: 2 (email lookup, insert)
    read_page: 1
    update: 2, or 3 when the email changes (extra email lookup)
    delete: 2
"""

import math

from user_registry.config import settings
from user_registry.exceptions import DuplicateEmailError, InvalidInputError, NotFoundError
from user_registry.models.user import User
from user_registry.schemas.user import (
    DeleteResponse,
    PageMeta,
    UserCreate,
    UserPage,
    UserPageQuery,
    UserResponse,
    UserUpdate,
)
from user_registry.services.store_base import UserStore


def apply_patch(user: User, patch: UserUpdate) -> User:
    """
    Overwrite only the patchable fields the client supplied.

    Driven by UserUpdate.supplied_fields(), which is limited to name, email
    and age, so id and created_at cannot be reached whatever the body held.
    """
    for field, value in patch.supplied_fields().items():
        setattr(user, field, value)
    return user


class UserService:
    """
    Business logic layer for user operations.

    Responsibilities:
        - create(): uniqueness pre-check, insert
        - read_one(): single lookup with not-found handling
        - read_page(): offset pagination with optional search
        - update(): partial update with uniqueness re-check on email change
        - delete(): existence check, hard delete
    """

    def __init__(self, store: UserStore):
        self.store = store

    async def create(self, data: UserCreate) -> UserResponse:
        """
        Create a user whose email is not yet taken.

        Raises:
            DuplicateEmailError: Found by the pre-check, or raised by the
                store when a concurrent create won the race to the index.
            StoreUnavailableError: The store failed.
        """
        existing = await self.store.get_by_email(data.email)
        if existing is not None:
            raise DuplicateEmailError(email=data.email)

        user = await self.store.insert(
            User(name=data.name, email=data.email, age=data.age)
        )
        return UserResponse.model_validate(user)

    async def _get_or_raise(self, user_id: int) -> User:
        user = await self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    async def read_one(self, user_id: int) -> UserResponse:
        """
        Raises:
            NotFoundError: No user has this id (→ 404).
        """
        user = await self._get_or_raise(user_id)
        return UserResponse.model_validate(user)

    async def read_page(self, query: UserPageQuery) -> UserPage:
        """
        Return one page of users, newest first.

        page and limit must be positive, and limit may not exceed
        MAX_PAGE_SIZE; anything else is rejected rather than clamped, since
        a non-positive page would otherwise turn into a negative offset.

        A blank search string means no filter.
        """
        if query.page < 1:
            raise InvalidInputError(
                message=f"page must be a positive integer, got {query.page}",
                field="page",
            )
        if query.limit < 1:
            raise InvalidInputError(
                message=f"limit must be a positive integer, got {query.limit}",
                field="limit",
            )
        if query.limit > settings.max_page_size:
            raise InvalidInputError(
                message=f"limit cannot exceed {settings.max_page_size}, got {query.limit}",
                field="limit",
            )

        search = query.search.strip() if query.search else None
        offset = (query.page - 1) * query.limit

        users, total = await self.store.list_page(
            search=search or None,
            offset=offset,
            limit=query.limit,
        )

        return UserPage(
            data=[UserResponse.model_validate(user) for user in users],
            meta=PageMeta(
                page=query.page,
                total=total,
                limit=query.limit,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    async def update(self, user_id: int, patch: UserUpdate) -> UserResponse:
        """
        Apply a partial update.

        Unlike a plain overwrite, moving a user to an email that another
        user already holds is refused up front; the unique index still
        backs this up if two updates race.

        Raises:
            NotFoundError: No user has this id.
            DuplicateEmailError: The new email belongs to another user.
        """
        user = await self._get_or_raise(user_id)

        supplied = patch.supplied_fields()
        new_email = supplied.get("email")
        if new_email is not None and new_email != user.email:
            holder = await self.store.get_by_email(new_email)
            if holder is not None and holder.id != user.id:
                raise DuplicateEmailError(email=new_email)

        apply_patch(user, patch)
        saved = await self.store.save(user)
        return UserResponse.model_validate(saved)

    async def delete(self, user_id: int) -> DeleteResponse:
        """
        Hard-delete a user.

        Raises:
            NotFoundError: No user has this id.
        """
        user = await self._get_or_raise(user_id)
        await self.store.delete(user)
        return DeleteResponse(message="User deleted")
