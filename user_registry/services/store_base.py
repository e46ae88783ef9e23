"""
User Registry — Abstract Record Store Interface
================================================

What:  Abstract base class defining the persistence contract UserService consumes.
Why:   UserService depends on this interface, not on SQLAlchemy, so the use-case
       rules can be exercised against a mocked store or any other backend.
How:   Concrete implementations inherit from UserStore and implement every method.
Who:   Called by UserService; implemented by SQLAlchemyUserStore.

Contract shared by all implementations:
    - Missing records are reported as None, never as an exception
    - A write rejected by the email uniqueness rule raises DuplicateEmailError
    - Transport, driver, and timeout failures raise StoreUnavailableError
    - No retries; callers decide whether to try again
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from user_registry.models.user import User


class UserStore(ABC):
    """
    Abstract interface over a persistent table of User records.

    Implementations:
        - SQLAlchemyUserStore: async SQLAlchemy session over the `users` table
    """

    @abstractmethod
    async def insert(self, candidate: User) -> User:
        """
        Persist a new record and return it with id and created_at assigned.

        Raises:
            DuplicateEmailError: The email is already stored.
            StoreUnavailableError: The store could not be reached.
        """
        ...

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def list_page(
        self,
        search: Optional[str],
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[User], int]:
        """
        Return one page of users plus the total number of matching users.

        Ordering is created_at descending, then id descending. When `search`
        is given, only users whose name OR email contains it
        (case-insensitive) match, and the total counts matches only.
        """
        ...

    @abstractmethod
    async def save(self, user: User) -> User:
        """Persist mutations to an existing record and return it."""
        ...

    @abstractmethod
    async def delete(self, user: User) -> None:
        ...
