"""
User Registry — User SQLAlchemy Model
======================================

What:  ORM model representing the `users` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from DeclarativeBase; Alembic reads this for migrations.
Who:   Used by SQLAlchemyUserStore for CRUD operations and by Alembic.

Table Design Rationale:
    - Integer primary key: assigned by the database at insert, never changed
    - email: unique index; this index is what finally decides uniqueness when
      two creates race past the service's pre-check
    - age: nullable, non-negative when present
    - created_at: UTC with timezone; listing order key

    Index on created_at DESC:
        Optimizes the listing query (newest first, OFFSET/LIMIT pages)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from user_registry.database import Base


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware DateTime that always comes back in UTC.

    PostgreSQL returns timestamptz in the session time zone and SQLite drops
    tzinfo entirely; both are normalized here so createdAt serializes the
    same way no matter which database or session produced it.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(Base):
    """
    A registered user.

    Lifecycle:
        1. Inserted by UserService.create (id and created_at assigned here)
        2. Fields name/email/age overwritten by UserService.update
        3. Hard-deleted by UserService.delete (no tombstone)
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Database-assigned identifier",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name; not unique",
    )

    email: Mapped[str] = mapped_column(
        String(320),  # RFC 5321 upper bound: 64 local + @ + 255 domain
        nullable=False,
        comment="Email address; unique across all users",
    )

    age: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=None,
        comment="Optional age in years",
    )

    # Set once at insert. The Python-side default keeps the value available
    # right after flush without another SELECT.
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this user was created (UTC)",
    )

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
        Index("idx_users_created_at", created_at.desc()),
        CheckConstraint("age IS NULL OR age >= 0", name="ck_users_age_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
