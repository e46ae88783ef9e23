"""Create users table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `users` table with its unique email index and the
       created_at index used by paged listings.
How:   Portable column types so the same revision runs on PostgreSQL and SQLite.

Rollback: downgrade() drops the table entirely (destructive — all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Column rationale lives in user_registry/models/user.py."""
    op.create_table(
        "users",
        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Database-assigned identifier",
        ),
        sa.Column(
            "name",
            sa.String(255),
            nullable=False,
            comment="Display name; not unique",
        ),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Email address; unique across all users",
        ),
        sa.Column(
            "age",
            sa.Integer(),
            nullable=True,
            comment="Optional age in years",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this user was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("age IS NULL OR age >= 0", name="ck_users_age_non_negative"),
    )

    # Final arbiter of email uniqueness when two requests race
    op.create_index("uq_users_email", "users", ["email"], unique=True)

    # ORDER BY created_at DESC ... OFFSET/LIMIT for GET /users
    op.create_index(
        "idx_users_created_at",
        "users",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("uq_users_email", table_name="users")
    op.drop_table("users")
