"""
User Registry — Pydantic Request/Response Schemas
==================================================

What:  Pydantic models defining the API contract for the /users resource.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate Swagger/OpenAPI documentation automatically.

Design Decision:
    Schemas are separate from the SQLAlchemy model because:
    1. The wire format uses camelCase (createdAt, totalPages) while the
       table and Python code use snake_case
    2. The patch schema must not be able to reach id or created_at
    3. Validation rules (email syntax, non-empty name) belong to the API,
       uniqueness belongs to the store

Alias note:
    FastAPI dumps a returned model by alias and then validates the dump
    against the response model again, so camelCase fields accept both
    spellings on input (AliasChoices) and always emit camelCase.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from user_registry.config import settings


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What clients send
# ══════════════════════════════════════════════════════════════════════════


class UserCreate(BaseModel):
    """
    What:  Body of POST /users.
    Why:   name and email are required; age is optional.

    Uniqueness of email is NOT checked here; UserService does that
    against the store.
    """
    name: str = Field(min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(description="Email address, unique across users")
    age: Optional[int] = Field(default=None, ge=0, le=150, description="Age in years")

    model_config = {"str_strip_whitespace": True}


# Fields a patch may overwrite. id and created_at are deliberately absent.
PATCHABLE_FIELDS = ("name", "email", "age")


class UserUpdate(BaseModel):
    """
    What:  Body of PATCH /users/{id}; every field optional.

    Partial update semantics:
        Only fields present in the JSON body are applied. A field that is
        absent is left untouched; `"age": null` clears the age. name and
        email cannot be cleared. Unknown keys (including id and createdAt)
        are ignored.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = Field(default=None)
    age: Optional[int] = Field(default=None, ge=0, le=150)

    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    @field_validator("name", "email")
    @classmethod
    def reject_explicit_null(cls, v):
        """Runs only for keys present in the body; defaults skip validation."""
        if v is None:
            raise ValueError("cannot be null")
        return v

    def supplied_fields(self) -> dict:
        """The patchable fields the client actually sent, with their values."""
        return {
            name: getattr(self, name)
            for name in PATCHABLE_FIELDS
            if name in self.model_fields_set
        }


class UserPageQuery(BaseModel):
    """
    What:  Query parameters of GET /users.

    No range constraints here on purpose: UserService rejects non-positive
    values with InvalidInputError so the error shape matches the rest of
    the service's errors.
    """
    page: int = Field(default=1, description="1-based page number")
    limit: int = Field(
        default_factory=lambda: settings.default_page_size,
        description="Items per page",
    )
    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring matched against name or email",
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    """Full representation of a stored user."""
    id: int = Field(description="Unique user identifier")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address")
    age: Optional[int] = Field(default=None, description="Age in years, if known")
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
        description="When the user was created (UTC ISO 8601)",
    )

    model_config = {"from_attributes": True}


class PageMeta(BaseModel):
    """
    Pagination state for a user listing.

    total_pages is derived from the store's total, not from len(data), so a
    caller knows it has reached the end when page >= totalPages.
    """
    page: int = Field(description="Requested page number")
    total: int = Field(description="Total number of users matching the search")
    limit: int = Field(description="Page size")
    total_pages: int = Field(
        validation_alias=AliasChoices("total_pages", "totalPages"),
        serialization_alias="totalPages",
        description="ceil(total / limit)",
    )


class UserPage(BaseModel):
    """Paginated response wrapper for GET /users."""
    data: List[UserResponse] = Field(description="Users on this page, newest first")
    meta: PageMeta


class DeleteResponse(BaseModel):
    """Confirmation returned by DELETE /users/{id}."""
    message: str = Field(default="User deleted")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "duplicate_email",
            "message": "A user with email 'a@x.com' already exists",
            "details": {"email": "a@x.com"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
