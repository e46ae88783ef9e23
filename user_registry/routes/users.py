"""
User Registry — Users Route Handlers
=====================================

What:  Handles the /users resource (create, read, list, patch, delete).
Why:   Maps HTTP verbs and paths onto UserService operations.
How:   Builds a UserService around the request's session, delegates, and
       returns schemas. Errors raised by the service are turned into HTTP
       responses by the global handlers in main.py, not here.

Route Inventory:
    POST   /users          → 201 created user     | 400, 409
    GET    /users          → 200 {data, meta}     | 400
    GET    /users/{id}     → 200 user             | 404
    PATCH  /users/{id}     → 200 updated user     | 400, 404, 409
    DELETE /users/{id}     → 200 {message}        | 404
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from user_registry.config import settings
from user_registry.database import get_db_session
from user_registry.schemas.user import (
    DeleteResponse,
    ErrorResponse,
    UserCreate,
    UserPage,
    UserPageQuery,
    UserResponse,
    UserUpdate,
)
from user_registry.services.sql_store import SQLAlchemyUserStore
from user_registry.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: AsyncSession = Depends(get_db_session)) -> UserService:
    """
    FastAPI dependency: one UserService per request, bound to that request's session.

    Tests override this (or get_db_session) to point at a throwaway database.
    """
    return UserService(SQLAlchemyUserStore(db))


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid body", "model": ErrorResponse},
        409: {"description": "Email already in use", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Create a user",
)
async def create_user(
    body: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Create a user. Not safe to retry blindly: a retry after a lost
    response comes back as 409 because the first attempt succeeded.
    """
    user = await service.create(body)
    logger.info("Created user %s", user.id)
    return user


@router.get(
    "",
    response_model=UserPage,
    responses={
        400: {"description": "Invalid pagination parameters", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="List users with page-based pagination and search",
    description=(
        "Returns users ordered newest first. `search` matches name or email "
        "case-insensitively. meta.totalPages tells the caller when to stop."
    ),
)
async def list_users(
    response: Response,
    page: int = Query(default=1, description="1-based page number"),
    limit: int = Query(
        default=settings.default_page_size,
        description=f"Items per page (max {settings.max_page_size})",
    ),
    search: Optional[str] = Query(default=None, description="Name or email substring"),
    service: UserService = Depends(get_user_service),
) -> UserPage:
    """
    Example:
        GET /users?page=1&limit=5&search=bini
    """
    result = await service.read_page(UserPageQuery(page=page, limit=limit, search=search))

    # Same convention as GitHub/GitLab list endpoints
    response.headers["X-Total-Count"] = str(result.meta.total)
    return result


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Get a single user by ID",
)
async def get_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return await service.read_one(user_id)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid body", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Email already in use", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Partially update a user",
    description="Only the fields present in the body are changed.",
)
async def update_user(
    user_id: int,
    body: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.update(user_id, body)
    logger.info("Updated user %s (fields: %s)", user_id, sorted(body.supplied_fields()))
    return user


@router.delete(
    "/{user_id}",
    response_model=DeleteResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Delete a user",
)
async def delete_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
) -> DeleteResponse:
    result = await service.delete(user_id)
    logger.info("Deleted user %s", user_id)
    return result
