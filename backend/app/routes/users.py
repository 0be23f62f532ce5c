"""
Eclairum Backend — User Route Handlers
========================================

What:  POST /api/users (register) and GET /api/users/{user_id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.database import get_unit_of_work
from app.schemas.common import ErrorResponse
from app.schemas.user import CreateUserRequest, UserResponse
from app.services.user_service import user_service
from app.unit_of_work import UnitOfWork

router = APIRouter(prefix="/api", tags=["Users"])


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a user",
)
async def create_user(
    body: CreateUserRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> UserResponse:
    return await user_service.create_user(uow, body.email)


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get a user by ID",
)
async def get_user(
    user_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> UserResponse:
    return await user_service.get_user(uow, user_id)
