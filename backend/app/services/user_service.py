"""
Eclairum Backend — User Service
=================================

What:  Registers users and looks them up.
Who:   Called by the /api/users route handlers.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.exceptions import DatabaseError, UserAlreadyExistsError, UserNotFoundError
from app.models.user import User
from app.repositories import UserRepository
from app.schemas.user import UserResponse
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class UserService:
    """Stateless; every call receives the request's UnitOfWork."""

    async def create_user(self, uow: UnitOfWork, email: str) -> UserResponse:
        """
        Create a user with a unique, lowercased email.

        The existence check and the insert share one transaction. A concurrent
        insert that wins the race still surfaces as UserAlreadyExistsError
        through the unique constraint.

        Raises:
            UserAlreadyExistsError: email already registered (→ 409)
            DatabaseError: any other persistence failure (→ 500)
        """
        email = email.strip().lower()
        repo = UserRepository(uow)

        try:
            async with uow.transaction():
                if await repo.find_by_email(email) is not None:
                    raise UserAlreadyExistsError(email)
                user = await repo.save(User(email=email))
        except IntegrityError as e:
            raise UserAlreadyExistsError(email) from e
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e))
            raise DatabaseError(
                message="Could not create the user. Please try again.",
                context={"original_error": type(e).__name__},
            ) from e

        logger.info("User created: %s", user.id)
        return UserResponse.model_validate(user)

    async def get_user(self, uow: UnitOfWork, user_id: UUID) -> UserResponse:
        try:
            user = await UserRepository(uow).find_by_id(user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user_id": str(user_id)},
            ) from e

        if user is None:
            raise UserNotFoundError(str(user_id))
        return UserResponse.model_validate(user)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
