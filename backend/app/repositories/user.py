"""
Eclairum Backend — User Repository
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select

from app.models.user import User
from app.unit_of_work import UnitOfWork


class UserRepository:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        """Lookup by email; callers pass it already lowercased."""
        session = self.uow.get_current_handle()
        result = await session.execute(
            select(User).where(User.email == email, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def save(self, user: User) -> User:
        session = self.uow.get_current_handle()
        session.add(user)
        await session.flush()
        return user
