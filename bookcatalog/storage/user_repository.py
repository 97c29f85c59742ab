"""
User Repository

Storage for user accounts. No authentication logic lives here; passwords
are stored as handed over by the caller.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from bookcatalog.errors import DuplicateKeyError
from .book_repository import is_unique_violation
from .models import UserModel, UserRole


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def create(
        self,
        username: str,
        password: str,
        user_role: UserRole = UserRole.UNKNOWN,
    ) -> UserModel:
        """
        Store a new user.

        Raises:
            DuplicateKeyError: If the username is taken
        """
        user = UserModel(
            username=username,
            password=password,
            user_role=int(user_role),
        )
        async with self.session_factory() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if is_unique_violation(e, "username"):
                    raise DuplicateKeyError(username, field="username") from e
                raise
            await session.refresh(user)

        logger.info(f"Stored user {user.id} ({user.role.name})")
        return user

    async def get_by_username(self, username: str) -> Optional[UserModel]:
        async with self.session_factory() as session:
            stmt = select(UserModel).where(UserModel.username == username)
            return (await session.execute(stmt)).scalar_one_or_none()
