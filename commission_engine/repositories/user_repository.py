"""
User repository.

Read access to employees for display names.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.user import User
from commission_engine.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_name(self, user_id: int) -> str | None:
        """
        Get a user's display name.

        Args:
            user_id: User ID

        Returns:
            Name or None if the user does not exist
        """
        stmt = select(User.name).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
