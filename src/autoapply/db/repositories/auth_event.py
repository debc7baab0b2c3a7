"""Authentication event repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autoapply.db.models import AuthenticationEvent, AuthEventType, utcnow
from autoapply.db.repositories.base import BaseRepository


class AuthenticationEventRepository(BaseRepository[AuthenticationEvent]):
    """Append-only access to the authentication audit log."""

    def __init__(self, db: AsyncSession):
        super().__init__(AuthenticationEvent, db)

    async def log(
        self,
        user_id: str,
        platform_name: str,
        event_type: AuthEventType,
        details: dict | None = None,
    ) -> AuthenticationEvent:
        return await self.create(
            user_id=user_id,
            platform_name=platform_name,
            event_type=event_type,
            details=details or {},
            created_at=utcnow(),
        )

    async def history(self, user_id: str, limit: int = 50) -> list[AuthenticationEvent]:
        """Most recent events for a user, newest first."""
        result = await self.db.execute(
            select(AuthenticationEvent)
            .where(AuthenticationEvent.user_id == user_id)
            .order_by(AuthenticationEvent.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
