"""Platform session repository."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from autoapply.db.models import PlatformSession
from autoapply.db.repositories.base import BaseRepository


class PlatformSessionRepository(BaseRepository[PlatformSession]):
    """Repository for encrypted platform sessions.

    One row per (user_id, platform_name); writes go through ``upsert``.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(PlatformSession, db)

    async def get_by_user_platform(self, user_id: str, platform_name: str) -> PlatformSession | None:
        result = await self.db.execute(
            select(PlatformSession).where(
                PlatformSession.user_id == user_id,
                PlatformSession.platform_name == platform_name,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        user_id: str,
        platform_name: str,
        platform_url: str,
        encrypted_data: str,
        session_metadata: dict,
        expires_at: datetime,
        now: datetime,
    ) -> PlatformSession:
        """Insert or replace the session for (user_id, platform_name).

        Returns:
            The stored row
        """
        row = await self.get_by_user_platform(user_id, platform_name)
        if row is None:
            return await self.create(
                user_id=user_id,
                platform_name=platform_name,
                platform_url=platform_url,
                encrypted_data=encrypted_data,
                session_metadata=session_metadata,
                expires_at=expires_at,
                last_used_at=now,
                created_at=now,
                updated_at=now,
            )

        row.platform_url = platform_url
        row.encrypted_data = encrypted_data
        row.session_metadata = session_metadata
        row.expires_at = expires_at
        row.last_used_at = now
        row.updated_at = now
        await self.db.flush()
        return row

    async def delete_by_user_platform(self, user_id: str, platform_name: str) -> bool:
        result = await self.db.execute(
            delete(PlatformSession).where(
                PlatformSession.user_id == user_id,
                PlatformSession.platform_name == platform_name,
            )
        )
        return result.rowcount > 0

    async def delete_by_user(self, user_id: str) -> int:
        result = await self.db.execute(delete(PlatformSession).where(PlatformSession.user_id == user_id))
        return result.rowcount

    async def list_active(self, user_id: str, now: datetime) -> list[PlatformSession]:
        """Non-expired sessions for a user, most recently used first."""
        result = await self.db.execute(
            select(PlatformSession)
            .where(PlatformSession.user_id == user_id, PlatformSession.expires_at > now)
            .order_by(PlatformSession.last_used_at.desc())
        )
        return list(result.scalars().all())

    async def delete_expired(self, now: datetime) -> int:
        result = await self.db.execute(delete(PlatformSession).where(PlatformSession.expires_at < now))
        return result.rowcount
