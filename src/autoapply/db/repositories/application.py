"""Auto-apply application repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autoapply.db.models import ApplicationState, AutoApplyApplication
from autoapply.db.repositories.base import BaseRepository


class AutoApplyApplicationRepository(BaseRepository[AutoApplyApplication]):
    """Repository for persisted auto-apply progress.

    Extends BaseRepository with per-user listing.
    """

    def __init__(self, db: AsyncSession):
        """Initialize application repository.

        Args:
            db: Database session
        """
        super().__init__(AutoApplyApplication, db)

    async def get_by_user(self, user_id: str, status: ApplicationState | None = None) -> list[AutoApplyApplication]:
        query = select(AutoApplyApplication).where(AutoApplyApplication.user_id == user_id)
        if status:
            query = query.where(AutoApplyApplication.status == status)
        result = await self.db.execute(query.order_by(AutoApplyApplication.created_at.desc()))
        return list(result.scalars().all())
