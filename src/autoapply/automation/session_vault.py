"""Encrypted, TTL-bound storage of per-platform authentication artifacts.

Each (user, platform) pair holds at most one session. Reads never return
expired data: an expired row is deleted on access and reported as absent,
so correctness does not depend on ``cleanup_expired`` having run.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autoapply.automation.encryption import SessionCipher
from autoapply.config import get_settings
from autoapply.db.models import AuthEventType, utcnow
from autoapply.db.repositories import AuthenticationEventRepository, PlatformSessionRepository
from autoapply.exceptions import AutoApplyError

logger = logging.getLogger(__name__)

ALL_PLATFORMS = "all"
DEFAULT_HISTORY_LIMIT = 50


class SessionData(BaseModel):
    """Authentication artifacts captured from a logged-in browser."""

    cookies: list[dict[str, Any]] = Field(default_factory=list)
    local_storage: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)


class VaultSession(BaseModel):
    """Decrypted session returned by ``SessionVault.get``."""

    id: str
    user_id: str
    platform: str
    platform_url: str = ""
    data: SessionData
    metadata: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime
    last_used_at: datetime | None = None
    created_at: datetime | None = None


class SessionSummary(BaseModel):
    """Stored session without its secret payload."""

    platform: str
    platform_url: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime
    last_used_at: datetime | None = None
    created_at: datetime | None = None


class AuthEvent(BaseModel):
    event_type: AuthEventType
    platform: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class SessionVault:
    """Database-backed session vault.

    Usage:
        vault = SessionVault()
        await vault.store(user_id, "linkedin", url, SessionData(cookies=[...]))
        session = await vault.get(user_id, "linkedin")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        master_key: str | None = None,
        ttl_hours: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the vault.

        Args:
            session_factory: Database session factory (defaults to the app engine)
            master_key: Server-side master secret (defaults to settings)
            ttl_hours: Session lifetime (defaults to settings, 24h)
            clock: Returns the current naive UTC time
        """
        settings = get_settings()
        if session_factory is None:
            from autoapply.db.session import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self.session_factory = session_factory
        self.master_key = master_key if master_key is not None else settings.session_vault_master_key
        self.ttl = timedelta(hours=ttl_hours or settings.session_ttl_hours)
        self.clock = clock
        self._cipher: SessionCipher | None = None

    @property
    def cipher(self) -> SessionCipher:
        """Cipher for the master key; ConfigurationError if none is set."""
        if self._cipher is None:
            self._cipher = SessionCipher(self.master_key)
        return self._cipher

    async def store(
        self,
        user_id: str,
        platform: str,
        url: str,
        session_data: SessionData,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Encrypt and upsert the session for (user_id, platform).

        Returns:
            Stored session id
        """
        if not user_id:
            raise ValueError("user_id is required")

        encrypted = self.cipher.encrypt(user_id, session_data.model_dump(mode="json"))
        now = self.clock()
        async with self.session_factory.begin() as db:
            row = await PlatformSessionRepository(db).upsert(
                user_id=user_id,
                platform_name=platform,
                platform_url=url,
                encrypted_data=encrypted,
                session_metadata=metadata or {},
                expires_at=now + self.ttl,
                now=now,
            )
            session_id = str(row.id)

        logger.info(f"Stored {platform} session for user {user_id}")
        await self.log_event(user_id, platform, AuthEventType.SESSION_CREATED, {"url": url})
        return session_id

    async def get(self, user_id: str, platform: str) -> VaultSession | None:
        """Decrypted session, or None if absent or expired.

        Raises:
            SessionDecryptionError: If the stored ciphertext cannot be decrypted
        """
        now = self.clock()
        async with self.session_factory.begin() as db:
            repo = PlatformSessionRepository(db)
            row = await repo.get_by_user_platform(user_id, platform)
            if row is None:
                return None

            if now > row.expires_at:
                await repo.delete(row.id)
                expired = True
            else:
                expired = False
                data = self.cipher.decrypt(user_id, row.encrypted_data)
                row.last_used_at = now
                session = VaultSession(
                    id=str(row.id),
                    user_id=row.user_id,
                    platform=row.platform_name,
                    platform_url=row.platform_url or "",
                    data=SessionData.model_validate(data),
                    metadata=row.session_metadata or {},
                    expires_at=row.expires_at,
                    last_used_at=now,
                    created_at=row.created_at,
                )

        if expired:
            logger.info(f"{platform} session for user {user_id} expired")
            await self.log_event(user_id, platform, AuthEventType.SESSION_EXPIRED)
            return None
        return session

    async def has_valid(self, user_id: str, platform: str) -> bool:
        try:
            return await self.get(user_id, platform) is not None
        except (AutoApplyError, SQLAlchemyError) as e:
            logger.warning(f"Session check failed for {platform}: {e}")
            return False

    async def refresh(self, user_id: str, platform: str) -> bool:
        """Extend the session's expiry to now + TTL.

        Returns:
            False if there is no session to refresh
        """
        now = self.clock()
        async with self.session_factory.begin() as db:
            repo = PlatformSessionRepository(db)
            row = await repo.get_by_user_platform(user_id, platform)
            if row is None:
                return False
            expired = now > row.expires_at
            if expired:
                await repo.delete(row.id)
            else:
                row.expires_at = now + self.ttl
                row.last_used_at = now

        if expired:
            logger.info(f"{platform} session for user {user_id} expired before refresh")
            await self.log_event(user_id, platform, AuthEventType.SESSION_EXPIRED)
            return False
        await self.log_event(user_id, platform, AuthEventType.SESSION_REFRESHED)
        return True

    async def delete(self, user_id: str, platform: str) -> bool:
        async with self.session_factory.begin() as db:
            deleted = await PlatformSessionRepository(db).delete_by_user_platform(user_id, platform)
        if deleted:
            await self.log_event(user_id, platform, AuthEventType.SESSION_DELETED)
        return deleted

    async def delete_all(self, user_id: str) -> int:
        async with self.session_factory.begin() as db:
            count = await PlatformSessionRepository(db).delete_by_user(user_id)
        await self.log_event(user_id, ALL_PLATFORMS, AuthEventType.LOGOUT, {"sessions_deleted": count})
        return count

    async def list_sessions(self, user_id: str) -> list[SessionSummary]:
        """Non-expired sessions for a user without decrypting them."""
        async with self.session_factory() as db:
            rows = await PlatformSessionRepository(db).list_active(user_id, self.clock())
        return [
            SessionSummary(
                platform=row.platform_name,
                platform_url=row.platform_url or "",
                metadata=row.session_metadata or {},
                expires_at=row.expires_at,
                last_used_at=row.last_used_at,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def cleanup_expired(self) -> int:
        """Delete every expired session. Returns the number removed."""
        async with self.session_factory.begin() as db:
            count = await PlatformSessionRepository(db).delete_expired(self.clock())
        if count:
            logger.info(f"Cleaned up {count} expired platform sessions")
        return count

    async def log_event(
        self,
        user_id: str,
        platform: str,
        event_type: AuthEventType,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Append an audit event. Failures are logged, never raised."""
        try:
            async with self.session_factory.begin() as db:
                await AuthenticationEventRepository(db).log(user_id, platform, event_type, details)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to log {event_type.value} event for {platform}: {e}")

    async def authentication_history(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[AuthEvent]:
        async with self.session_factory() as db:
            rows = await AuthenticationEventRepository(db).history(user_id, limit)
        return [
            AuthEvent(
                event_type=row.event_type,
                platform=row.platform_name,
                details=row.details or {},
                created_at=row.created_at,
            )
            for row in rows
        ]
