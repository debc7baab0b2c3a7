"""Tests for the encrypted session vault."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from autoapply.automation.encryption import SessionCipher
from autoapply.automation.session_vault import SessionData, SessionVault
from autoapply.db.models import AuthEventType, PlatformSession
from autoapply.exceptions import ConfigurationError, SessionDecryptionError

TEST_MASTER_KEY = "test-master-key-not-for-production"
T0 = datetime(2026, 3, 1, 12, 0, 0)


class FakeClock:
    """Settable replacement for the vault's UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def vault(session_factory, clock):
    return SessionVault(session_factory=session_factory, master_key=TEST_MASTER_KEY, ttl_hours=24, clock=clock)


@pytest.fixture
def linkedin_session():
    return SessionData(
        cookies=[{"name": "li_at", "value": "secret-cookie", "domain": ".linkedin.com"}],
        local_storage={"voyager": "1"},
        headers={"csrf-token": "ajax:123"},
    )


class TestSessionCipher:
    """Tests for per-user Fernet encryption."""

    def test_roundtrip(self):
        cipher = SessionCipher(TEST_MASTER_KEY)
        token = cipher.encrypt("user-1", {"cookies": [{"name": "a"}]})

        assert "cookies" not in token
        assert cipher.decrypt("user-1", token) == {"cookies": [{"name": "a"}]}

    def test_other_user_cannot_decrypt(self):
        cipher = SessionCipher(TEST_MASTER_KEY)
        token = cipher.encrypt("user-1", {"cookies": []})

        with pytest.raises(SessionDecryptionError):
            cipher.decrypt("user-2", token)

    def test_other_master_key_cannot_decrypt(self):
        token = SessionCipher(TEST_MASTER_KEY).encrypt("user-1", {"cookies": []})

        with pytest.raises(SessionDecryptionError):
            SessionCipher("another-key").decrypt("user-1", token)

    def test_missing_master_key(self):
        with pytest.raises(ConfigurationError):
            SessionCipher(None)

    def test_empty_user_id_rejected(self):
        with pytest.raises(ValueError):
            SessionCipher(TEST_MASTER_KEY).encrypt("", {})


class TestStoreAndGet:
    """Tests for storing and reading sessions."""

    @pytest.mark.asyncio
    async def test_store_then_get(self, vault, linkedin_session):
        session_id = await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        session = await vault.get("user-1", "linkedin")

        assert session is not None
        assert session.id == session_id
        assert session.data == linkedin_session
        assert session.expires_at == T0 + timedelta(hours=24)

    @pytest.mark.asyncio
    async def test_payload_is_encrypted_at_rest(self, vault, session_factory, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)

        async with session_factory() as db:
            row = (await db.execute(select(PlatformSession))).scalar_one()

        assert "secret-cookie" not in row.encrypted_data

    @pytest.mark.asyncio
    async def test_store_replaces_existing(self, vault, session_factory, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.advance(hours=1)
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", SessionData(cookies=[{"name": "new"}]))

        async with session_factory() as db:
            rows = (await db.execute(select(PlatformSession))).scalars().all()
        session = await vault.get("user-1", "linkedin")

        assert len(rows) == 1
        assert session.data.cookies == [{"name": "new"}]
        assert session.expires_at == T0 + timedelta(hours=25)

    @pytest.mark.asyncio
    async def test_missing_session(self, vault):
        assert await vault.get("user-1", "linkedin") is None
        assert await vault.has_valid("user-1", "linkedin") is False

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, vault, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)

        assert await vault.get("user-2", "linkedin") is None

    @pytest.mark.asyncio
    async def test_store_requires_user(self, vault, linkedin_session):
        with pytest.raises(ValueError):
            await vault.store("", "linkedin", "https://www.linkedin.com", linkedin_session)

    @pytest.mark.asyncio
    async def test_store_without_master_key(self, session_factory, linkedin_session):
        vault = SessionVault(session_factory=session_factory, master_key="")

        with pytest.raises(ConfigurationError):
            await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)

    @pytest.mark.asyncio
    async def test_wrong_key_raises_on_get(self, vault, session_factory, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        other = SessionVault(session_factory=session_factory, master_key="rotated-key", clock=clock)

        with pytest.raises(SessionDecryptionError):
            await other.get("user-1", "linkedin")
        assert await other.has_valid("user-1", "linkedin") is False


class TestExpiry:
    """Tests for TTL enforcement on read."""

    @pytest.mark.asyncio
    async def test_read_just_before_expiry_bumps_last_used(self, vault, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.now = T0 + timedelta(hours=23, minutes=59)

        session = await vault.get("user-1", "linkedin")

        assert session is not None
        assert session.last_used_at == clock.now
        summaries = await vault.list_sessions("user-1")
        assert summaries[0].last_used_at == clock.now

    @pytest.mark.asyncio
    async def test_expired_session_is_deleted_on_read(self, vault, session_factory, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.now = T0 + timedelta(hours=24, seconds=1)

        assert await vault.get("user-1", "linkedin") is None

        async with session_factory() as db:
            rows = (await db.execute(select(PlatformSession))).scalars().all()
        assert rows == []

        clock.now = T0
        assert await vault.get("user-1", "linkedin") is None

    @pytest.mark.asyncio
    async def test_expiry_is_audited(self, vault, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.advance(hours=25)
        await vault.get("user-1", "linkedin")

        events = [e.event_type for e in await vault.authentication_history("user-1")]

        assert AuthEventType.SESSION_EXPIRED in events
        assert AuthEventType.SESSION_CREATED in events

    @pytest.mark.asyncio
    async def test_refresh_extends_expiry(self, vault, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.advance(hours=20)

        assert await vault.refresh("user-1", "linkedin") is True

        clock.advance(hours=10)
        session = await vault.get("user-1", "linkedin")
        assert session is not None
        assert session.expires_at == T0 + timedelta(hours=44)

    @pytest.mark.asyncio
    async def test_refresh_missing_or_expired(self, vault, clock, linkedin_session):
        assert await vault.refresh("user-1", "linkedin") is False

        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.advance(hours=30)
        assert await vault.refresh("user-1", "linkedin") is False

    @pytest.mark.asyncio
    async def test_refresh_of_expired_session_evicts_it(self, vault, session_factory, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.advance(hours=25)

        assert await vault.refresh("user-1", "linkedin") is False

        async with session_factory() as db:
            rows = (await db.execute(select(PlatformSession))).scalars().all()
        assert rows == []
        events = [e.event_type for e in await vault.authentication_history("user-1")]
        assert AuthEventType.SESSION_EXPIRED in events
        assert AuthEventType.SESSION_REFRESHED not in events

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, vault, clock, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        clock.advance(hours=12)
        await vault.store("user-1", "naukri", "https://www.naukri.com", linkedin_session)
        clock.advance(hours=13)

        removed = await vault.cleanup_expired()

        assert removed == 1
        assert [s.platform for s in await vault.list_sessions("user-1")] == ["naukri"]


class TestDeletion:
    """Tests for deleting sessions."""

    @pytest.mark.asyncio
    async def test_delete_one(self, vault, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)

        assert await vault.delete("user-1", "linkedin") is True
        assert await vault.delete("user-1", "linkedin") is False
        assert await vault.get("user-1", "linkedin") is None

        history = await vault.authentication_history("user-1")
        deleted = [e for e in history if e.event_type == AuthEventType.SESSION_DELETED]
        assert len(deleted) == 1

    @pytest.mark.asyncio
    async def test_delete_all(self, vault, linkedin_session):
        await vault.store("user-1", "linkedin", "https://www.linkedin.com", linkedin_session)
        await vault.store("user-1", "naukri", "https://www.naukri.com", linkedin_session)
        await vault.store("user-2", "linkedin", "https://www.linkedin.com", linkedin_session)

        assert await vault.delete_all("user-1") == 2
        assert await vault.list_sessions("user-1") == []
        assert len(await vault.list_sessions("user-2")) == 1

        history = await vault.authentication_history("user-1")
        logout = [e for e in history if e.event_type == AuthEventType.LOGOUT]
        assert len(logout) == 1
        assert logout[0].platform == "all"
        assert logout[0].details == {"sessions_deleted": 2}

    @pytest.mark.asyncio
    async def test_history_limit(self, vault, linkedin_session):
        for platform in ("linkedin", "naukri", "indeed"):
            await vault.store("user-1", platform, f"https://{platform}.example", linkedin_session)

        assert len(await vault.authentication_history("user-1", limit=2)) == 2
