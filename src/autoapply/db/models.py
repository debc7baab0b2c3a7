"""SQLAlchemy database models."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# ============================================================================
# Enums
# ============================================================================


class AuthEventType(str, enum.Enum):
    """Authentication audit event types."""

    SESSION_CREATED = "session_created"
    SESSION_REFRESHED = "session_refreshed"
    SESSION_EXPIRED = "session_expired"
    SESSION_DELETED = "session_deleted"
    LOGOUT = "logout"
    LOGIN_REQUIRED = "login_required"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"


class ApplicationState(str, enum.Enum):
    """Persisted status of an auto-apply application."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUBMITTED = "submitted"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ============================================================================
# Models
# ============================================================================


class PlatformSession(Base):
    """Encrypted authentication artifacts for one (user, platform) pair."""

    __tablename__ = "platform_sessions"
    __table_args__ = (UniqueConstraint("user_id", "platform_name", name="uq_platform_sessions_user_platform"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    platform_name = Column(String(50), nullable=False)
    platform_url = Column(String(500), default="")

    # Fernet token of the JSON session payload (cookies, local storage, headers)
    encrypted_data = Column(Text, nullable=False)
    session_metadata = Column(JSON, default=dict)

    expires_at = Column(DateTime, nullable=False, index=True)
    last_used_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<PlatformSession {self.user_id}:{self.platform_name}>"


class AuthenticationEvent(Base):
    """Append-only authentication audit record."""

    __tablename__ = "authentication_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    platform_name = Column(String(50), nullable=False)
    event_type = Column(Enum(AuthEventType), nullable=False)
    details = Column(JSON, default=dict)
    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuthenticationEvent {self.event_type} {self.platform_name}>"


class AutoApplyApplication(Base):
    """Persisted progress of one auto-apply submission."""

    __tablename__ = "auto_apply_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    job_posting_id = Column(String(255), nullable=False)
    platform = Column(String(50), default="unknown")
    application_url = Column(String(1000), nullable=False)

    status = Column(Enum(ApplicationState), default=ApplicationState.PENDING, nullable=False)
    progress = Column(Integer, default=0)
    current_step = Column(String(255))
    error_message = Column(Text)

    # Submission results
    screenshot = Column(Text)
    confirmation_text = Column(Text)
    redirect_url = Column(String(1000))
    fields_filled = Column(JSON, default=dict)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<AutoApplyApplication {self.id} {self.status}>"
