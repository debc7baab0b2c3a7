"""Repository layer for database operations."""

from autoapply.db.repositories.application import AutoApplyApplicationRepository
from autoapply.db.repositories.auth_event import AuthenticationEventRepository
from autoapply.db.repositories.base import BaseRepository
from autoapply.db.repositories.platform_session import PlatformSessionRepository

__all__ = [
    "BaseRepository",
    "AuthenticationEventRepository",
    "AutoApplyApplicationRepository",
    "PlatformSessionRepository",
]
