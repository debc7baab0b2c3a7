"""Session vault routes.

Session payloads are write-only through the API: listings and status
checks never return decrypted cookies or headers.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query

from autoapply.api.dependencies import VaultDep
from autoapply.api.schemas import (
    DeletedResponse,
    SessionStatusResponse,
    StoreSessionRequest,
    StoreSessionResponse,
)
from autoapply.automation.session_vault import AuthEvent, SessionSummary
from autoapply.exceptions import SessionDecryptionError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=StoreSessionResponse)
async def store_session(request: StoreSessionRequest, vault: VaultDep):
    session_id = await vault.store(
        request.user_id,
        request.platform,
        request.platform_url,
        request.session_data,
        request.metadata,
    )
    return StoreSessionResponse(session_id=session_id, platform=request.platform)


@router.post("/cleanup", response_model=DeletedResponse)
async def cleanup_sessions(vault: VaultDep):
    """Delete every expired session."""
    return DeletedResponse(deleted=await vault.cleanup_expired())


@router.get("/{user_id}", response_model=list[SessionSummary])
async def list_sessions(user_id: str, vault: VaultDep):
    return await vault.list_sessions(user_id)


@router.delete("/{user_id}", response_model=DeletedResponse)
async def logout_all_platforms(user_id: str, vault: VaultDep):
    return DeletedResponse(deleted=await vault.delete_all(user_id))


@router.get("/{user_id}/history", response_model=list[AuthEvent])
async def authentication_history(
    user_id: str,
    vault: VaultDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
):
    return await vault.authentication_history(user_id, limit)


@router.get("/{user_id}/{platform}", response_model=SessionStatusResponse)
async def get_session_status(user_id: str, platform: str, vault: VaultDep):
    """Whether a valid (non-expired, decryptable) session exists."""
    try:
        session = await vault.get(user_id, platform)
    except SessionDecryptionError as e:
        logger.warning(f"Stored {platform} session for {user_id} is unreadable: {e}")
        session = None

    if session is None:
        return SessionStatusResponse(platform=platform, has_valid_session=False)
    return SessionStatusResponse(
        platform=platform,
        has_valid_session=True,
        expires_at=session.expires_at,
        last_used_at=session.last_used_at,
    )


@router.post("/{user_id}/{platform}/refresh")
async def refresh_session(user_id: str, platform: str, vault: VaultDep):
    return {"refreshed": await vault.refresh(user_id, platform)}


@router.delete("/{user_id}/{platform}", response_model=DeletedResponse)
async def delete_session(user_id: str, platform: str, vault: VaultDep):
    deleted = await vault.delete(user_id, platform)
    return DeletedResponse(deleted=1 if deleted else 0)
