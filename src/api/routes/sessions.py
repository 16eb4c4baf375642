import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.error import raise_for_error
from src.app.services.session_lifecycle_manager import SessionLifecycleManager
from src.app.services.token_codec import TokenClaims
from src.app.use_cases.sessions import RevokeSessionsResponse, SessionPage, SweepResult
from src.depends import get_current_claims, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionPage)
async def list_sessions(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    claims: TokenClaims = Depends(get_current_claims),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    List Sessions

    Returns the caller's sessions, most recently active first.

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 503 Service Unavailable: Session store unavailable
    """
    result = await manager.list_sessions(claims.user_id, page, size)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_all_sessions(
    claims: TokenClaims = Depends(get_current_claims),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    Revoke All Sessions

    Signs the caller out everywhere, including the current session.

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 409 Conflict: Concurrent modification (retry)
        - 503 Service Unavailable: Session store unavailable
    """
    result = await manager.revoke_all_sessions(claims.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/cleanup", status_code=status.HTTP_200_OK, response_model=SweepResult)
async def cleanup_expired_sessions(
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    Cleanup Expired Sessions

    Runs one expiry sweep now instead of waiting for the background sweeper.
    Only sessions whose refresh window has closed are deleted.

    Raises:
        - 503 Service Unavailable: Session store unavailable
    """
    result = await manager.sweep_expired_sessions()

    if result.is_err():
        raise_for_error(result.error)

    logger.info(
        f"Manual expiry sweep: sessions_deleted={result.value.sessions_deleted}, "
        f"leases_deleted={result.value.leases_deleted}"
    )
    return result.value
