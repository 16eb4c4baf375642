import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field, field_validator

from src.api.error import ClientError, raise_for_error
from src.app.services.session_lifecycle_manager import SessionLifecycleManager
from src.app.services.token_codec import TokenClaims
from src.app.use_cases.auth import AuthResponse, LogoutResponse
from src.depends import get_session_manager, optional_security
from libs.result import Error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _provenance(request: Request):
    client_ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    return client_ip, user_agent[:512] if user_agent else None


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Sent by the gateway after it has verified the user's credentials.
    """

    user_id: str = Field(..., min_length=1, max_length=255, description="Authenticated user ID")

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("user_id")
    @classmethod
    def strip_user_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("user_id must not be blank")
        return value


@router.post("/login", status_code=status.HTTP_200_OK, response_model=AuthResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    Open Session

    Creates an ACTIVE session and returns its first access/refresh pair.
    Credential verification happens upstream; this endpoint trusts user_id.

    Raises:
        - 503 Service Unavailable: Session store unavailable
    """
    client_ip, user_agent = _provenance(http_request)
    result = await manager.login(request.user_id, client_ip, user_agent)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    Validates incoming refresh request.
    """

    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=AuthResponse)
async def refresh(
    request: RefreshRequest,
    http_request: Request,
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    Rotate Tokens

    Exchanges a refresh token for a new pair. The presented token is spent:
    presenting it again revokes the whole session.

    Raises:
        - 401 Unauthorized: Invalid/expired token, invalid session, or reuse detected
        - 409 Conflict: Refresh already in progress or concurrent modification (retry)
        - 503 Service Unavailable: Session store unavailable
    """
    client_ip, user_agent = _provenance(http_request)
    result = await manager.refresh(request.refresh_token, client_ip, user_agent)

    if result.is_err():
        error = result.error
        if error.code == "TOKEN_REUSE_DETECTED":
            logger.warning(
                f"Security event: refresh token reuse detected, session revoked; "
                f"client_ip={client_ip}, user_agent={user_agent}"
            )
        raise_for_error(error)

    return result.value


class LogoutRequest(BaseModel):
    """
    Logout HTTP request payload

    Optional when an access token is sent in the Authorization header.
    """

    session_id: Optional[str] = Field(default=None, min_length=1, max_length=36)


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: Optional[LogoutRequest] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    End Session

    Revokes the session named by the bearer access token, or by session_id.
    Idempotent for sessions that are already revoked.

    Raises:
        - 400 Bad Request: Neither an access token nor a session_id was given
        - 401 Unauthorized: Invalid token, unknown or expired session
        - 409 Conflict: Concurrent modification (retry)
        - 503 Service Unavailable: Session store unavailable
    """
    access_token = credentials.credentials if credentials else None
    session_id = request.session_id if request else None

    if access_token is None and session_id is None:
        raise ClientError(
            Error("MISSING_SESSION", "An access token or session_id is required"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    result = await manager.logout(access_token=access_token, session_id=session_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ValidateRequest(BaseModel):
    """
    Validate access token HTTP request payload
    """

    access_token: str = Field(..., min_length=1, description="Access token")


@router.post("/validate", status_code=status.HTTP_200_OK, response_model=TokenClaims)
async def validate(
    request: ValidateRequest,
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    Validate Access Token

    Signature and expiry check only; the session store is not consulted, so a
    revoked session's access token stays valid until it expires.

    Raises:
        - 401 Unauthorized: Invalid, expired or non-access token
    """
    result = await manager.validate_access(request.access_token)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
