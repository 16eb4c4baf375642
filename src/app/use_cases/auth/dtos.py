"""
Authentication Use Case DTOs (Data Transfer Objects)

All Response classes for the session lifecycle.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.domain.entities import Session


# ============================================================================
# Nested Models
# ============================================================================


class SessionInfo(BaseModel):
    """Public view of a session record"""

    session_id: str
    user_id: str
    status: str
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    refresh_token_version: int
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime
    last_activity_at: datetime
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, session: Session) -> "SessionInfo":
        return cls(
            session_id=session.id,
            user_id=session.user_id,
            status=session.status.value,
            client_ip=session.client_ip,
            user_agent=session.user_agent,
            refresh_token_version=session.refresh_token_version,
            access_token_expires_at=session.access_token_expires_at,
            refresh_token_expires_at=session.refresh_token_expires_at,
            last_activity_at=session.last_activity_at,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


# ============================================================================
# Response DTOs
# ============================================================================


class AuthResponse(BaseModel):
    """Response for login and refresh use cases"""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int
    session_id: str
    user_id: str
    session: SessionInfo


class LogoutResponse(BaseModel):
    """Response for logout use case"""

    status: str
    session_id: str
