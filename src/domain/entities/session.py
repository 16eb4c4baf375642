"""
Session Entity

Durable record of one authenticated session and its refresh-token chain.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import generate_uuid, utc_now
from .enums import SessionStatus


class Session(SQLModel, table=True):
    """
    Session entity - one row per login, mutated only through compare-and-swap.

    Business Rules:
    - id is generated at login and never reused
    - refresh_token_version starts at 0 and grows by 1 per rotation
    - A refresh token is valid only for the current refresh_token_version
    - status moves ACTIVE -> REVOKED or ACTIVE -> EXPIRED, never back
    - version is the optimistic-lock counter, bumped on every mutation
    - client_ip / user_agent are informational only
    """

    __tablename__ = "sessions"

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    user_id: str = Field(nullable=False, index=True, max_length=255)
    status: SessionStatus = Field(default=SessionStatus.active)

    access_token_expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    refresh_token_expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    refresh_token_version: int = Field(default=0, nullable=False)

    # Provenance
    client_ip: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    last_activity_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Optimistic concurrency
    version: int = Field(default=0, nullable=False)

    __table_args__ = (
        Index("idx_session_refresh_expires_at", "refresh_token_expires_at"),
        Index("idx_session_user_activity", "user_id", "last_activity_at"),
        Index("idx_session_status", "status"),
    )

    def is_refresh_expired(self, now: datetime) -> bool:
        return self.refresh_token_expires_at < now
