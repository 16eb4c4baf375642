"""
RefreshLease Entity

Short-lived exclusive claim on a session's refresh operation.
"""

from datetime import datetime

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class RefreshLease(SQLModel, table=True):
    """
    RefreshLease entity - at most one row per session (primary key).

    Business Rules:
    - Acquired by inserting the row; a duplicate key means another refresh holds it
    - Rows past expires_at are stale and may be reclaimed by any instance
    - Only the holder that inserted the row may delete it
    """

    __tablename__ = "refresh_leases"

    session_id: str = Field(primary_key=True, max_length=36)
    holder: str = Field(nullable=False, max_length=64)

    acquired_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (Index("idx_refresh_lease_expires_at", "expires_at"),)
