"""
Session Management Use Case DTOs
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel

from src.app.use_cases.auth.dtos import SessionInfo


class SessionPage(BaseModel):
    """One page of a user's sessions, most recently active first"""

    items: List[SessionInfo]
    total: int
    page: int
    size: int


class RevokeSessionsResponse(BaseModel):
    """Response for revoke-all-sessions use case"""

    user_id: str
    revoked_count: int


class SweepResult(BaseModel):
    """Outcome of one expiry sweep"""

    swept_before: datetime
    sessions_deleted: int
    leases_deleted: int
