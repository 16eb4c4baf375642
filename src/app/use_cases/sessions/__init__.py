"""
Session Management Use Cases

Listing, bulk revocation and expiry sweeping.
"""

from .list_sessions_use_case import ListSessionsUseCase
from .revoke_sessions_use_case import RevokeSessionsUseCase
from .sweep_expired_sessions_use_case import SweepExpiredSessionsUseCase
from .dtos import RevokeSessionsResponse, SessionPage, SweepResult

__all__ = [
    "ListSessionsUseCase",
    "RevokeSessionsUseCase",
    "SweepExpiredSessionsUseCase",
    "RevokeSessionsResponse",
    "SessionPage",
    "SweepResult",
]
