"""
Session Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import SessionStatus, TokenKind

# Export all entities
from .session import Session
from .refresh_lease import RefreshLease

__all__ = [
    # Enums
    "SessionStatus",
    "TokenKind",
    # Entities
    "Session",
    "RefreshLease",
]
