"""
Use Cases

Organized into domain folders:
- auth/: Session lifecycle (login, refresh, logout, validate)
- sessions/: Session management (list, revoke all, sweep)
"""

from .auth import (
    LoginUseCase,
    RefreshTokenUseCase,
    LogoutUseCase,
    ValidateAccessUseCase,
)
from .sessions import (
    ListSessionsUseCase,
    RevokeSessionsUseCase,
    SweepExpiredSessionsUseCase,
)

__all__ = [
    # Auth
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "ValidateAccessUseCase",
    # Sessions
    "ListSessionsUseCase",
    "RevokeSessionsUseCase",
    "SweepExpiredSessionsUseCase",
]
