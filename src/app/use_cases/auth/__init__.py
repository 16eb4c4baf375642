"""
Authentication Use Cases

Session lifecycle: login, refresh, logout and access validation.
"""

from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .validate_access_use_case import ValidateAccessUseCase
from .dtos import AuthResponse, LogoutResponse, SessionInfo

__all__ = [
    # Use Cases
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "ValidateAccessUseCase",
    # DTOs - Responses
    "AuthResponse",
    "LogoutResponse",
    # DTOs - Nested Models
    "SessionInfo",
]
