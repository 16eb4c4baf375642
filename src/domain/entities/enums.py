"""
Session Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """Session lifecycle status. Only ACTIVE can transition; the others are terminal."""

    active = "ACTIVE"
    revoked = "REVOKED"
    expired = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.active


class TokenKind(str, Enum):
    """Kind of bearer credential carried in the token claims"""

    access = "access"
    refresh = "refresh"
