from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from src.domain.entities import Session

# Receives the current record and returns the field changes to apply.
SessionMutation = Callable[[Session], Dict[str, Any]]


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session. Raises DuplicateSessionId if the id exists."""
        pass

    @abstractmethod
    async def get_by_id(self, session_id: str) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def compare_and_swap(
        self, session_id: str, expected_version: int, mutation: SessionMutation
    ) -> Session:
        """
        Apply mutation only if the stored version equals expected_version.

        The version is incremented and updated_at stamped as part of the same
        write. Raises SessionNotFound or VersionConflict.
        """
        pass

    @abstractmethod
    async def delete_expired_before(self, timestamp: datetime) -> int:
        """Delete sessions whose refresh window ended before timestamp. Returns count."""
        pass

    @abstractmethod
    async def get_by_user_id(
        self, user_id: str, offset: int = 0, limit: Optional[int] = None
    ) -> List[Session]:
        """Get sessions for a user, most recently active first"""
        pass

    @abstractmethod
    async def count_by_user_id(self, user_id: str) -> int:
        """Count all sessions for a user"""
        pass
