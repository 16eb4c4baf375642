"""
Revoke Sessions Use Case

Revokes every active session of a user (sign out everywhere).
"""

import logging
from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.repositories.errors import SessionNotFound, StoreUnavailable, VersionConflict
from src.app.services.session_transitions import transition_to_terminal
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import SessionStatus
from .dtos import RevokeSessionsResponse

logger = logging.getLogger(__name__)


class RevokeSessionsUseCase:
    """
    Use case for revoking all of a user's sessions.

    Business Rules:
    - Each ACTIVE session moves to REVOKED through compare-and-swap
    - Terminal sessions are left untouched and not counted
    - Sessions deleted meanwhile by the sweeper are skipped
    - Safe to retry after CONCURRENT_MODIFICATION: revoked sessions are skipped
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def revoke_all_sessions(self, user_id: str) -> Result[RevokeSessionsResponse]:
        """
        Revoke all active sessions for a user.

        Args:
            user_id: User whose sessions will be revoked

        Returns:
            Result with count of revoked sessions, or Error
        """
        async with self.uow:
            try:
                sessions = await self.uow.sessions.get_by_user_id(user_id)
                now = self.clock()
                revoked_count = 0
                for session in sessions:
                    if session.status != SessionStatus.active:
                        continue
                    try:
                        result = await transition_to_terminal(
                            self.uow, session, SessionStatus.revoked, now
                        )
                    except SessionNotFound:
                        continue
                    except VersionConflict:
                        await self.uow.commit()
                        return Return.err(
                            Error(
                                "CONCURRENT_MODIFICATION",
                                "Session was modified concurrently, retry",
                            )
                        )
                    if result.status == SessionStatus.revoked:
                        revoked_count += 1

                await self.uow.commit()
            except StoreUnavailable:
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Session store is unavailable")
                )

        logger.info(f"Revoked all sessions: user_id={user_id}, revoked_count={revoked_count}")
        return Return.ok(
            RevokeSessionsResponse(user_id=user_id, revoked_count=revoked_count)
        )
