"""
Logout Use Case

Revokes a session identified by an access token or by its id.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from libs.result import Error, Result, Return
from src.app.repositories.errors import SessionNotFound, StoreUnavailable, VersionConflict
from src.app.services.session_transitions import transition_to_terminal
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import SessionStatus, TokenKind
from .dtos import LogoutResponse

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Use case for session logout.

    Business Rules:
    - ACTIVE -> REVOKED through compare-and-swap
    - Idempotent: logging out a REVOKED session succeeds
    - Unknown session, EXPIRED session, or a session past its refresh window
      fails with SESSION_INVALID
    - Access tokens already issued stay verifiable until they expire
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_codec: TokenCodec,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.token_codec = token_codec
        self.clock = clock

    async def execute(
        self,
        access_token: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Result[LogoutResponse]:
        """
        Execute logout use case.

        Args:
            access_token: Access token of the session to end
            session_id: Session id, used when no access token is given

        Returns:
            Result with LogoutResponse, or Error
        """
        if access_token is not None:
            verified = self.token_codec.verify(access_token, TokenKind.access, now=self.clock())
            if verified.is_err():
                return verified
            session_id = verified.value.session_id

        if not session_id:
            return Return.err(
                Error("SESSION_INVALID", "An access token or session id is required")
            )

        async with self.uow:
            try:
                session = await self.uow.sessions.get_by_id(session_id)
                if session is None:
                    return Return.err(Error("SESSION_INVALID", "Session not found"))

                if session.status == SessionStatus.revoked:
                    return Return.ok(LogoutResponse(status="revoked", session_id=session.id))

                now = self.clock()
                if session.status == SessionStatus.expired or session.is_refresh_expired(now):
                    return Return.err(Error("SESSION_INVALID", "Session has expired"))

                try:
                    result = await transition_to_terminal(
                        self.uow, session, SessionStatus.revoked, now
                    )
                except VersionConflict:
                    return Return.err(
                        Error(
                            "CONCURRENT_MODIFICATION",
                            "Session was modified concurrently, retry",
                        )
                    )
                except SessionNotFound:
                    return Return.err(Error("SESSION_INVALID", "Session not found"))

                if result.status != SessionStatus.revoked:
                    return Return.err(Error("SESSION_INVALID", "Session has expired"))

                await self.uow.commit()
            except StoreUnavailable:
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Session store is unavailable")
                )

        logger.info(f"Session revoked by logout: session_id={session_id}")
        return Return.ok(LogoutResponse(status="revoked", session_id=session_id))
