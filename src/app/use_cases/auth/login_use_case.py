"""
Login Use Case

Opens a session for an already-authenticated user and issues its first token pair.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from libs.result import Error, Result, Return
from src.app.repositories.errors import DuplicateSessionId, StoreUnavailable
from src.app.services.session_settings import SessionSettings
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import generate_uuid, utc_now
from src.domain.entities import Session, SessionStatus
from .dtos import AuthResponse
from .token_issuance import issue_auth_response

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for session creation.

    Business Rules:
    - Credentials are verified upstream; user_id arrives authenticated
    - New session starts ACTIVE with refresh_token_version=0
    - The store write is committed before any token is issued, so a failed
      create leaves neither a session nor usable tokens behind
    - client_ip and user_agent are recorded for information only
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_codec: TokenCodec,
        settings: SessionSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.token_codec = token_codec
        self.settings = settings
        self.clock = clock

    async def execute(
        self,
        user_id: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[AuthResponse]:
        """
        Execute login use case.

        Args:
            user_id: Authenticated principal
            client_ip: Caller address (provenance only)
            user_agent: Caller user agent (provenance only)

        Returns:
            Result with AuthResponse containing the token pair, or Error
        """
        now = self.clock()
        refresh_expires_at = self.settings.refresh_expiry(now, created_at=now)

        session = Session(
            id=generate_uuid(),
            user_id=str(user_id),
            status=SessionStatus.active,
            access_token_expires_at=self.settings.access_expiry(now, refresh_expires_at),
            refresh_token_expires_at=refresh_expires_at,
            refresh_token_version=0,
            client_ip=client_ip,
            user_agent=user_agent,
            created_at=now,
            last_activity_at=now,
            updated_at=now,
            version=0,
        )

        async with self.uow:
            try:
                created = await self.uow.sessions.create(session)
                await self.uow.commit()
            except DuplicateSessionId:
                logger.error(f"Session id collision on login: user_id={user_id}")
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Could not allocate a session")
                )
            except StoreUnavailable:
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Session store is unavailable")
                )

        logger.info(f"Session created: user_id={created.user_id}, session_id={created.id}")
        return Return.ok(issue_auth_response(self.token_codec, created, now))
