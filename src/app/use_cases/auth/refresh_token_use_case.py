"""
Refresh Token Use Case

Rotates a session's token pair and detects replay of rotated refresh tokens.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from libs.result import Error, Result, Return
from src.app.repositories.errors import SessionNotFound, StoreUnavailable, VersionConflict
from src.app.services.refresh_guard import RefreshGuard
from src.app.services.session_settings import SessionSettings
from src.app.services.session_transitions import transition_to_terminal
from src.app.services.token_codec import TokenClaims, TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import Session, SessionStatus, TokenKind
from .dtos import AuthResponse
from .token_issuance import issue_auth_response

logger = logging.getLogger(__name__)

# Reuse revocation must win against concurrent writers; allow a few re-reads.
REVOKE_ATTEMPTS = 3


def _session_invalid(message: str = "Session is no longer valid") -> Result:
    return Return.err(Error("SESSION_INVALID", message))


def _concurrent_modification() -> Result:
    return Return.err(
        Error("CONCURRENT_MODIFICATION", "Session was modified concurrently, retry")
    )


class RefreshTokenUseCase:
    """
    Use case for refresh token rotation.

    Business Rules:
    - Token signature, expiry and kind are verified before any store access
    - One refresh per session at a time (store-backed lease), else REFRESH_IN_PROGRESS
    - Session must exist, be ACTIVE and inside its refresh window
    - A token whose version differs from the session's refresh_token_version
      is a replay: the session is revoked and TOKEN_REUSE_DETECTED returned
    - Rotation bumps refresh_token_version by exactly 1 through compare-and-swap
    - A lost CAS race is retried once, then CONCURRENT_MODIFICATION
    - The lease is always released, on every path
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
        self.guard = RefreshGuard(uow, settings.refresh_lease_ttl, clock)

    async def execute(
        self,
        refresh_token: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[AuthResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: The refresh token to verify and rotate
            client_ip: Caller address (provenance only)
            user_agent: Caller user agent (provenance only)

        Returns:
            Result with AuthResponse containing new tokens, or Error
        """
        verified = self.token_codec.verify(refresh_token, TokenKind.refresh, now=self.clock())
        if verified.is_err():
            return verified
        claims = verified.value

        async with self.uow:
            try:
                async with self.guard.hold(claims.session_id) as holder:
                    if holder is None:
                        return Return.err(
                            Error(
                                "REFRESH_IN_PROGRESS",
                                "Another refresh is in progress for this session",
                            )
                        )
                    return await self._rotate(claims, client_ip, user_agent)
            except StoreUnavailable:
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Session store is unavailable")
                )

    async def _rotate(
        self,
        claims: TokenClaims,
        client_ip: Optional[str],
        user_agent: Optional[str],
    ) -> Result[AuthResponse]:
        # First pass plus one retry after a lost CAS race.
        for attempt in range(2):
            session = await self.uow.sessions.get_by_id(claims.session_id)
            now = self.clock()

            if session is None or session.user_id != claims.user_id:
                return _session_invalid()
            if session.status != SessionStatus.active:
                return _session_invalid()
            if session.is_refresh_expired(now):
                await self._expire(session, now)
                return _session_invalid("Session has expired")

            if claims.version != session.refresh_token_version:
                if attempt > 0:
                    # The version moved between our read and our write: a
                    # concurrent rotation of this same token won.
                    return _concurrent_modification()
                return await self._revoke_for_reuse(session, claims, now)

            try:
                rotated = await self.uow.sessions.compare_and_swap(
                    session.id,
                    session.version,
                    self._rotation(session, now, client_ip, user_agent),
                )
            except VersionConflict:
                logger.info(f"Refresh lost CAS race: session_id={session.id}, attempt={attempt + 1}")
                continue
            except SessionNotFound:
                return _session_invalid()

            await self.uow.commit()
            logger.info(
                f"Session refreshed: session_id={rotated.id}, "
                f"refresh_token_version={rotated.refresh_token_version}"
            )
            return Return.ok(issue_auth_response(self.token_codec, rotated, now))

        return _concurrent_modification()

    def _rotation(
        self,
        session: Session,
        now: datetime,
        client_ip: Optional[str],
        user_agent: Optional[str],
    ):
        refresh_expires_at = self.settings.refresh_expiry(
            now, created_at=session.created_at, current=session.refresh_token_expires_at
        )
        access_expires_at = self.settings.access_expiry(now, refresh_expires_at)

        def mutation(current: Session) -> dict:
            changes = {
                "refresh_token_version": current.refresh_token_version + 1,
                "access_token_expires_at": access_expires_at,
                "refresh_token_expires_at": refresh_expires_at,
                "last_activity_at": now,
            }
            if client_ip is not None:
                changes["client_ip"] = client_ip
            if user_agent is not None:
                changes["user_agent"] = user_agent
            return changes

        return mutation

    async def _revoke_for_reuse(
        self, session: Session, claims: TokenClaims, now: datetime
    ) -> Result[AuthResponse]:
        try:
            await transition_to_terminal(
                self.uow, session, SessionStatus.revoked, now, attempts=REVOKE_ATTEMPTS
            )
        except VersionConflict:
            return _concurrent_modification()
        except SessionNotFound:
            return _session_invalid()
        await self.uow.commit()
        return Return.err(
            Error(
                "TOKEN_REUSE_DETECTED",
                f"Refresh token version {claims.version} was already rotated; session revoked",
            )
        )

    async def _expire(self, session: Session, now: datetime) -> None:
        """Record the logical expiry. Best effort: a lost race leaves the sweeper to reclaim it."""
        try:
            await transition_to_terminal(self.uow, session, SessionStatus.expired, now)
            await self.uow.commit()
        except (VersionConflict, SessionNotFound):
            logger.info(f"Could not mark session expired: session_id={session.id}")
