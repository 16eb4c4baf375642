"""
Refresh Guard

Per-session lease serializing refresh attempts across service instances.
"""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, Optional

from src.app.repositories.errors import StoreError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now

logger = logging.getLogger(__name__)


class RefreshGuard:
    """
    Lease-based mutual exclusion for the refresh operation.

    The lease lives in the store (not in process memory), so it holds across
    instances. It self-expires after lease_ttl, which bounds how long a
    crashed holder can block a session.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        lease_ttl: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.lease_ttl = lease_ttl
        self.clock = clock

    async def acquire(self, session_id: str) -> Optional[str]:
        """
        Claim the refresh lease for a session.

        Returns:
            Holder token, or None if another refresh holds an unexpired lease
        """
        holder = secrets.token_urlsafe(16)
        now = self.clock()
        acquired = await self.uow.refresh_leases.try_acquire(
            session_id, holder, now, now + self.lease_ttl
        )
        if not acquired:
            logger.info(f"Refresh lease busy: session_id={session_id}")
            return None
        await self.uow.commit()
        return holder

    async def release(self, session_id: str, holder: str) -> bool:
        """
        Release the lease if holder still owns it.

        Uncommitted writes from the guarded attempt are rolled back first, so
        releasing never commits a half-finished rotation. Store failures are
        logged rather than raised: the lease expires on its own.
        """
        try:
            await self.uow.rollback()
            released = await self.uow.refresh_leases.release(session_id, holder)
            await self.uow.commit()
        except StoreError as exc:
            logger.error(
                f"Refresh lease release failed: session_id={session_id}, error={exc.message}"
            )
            return False
        if not released:
            logger.warning(f"Refresh lease expired before release: session_id={session_id}")
        return released

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[Optional[str]]:
        """Acquire for the duration of the block; always released, including on cancellation."""
        holder = await self.acquire(session_id)
        try:
            yield holder
        finally:
            if holder is not None:
                await self.release(session_id, holder)
