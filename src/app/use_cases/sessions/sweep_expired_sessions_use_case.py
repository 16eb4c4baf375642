"""
Sweep Expired Sessions Use Case

Storage reclamation for sessions whose refresh window has ended.
"""

from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.repositories.errors import StoreUnavailable
from src.app.services.session_settings import SessionSettings
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from .dtos import SweepResult


class SweepExpiredSessionsUseCase:
    """
    Use case for deleting expired session records.

    Business Rules:
    - Deletes sessions with refresh_token_expires_at < now - sweep_grace, any status
    - Never deletes a session whose refresh window is still open
    - Purges refresh leases that have expired
    - Not a correctness dependency: refresh and logout check expiry themselves
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SessionSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.settings = settings
        self.clock = clock

    async def execute(self) -> Result[SweepResult]:
        now = self.clock()
        cutoff = now - self.settings.sweep_grace

        async with self.uow:
            try:
                sessions_deleted = await self.uow.sessions.delete_expired_before(cutoff)
                leases_deleted = await self.uow.refresh_leases.delete_expired_before(now)
                await self.uow.commit()
            except StoreUnavailable:
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Session store is unavailable")
                )

        return Return.ok(
            SweepResult(
                swept_before=cutoff,
                sessions_deleted=sessions_deleted,
                leases_deleted=leases_deleted,
            )
        )
