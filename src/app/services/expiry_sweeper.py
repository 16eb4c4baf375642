"""
Expiry Sweeper

Background task reclaiming storage held by expired sessions.
"""

import asyncio
import logging
from datetime import datetime
from typing import AsyncContextManager, Callable, Optional

from libs.result import Result
from src.app.services.session_settings import SessionSettings
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import SweepExpiredSessionsUseCase, SweepResult
from src.domain.base import utc_now

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Runs SweepExpiredSessionsUseCase every sweep_interval.

    Each run opens its own unit of work through uow_scope. Sweeping is
    storage reclamation only; a session that is expired but not yet swept is
    still rejected by the refresh and logout checks.
    """

    def __init__(
        self,
        uow_scope: Callable[[], AsyncContextManager[UnitOfWork]],
        settings: SessionSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow_scope = uow_scope
        self.settings = settings
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Result[SweepResult]:
        async with self.uow_scope() as uow:
            result = await SweepExpiredSessionsUseCase(uow, self.settings, self.clock).execute()

        if result.is_err():
            logger.warning(f"Expiry sweep failed: {result.error.code}")
        elif result.value.sessions_deleted or result.value.leases_deleted:
            logger.info(
                f"Expiry sweep: sessions_deleted={result.value.sessions_deleted}, "
                f"leases_deleted={result.value.leases_deleted}"
            )
        return result

    async def _run_forever(self) -> None:
        interval = self.settings.sweep_interval.total_seconds()
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Expiry sweep crashed; retrying next interval")
            await asyncio.sleep(interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_forever(), name="expiry-sweeper")
        logger.info(f"Expiry sweeper started: interval={self.settings.sweep_interval}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")
