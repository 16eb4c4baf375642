from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy import delete, insert
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.store_errors import translate_store_errors
from src.app.repositories.refresh_lease_repository import IRefreshLeaseRepository
from src.domain.entities import RefreshLease


class RefreshLeaseRepository(IRefreshLeaseRepository):
    """Refresh lease repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @translate_store_errors
    async def try_acquire(
        self, session_id: str, holder: str, now: datetime, expires_at: datetime
    ) -> bool:
        """
        Reclaim a stale lease, then insert ours.

        The primary key on session_id is the conditional write: when two
        instances race, one INSERT fails with an integrity error.
        """
        await self.session.execute(
            delete(RefreshLease).where(
                RefreshLease.session_id == session_id,
                RefreshLease.expires_at <= now,
            )
        )
        try:
            await self.session.execute(
                insert(RefreshLease).values(
                    session_id=session_id,
                    holder=holder,
                    acquired_at=now,
                    expires_at=expires_at,
                )
            )
        except IntegrityError:
            await self.session.rollback()
            return False
        return True

    @translate_store_errors
    async def release(self, session_id: str, holder: str) -> bool:
        """Delete the lease only if holder owns it"""
        result = await self.session.execute(
            delete(RefreshLease).where(
                RefreshLease.session_id == session_id,
                RefreshLease.holder == holder,
            )
        )
        return result.rowcount > 0

    @translate_store_errors
    async def delete_expired_before(self, timestamp: datetime) -> int:
        """Purge leases that expired before timestamp"""
        result = await self.session.execute(
            delete(RefreshLease).where(RefreshLease.expires_at < timestamp)
        )
        return result.rowcount
