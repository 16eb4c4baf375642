from abc import ABC, abstractmethod
from datetime import datetime


class IRefreshLeaseRepository(ABC):
    """Refresh lease repository interface - application layer"""

    @abstractmethod
    async def try_acquire(
        self, session_id: str, holder: str, now: datetime, expires_at: datetime
    ) -> bool:
        """
        Claim the lease for session_id unless an unexpired lease exists.

        Stale leases (expires_at <= now) are reclaimed. Returns True if holder
        now owns the lease.
        """
        pass

    @abstractmethod
    async def release(self, session_id: str, holder: str) -> bool:
        """Delete the lease only if holder owns it. Returns True if deleted."""
        pass

    @abstractmethod
    async def delete_expired_before(self, timestamp: datetime) -> int:
        """Purge leases that expired before timestamp. Returns count."""
        pass
