from src.adapter.repositories.memory import (
    MemoryRefreshLeaseRepository,
    MemorySessionRepository,
    MemoryStore,
)
from src.app.services.unit_of_work import UnitOfWork


class MemoryUnitOfWork(UnitOfWork):
    """
    In-memory implementation of UnitOfWork pattern.

    Repository writes are applied immediately and atomically, so commit and
    rollback have nothing to do.
    """

    def __init__(self, store: MemoryStore):
        self.store = store
        self.sessions = MemorySessionRepository(store)
        self.refresh_leases = MemoryRefreshLeaseRepository(store)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        pass

    async def rollback(self):
        pass
