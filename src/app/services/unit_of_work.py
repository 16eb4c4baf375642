from abc import ABC, abstractmethod

from src.app.repositories.refresh_lease_repository import IRefreshLeaseRepository
from src.app.repositories.session_repository import ISessionRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    sessions: ISessionRepository
    refresh_leases: IRefreshLeaseRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
