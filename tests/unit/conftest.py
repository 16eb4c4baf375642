from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.repositories.memory import MemoryStore
from src.adapter.services.memory_unit_of_work import MemoryUnitOfWork
from src.app.services.session_lifecycle_manager import SessionLifecycleManager
from src.app.services.session_settings import SessionSettings
from src.app.services.token_codec import TokenCodec


class FakeClock:
    """Controllable clock; starts on a whole second so JWT timestamps round-trip exactly."""

    def __init__(self, now: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock()
    uow.sessions.get_by_id = AsyncMock()
    uow.sessions.compare_and_swap = AsyncMock()
    uow.sessions.delete_expired_before = AsyncMock(return_value=0)
    uow.sessions.get_by_user_id = AsyncMock(return_value=[])
    uow.sessions.count_by_user_id = AsyncMock(return_value=0)

    uow.refresh_leases = MagicMock()
    uow.refresh_leases.try_acquire = AsyncMock(return_value=True)
    uow.refresh_leases.release = AsyncMock(return_value=True)
    uow.refresh_leases.delete_expired_before = AsyncMock(return_value=0)
    return uow


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return SessionSettings(
        jwt_secret="unit-test-secret",
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
        refresh_lease_ttl=timedelta(seconds=10),
    )


@pytest.fixture
def token_codec(settings, clock):
    return TokenCodec.from_settings(settings, clock)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def memory_uow(memory_store):
    return MemoryUnitOfWork(memory_store)


@pytest.fixture
def manager_factory(memory_store, token_codec, settings, clock):
    """Build a manager per call, the way each request gets its own unit of work."""

    def factory(uow=None):
        return SessionLifecycleManager(
            uow or MemoryUnitOfWork(memory_store), token_codec, settings, clock
        )

    return factory
