"""
In-process session store.

Backs single-instance deployments and tests. Every operation runs under one
asyncio lock so that compare-and-swap and lease acquisition are atomic within
the process; it offers no coordination across processes.
"""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from src.app.repositories.errors import (
    DuplicateSessionId,
    SessionNotFound,
    VersionConflict,
)
from src.app.repositories.refresh_lease_repository import IRefreshLeaseRepository
from src.app.repositories.session_repository import ISessionRepository, SessionMutation
from src.domain.base import utc_now
from src.domain.entities import RefreshLease, Session

_PROTECTED_FIELDS = {"id", "user_id", "created_at", "updated_at", "version"}


def _copy_session(record: Session, **changes) -> Session:
    data = record.model_dump()
    data.update(changes)
    return Session(**data)


class MemoryStore:
    """Shared state for the in-memory repositories."""

    def __init__(self) -> None:
        self.sessions: Dict[str, Session] = {}
        self.leases: Dict[str, RefreshLease] = {}
        self.lock = asyncio.Lock()


class MemorySessionRepository(ISessionRepository):
    """Session repository implementation backed by MemoryStore"""

    def __init__(self, store: MemoryStore):
        self.store = store

    async def create(self, session_obj: Session) -> Session:
        async with self.store.lock:
            if session_obj.id in self.store.sessions:
                raise DuplicateSessionId(
                    "Session id already exists", {"session_id": session_obj.id}
                )
            self.store.sessions[session_obj.id] = _copy_session(session_obj)
            return _copy_session(session_obj)

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        async with self.store.lock:
            record = self.store.sessions.get(session_id)
            return _copy_session(record) if record is not None else None

    async def compare_and_swap(
        self, session_id: str, expected_version: int, mutation: SessionMutation
    ) -> Session:
        async with self.store.lock:
            current = self.store.sessions.get(session_id)
            if current is None:
                raise SessionNotFound("Session not found", {"session_id": session_id})
            if current.version != expected_version:
                raise VersionConflict(
                    "Session was modified concurrently",
                    {"expected": expected_version, "actual": current.version},
                )
            changes = {
                key: value
                for key, value in mutation(_copy_session(current)).items()
                if key not in _PROTECTED_FIELDS
            }
            updated = _copy_session(
                current,
                **changes,
                version=expected_version + 1,
                updated_at=utc_now(),
            )
            self.store.sessions[session_id] = updated
            return _copy_session(updated)

    async def delete_expired_before(self, timestamp: datetime) -> int:
        async with self.store.lock:
            expired = [
                session_id
                for session_id, record in self.store.sessions.items()
                if record.refresh_token_expires_at < timestamp
            ]
            for session_id in expired:
                del self.store.sessions[session_id]
            return len(expired)

    async def get_by_user_id(
        self, user_id: str, offset: int = 0, limit: Optional[int] = None
    ) -> List[Session]:
        async with self.store.lock:
            records = [
                record
                for record in self.store.sessions.values()
                if record.user_id == user_id
            ]
        records.sort(key=lambda r: (r.last_activity_at, r.created_at), reverse=True)
        end = None if limit is None else offset + limit
        return [_copy_session(record) for record in records[offset:end]]

    async def count_by_user_id(self, user_id: str) -> int:
        async with self.store.lock:
            return sum(
                1 for record in self.store.sessions.values() if record.user_id == user_id
            )


class MemoryRefreshLeaseRepository(IRefreshLeaseRepository):
    """Refresh lease repository implementation backed by MemoryStore"""

    def __init__(self, store: MemoryStore):
        self.store = store

    async def try_acquire(
        self, session_id: str, holder: str, now: datetime, expires_at: datetime
    ) -> bool:
        async with self.store.lock:
            lease = self.store.leases.get(session_id)
            if lease is not None and lease.expires_at > now:
                return False
            self.store.leases[session_id] = RefreshLease(
                session_id=session_id,
                holder=holder,
                acquired_at=now,
                expires_at=expires_at,
            )
            return True

    async def release(self, session_id: str, holder: str) -> bool:
        async with self.store.lock:
            lease = self.store.leases.get(session_id)
            if lease is None or lease.holder != holder:
                return False
            del self.store.leases[session_id]
            return True

    async def delete_expired_before(self, timestamp: datetime) -> int:
        async with self.store.lock:
            expired = [
                session_id
                for session_id, lease in self.store.leases.items()
                if lease.expires_at < timestamp
            ]
            for session_id in expired:
                del self.store.leases[session_id]
            return len(expired)
