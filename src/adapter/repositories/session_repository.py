from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy import delete, func
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.store_errors import translate_store_errors
from src.app.repositories.errors import (
    DuplicateSessionId,
    SessionNotFound,
    VersionConflict,
)
from src.app.repositories.session_repository import ISessionRepository, SessionMutation
from src.domain.base import utc_now
from src.domain.entities import Session

# Fields a mutation may never touch; the repository owns them.
_PROTECTED_FIELDS = {"id", "user_id", "created_at", "updated_at", "version"}


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @translate_store_errors
    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        existing = await self.session.get(Session, session_obj.id)
        if existing is not None:
            raise DuplicateSessionId(
                "Session id already exists", {"session_id": session_obj.id}
            )
        self.session.add(session_obj)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateSessionId(
                "Session id already exists", {"session_id": session_obj.id}
            ) from exc
        await self.session.refresh(session_obj)
        return session_obj

    @translate_store_errors
    async def get_by_id(self, session_id: str) -> Optional[Session]:
        """Get session by ID, bypassing any stale identity-map copy"""
        return await self.session.get(Session, session_id, populate_existing=True)

    @translate_store_errors
    async def compare_and_swap(
        self, session_id: str, expected_version: int, mutation: SessionMutation
    ) -> Session:
        """
        Conditional UPDATE guarded by the version column.

        The WHERE clause on version makes the write atomic across instances:
        of two writers holding the same base version, only one UPDATE matches.
        """
        current = await self.session.get(Session, session_id, populate_existing=True)
        if current is None:
            raise SessionNotFound("Session not found", {"session_id": session_id})
        if current.version != expected_version:
            raise VersionConflict(
                "Session was modified concurrently",
                {"expected": expected_version, "actual": current.version},
            )

        changes = {
            key: value
            for key, value in mutation(current).items()
            if key not in _PROTECTED_FIELDS
        }
        changes["version"] = expected_version + 1
        changes["updated_at"] = utc_now()

        stmt = (
            update(Session)
            .where(Session.id == session_id, Session.version == expected_version)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount == 0:
            still_there = await self.session.get(
                Session, session_id, populate_existing=True
            )
            if still_there is None:
                raise SessionNotFound("Session not found", {"session_id": session_id})
            raise VersionConflict(
                "Session was modified concurrently",
                {"expected": expected_version, "actual": still_there.version},
            )

        return await self.session.get(Session, session_id, populate_existing=True)

    @translate_store_errors
    async def delete_expired_before(self, timestamp: datetime) -> int:
        """Delete sessions whose refresh window ended before timestamp"""
        stmt = (
            delete(Session)
            .where(Session.refresh_token_expires_at < timestamp)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    @translate_store_errors
    async def get_by_user_id(
        self, user_id: str, offset: int = 0, limit: Optional[int] = None
    ) -> List[Session]:
        """Get sessions for a user, most recently active first"""
        stmt = (
            select(Session)
            .where(Session.user_id == user_id)
            .order_by(Session.last_activity_at.desc(), Session.created_at.desc())
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @translate_store_errors
    async def count_by_user_id(self, user_id: str) -> int:
        """Count all sessions for a user"""
        stmt = select(func.count()).select_from(Session).where(Session.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()
