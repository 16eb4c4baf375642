"""
Session state transitions.

ACTIVE is the only non-terminal status; every transition out of it goes
through compare-and-swap. Callers own the commit.
"""

from datetime import datetime

from src.app.repositories.errors import SessionNotFound, VersionConflict
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Session, SessionStatus


async def transition_to_terminal(
    uow: UnitOfWork,
    session: Session,
    status: SessionStatus,
    now: datetime,
    attempts: int = 2,
) -> Session:
    """
    Move an ACTIVE session to REVOKED or EXPIRED.

    On a version conflict the record is re-read and the CAS retried, up to
    attempts in total. A session already in a terminal status is returned
    unchanged, whichever terminal status it holds.

    Raises:
        SessionNotFound: the record disappeared
        VersionConflict: every attempt lost the race
    """
    if status is SessionStatus.active:
        raise ValueError("Target status must be terminal")

    def mutation(current: Session) -> dict:
        changes = {"status": status}
        if status is SessionStatus.revoked:
            changes["revoked_at"] = now
        return changes

    current = session
    for _ in range(attempts):
        if current.status.is_terminal:
            return current
        try:
            return await uow.sessions.compare_and_swap(current.id, current.version, mutation)
        except VersionConflict:
            current = await uow.sessions.get_by_id(session.id)
            if current is None:
                raise SessionNotFound("Session not found", {"session_id": session.id})

    if current.status.is_terminal:
        return current
    raise VersionConflict(
        "Session was modified concurrently", {"session_id": session.id}
    )
