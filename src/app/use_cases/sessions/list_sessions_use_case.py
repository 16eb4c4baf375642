"""
List Sessions Use Case

Paginated view of a user's sessions.
"""

from libs.result import Error, Result, Return
from src.app.repositories.errors import StoreUnavailable
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import SessionInfo
from .dtos import SessionPage

MAX_PAGE_SIZE = 100


class ListSessionsUseCase:
    """
    Use case for listing a user's sessions.

    Business Rules:
    - Ordered by last activity, newest first
    - Pages are 1-based; size is capped at MAX_PAGE_SIZE
    - Terminal sessions are listed until the sweeper reclaims them
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: str, page: int = 1, size: int = 20) -> Result[SessionPage]:
        """
        Execute list sessions use case.

        Args:
            user_id: Owner of the sessions
            page: 1-based page number
            size: Page size

        Returns:
            Result with SessionPage, or Error
        """
        if page < 1 or size < 1 or size > MAX_PAGE_SIZE:
            return Return.err(
                Error(
                    "INVALID_PAGINATION",
                    f"page must be >= 1 and size between 1 and {MAX_PAGE_SIZE}",
                )
            )

        async with self.uow:
            try:
                total = await self.uow.sessions.count_by_user_id(user_id)
                sessions = await self.uow.sessions.get_by_user_id(
                    user_id, offset=(page - 1) * size, limit=size
                )
            except StoreUnavailable:
                return Return.err(
                    Error("STORE_UNAVAILABLE", "Session store is unavailable")
                )

        return Return.ok(
            SessionPage(
                items=[SessionInfo.from_entity(s) for s in sessions],
                total=total,
                page=page,
                size=size,
            )
        )
