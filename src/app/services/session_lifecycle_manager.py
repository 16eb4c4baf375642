"""
Session Lifecycle Manager

Single entry point for the gateway-facing session operations. Holds no state
beyond the request: every operation runs its use case against the unit of
work it was built with.
"""

from datetime import datetime
from typing import Callable, Optional

from libs.result import Result
from src.app.services.session_settings import SessionSettings
from src.app.services.token_codec import TokenClaims, TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    AuthResponse,
    LoginUseCase,
    LogoutResponse,
    LogoutUseCase,
    RefreshTokenUseCase,
    ValidateAccessUseCase,
)
from src.app.use_cases.sessions import (
    ListSessionsUseCase,
    RevokeSessionsResponse,
    RevokeSessionsUseCase,
    SessionPage,
    SweepExpiredSessionsUseCase,
    SweepResult,
)
from src.domain.base import utc_now


class SessionLifecycleManager:
    def __init__(
        self,
        uow: UnitOfWork,
        token_codec: TokenCodec,
        settings: SessionSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.token_codec = token_codec
        self.settings = settings
        self.clock = clock

    async def login(
        self,
        user_id: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[AuthResponse]:
        use_case = LoginUseCase(self.uow, self.token_codec, self.settings, self.clock)
        return await use_case.execute(user_id, client_ip, user_agent)

    async def refresh(
        self,
        refresh_token: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[AuthResponse]:
        use_case = RefreshTokenUseCase(self.uow, self.token_codec, self.settings, self.clock)
        return await use_case.execute(refresh_token, client_ip, user_agent)

    async def logout(
        self,
        access_token: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Result[LogoutResponse]:
        use_case = LogoutUseCase(self.uow, self.token_codec, self.clock)
        return await use_case.execute(access_token=access_token, session_id=session_id)

    async def validate_access(self, access_token: str) -> Result[TokenClaims]:
        use_case = ValidateAccessUseCase(self.token_codec, self.clock)
        return await use_case.execute(access_token)

    async def list_sessions(
        self, user_id: str, page: int = 1, size: int = 20
    ) -> Result[SessionPage]:
        return await ListSessionsUseCase(self.uow).execute(user_id, page, size)

    async def revoke_all_sessions(self, user_id: str) -> Result[RevokeSessionsResponse]:
        use_case = RevokeSessionsUseCase(self.uow, self.clock)
        return await use_case.revoke_all_sessions(user_id)

    async def sweep_expired_sessions(self) -> Result[SweepResult]:
        use_case = SweepExpiredSessionsUseCase(self.uow, self.settings, self.clock)
        return await use_case.execute()
