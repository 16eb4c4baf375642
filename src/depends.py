from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.memory_unit_of_work import MemoryUnitOfWork
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import raise_for_error
from src.app.services.session_lifecycle_manager import SessionLifecycleManager
from src.app.services.session_settings import SessionSettings
from src.app.services.token_codec import TokenClaims, TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import ValidateAccessUseCase

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


@asynccontextmanager
async def sql_unit_of_work() -> AsyncIterator[UnitOfWork]:
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_unit_of_work(request: Request):
    memory_store = getattr(request.app.state, "memory_store", None)
    if memory_store is not None:
        yield MemoryUnitOfWork(memory_store)
        return
    async with sql_unit_of_work() as uow:
        yield uow


def get_settings(request: Request) -> SessionSettings:
    return request.app.state.session_settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_session_manager(
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_codec: TokenCodec = Depends(get_token_codec),
    settings: SessionSettings = Depends(get_settings),
) -> SessionLifecycleManager:
    return SessionLifecycleManager(uow, token_codec, settings)


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    token_codec: TokenCodec = Depends(get_token_codec),
) -> TokenClaims:
    """
    Dependency to extract and verify the access token from the Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Verified access-token claims (session_id, user_id, version)

    Raises:
        ClientError: 401 if token is invalid, expired or not an access token
    """
    result = await ValidateAccessUseCase(token_codec).execute(credentials.credentials)
    if result.is_err():
        raise_for_error(result.error)
    return result.value
