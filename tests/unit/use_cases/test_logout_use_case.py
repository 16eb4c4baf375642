from datetime import timedelta

import pytest

from src.app.repositories.errors import StoreUnavailable, VersionConflict
from src.app.use_cases.auth.logout_use_case import LogoutUseCase
from src.domain.entities import Session, SessionStatus, TokenKind


@pytest.mark.asyncio
async def test_logout_revokes_session(manager_factory, memory_store, clock):
    login = (await manager_factory().login("42")).value

    result = await manager_factory().logout(access_token=login.access_token)

    assert result.is_ok()
    assert result.value.status == "revoked"
    assert result.value.session_id == login.session_id
    stored = memory_store.sessions[login.session_id]
    assert stored.status == SessionStatus.revoked
    assert stored.revoked_at == clock()


@pytest.mark.asyncio
async def test_logout_is_idempotent(manager_factory, memory_store):
    login = (await manager_factory().login("42")).value

    first = await manager_factory().logout(access_token=login.access_token)
    version_after_first = memory_store.sessions[login.session_id].version
    second = await manager_factory().logout(access_token=login.access_token)

    assert first.is_ok()
    assert second.is_ok()
    assert memory_store.sessions[login.session_id].version == version_after_first


@pytest.mark.asyncio
async def test_logout_by_session_id(manager_factory, memory_store):
    login = (await manager_factory().login("42")).value

    result = await manager_factory().logout(session_id=login.session_id)

    assert result.is_ok()
    assert memory_store.sessions[login.session_id].status == SessionStatus.revoked


@pytest.mark.asyncio
async def test_logout_unknown_session(manager_factory):
    result = await manager_factory().logout(session_id="does-not-exist")

    assert result.is_err()
    assert result.error.code == "SESSION_INVALID"


@pytest.mark.asyncio
async def test_logout_requires_an_identifier(manager_factory):
    result = await manager_factory().logout()

    assert result.error.code == "SESSION_INVALID"


@pytest.mark.asyncio
async def test_logout_with_refresh_token_is_rejected(manager_factory):
    login = (await manager_factory().login("42")).value

    result = await manager_factory().logout(access_token=login.refresh_token)

    assert result.error.code == "KIND_MISMATCH"


@pytest.mark.asyncio
async def test_logout_expired_session(manager_factory, memory_store, clock):
    login = (await manager_factory().login("42")).value
    record = memory_store.sessions[login.session_id]
    memory_store.sessions[login.session_id] = Session(
        **{**record.model_dump(), "refresh_token_expires_at": clock() - timedelta(seconds=1)}
    )

    result = await manager_factory().logout(session_id=login.session_id)

    assert result.error.code == "SESSION_INVALID"
    assert memory_store.sessions[login.session_id].status == SessionStatus.active


@pytest.mark.asyncio
async def test_logout_session_in_expired_status(manager_factory, memory_store):
    login = (await manager_factory().login("42")).value
    record = memory_store.sessions[login.session_id]
    memory_store.sessions[login.session_id] = Session(
        **{**record.model_dump(), "status": SessionStatus.expired}
    )

    result = await manager_factory().logout(session_id=login.session_id)

    assert result.error.code == "SESSION_INVALID"


@pytest.mark.asyncio
async def test_logout_persistent_conflict(mock_uow, token_codec, clock):
    session = Session(
        id="session-1",
        user_id="42",
        status=SessionStatus.active,
        access_token_expires_at=clock() + timedelta(minutes=15),
        refresh_token_expires_at=clock() + timedelta(days=7),
        created_at=clock(),
        last_activity_at=clock(),
        updated_at=clock(),
    )
    mock_uow.sessions.get_by_id.return_value = session
    mock_uow.sessions.compare_and_swap.side_effect = VersionConflict("conflict")
    token = token_codec.issue(TokenKind.access, "session-1", "42", 0, timedelta(minutes=5))

    result = await LogoutUseCase(mock_uow, token_codec, clock).execute(access_token=token)

    assert result.error.code == "CONCURRENT_MODIFICATION"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_logout_store_unavailable(mock_uow, token_codec, clock):
    mock_uow.sessions.get_by_id.side_effect = StoreUnavailable("down")

    result = await LogoutUseCase(mock_uow, token_codec, clock).execute(session_id="session-1")

    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_access_token_still_validates_after_logout(manager_factory):
    """Revocation reaches access tokens only when they expire"""
    login = (await manager_factory().login("42")).value
    await manager_factory().logout(access_token=login.access_token)

    result = await manager_factory().validate_access(login.access_token)

    assert result.is_ok()
    assert result.value.session_id == login.session_id
