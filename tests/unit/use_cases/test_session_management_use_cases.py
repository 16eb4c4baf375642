from datetime import timedelta

import pytest

from src.app.repositories.errors import StoreUnavailable
from src.app.use_cases.sessions import ListSessionsUseCase, RevokeSessionsUseCase
from src.domain.entities import SessionStatus


@pytest.mark.asyncio
async def test_list_sessions_newest_activity_first(manager_factory, clock):
    first = (await manager_factory().login("42")).value
    clock.advance(minutes=1)
    second = (await manager_factory().login("42")).value
    clock.advance(minutes=1)
    await manager_factory().refresh(first.refresh_token)
    await manager_factory().login("other-user")

    result = await manager_factory().list_sessions("42")

    assert result.is_ok()
    page = result.value
    assert page.total == 2
    assert [s.session_id for s in page.items] == [first.session_id, second.session_id]


@pytest.mark.asyncio
async def test_list_sessions_pagination(manager_factory, clock):
    for _ in range(5):
        await manager_factory().login("42")
        clock.advance(seconds=1)

    result = await manager_factory().list_sessions("42", page=2, size=2)

    assert result.value.total == 5
    assert result.value.page == 2
    assert len(result.value.items) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("page,size", [(0, 20), (1, 0), (1, 101)])
async def test_list_sessions_invalid_pagination(memory_uow, page, size):
    result = await ListSessionsUseCase(memory_uow).execute("42", page=page, size=size)

    assert result.error.code == "INVALID_PAGINATION"


@pytest.mark.asyncio
async def test_list_sessions_store_unavailable(mock_uow):
    mock_uow.sessions.count_by_user_id.side_effect = StoreUnavailable("down")

    result = await ListSessionsUseCase(mock_uow).execute("42")

    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_revoke_all_sessions(manager_factory, memory_store):
    first = (await manager_factory().login("42")).value
    second = (await manager_factory().login("42")).value
    already_revoked = (await manager_factory().login("42")).value
    await manager_factory().logout(session_id=already_revoked.session_id)
    other = (await manager_factory().login("other-user")).value

    result = await manager_factory().revoke_all_sessions("42")

    assert result.is_ok()
    assert result.value.revoked_count == 2
    for session_id in (first.session_id, second.session_id, already_revoked.session_id):
        assert memory_store.sessions[session_id].status == SessionStatus.revoked
    assert memory_store.sessions[other.session_id].status == SessionStatus.active


@pytest.mark.asyncio
async def test_revoke_all_blocks_refresh(manager_factory):
    login = (await manager_factory().login("42")).value
    await manager_factory().revoke_all_sessions("42")

    result = await manager_factory().refresh(login.refresh_token)

    assert result.error.code == "SESSION_INVALID"


@pytest.mark.asyncio
async def test_revoke_all_for_user_without_sessions(memory_uow, clock):
    result = await RevokeSessionsUseCase(memory_uow, clock).revoke_all_sessions("nobody")

    assert result.value.revoked_count == 0


@pytest.mark.asyncio
async def test_revoke_all_store_unavailable(mock_uow, clock):
    mock_uow.sessions.get_by_user_id.side_effect = StoreUnavailable("down")

    result = await RevokeSessionsUseCase(mock_uow, clock).revoke_all_sessions("42")

    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_manual_sweep_through_manager(manager_factory, memory_store, clock):
    login = (await manager_factory().login("42")).value

    clock.advance(days=7, seconds=1)
    result = await manager_factory().sweep_expired_sessions()

    assert result.value.sessions_deleted == 1
    assert result.value.swept_before == clock()
    assert login.session_id not in memory_store.sessions
