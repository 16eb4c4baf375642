from datetime import timedelta

import pytest

from src.app.repositories.errors import DuplicateSessionId, StoreUnavailable
from src.app.use_cases.auth.login_use_case import LoginUseCase
from src.domain.entities import SessionStatus, TokenKind


@pytest.mark.asyncio
async def test_successful_login(mock_uow, token_codec, settings, clock):
    """Login opens an ACTIVE session at version 0 and issues a bound token pair"""
    # Arrange
    mock_uow.sessions.create.side_effect = lambda session: session
    use_case = LoginUseCase(mock_uow, token_codec, settings, clock)

    # Act
    result = await use_case.execute("42", client_ip="10.0.0.1", user_agent="pytest")

    # Assert
    assert result.is_ok()
    data = result.value
    assert data.user_id == "42"
    assert data.token_type == "Bearer"
    assert data.expires_in == 15 * 60
    assert data.refresh_expires_in == 7 * 24 * 3600

    created = mock_uow.sessions.create.call_args.args[0]
    assert created.status == SessionStatus.active
    assert created.refresh_token_version == 0
    assert created.client_ip == "10.0.0.1"
    assert created.user_agent == "pytest"
    assert created.access_token_expires_at <= created.refresh_token_expires_at

    access = token_codec.verify(data.access_token, TokenKind.access).value
    refresh = token_codec.verify(data.refresh_token, TokenKind.refresh).value
    assert access.session_id == refresh.session_id == created.id
    assert access.version == refresh.version == 0

    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_each_login_gets_a_new_session_id(memory_uow, token_codec, settings, clock):
    use_case = LoginUseCase(memory_uow, token_codec, settings, clock)

    first = await use_case.execute("42")
    second = await use_case.execute("42")

    assert first.value.session_id != second.value.session_id


@pytest.mark.asyncio
async def test_login_access_ttl_capped_by_max_age(mock_uow, token_codec, clock):
    from src.app.services.session_settings import SessionSettings

    settings = SessionSettings(
        jwt_secret="unit-test-secret",
        access_token_ttl=timedelta(minutes=15),
        session_max_age=timedelta(minutes=10),
    )
    mock_uow.sessions.create.side_effect = lambda session: session

    result = await LoginUseCase(mock_uow, token_codec, settings, clock).execute("42")

    assert result.value.expires_in == 10 * 60
    assert result.value.refresh_expires_in == 10 * 60


@pytest.mark.asyncio
async def test_login_store_unavailable(mock_uow, token_codec, settings, clock):
    """No tokens are issued when the session cannot be persisted"""
    mock_uow.sessions.create.side_effect = StoreUnavailable("down")

    result = await LoginUseCase(mock_uow, token_codec, settings, clock).execute("42")

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_login_commit_failure(mock_uow, token_codec, settings, clock):
    mock_uow.sessions.create.side_effect = lambda session: session
    mock_uow.commit.side_effect = StoreUnavailable("down")

    result = await LoginUseCase(mock_uow, token_codec, settings, clock).execute("42")

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_login_duplicate_session_id(mock_uow, token_codec, settings, clock):
    mock_uow.sessions.create.side_effect = DuplicateSessionId("exists")

    result = await LoginUseCase(mock_uow, token_codec, settings, clock).execute("42")

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_token_expiry_matches_stored_expiry(memory_uow, memory_store, token_codec, settings, clock):
    """Tokens and the session record expire at the same instant, to the second"""
    clock.now = clock.now.replace(microsecond=987654)

    login = (await LoginUseCase(memory_uow, token_codec, settings, clock).execute("42")).value

    stored = memory_store.sessions[login.session_id]
    access = token_codec.verify(login.access_token, TokenKind.access).value
    refresh = token_codec.verify(login.refresh_token, TokenKind.refresh).value
    assert access.expires_at == stored.access_token_expires_at
    assert refresh.expires_at == stored.refresh_token_expires_at
    assert stored.refresh_token_expires_at.microsecond == 0
