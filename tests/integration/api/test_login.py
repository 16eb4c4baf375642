import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_successful_login(client: AsyncClient):
    """Login returns a token pair and an ACTIVE session at version 0"""
    response = await client.post(
        "/auth/login",
        json={"user_id": "42"},
        headers={"User-Agent": "integration-test"},
    )

    assert response.status_code == 200
    data = response.json()
    assert isinstance(data["access_token"], str)
    assert isinstance(data["refresh_token"], str)
    assert data["token_type"] == "Bearer"
    assert data["expires_in"] > 0
    assert data["refresh_expires_in"] >= data["expires_in"]
    assert data["user_id"] == "42"

    session = data["session"]
    assert session["session_id"] == data["session_id"]
    assert session["status"] == "ACTIVE"
    assert session["refresh_token_version"] == 0
    assert session["user_agent"] == "integration-test"


@pytest.mark.asyncio
async def test_login_accepts_numeric_user_id(client: AsyncClient):
    response = await client.post("/auth/login", json={"user_id": 42})

    assert response.status_code == 200
    assert response.json()["user_id"] == "42"


@pytest.mark.asyncio
async def test_login_persists_session(client: AsyncClient, db_session):
    response = await client.post("/auth/login", json={"user_id": "42"})
    session_id = response.json()["session_id"]

    from src.domain.entities import Session, SessionStatus

    stored = await db_session.get(Session, session_id, populate_existing=True)
    assert stored is not None
    assert stored.status == SessionStatus.active
    assert stored.version == 0


@pytest.mark.asyncio
async def test_login_blank_user_id(client: AsyncClient):
    response = await client.post("/auth/login", json={"user_id": "   "})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_missing_user_id(client: AsyncClient):
    response = await client.post("/auth/login", json={})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_validate_access_token(client: AsyncClient, login):
    tokens = await login()

    response = await client.post("/auth/validate", json={"access_token": tokens["access_token"]})

    assert response.status_code == 200
    claims = response.json()
    assert claims["kind"] == "access"
    assert claims["session_id"] == tokens["session_id"]
    assert claims["user_id"] == "42"
    assert claims["version"] == 0


@pytest.mark.asyncio
async def test_validate_rejects_refresh_token(client: AsyncClient, login):
    tokens = await login()

    response = await client.post("/auth/validate", json={"access_token": tokens["refresh_token"]})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "KIND_MISMATCH"


@pytest.mark.asyncio
async def test_validate_rejects_garbage(client: AsyncClient):
    response = await client.post("/auth/validate", json={"access_token": "garbage"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
