"""
Tests for authentication endpoints: registration, login and token handling.
"""

import pytest
from httpx import AsyncClient
from jose import jwt
from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings
from app.core.security import create_access_token


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient):
    """Successful registration returns a rider account."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "new@example.com",
        "username": "newuser",
        "password": "securepassword123",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert data["username"] == "newuser"
    assert data["role"] == "user"
    assert "hashed_password" not in data  # Never expose password hash


@pytest.mark.asyncio
async def test_register_cannot_choose_role(client: AsyncClient):
    """Public registration ignores any role in the payload."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "sneaky@example.com",
        "username": "sneaky",
        "password": "securepassword123",
        "role": "admin",
    })
    assert response.status_code == 201
    assert response.json()["role"] == "user"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, test_user):
    """Duplicate email returns 409."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "testuser@example.com",
        "username": "different",
        "password": "securepassword123",
    })
    assert response.status_code == 409
    assert response.json() == {"message": "Email already registered", "errors": ["Email already registered"]}


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    """Password under 8 chars is a validation error."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "weak@example.com",
        "username": "weakuser",
        "password": "short",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["message"].startswith("Validation failed")
    assert any("password" in error for error in body["errors"])


@pytest.mark.asyncio
async def test_admin_can_register_admin(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/auth/admin/register",
        json={
            "email": "ops@example.com",
            "username": "opsadmin",
            "password": "securepassword123",
            "role": "admin",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_rider_cannot_use_admin_register(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/auth/admin/register",
        json={
            "email": "ops@example.com",
            "username": "opsadmin",
            "password": "securepassword123",
            "role": "admin",
        },
        headers=auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user):
    """Valid credentials return a JWT token and the account role."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "testuser@example.com",
        "password": "testpassword123",
    })
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["role"] == "user"

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me.status_code == 200
    assert me.json()["id"] == test_user.id


@pytest.mark.asyncio
async def test_login_role_mismatch(client: AsyncClient, test_user):
    """Asking for an admin session with a rider account returns 403."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "testuser@example.com",
        "password": "testpassword123",
        "role": "admin",
    })
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user):
    """Wrong password returns 401."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "testuser@example.com",
        "password": "wrongpassword",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_nonexistent_email(client: AsyncClient):
    """Non-existent email returns 401."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "nobody@example.com",
        "password": "anypassword123",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "No token provided."


@pytest.mark.asyncio
async def test_tampered_token(client: AsyncClient, test_user):
    token = create_access_token(data={"sub": str(test_user.id), "role": "user"})
    response = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {token[:-4]}abcd"},
    )
    assert response.status_code == 401


def test_settings_require_signing_secret(monkeypatch):
    """Startup fails when SECRET_KEY is unset or too short to be a real secret."""
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(PydanticValidationError):
        Settings(_env_file=None)

    with pytest.raises(PydanticValidationError):
        Settings(SECRET_KEY="short", _env_file=None)


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_rejected(client: AsyncClient, admin_user, test_route):
    forged = jwt.encode(
        {"sub": str(admin_user.id), "role": "admin"},
        "super-secret-key-change-in-production",
        algorithm="HS256",
    )
    response = await client.delete(
        f"/api/v1/routes/{test_route.id}",
        headers={"Authorization": f"Bearer {forged}"},
    )
    assert response.status_code == 401

    response = await client.get(f"/api/v1/routes/{test_route.id}", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_account_rejected(client: AsyncClient, test_route):
    token = create_access_token(data={"sub": "999999", "role": "admin"})
    response = await client.delete(
        f"/api/v1/routes/{test_route.id}",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token."


@pytest.mark.asyncio
async def test_token_role_comes_from_account(client: AsyncClient, test_user, test_route):
    """A rider token claiming the admin role is still treated as a rider."""
    token = create_access_token(data={"sub": str(test_user.id), "role": "admin"})
    response = await client.delete(
        f"/api/v1/routes/{test_route.id}",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deactivated_account_token_rejected(client: AsyncClient, db_session, test_user, auth_headers):
    test_user.is_active = False
    await db_session.commit()

    response = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 401
