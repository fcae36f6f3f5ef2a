"""
Тесты регистрации, выдачи токена и управления учетной записью
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import func, select

from app.core.security import create_access_token, decode_access_token, hash_password, verify_password
from app.models.user import User


class TestSecurity:
    """Тесты для app.core.security"""

    def test_password_hashing(self):
        hashed = hash_password("secret")
        assert hashed != "secret"
        assert verify_password("secret", hashed)
        assert not verify_password("other", hashed)

    def test_token_payload(self, settings):
        token = create_access_token(settings, 7, "a@example.com")
        payload = decode_access_token(settings, token)
        assert payload["sub"] == "7"
        assert payload["email"] == "a@example.com"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]


@pytest.mark.asyncio
class TestUsersAPI:
    """Тесты для /v1/user"""

    async def test_register(self, client):
        response = await client.post(
            "/v1/user", json={"name": "Ann", "email": "ann@example.com", "password": "pw"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "ann@example.com"
        assert "password" not in body
        assert "hashed_password" not in body

    async def test_duplicate_email_conflict(self, app, client):
        payload = {"name": "Ann", "email": "ann@example.com", "password": "pw"}
        assert (await client.post("/v1/user", json=payload)).status_code == 201

        response = await client.post("/v1/user", json={**payload, "name": "Another"})
        assert response.status_code == 409

        async with app.state.session_factory() as session:
            count = (await session.execute(select(func.count(User.id)))).scalar()
        assert count == 1

    async def test_invalid_email_rejected(self, client):
        response = await client.post("/v1/user", json={"name": "Ann", "email": "nope", "password": "pw"})
        assert response.status_code == 400

    async def test_token_wrong_password(self, client, register_and_login):
        await register_and_login()
        response = await client.post("/v1/user/token", json={"email": "owner@example.com", "password": "bad"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid credentials"

    async def test_token_unknown_email(self, client):
        response = await client.post("/v1/user/token", json={"email": "ghost@example.com", "password": "x"})
        assert response.status_code == 400

    async def test_token_response(self, client, register_and_login, settings):
        await register_and_login()
        body = (await client.post(
            "/v1/user/token", json={"email": "owner@example.com", "password": "secret123"}
        )).json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    async def test_get_user(self, client, register_and_login):
        user, _ = await register_and_login()
        response = await client.get(f"/v1/user/{user['id']}")
        assert response.status_code == 200
        assert response.json() == user
        assert (await client.get("/v1/user/999")).status_code == 404

    async def test_update_own_account(self, client, register_and_login):
        user, headers = await register_and_login()
        response = await client.put(f"/v1/user/{user['id']}", json={"name": "Renamed"}, headers=headers)
        assert response.status_code == 204
        assert (await client.get(f"/v1/user/{user['id']}")).json()["name"] == "Renamed"

    async def test_cannot_modify_other_account(self, client, register_and_login):
        owner, headers = await register_and_login()
        other, _ = await register_and_login(email="other@example.com")

        response = await client.put(f"/v1/user/{other['id']}", json={"name": "Hacked"}, headers=headers)
        assert response.status_code == 403
        response = await client.delete(f"/v1/user/{other['id']}", headers=headers)
        assert response.status_code == 403

    async def test_update_email_conflict(self, client, register_and_login):
        user, headers = await register_and_login()
        await register_and_login(email="other@example.com")
        response = await client.put(
            f"/v1/user/{user['id']}", json={"email": "other@example.com"}, headers=headers
        )
        assert response.status_code == 409

    async def test_delete_account_invalidates_token(self, client, register_and_login):
        user, headers = await register_and_login()
        response = await client.delete(f"/v1/user/{user['id']}", headers=headers)
        assert response.status_code == 204

        response = await client.post("/v1/category", json={"name": "A", "slug": "a"}, headers=headers)
        assert response.status_code == 401


@pytest.mark.asyncio
class TestBearerAuth:
    """Все ошибки аутентификации отдают 401"""

    async def test_wrong_scheme(self, client):
        response = await client.post(
            "/v1/category", json={"name": "A", "slug": "a"}, headers={"Authorization": "Basic abc"}
        )
        assert response.status_code == 401

    async def test_expired_token(self, client, register_and_login, settings):
        user, _ = await register_and_login()
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": str(user["id"]), "type": "access", "iat": past, "exp": past + timedelta(minutes=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        response = await client.post(
            "/v1/category", json={"name": "A", "slug": "a"}, headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_foreign_signature(self, client, register_and_login, settings):
        user, _ = await register_and_login()
        token = jwt.encode({"sub": str(user["id"]), "type": "access"}, "another-secret", algorithm="HS256")
        response = await client.post(
            "/v1/category", json={"name": "A", "slug": "a"}, headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_wrong_token_type(self, client, register_and_login, settings):
        user, _ = await register_and_login()
        token = jwt.encode({"sub": str(user["id"]), "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256")
        response = await client.post(
            "/v1/category", json={"name": "A", "slug": "a"}, headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
