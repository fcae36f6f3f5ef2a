"""
Общие fixtures: приложение на in-memory SQLite и HTTP клиент поверх ASGI
"""
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.core.database import init_db
from app.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET="test-secret",
        ACCESS_TOKEN_EXPIRE_MINUTES=5,
        _env_file=None,
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    await init_db(application.state.engine)
    try:
        yield application
    finally:
        await application.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register_and_login(client):
    async def _register(email: str = "owner@example.com", password: str = "secret123"):
        response = await client.post("/v1/user", json={"name": "Owner", "email": email, "password": password})
        assert response.status_code == 201, response.text
        user = response.json()

        response = await client.post("/v1/user/token", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return user, {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture
async def auth_headers(register_and_login):
    _, headers = await register_and_login()
    return headers


@pytest.fixture
def create_category(client, auth_headers):
    async def _create(name: str, slug: str, use_in_menu: bool = False) -> int:
        response = await client.post(
            "/v1/category",
            json={"name": name, "slug": slug, "use_in_menu": use_in_menu},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _create


@pytest.fixture
def create_product(client, auth_headers):
    async def _create(**overrides) -> dict:
        payload = {"name": "Product", "slug": "product", "price": 10.0, "enabled": True}
        payload.update(overrides)
        response = await client.post("/v1/product", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
