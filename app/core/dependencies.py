from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.exceptions import raise_401
from app.core.security import ACCESS_TOKEN_TYPE, decode_access_token
from app.crud.user import user_crud
from app.models.user import User

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request):
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise_401("Authentication token not provided")

    try:
        payload = decode_access_token(settings, credentials.credentials)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise_401("Invalid token type")
        user_id = int(payload.get("sub"))
    except jwt.ExpiredSignatureError:
        raise_401("Token expired")
    except jwt.InvalidTokenError:
        raise_401("Invalid token")
    except (TypeError, ValueError):
        raise_401("Invalid token format")

    user = await user_crud.get_by_id(db, user_id)
    if not user:
        raise_401("User not found")
    return user
