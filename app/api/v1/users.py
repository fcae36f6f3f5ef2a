import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.dependencies import get_current_user, get_db, get_settings
from app.core.exceptions import raise_400, raise_403, raise_404
from app.core.security import create_access_token
from app.crud.user import user_crud
from app.models.user import User
from app.schemas.user import TokenRequest, TokenResponse, UserCreate, UserResponse, UserUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_crud.create(db, user_data)


@router.post("/token", response_model=TokenResponse)
async def issue_token(
    credentials: TokenRequest,
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    """Обмен email/пароля на access токен"""
    user = await user_crud.authenticate(db, credentials.email, credentials.password)
    if not user:
        logger.warning("Failed login attempt for %s", credentials.email)
        raise_400("Invalid credentials")

    token = create_access_token(settings, user.id, user.email)
    return TokenResponse(token=token, expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_crud.get_by_id(db, user_id)
    if not user:
        raise_404(entity="User", id=user_id)
    return user


@router.put("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if current_user.id != user_id:
        raise_403("You can only modify your own account")

    await user_crud.update(db, current_user, user_data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if current_user.id != user_id:
        raise_403("You can only delete your own account")

    await user_crud.remove(db, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
