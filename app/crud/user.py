# app/crud/user.py
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import raise_409
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserCRUD:
    """CRUD операции для пользователей"""

    async def get_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        """Получить пользователя по ID"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        """Получить пользователя по email"""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(self, db: AsyncSession, user_create: UserCreate) -> User:
        """Создать нового пользователя; email должен быть уникальным"""
        if await self.get_by_email(db, user_create.email):
            raise_409("This email is already registered")

        user = User(
            name=user_create.name,
            email=user_create.email,
            hashed_password=hash_password(user_create.password),
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise_409("This email is already registered")

        await db.refresh(user)
        logger.info("User %s registered", user.id)
        return user

    async def update(self, db: AsyncSession, user: User, user_update: UserUpdate) -> User:
        """Обновить пользователя (только переданные поля)"""
        update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in update_data and update_data["email"] != user.email:
            if await self.get_by_email(db, update_data["email"]):
                raise_409("This email is already registered")

        password = update_data.pop("password", None)
        if password:
            user.hashed_password = hash_password(password)
        for field, value in update_data.items():
            setattr(user, field, value)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise_409("This email is already registered")

        await db.refresh(user)
        return user

    async def remove(self, db: AsyncSession, user: User) -> None:
        await db.execute(delete(User).where(User.id == user.id))
        await db.commit()
        logger.info("User %s deleted", user.id)

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> Optional[User]:
        """Аутентификация по email и паролю"""
        user = await self.get_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user


user_crud = UserCRUD()
