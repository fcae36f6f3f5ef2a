# app/crud/category.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import raise_400, raise_404, raise_409
from app.models.attributes import product_category
from app.models.category import Category
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.utils.query_params import Pagination

logger = logging.getLogger(__name__)

CATEGORY_FIELDS = ("id", "name", "slug", "use_in_menu")


def serialize_category(category: Category, fields=CATEGORY_FIELDS) -> Dict[str, Any]:
    return {field: getattr(category, field) for field in fields}


# === CRUD ФУНКЦИИ ===

async def search_categories(
    db: AsyncSession,
    pagination: Pagination,
    use_in_menu: Optional[bool] = None,
) -> Tuple[List[Category], int]:
    """Поиск категорий с пагинацией и фильтром use_in_menu"""
    filters = []
    if use_in_menu is not None:
        filters.append(Category.use_in_menu.is_(use_in_menu))

    total = (await db.execute(select(func.count(Category.id)).where(*filters))).scalar() or 0

    query = select(Category).where(*filters).order_by(Category.name.asc(), Category.id.asc())
    if not pagination.unlimited:
        query = query.offset(pagination.offset).limit(pagination.limit)

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_category_by_id(db: AsyncSession, category_id: int) -> Optional[Category]:
    """Получение категории по ID"""
    result = await db.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()


async def check_category_slug_exists(db: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> bool:
    """Проверка существования slug"""
    filters = [Category.slug == slug]
    if exclude_id is not None:
        filters.append(Category.id != exclude_id)

    result = await db.execute(select(Category.id).where(*filters))
    return result.first() is not None


async def create_category(db: AsyncSession, category_data: CategoryCreate) -> Category:
    """Создание новой категории"""
    if await check_category_slug_exists(db, category_data.slug):
        raise_409("This slug is already in use")

    category = Category(**category_data.model_dump())
    db.add(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise_409("This slug is already in use")

    await db.refresh(category)
    logger.info("Category %s created (slug=%s)", category.id, category.slug)
    return category


async def update_category(db: AsyncSession, category_id: int, category_update: CategoryUpdate) -> Category:
    """Обновление категории (только переданные поля)"""
    update_data = category_update.model_dump(exclude_unset=True)
    if not update_data:
        raise_400("At least one field (name, slug, use_in_menu) must be provided")

    category = await get_category_by_id(db, category_id)
    if not category:
        raise_404(entity="Category", id=category_id)

    try:
        for field, value in update_data.items():
            if value is None:
                raise_400(f"Field '{field}' must not be null")

        if "slug" in update_data and await check_category_slug_exists(db, update_data["slug"], exclude_id=category_id):
            raise_409("This slug is already in use by another category")

        for field, value in update_data.items():
            setattr(category, field, value)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        raise_409("This slug is already in use by another category")

    logger.info("Category %s updated", category_id)
    return category


async def delete_category(db: AsyncSession, category_id: int) -> bool:
    """Удаление категории вместе со связями с продуктами"""
    if not await get_category_by_id(db, category_id):
        return False

    try:
        await db.execute(delete(product_category).where(product_category.c.category_id == category_id))
        await db.execute(delete(Category).where(Category.id == category_id))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error("Error deleting category %s", category_id, exc_info=True)
        raise

    logger.info("Category %s deleted", category_id)
    return True
