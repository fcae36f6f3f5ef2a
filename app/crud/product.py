import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import raise_400, raise_404, raise_409
from app.models import Category, Product, ProductImage, ProductOption, ProductOptionValue
from app.models.attributes import product_category
from app.schemas.product import (
    ProductCreate,
    ProductImageCreate,
    ProductImageUpdate,
    ProductOptionCreate,
    ProductOptionUpdate,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

# Поля, возвращаемые поиском по умолчанию
PRODUCT_FIELDS = (
    "id",
    "enabled",
    "name",
    "slug",
    "stock",
    "description",
    "price",
    "price_with_discount",
)
DETAIL_FIELDS = PRODUCT_FIELDS[:4] + ("use_in_menu",) + PRODUCT_FIELDS[4:]

# Поля, которым нельзя явно передать null при обновлении
NON_NULLABLE_FIELDS = ("enabled", "name", "slug", "use_in_menu", "stock", "price")
SCALAR_FIELDS = NON_NULLABLE_FIELDS + ("description", "price_with_discount")
OPTION_SCALAR_FIELDS = ("title", "shape", "radius", "type")


# ---------------------- Вспомогательные функции ----------------------

def with_relations(stmt):
    return stmt.options(
        selectinload(Product.images),
        selectinload(Product.options).selectinload(ProductOption.values),
        selectinload(Product.categories),
    )


def format_option_value(value) -> str:
    """Значение опции хранится строкой; целые числа без дробной части (42.0 -> "42")"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def serialize_product(product: Product, fields: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """
    Формирует ответ по продукту: выбранные скалярные поля, изображения
    как {id, content}, опции со значениями-строками и category_ids.
    """
    data = {field: getattr(product, field) for field in (fields or DETAIL_FIELDS)}
    data["images"] = [{"id": image.id, "content": image.content} for image in product.images]
    data["options"] = [
        {
            "id": option.id,
            "title": option.title,
            "shape": option.shape,
            "radius": option.radius,
            "type": option.type,
            "values": [value.value for value in option.values],
        }
        for option in product.options
    ]
    data["category_ids"] = [category.id for category in product.categories]
    return data


async def check_slug_exists(db: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> bool:
    """Проверка существования slug у другого продукта"""
    stmt = select(Product.id).where(Product.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def replace_product_categories(db: AsyncSession, product_id: int, category_ids: Iterable[int]) -> None:
    """
    Заменить набор категорий продукта ровно на переданный список.

    Raises:
        HTTPException 400: если хотя бы одна категория не существует
    """
    ids = list(dict.fromkeys(category_ids))
    if ids:
        result = await db.execute(select(Category.id).where(Category.id.in_(ids)))
        found = set(result.scalars().all())
        missing = [category_id for category_id in ids if category_id not in found]
        if missing:
            raise_400(f"Categories do not exist: {', '.join(map(str, missing))}")

    await db.execute(delete(product_category).where(product_category.c.product_id == product_id))
    if ids:
        await db.execute(
            insert(product_category),
            [{"product_id": product_id, "category_id": category_id} for category_id in ids],
        )


def add_product_image(db: AsyncSession, product_id: int, image: ProductImageCreate) -> None:
    db.add(ProductImage(product_id=product_id, type=image.type, content=image.content))


async def add_product_option(db: AsyncSession, product_id: int, option: ProductOptionCreate) -> ProductOption:
    """Создает опцию с ее значениями; title, type и непустой values обязательны"""
    if not option.title or not option.type or not option.values:
        raise_400("Invalid product option: title, type and a non-empty values array are required")

    new_option = ProductOption(
        product_id=product_id,
        title=option.title,
        shape=option.shape or "square",
        radius=option.radius if option.radius is not None else 0,
        type=option.type,
    )
    db.add(new_option)
    await db.flush()

    db.add_all(
        ProductOptionValue(option_id=new_option.id, value=format_option_value(value))
        for value in option.values
    )
    return new_option


async def _get_owned(db: AsyncSession, model, item_id: int, product_id: int, entity: str):
    obj = await db.get(model, item_id)
    if obj is None or obj.product_id != product_id:
        raise_400(f"{entity} {item_id} not found or not owned by this product")
    return obj


async def apply_image_changes(db: AsyncSession, product_id: int, images: List[ProductImageUpdate]) -> None:
    for item in images:
        if item.id is not None and item.deleted:
            await _get_owned(db, ProductImage, item.id, product_id, "Image")
            await db.execute(delete(ProductImage).where(ProductImage.id == item.id))
        elif item.id is not None:
            image = await _get_owned(db, ProductImage, item.id, product_id, "Image")
            if item.type and item.content:
                image.type = item.type
                image.content = item.content
            elif item.type or item.content:
                raise_400(f"Image {item.id}: 'type' and 'content' must be provided together")
        elif item.type and item.content:
            add_product_image(db, product_id, ProductImageCreate(type=item.type, content=item.content))
        else:
            raise_400("Invalid image: new images require 'type' and 'content'")
    await db.flush()


async def apply_option_changes(db: AsyncSession, product_id: int, options: List[ProductOptionUpdate]) -> None:
    for item in options:
        if item.id is not None and item.deleted:
            await _get_owned(db, ProductOption, item.id, product_id, "Option")
            await db.execute(delete(ProductOptionValue).where(ProductOptionValue.option_id == item.id))
            await db.execute(delete(ProductOption).where(ProductOption.id == item.id))
        elif item.id is not None:
            option = await _get_owned(db, ProductOption, item.id, product_id, "Option")
            changes = item.model_dump(exclude_unset=True, include=set(OPTION_SCALAR_FIELDS) | {"values"})

            for field in OPTION_SCALAR_FIELDS:
                if field not in changes:
                    continue
                if changes[field] is None or changes[field] == "":
                    raise_400(f"Option {item.id}: '{field}' must not be empty")
                setattr(option, field, changes[field])

            if "values" in changes:
                if changes["values"] is None:
                    raise_400(f"Option {item.id}: 'values' must be an array")
                # Значения опции заменяются целиком
                await db.execute(delete(ProductOptionValue).where(ProductOptionValue.option_id == option.id))
                db.add_all(
                    ProductOptionValue(option_id=option.id, value=format_option_value(value))
                    for value in item.values
                )
        else:
            await add_product_option(db, product_id, item)
    await db.flush()


# ---------------------- Основные функции CRUD ----------------------

async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
    """Получить продукт по ID со всеми дочерними коллекциями"""
    stmt = (
        with_relations(select(Product))
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_product(db: AsyncSession, product_data: ProductCreate) -> Product:
    """
    Создать продукт вместе с изображениями, опциями и категориями
    в одной транзакции. Любая ошибка откатывает все записи, включая
    сам продукт.
    """
    try:
        if await check_slug_exists(db, product_data.slug):
            raise_409("This slug is already in use")

        product = Product(**product_data.model_dump(include=set(SCALAR_FIELDS)))
        db.add(product)
        await db.flush()

        for image in product_data.images:
            add_product_image(db, product.id, image)

        for option in product_data.options:
            await add_product_option(db, product.id, option)

        if product_data.category_ids:
            await replace_product_categories(db, product.id, product_data.category_ids)

        await db.commit()

    except HTTPException as e:
        await db.rollback()
        logger.warning("Product create rejected (slug=%s): %s", product_data.slug, e.detail)
        raise
    except IntegrityError:
        await db.rollback()
        logger.warning("Product create conflicted on slug %s", product_data.slug)
        raise_409("This slug is already in use")
    except Exception:
        await db.rollback()
        logger.error("Error creating product %s", product_data.slug, exc_info=True)
        raise

    logger.info("Product %s created (slug=%s)", product.id, product.slug)
    return await get_product_by_id(db, product.id)


async def update_product(db: AsyncSession, product_id: int, product_update: ProductUpdate) -> None:
    """
    Частичное обновление продукта. Скалярные поля применяются только
    если переданы; дочерние коллекции сверяются поэлементно по id.
    """
    product = await db.get(Product, product_id)
    if not product:
        raise_404(entity="Product", id=product_id)

    update_data = product_update.model_dump(exclude_unset=True)

    try:
        for field in NON_NULLABLE_FIELDS:
            if field in update_data and update_data[field] is None:
                raise_400(f"Field '{field}' must not be null")

        if "slug" in update_data and await check_slug_exists(db, update_data["slug"], exclude_id=product_id):
            raise_409("This slug is already in use by another product")

        for field in SCALAR_FIELDS:
            if field in update_data:
                setattr(product, field, update_data[field])
        await db.flush()

        if "images" in update_data:
            if product_update.images is None:
                raise_400("Field 'images' must be an array")
            await apply_image_changes(db, product_id, product_update.images)

        if "options" in update_data:
            if product_update.options is None:
                raise_400("Field 'options' must be an array")
            await apply_option_changes(db, product_id, product_update.options)

        if "category_ids" in update_data:
            if product_update.category_ids is None:
                raise_400("Field 'category_ids' must be an array of ids")
            await replace_product_categories(db, product_id, product_update.category_ids)

        await db.commit()

    except HTTPException as e:
        await db.rollback()
        logger.warning("Product %s update rejected: %s", product_id, e.detail)
        raise
    except IntegrityError:
        await db.rollback()
        logger.warning("Product %s update conflicted on slug", product_id)
        raise_409("This slug is already in use by another product")
    except Exception:
        await db.rollback()
        logger.error("Error updating product %s", product_id, exc_info=True)
        raise

    logger.info("Product %s updated", product_id)


async def delete_product(db: AsyncSession, product_id: int) -> bool:
    """
    Удалить продукт и все зависимые записи: значения опций, опции,
    изображения и связи с категориями.

    Returns:
        bool: True если продукт был удален, False если не найден
    """
    try:
        result = await db.execute(select(Product.id).where(Product.id == product_id))
        if result.first() is None:
            return False

        option_ids = select(ProductOption.id).where(ProductOption.product_id == product_id)
        await db.execute(delete(ProductOptionValue).where(ProductOptionValue.option_id.in_(option_ids)))
        await db.execute(delete(ProductOption).where(ProductOption.product_id == product_id))
        await db.execute(delete(ProductImage).where(ProductImage.product_id == product_id))
        await db.execute(delete(product_category).where(product_category.c.product_id == product_id))
        await db.execute(delete(Product).where(Product.id == product_id))
        await db.commit()

    except Exception:
        await db.rollback()
        logger.error("Error deleting product %s", product_id, exc_info=True)
        raise

    logger.info("Product %s deleted", product_id)
    return True
