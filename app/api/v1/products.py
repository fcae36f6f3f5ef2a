import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.core.exceptions import raise_400, raise_404
from app.crud import product as product_crud
from app.crud import product_search
from app.models.user import User
from app.schemas.product import ProductCreate, ProductDetail, ProductUpdate
from app.schemas.search import SearchPage
from app.utils.query_params import InvalidQueryParams

router = APIRouter()
logger = logging.getLogger(__name__)


# === GET ===


@router.get("/search", response_model=SearchPage)
async def search_products(
    request: Request,
    limit: Optional[str] = Query(None, description="Items per page, -1 for all"),
    page: Optional[str] = Query(None),
    fields: Optional[str] = Query(None, description="Comma-separated fields"),
    match: Optional[str] = Query(None, description="Substring of name or description"),
    category_ids: Optional[str] = Query(None, description="Comma-separated category ids"),
    price_range: Optional[str] = Query(None, description='"min-max", "min-" or "-max"'),
    db: AsyncSession = Depends(get_db),
):
    """Дополнительно принимает фильтры option[<id>]=value1,value2"""
    try:
        criteria = product_search.build_search_criteria(
            limit=limit,
            page=page,
            fields=fields,
            match=match,
            category_ids=category_ids,
            price_range=price_range,
            query_items=request.query_params.multi_items(),
        )
    except InvalidQueryParams as e:
        raise_400(str(e))

    products, total = await product_search.search_products(db, criteria)
    return SearchPage(
        data=[product_crud.serialize_product(p, criteria.fields) for p in products],
        total=total,
        limit=criteria.limit,
        page=criteria.page,
    )


@router.get("/{product_id}", response_model=ProductDetail)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await product_crud.get_product_by_id(db, product_id)
    if not product:
        raise_404(entity="Product", id=product_id)
    return product_crud.serialize_product(product)


# === CREATE ===


@router.post("", response_model=ProductDetail, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    created = await product_crud.create_product(db, product)
    return product_crud.serialize_product(created)


# === UPDATE ===


@router.put("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await product_crud.update_product(db, product_id, product_data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === DELETE ===


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logger.info("User %s deleting product %s", current_user.id, product_id)
    if not await product_crud.delete_product(db, product_id):
        raise_404(entity="Product", id=product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
