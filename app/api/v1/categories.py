from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.core.exceptions import raise_400, raise_404
from app.crud import category as category_crud
from app.models.user import User
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.search import SearchPage
from app.utils.query_params import InvalidQueryParams, parse_fields, parse_pagination

router = APIRouter()


@router.get("/search", response_model=SearchPage)
async def search_categories(
    limit: Optional[str] = Query(None, description="Items per page, -1 for all"),
    page: Optional[str] = Query(None),
    fields: Optional[str] = Query(None, description="Comma-separated fields"),
    use_in_menu: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        pagination = parse_pagination(limit, page)
    except InvalidQueryParams as e:
        raise_400(str(e))

    selected = parse_fields(fields, category_crud.CATEGORY_FIELDS)
    menu_filter = None if use_in_menu is None else use_in_menu.lower() == "true"

    categories, total = await category_crud.search_categories(db, pagination, use_in_menu=menu_filter)
    return SearchPage(
        data=[category_crud.serialize_category(c, selected) for c in categories],
        total=total,
        limit=pagination.limit,
        page=pagination.page,
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await category_crud.get_category_by_id(db, category_id)
    if not category:
        raise_404(entity="Category", id=category_id)
    return category


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await category_crud.create_category(db, category)


@router.put("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_category(
    category_id: int,
    category: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await category_crud.update_category(db, category_id, category)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await category_crud.delete_category(db, category_id):
        raise_404(entity="Category", id=category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
