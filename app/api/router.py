from fastapi import APIRouter

from app.api.v1.categories import router as categories_router
from app.api.v1.products import router as products_router
from app.api.v1.users import router as users_router

api_router = APIRouter(prefix="/v1")

api_router.include_router(users_router, prefix="/user", tags=["Users"])
api_router.include_router(categories_router, prefix="/category", tags=["Categories"])
api_router.include_router(products_router, prefix="/product", tags=["Products"])
