# app/models/__init__.py

"""
Импорт всех моделей для правильной работы SQLAlchemy (create_all)
"""

from .attributes import product_category
from .category import Category
from .product import Product
from .product_image import ProductImage
from .product_option import ProductOption, ProductOptionValue
from .user import User

__all__ = [
    "Category",
    "Product",
    "ProductImage",
    "ProductOption",
    "ProductOptionValue",
    "User",
    "product_category",
]
