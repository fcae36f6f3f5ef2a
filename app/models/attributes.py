# Связующие таблицы
from sqlalchemy import Column, ForeignKey, Integer, Table

from app.core.database import Base

# Продукт <-> категория; строка не имеет собственного id, только пару ключей.
# Удаление продукта или категории удаляет и связь.
product_category = Table(
    "product_category",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True, index=True),
)
