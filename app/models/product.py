from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from .attributes import product_category


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    enabled = Column(Boolean, nullable=False, default=False)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    use_in_menu = Column(Boolean, nullable=False, default=False)
    stock = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    price_with_discount = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Связи
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.id",
    )
    options = relationship(
        "ProductOption",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductOption.id",
    )
    categories = relationship(
        "Category",
        secondary=product_category,
        back_populates="products",
        order_by="Category.id",
    )

    def __repr__(self):
        return f"<Product {self.slug}>"
