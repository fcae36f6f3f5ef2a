from sqlalchemy import Column, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.core.database import Base

OPTION_SHAPES = ("square", "circle")
OPTION_TYPES = ("text", "color")


class ProductOption(Base):
    __tablename__ = "product_options"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    shape = Column(Enum(*OPTION_SHAPES, name="option_shape"), nullable=False, default="square")
    radius = Column(Integer, nullable=False, default=0)
    type = Column(Enum(*OPTION_TYPES, name="option_type"), nullable=False, default="text")

    product = relationship("Product", back_populates="options")
    values = relationship(
        "ProductOptionValue",
        back_populates="option",
        cascade="all, delete-orphan",
        order_by="ProductOptionValue.id",
    )


class ProductOptionValue(Base):
    __tablename__ = "product_option_values"

    id = Column(Integer, primary_key=True, index=True)
    option_id = Column(Integer, ForeignKey("product_options.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(String(255), nullable=False)

    option = relationship("ProductOption", back_populates="values")
