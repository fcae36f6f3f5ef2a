# app/schemas/product.py
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

OptionShape = Literal["square", "circle"]
OptionType = Literal["text", "color"]
OptionValue = Union[str, int, float]


# === Изображения ===

class ProductImageCreate(BaseModel):
    type: str = Field(..., min_length=1, description="mime type, например image/png")
    content: str = Field(..., min_length=1, description="Закодированное содержимое")


class ProductImageUpdate(BaseModel):
    """Элемент массива images при обновлении: id + deleted, id, или новый"""
    id: Optional[int] = None
    deleted: bool = False
    type: Optional[str] = None
    content: Optional[str] = None


class ProductImage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str


# === Опции ===

class ProductOptionCreate(BaseModel):
    # Обязательность title/type/values проверяется внутри транзакции записи
    title: Optional[str] = None
    shape: Optional[OptionShape] = None
    radius: Optional[int] = Field(None, ge=0)
    type: Optional[OptionType] = None
    values: Optional[List[OptionValue]] = None


class ProductOptionUpdate(ProductOptionCreate):
    id: Optional[int] = None
    deleted: bool = False


class ProductOption(BaseModel):
    id: int
    title: str
    shape: OptionShape
    radius: int
    type: OptionType
    values: List[str] = []


# === Продукт ===

class ProductBase(BaseModel):
    enabled: bool = True
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255)
    use_in_menu: bool = False
    stock: int = Field(0, ge=0)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    price_with_discount: Optional[float] = Field(None, ge=0)


class ProductCreate(ProductBase):
    category_ids: List[int] = []
    images: List[ProductImageCreate] = []
    options: List[ProductOptionCreate] = []


class ProductUpdate(BaseModel):
    """Частичное обновление: применяются только переданные поля"""
    enabled: Optional[bool] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255)
    use_in_menu: Optional[bool] = None
    stock: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    price_with_discount: Optional[float] = Field(None, ge=0)
    category_ids: Optional[List[int]] = None
    images: Optional[List[ProductImageUpdate]] = None
    options: Optional[List[ProductOptionUpdate]] = None


class ProductDetail(BaseModel):
    id: int
    enabled: bool
    name: str
    slug: str
    use_in_menu: bool
    stock: int
    description: Optional[str] = None
    price: float
    price_with_discount: Optional[float] = None
    images: List[ProductImage] = []
    options: List[ProductOption] = []
    category_ids: List[int] = []
