# app/schemas/category.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryBase(BaseModel):
    """Базовая схема категории"""
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255)
    use_in_menu: bool = False


class CategoryCreate(CategoryBase):
    """Схема для создания категории"""

    @field_validator("name", "slug")
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class CategoryUpdate(BaseModel):
    """Схема для обновления категории"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255)
    use_in_menu: Optional[bool] = None

    @field_validator("name", "slug")
    @classmethod
    def validate_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v else v


class CategoryResponse(CategoryBase):
    """Схема для ответа с категорией"""
    model_config = ConfigDict(from_attributes=True)

    id: int
