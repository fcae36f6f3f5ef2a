# app/schemas/search.py
from typing import Any, Dict, List

from pydantic import BaseModel


class SearchPage(BaseModel):
    """Страница результатов поиска (limit = -1 означает все записи)"""
    data: List[Dict[str, Any]]
    total: int
    limit: int
    page: int
