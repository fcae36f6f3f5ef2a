"""
Поиск продуктов: разбор параметров запроса в ProductSearchCriteria и
построение запроса с фильтрами по тексту, цене, категориям и значениям опций.
"""
import logging
import math
import re
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import Boolean, and_, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import aliased
from sqlalchemy.sql.functions import FunctionElement

from app.crud.product import PRODUCT_FIELDS, with_relations
from app.models import Product, ProductOption, ProductOptionValue
from app.models.attributes import product_category
from app.utils.query_params import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    InvalidQueryParams,
    Pagination,
    parse_fields,
    parse_int_list,
    parse_pagination,
)

logger = logging.getLogger(__name__)

OPTION_KEY_RE = re.compile(r"^option\[(\d+)\]$")


class substring_match(FunctionElement):
    """
    Регистрозависимый поиск подстроки: substring_match(column, text).
    LIKE в SQLite и MySQL игнорирует регистр, поэтому для каждого
    диалекта используется своя функция позиции; шаблоны LIKE не участвуют.
    """
    type = Boolean()
    name = "substring_match"
    inherit_cache = True


@compiles(substring_match)
def _compile_substring_match(element, compiler, **kw):
    haystack, needle = list(element.clauses)
    return "POSITION(%s IN %s) > 0" % (compiler.process(needle, **kw), compiler.process(haystack, **kw))


@compiles(substring_match, "sqlite")
def _compile_substring_match_sqlite(element, compiler, **kw):
    haystack, needle = list(element.clauses)
    return "instr(%s, %s) > 0" % (compiler.process(haystack, **kw), compiler.process(needle, **kw))


@compiles(substring_match, "postgresql")
def _compile_substring_match_postgresql(element, compiler, **kw):
    haystack, needle = list(element.clauses)
    return "strpos(%s, %s) > 0" % (compiler.process(haystack, **kw), compiler.process(needle, **kw))


@compiles(substring_match, "mysql")
def _compile_substring_match_mysql(element, compiler, **kw):
    haystack, needle = list(element.clauses)
    return "INSTR(BINARY %s, %s) > 0" % (compiler.process(haystack, **kw), compiler.process(needle, **kw))


class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class OptionFilter(BaseModel):
    option_id: int
    values: List[str]


class ProductSearchCriteria(BaseModel):
    limit: int = DEFAULT_LIMIT
    page: int = DEFAULT_PAGE
    fields: List[str] = list(PRODUCT_FIELDS)
    match: Optional[str] = None
    category_ids: List[int] = []
    price_range: Optional[PriceRange] = None
    option_filters: List[OptionFilter] = []

    @property
    def pagination(self) -> Pagination:
        return Pagination(limit=self.limit, page=self.page)


def _parse_price(piece: str) -> Optional[float]:
    piece = piece.strip()
    if not piece:
        return None
    try:
        value = float(piece)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_price_range(raw: str) -> PriceRange:
    """
    Разбор диапазона цен "min-max", "min-" или "-max".

    Raises:
        InvalidQueryParams: если ни одна граница не число или min > max
    """
    min_raw, _, max_raw = raw.partition("-")
    low, high = _parse_price(min_raw), _parse_price(max_raw)

    if low is None and high is None:
        raise InvalidQueryParams('Invalid price_range format. Use "min-max", "min-" or "-max"')
    if low is not None and high is not None and low > high:
        raise InvalidQueryParams("Invalid price_range: min is greater than max")

    return PriceRange(min=low, max=high)


def parse_option_filters(query_items: Iterable[Tuple[str, str]]) -> List[OptionFilter]:
    """
    Собирает пары (option_id, values) из ключей вида option[<id>]=v1,v2.
    Повторяющиеся ключи одной опции объединяются.
    """
    collected = {}
    for key, raw in query_items:
        found = OPTION_KEY_RE.match(key)
        if not found:
            continue
        values = [value.strip() for value in raw.split(",") if value.strip()]
        if not values:
            raise InvalidQueryParams(f"Filter {key} requires at least one value")
        bucket = collected.setdefault(int(found.group(1)), [])
        bucket.extend(value for value in values if value not in bucket)

    return [OptionFilter(option_id=option_id, values=values) for option_id, values in collected.items()]


def build_search_criteria(
    *,
    limit: Optional[str] = None,
    page: Optional[str] = None,
    fields: Optional[str] = None,
    match: Optional[str] = None,
    category_ids: Optional[str] = None,
    price_range: Optional[str] = None,
    query_items: Iterable[Tuple[str, str]] = (),
) -> ProductSearchCriteria:
    pagination = parse_pagination(limit, page)
    return ProductSearchCriteria(
        limit=pagination.limit,
        page=pagination.page,
        fields=parse_fields(fields, PRODUCT_FIELDS),
        match=match or None,
        category_ids=parse_int_list(category_ids),
        price_range=parse_price_range(price_range) if price_range else None,
        option_filters=parse_option_filters(query_items),
    )


def apply_filters(stmt, criteria: ProductSearchCriteria):
    """Добавляет к запросу условия и обязательные JOIN по критериям поиска"""
    stmt = stmt.where(Product.enabled.is_(True))

    if criteria.match:
        stmt = stmt.where(
            or_(
                substring_match(Product.name, criteria.match),
                substring_match(Product.description, criteria.match),
            )
        )

    if criteria.price_range is not None:
        if criteria.price_range.min is not None:
            stmt = stmt.where(Product.price >= criteria.price_range.min)
        if criteria.price_range.max is not None:
            stmt = stmt.where(Product.price <= criteria.price_range.max)

    # Продукт должен состоять хотя бы в одной из категорий
    if criteria.category_ids:
        stmt = stmt.join(product_category, product_category.c.product_id == Product.id).where(
            product_category.c.category_id.in_(criteria.category_ids)
        )

    # Каждый фильтр опции - отдельный обязательный JOIN, условия объединяются через AND
    for option_filter in criteria.option_filters:
        option = aliased(ProductOption)
        value = aliased(ProductOptionValue)
        stmt = stmt.join(
            option,
            and_(option.product_id == Product.id, option.id == option_filter.option_id),
        ).join(
            value,
            and_(value.option_id == option.id, value.value.in_(option_filter.values)),
        )

    return stmt


async def search_products(db: AsyncSession, criteria: ProductSearchCriteria) -> Tuple[List[Product], int]:
    """
    Получить страницу продуктов и общее количество совпадений.
    JOIN по категориям и опциям может размножить строки, поэтому
    выборка идет через DISTINCT, а подсчет через COUNT(DISTINCT id).
    """
    count_query = apply_filters(select(func.count(distinct(Product.id))).select_from(Product), criteria)
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        with_relations(apply_filters(select(Product), criteria))
        .distinct()
        .order_by(Product.name.asc(), Product.id.asc())
    )
    pagination = criteria.pagination
    if not pagination.unlimited:
        query = query.offset(pagination.offset).limit(pagination.limit)

    result = await db.execute(query)
    products = list(result.scalars().all())

    logger.debug(
        "Product search matched %d (returned %d, limit=%d, page=%d)",
        total, len(products), criteria.limit, criteria.page,
    )
    return products, total
