"""
Тесты построения критериев поиска продуктов из строки запроса
"""
import pytest
from sqlalchemy.dialects import mysql, postgresql, sqlite

from app.crud.product import PRODUCT_FIELDS
from app.crud.product_search import (
    OptionFilter,
    build_search_criteria,
    parse_option_filters,
    parse_price_range,
    substring_match,
)
from app.models import Product
from app.utils.query_params import InvalidQueryParams


class TestPriceRange:
    """Тесты для parse_price_range"""

    def test_both_bounds(self):
        price_range = parse_price_range("100-200")
        assert price_range.min == 100
        assert price_range.max == 200

    def test_open_bounds(self):
        assert parse_price_range("50-").max is None
        assert parse_price_range("-50").min is None
        assert parse_price_range("75").min == 75

    def test_non_numeric_side_is_open(self):
        price_range = parse_price_range("abc-30")
        assert price_range.min is None
        assert price_range.max == 30

    @pytest.mark.parametrize("raw", ["-", "abc", "x-y", "nan-inf"])
    def test_no_usable_bound(self, raw):
        with pytest.raises(InvalidQueryParams):
            parse_price_range(raw)

    def test_min_greater_than_max(self):
        with pytest.raises(InvalidQueryParams):
            parse_price_range("300-100")


class TestOptionFilters:
    """Тесты для parse_option_filters"""

    def test_extracts_option_keys_only(self):
        items = [("limit", "5"), ("option[3]", "red,blue"), ("option[x]", "1"), ("option[7]", "42")]
        assert parse_option_filters(items) == [
            OptionFilter(option_id=3, values=["red", "blue"]),
            OptionFilter(option_id=7, values=["42"]),
        ]

    def test_repeated_keys_are_merged(self):
        items = [("option[3]", "red"), ("option[3]", "blue,red")]
        assert parse_option_filters(items) == [OptionFilter(option_id=3, values=["red", "blue"])]

    def test_empty_values_rejected(self):
        with pytest.raises(InvalidQueryParams):
            parse_option_filters([("option[3]", " , ")])


class TestBuildSearchCriteria:
    """Тесты для build_search_criteria"""

    def test_defaults(self):
        criteria = build_search_criteria()
        assert criteria.limit == 12
        assert criteria.page == 1
        assert criteria.fields == list(PRODUCT_FIELDS)
        assert criteria.match is None
        assert criteria.category_ids == []
        assert criteria.price_range is None
        assert criteria.option_filters == []

    def test_full_query(self):
        criteria = build_search_criteria(
            limit="-1",
            page="2",
            fields="name,price",
            match="door",
            category_ids="1,2",
            price_range="10-20",
            query_items=[("option[5]", "oak")],
        )
        assert criteria.pagination.unlimited
        assert criteria.fields == ["id", "name", "price"]
        assert criteria.match == "door"
        assert criteria.category_ids == [1, 2]
        assert criteria.price_range.min == 10
        assert criteria.option_filters == [OptionFilter(option_id=5, values=["oak"])]

    def test_invalid_pagination_propagates(self):
        with pytest.raises(InvalidQueryParams):
            build_search_criteria(limit="zero")


class TestSubstringMatch:
    """Регистрозависимое сравнение компилируется без LIKE для каждого диалекта"""

    @pytest.mark.parametrize(
        "dialect,prefix",
        [
            (sqlite.dialect(), "instr(products.name, "),
            (postgresql.dialect(), "strpos(products.name, "),
            (mysql.dialect(), "INSTR(BINARY products.name, "),
        ],
    )
    def test_compiles_per_dialect(self, dialect, prefix):
        sql = str(substring_match(Product.name, "Door").compile(dialect=dialect))
        assert sql.startswith(prefix)
        assert sql.endswith(") > 0")
        assert "LIKE" not in sql
