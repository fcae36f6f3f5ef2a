from typing import Iterable, List, NamedTuple, Optional

DEFAULT_LIMIT = 12
DEFAULT_PAGE = 1
NO_LIMIT = -1


class InvalidQueryParams(ValueError):
    """Некорректные параметры запроса (клиентская ошибка)"""


class Pagination(NamedTuple):
    limit: int
    page: int

    @property
    def offset(self) -> int:
        return 0 if self.limit == NO_LIMIT else (self.page - 1) * self.limit

    @property
    def unlimited(self) -> bool:
        return self.limit == NO_LIMIT


def split_csv(raw: Optional[str]) -> List[str]:
    """
    Разбивает строку вида "a, b,c" на элементы

    Args:
        raw: Исходная строка

    Returns:
        List[str]: Элементы без пробелов по краям, пустые отброшены
    """
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_int_list(raw: Optional[str]) -> List[int]:
    """Список целых из строки через запятую, нечисловые элементы отбрасываются"""
    result = []
    for item in split_csv(raw):
        try:
            result.append(int(item))
        except ValueError:
            continue
    return result


def parse_pagination(limit: Optional[str], page: Optional[str]) -> Pagination:
    """
    Разбор limit/page из строки запроса

    Args:
        limit: Размер страницы (по умолчанию 12, -1 отключает пагинацию)
        page: Номер страницы (по умолчанию 1)

    Returns:
        Pagination: Проверенные значения

    Raises:
        InvalidQueryParams: если значения не целые или вне диапазона
    """
    try:
        limit_value = DEFAULT_LIMIT if limit is None else int(limit)
        page_value = DEFAULT_PAGE if page is None else int(page)
    except ValueError:
        raise InvalidQueryParams("Invalid pagination parameters (limit, page)")

    if page_value < 1 or (limit_value != NO_LIMIT and limit_value < 1):
        raise InvalidQueryParams("Invalid pagination parameters (limit, page)")

    return Pagination(limit=limit_value, page=page_value)


def parse_fields(raw: Optional[str], allowed: Iterable[str]) -> List[str]:
    """
    Пересечение запрошенных полей с допустимым набором.
    Неизвестные поля молча отбрасываются, id присутствует всегда.
    Порядок полей соответствует порядку в allowed.
    """
    allowed = list(allowed)
    if not raw:
        return allowed

    requested = set(split_csv(raw))
    requested.add("id")
    return [field for field in allowed if field in requested]
