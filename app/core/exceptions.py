from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException
from starlette import status

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def _fail(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> NoReturn:
    raise HTTPException(status_code=status_code, detail=message, headers=headers)


def raise_400(message: str = "Invalid request") -> NoReturn:
    _fail(status.HTTP_400_BAD_REQUEST, message)


def raise_401(message: str = "Not authenticated") -> NoReturn:
    """Ошибка аутентификации; клиенту предлагается Bearer схема"""
    _fail(status.HTTP_401_UNAUTHORIZED, message, headers=BEARER_CHALLENGE)


def raise_403(message: str = "Operation not allowed for this user") -> NoReturn:
    _fail(status.HTTP_403_FORBIDDEN, message)


def raise_404(message: str = "Not found", *, entity: Optional[str] = None, id: Any = None) -> NoReturn:
    if entity:
        message = f"{entity} {id} not found" if id is not None else f"{entity} not found"
    _fail(status.HTTP_404_NOT_FOUND, message)


def raise_409(message: str = "Resource already exists") -> NoReturn:
    _fail(status.HTTP_409_CONFLICT, message)
