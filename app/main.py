import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import api_router
from app.core.config import Settings
from app.core.database import create_engine, create_session_factory, init_db

logger = logging.getLogger(__name__)

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    await init_db(app.state.engine)
    yield
    logger.info("Shutting down application...")
    await app.state.engine.dispose()


def _validation_message(errors) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"{location}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Сборка приложения: настройки, БД, middleware, обработчики ошибок, роутеры

    Args:
        settings: Готовые настройки; по умолчанию читаются из окружения / .env

    Returns:
        FastAPI: Настроенное приложение
    """
    settings = settings or Settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title="Catalog API",
        description="API каталога товаров: пользователи, категории, продукты",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine = create_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    @app.middleware("http")
    async def log_write_requests(request: Request, call_next):
        """Логировать все изменяющие запросы"""
        if request.method not in MUTATING_METHODS:
            return await call_next(request)

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(
            "%s %s -> %s (took %.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning("Validation failed for %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _validation_message(errors), "errors": jsonable_encoder(errors)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {"message": "It works catalog-api!"}

    return app


if __name__ == "__main__":
    import uvicorn

    # uvicorn --factory app.main:create_app
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
