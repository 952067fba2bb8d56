import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import health
from .api.routes.admin import router as admin_router
from .api.routes.admin_items import router as admin_items_router
from .api.routes.gruzchik import router as gruzchik_router
from .api.routes.order_items import router as order_items_router
from .api.routes.orders import router as orders_router
from .config import settings
from .exceptions import AppError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application started")
    yield
    logger.info("Application stopped")


app = FastAPI(title="Shoe Store Orders", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # первая ошибка с именем поля: "body.is_available: Input should be a valid boolean"
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Некорректные данные"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Внутренняя ошибка сервера"})


# Подключаем роуты
app.include_router(health.router)
app.include_router(orders_router)
app.include_router(order_items_router)
app.include_router(gruzchik_router)
app.include_router(admin_router)
app.include_router(admin_items_router)
