import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="Health check")
async def health_check(db: AsyncSession = Depends(get_async_session)):
    """
    Проверка живости сервиса и доступности базы.
    Если база не отвечает, возвращается 503.
    """
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check: database is unavailable")
        database = "unavailable"

    payload = {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=payload)
