# apiapp/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from apiapp.db.session import get_db

router = APIRouter()


@router.get("/", summary="Health check (with DB probe)")
async def health_root(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.warning("Health DB probe failed: {}", e)
        database = "unavailable"
    return {"status": "ok", "database": database}
