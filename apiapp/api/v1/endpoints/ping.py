# apiapp/api/v1/endpoints/ping.py
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()


@router.get("/", summary="Ping service")
async def ping():
    return {"message": "pong", "server_time": datetime.now(timezone.utc).isoformat()}
