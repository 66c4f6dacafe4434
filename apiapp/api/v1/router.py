# apiapp/api/v1/router.py
from fastapi import APIRouter

from .endpoints import auth, employees, health, ping, records

# === API v1 主路由 ===
api_router = APIRouter()

# 系統健康檢查
api_router.include_router(health.router, prefix="/health", tags=["health"])

# ping 用於連線測試
api_router.include_router(ping.router, prefix="/ping", tags=["ping"])

# 認證 / 登入 / Refresh Token
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# 帳號管理（Administrative）
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])

# 通用 CRUD 範例實體
api_router.include_router(records.router, prefix="/record", tags=["records"])
