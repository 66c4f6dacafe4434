# apiapp/core/deps.py
from typing import Callable, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from apiapp.core.config import Settings, settings
from apiapp.core.errors import PermissionDenied
from apiapp.core.security import decode_access_token
from apiapp.db.session import get_db
from apiapp.models.employee import Employee
from apiapp.models.record import Record
from apiapp.repositories.sql import SqlAuthRepository, SqlCrudRepository
from apiapp.services.auth import AuthService, JwtAuthService
from apiapp.services.rate_limit import LoginRateLimiter
from apiapp.services.records import RecordService

# Bearer token 解析（tokenUrl 僅供文件顯示）
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login",
    auto_error=True,
)


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", settings)


def get_rate_limiter(request: Request) -> LoginRateLimiter:
    return request.app.state.rate_limiter


def get_auth_repository(db: AsyncSession = Depends(get_db)) -> SqlAuthRepository:
    return SqlAuthRepository(db)


def get_auth_service(
    repository: SqlAuthRepository = Depends(get_auth_repository),
    app_settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return JwtAuthService(repository, app_settings)


def get_record_service(
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_app_settings),
) -> RecordService:
    repository = SqlCrudRepository(db, Record, search_columns=("name", "description"))
    return RecordService(repository, app_settings)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    repository: SqlAuthRepository = Depends(get_auth_repository),
    app_settings: Settings = Depends(get_app_settings),
) -> Employee:
    """
    從 Bearer Access Token 解析目前使用者：
      1️⃣ 驗證 JWT 簽章與 exp（iss/aud 依設定）
      2️⃣ 確認 token.type == "access"
      3️⃣ 依 sub（username）查 DB 取得 Employee
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired access token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token, settings=app_settings)
    except Exception:
        raise unauthorized

    username = payload.get("sub")
    if not username:
        raise unauthorized

    employee = await repository.retrieve(username)
    if employee is None:
        raise unauthorized
    return employee


def require_roles(roles: Optional[Iterable[str]] = None) -> Callable:
    """
    角色政策：目前使用者的 role 必須在 roles 之中，否則 403。
    roles 為 None 時，於每次請求從 app.state.settings.ADMIN_ROLES 取得。
    """
    fixed = frozenset(roles) if roles is not None else None

    async def _checker(
        current_user: Employee = Depends(get_current_user),
        app_settings: Settings = Depends(get_app_settings),
    ) -> Employee:
        allowed = fixed if fixed is not None else frozenset(app_settings.ADMIN_ROLES)
        if current_user.role not in allowed:
            raise PermissionDenied(f"Role '{current_user.role}' is not allowed")
        return current_user

    return _checker


# "Administrative" 政策：ADMIN_ROLES（預設 Superadmin / Admin）
require_admin = require_roles()
