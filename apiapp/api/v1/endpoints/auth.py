# apiapp/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger

from apiapp.core.deps import (
    get_auth_repository,
    get_auth_service,
    get_current_user,
    get_rate_limiter,
)
from apiapp.models.employee import Employee
from apiapp.repositories.sql import SqlAuthRepository
from apiapp.schemas.auth import AuthRequest, OAuthResponse, RefreshRequest
from apiapp.schemas.employee import EmployeeRead
from apiapp.services.auth import AuthService
from apiapp.services.rate_limit import LoginRateLimiter

router = APIRouter(tags=["auth"])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# === 登入（含 Redis Rate Limit） ===
@router.post("/login", response_model=OAuthResponse)
async def login(
    request: Request,
    payload: AuthRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: LoginRateLimiter = Depends(get_rate_limiter),
):
    """帳密登入，簽發 access（JWT）與 refresh（opaque）。"""
    ip = (request.client.host if request.client else "unknown") or "unknown"
    username = (payload.username or "").strip()

    allowed, retry_after = await limiter.check_and_hit(ip, username)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )

    data = await service.login(AuthRequest(username=username, password=payload.password))
    if data is None:
        # 統一訊息避免帳號探測
        raise _unauthorized("Invalid credentials")

    # 登入成功後清空 username+IP 的嘗試（避免誤鎖）
    await limiter.reset(ip, username)
    return data


# === 行動裝置登入（較長的 access 存活時間） ===
@router.post("/mobile", response_model=OAuthResponse)
async def mobile(payload: AuthRequest, service: AuthService = Depends(get_auth_service)):
    # 帳密錯誤時 service 會拋 InvalidCredentials → 401
    return await service.mobile(payload)


# === Refresh Token 兌換（rotation：舊 refresh 立即失效） ===
@router.post("/refresh", response_model=OAuthResponse)
async def refresh_token(payload: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    data = await service.refresh_token(payload)
    if data is None:
        raise _unauthorized("Invalid or expired refresh token")
    return data


# === 登出：清掉已儲存的 refresh token ===
@router.post("/logout", response_model=dict)
async def logout(
    current_user: Employee = Depends(get_current_user),
    repository: SqlAuthRepository = Depends(get_auth_repository),
):
    await repository.store_refresh_token(current_user.username, None)
    logger.info("User '{}' logged out", current_user.username)
    return {"detail": "Logged out"}


@router.get("/me", response_model=EmployeeRead)
async def read_me(current_user: Employee = Depends(get_current_user)):
    return current_user
