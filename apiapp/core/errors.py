# apiapp/core/errors.py
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    """服務層例外的基底；handler 會轉成 {"detail": ...}。"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Bad request"

    def __init__(self, detail: Optional[str] = None, *, headers: Optional[dict] = None):
        self.detail = detail or self.detail
        self.headers = headers
        super().__init__(self.detail)


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid credentials"


class InvalidRefreshToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid or expired refresh token"


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Insufficient role"


class EntityNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Entity not found"

    def __init__(self, entity: str = "Entity", entity_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        msg = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(msg)


class InvalidPagination(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Invalid pagination parameters"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        # 統一輸出格式
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning("{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        # 客製化，但保持資訊節制
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        # 避免洩露伺服器細節
        resp = await call_next(request)
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        return resp
