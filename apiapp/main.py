# apiapp/main.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from apiapp.api.v1.router import api_router
from apiapp.core.config import Settings, get_settings
from apiapp.core.errors import register_error_handlers
from apiapp.core.logging import setup_logging
from apiapp.db.session import Database
from apiapp.services.rate_limit import LoginRateLimiter

logger = setup_logging()


def _validate_secrets(settings: Settings) -> None:
    """
    部署前安全檢查：在 prod/staging/preview 等環境時，不允許使用短或空的金鑰。
    """
    env = (settings.ENV or "").lower()
    if env in {"prod", "production", "staging", "preview"}:
        if not settings.SECRET_KEY or len(settings.SECRET_KEY) < 32:
            raise RuntimeError(
                f"Insecure config for SECRET_KEY in ENV={settings.ENV}. "
                "Please set a strong key via environment variables."
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting {} (env={})", app.state.settings.APP_NAME, app.state.settings.ENV)
    try:
        yield
    finally:
        await app.state.rate_limiter.close()
        await app.state.db.dispose()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    # 基本安全檢查
    _validate_secrets(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # 明確建立、以 app.state 傳遞（不使用全域單例）
    app.state.settings = settings
    app.state.db = database or Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    app.state.rate_limiter = LoginRateLimiter(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---- Sentry 初始化（若 SENTRY_DSN 未設定就略過）----
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            environment=settings.SENTRY_ENV or settings.ENV,
        )

    # ---- Prometheus /metrics ----
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # 統一錯誤處理
    register_error_handlers(app)

    # === API 路由 ===
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # 健康檢查（root & ops）
    @app.get("/", summary="Root")
    async def root():
        return {"app": settings.APP_NAME, "env": settings.ENV}

    @app.get("/healthz", tags=["ops"])
    async def healthz():
        return {"ok": True}

    @app.get("/readyz", tags=["ops"])
    async def readyz():
        return {"ready": True}

    logger.info("Application initialized (env={})", settings.ENV)
    return app


# Uvicorn 進入點
app = create_app()
