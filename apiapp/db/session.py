# apiapp/db/session.py
from typing import AsyncGenerator, Optional

from fastapi import Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from apiapp.models import employee, record  # noqa: F401  註冊 mapper
from apiapp.models.base import Base


class Database:
    """
    資料庫存取物件：持有 engine 與 session factory。
    由 create_app() 明確建立並掛在 app.state.db，不使用全域單例。
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        # pool_pre_ping 讓連線池自我檢查、future=True 取用新式行為
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            future=True,
        )
        self._sessionmaker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def session(self) -> AsyncSession:
        """每次呼叫都建立新的 AsyncSession；呼叫方負責 close。"""
        return self._sessionmaker()

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def get_database(request: Request) -> Database:
    db: Optional[Database] = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database is not configured on app.state")
    return db


# ---- Dependency ----
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 依賴：產生一個 AsyncSession，並在完成後總是關閉。
    以 try/finally 強制 close，避免 GC 回收時出現 non-checked-in 連線警告。
    """
    session = get_database(request).session()
    try:
        yield session
    finally:
        await session.close()
