# tests/conftest.py
import os
from typing import Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ---- 測試期環境變數（先於 app 載入）----
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("ENV", "test")

from apiapp.core.security import hash_password  # noqa: E402
from apiapp.db.session import Database  # noqa: E402
from apiapp.main import app  # noqa: E402
from apiapp.models.employee import Employee  # noqa: E402
from apiapp.repositories.sql import SqlAuthRepository  # noqa: E402

ADMIN = ("admin", "AdminPass123", "Admin")
EMPLOYEE = ("jdoe", "MyStrongPass", "Employee")


async def ensure_employee(database: Database, username: str, password: str, role: str) -> None:
    """最小種子；顯式關閉 Session，避免 SAWarning。"""
    session = database.session()
    try:
        repository = SqlAuthRepository(session)
        if await repository.retrieve(username) is None:
            await repository.create(
                Employee(username=username, password_hash=hash_password(password), role=role)
            )
    finally:
        await session.close()


@pytest_asyncio.fixture
async def database(tmp_path):
    """每個測試一個獨立的 SQLite 檔，測試後 dispose。"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    previous = app.state.db
    app.state.db = db
    try:
        yield db
    finally:
        app.state.db = previous
        await db.dispose()


@pytest_asyncio.fixture
async def seeded(database):
    await ensure_employee(database, *ADMIN)
    await ensure_employee(database, *EMPLOYEE)
    return database


@pytest_asyncio.fixture
async def client(database):
    """使用 ASGITransport 直接掛載 app，不需啟動伺服器。"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


async def login(client: AsyncClient, username: str, password: str, path: str = "/api/v1/auth/login") -> dict:
    r = await client.post(path, json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def bearer(token: Optional[str]) -> dict:
    return {"Authorization": f"Bearer {token}"}
