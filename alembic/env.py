# alembic/env.py
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

from apiapp.core.config import settings
from apiapp.models.base import Base
from apiapp.models import employee, record  # noqa: F401  註冊 mapper

config = context.config

# 讓 Alembic 的 log 設定生效
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}


def _sync_db_url() -> str:
    """把 async URL 換成同步 URL 給 Alembic 用。"""
    url = settings.DATABASE_URL
    for async_prefix, sync_prefix in _SYNC_DRIVERS.items():
        if url.startswith(async_prefix):
            return sync_prefix + url[len(async_prefix):]
    return url


def run_migrations_offline():
    url = _sync_db_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = create_engine(_sync_db_url(), pool_pre_ping=True, future=True)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
