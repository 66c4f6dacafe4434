# scripts/create_employee.py
"""
建立（或重設）一個 Employee，方便第一次登入：
    python -m scripts.create_employee admin S3cret --role Superadmin
"""
import argparse
import asyncio

from apiapp.core.config import get_settings
from apiapp.core.logging import setup_logging
from apiapp.core.security import hash_password
from apiapp.db.session import Database
from apiapp.models.employee import Employee
from apiapp.repositories.sql import SqlAuthRepository

logger = setup_logging()


async def main(username: str, password: str, role: str) -> None:
    settings = get_settings()
    db = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await db.create_all()
    session = db.session()
    try:
        repository = SqlAuthRepository(session)
        employee = await repository.retrieve(username)
        if employee is None:
            employee = await repository.create(
                Employee(username=username, password_hash=hash_password(password), role=role)
            )
            logger.info("Employee '{}' created (role={})", employee.username, employee.role)
        else:
            employee.password_hash = hash_password(password)
            employee.role = role
            employee.refresh_token = None
            await session.commit()
            logger.info("Employee '{}' reset (role={})", employee.username, employee.role)
    finally:
        await session.close()
        await db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or reset an employee account")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--role", default="Employee")
    args = parser.parse_args()
    asyncio.run(main(args.username, args.password, args.role))
