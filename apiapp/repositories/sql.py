# apiapp/repositories/sql.py
from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

from loguru import logger
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from apiapp.models.employee import Employee
from apiapp.repositories.base import AuthRepository, CrudRepository

T = TypeVar("T")


class SqlCrudRepository(CrudRepository[T], Generic[T]):
    """SQLAlchemy AsyncSession 的 CRUD 實作；每個寫入都直接 commit。"""

    def __init__(self, session: AsyncSession, model: Type[T], search_columns: Sequence[str] = ()):
        self.session = session
        self.model = model
        self.search_columns = tuple(search_columns)

    async def create(self, entity: T) -> T:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def retrieve(self, entity_id: int) -> Optional[T]:
        return await self.session.get(self.model, entity_id)

    async def update(self, entity_id: int, values: Mapping[str, Any]) -> Optional[T]:
        entity = await self.session.get(self.model, entity_id)
        if entity is None:
            return None
        for key, value in values.items():
            if not hasattr(entity, key):
                raise AttributeError(f"{self.model.__name__} has no column '{key}'")
            setattr(entity, key, value)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: int) -> bool:
        entity = await self.session.get(self.model, entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.commit()
        return True

    async def list(self, offset: int, limit: int) -> List[T]:
        pk = self.model.__mapper__.primary_key[0]
        result = await self.session.execute(select(self.model).order_by(pk).offset(offset).limit(limit))
        return list(result.scalars().all())

    async def search(self, keyword: str) -> List[T]:
        # 不分大小寫的子字串比對；沒有設定搜尋欄位時回傳空集合
        if not self.search_columns:
            logger.warning("Search on {} without search columns", self.model.__name__)
            return []
        # % 與 _ 視為一般字元
        escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        conditions = [getattr(self.model, col).ilike(pattern, escape="\\") for col in self.search_columns]
        pk = self.model.__mapper__.primary_key[0]
        result = await self.session.execute(select(self.model).where(or_(*conditions)).order_by(pk))
        return list(result.scalars().all())


class SqlAuthRepository(AuthRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, employee: Employee) -> Employee:
        self.session.add(employee)
        await self.session.commit()
        await self.session.refresh(employee)
        return employee

    async def store_refresh_token(self, username: str, refresh_token: Optional[str]) -> None:
        stmt = (
            update(Employee)
            .where(Employee.username == username)
            .values(refresh_token=refresh_token)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def retrieve(self, username: str, refresh_token: Optional[str] = None) -> Optional[Employee]:
        if not username:
            return None
        q = select(Employee).where(Employee.username == username)
        if refresh_token is not None:
            q = q.where(Employee.refresh_token == refresh_token)
        result = await self.session.execute(q)
        return result.scalar_one_or_none()
