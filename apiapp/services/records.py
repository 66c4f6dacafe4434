# apiapp/services/records.py
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from loguru import logger

from apiapp.core.config import Settings, settings as default_settings
from apiapp.core.errors import EntityNotFound, InvalidPagination
from apiapp.models.record import Record
from apiapp.repositories.base import CrudRepository

T = TypeVar("T")


class CrudService(ABC, Generic[T]):
    """通用 CRUD 服務介面（在 repository 之上加驗證與日誌）。"""

    @abstractmethod
    async def create(self, entity: T) -> T:
        ...

    @abstractmethod
    async def retrieve(self, entity_id: int) -> Optional[T]:
        ...

    @abstractmethod
    async def update(self, entity_id: int, values: Mapping[str, Any]) -> T:
        ...

    @abstractmethod
    async def delete(self, entity_id: int) -> None:
        ...

    @abstractmethod
    async def list(self, offset: int, limit: int) -> List[T]:
        ...

    @abstractmethod
    async def search(self, keyword: str) -> List[T]:
        ...


class RecordService(CrudService[Record]):
    def __init__(self, repository: CrudRepository[Record], settings: Settings = default_settings):
        self.repository = repository
        self.settings = settings

    async def create(self, entity: Record) -> Record:
        record = await self.repository.create(entity)
        logger.info("Record {} created", record.id)
        return record

    async def retrieve(self, entity_id: int) -> Optional[Record]:
        return await self.repository.retrieve(entity_id)

    async def update(self, entity_id: int, values: Mapping[str, Any]) -> Record:
        record = await self.repository.update(entity_id, values)
        if record is None:
            raise EntityNotFound("Record", entity_id)
        logger.info("Record {} updated ({})", entity_id, ", ".join(values) or "no fields")
        return record

    async def delete(self, entity_id: int) -> None:
        if not await self.repository.delete(entity_id):
            raise EntityNotFound("Record", entity_id)
        logger.info("Record {} deleted", entity_id)

    async def list(self, offset: int, limit: int) -> List[Record]:
        if offset < 0:
            raise InvalidPagination("offset must be >= 0")
        if limit < 1 or limit > self.settings.MAX_PAGE_SIZE:
            raise InvalidPagination(f"limit must be between 1 and {self.settings.MAX_PAGE_SIZE}")
        return await self.repository.list(offset, limit)

    async def search(self, keyword: str) -> List[Record]:
        keyword = (keyword or "").strip()
        if not keyword:
            return []
        return await self.repository.search(keyword)
