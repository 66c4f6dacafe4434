# apiapp/repositories/base.py
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from apiapp.models.employee import Employee

T = TypeVar("T")


class CrudRepository(ABC, Generic[T]):
    """通用 CRUD 資料存取介面；實作可替換成任何後端。"""

    @abstractmethod
    async def create(self, entity: T) -> T:
        ...

    @abstractmethod
    async def retrieve(self, entity_id: int) -> Optional[T]:
        ...

    @abstractmethod
    async def update(self, entity_id: int, values: Mapping[str, Any]) -> Optional[T]:
        """更新指定欄位；找不到時回傳 None。"""

    @abstractmethod
    async def delete(self, entity_id: int) -> bool:
        """刪除成功回傳 True，不存在回傳 False。"""

    @abstractmethod
    async def list(self, offset: int, limit: int) -> List[T]:
        ...

    @abstractmethod
    async def search(self, keyword: str) -> List[T]:
        ...


class AuthRepository(ABC):
    """
    驗證相關的資料存取：
      - 依 username 取得 Employee
      - 依 (username, refresh_token) 驗證 refresh token 歸屬
      - 儲存 / 清除 refresh token
    """

    @abstractmethod
    async def store_refresh_token(self, username: str, refresh_token: Optional[str]) -> None:
        ...

    @abstractmethod
    async def retrieve(self, username: str, refresh_token: Optional[str] = None) -> Optional[Employee]:
        """只給 username 時依帳號查詢；兩者都給時必須同時相符。"""
