# apiapp/client/viewmodel.py
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, List, Optional, Set

from loguru import logger

from apiapp.client.router import Router, WebService
from apiapp.schemas.auth import AuthRequest, OAuthResponse

PropertyChangedHandler = Callable[[Any, str], None]


class BaseViewModel:
    """
    View model 基底：屬性變更時通知訂閱者（UI binding 用）。
    backing field 慣例為 `_<name>`。
    """

    def __init__(self) -> None:
        self._property_changed: List[PropertyChangedHandler] = []

    def subscribe(self, handler: PropertyChangedHandler) -> None:
        self._property_changed.append(handler)

    def unsubscribe(self, handler: PropertyChangedHandler) -> None:
        self._property_changed.remove(handler)

    def on_property_changed(self, property_name: str) -> None:
        for handler in list(self._property_changed):
            handler(self, property_name)

    def set_value(self, property_name: str, value: Any) -> bool:
        """值不同才寫入並通知一次；相同則什麼都不做。回傳是否有變更。"""
        field = f"_{property_name}"
        if getattr(self, field, None) == value:
            return False
        setattr(self, field, value)
        self.on_property_changed(property_name)
        return True


class RelayCommand:
    """把 callable 包成可綁定的 command；沒有 predicate 時永遠可執行。"""

    def __init__(
        self,
        execute: Callable[[Any], Any],
        can_execute: Optional[Callable[[Any], bool]] = None,
    ):
        self._execute = execute
        self._can_execute = can_execute
        self._can_execute_changed: List[Callable[[RelayCommand], None]] = []
        self._pending: Set[asyncio.Task] = set()

    def can_execute(self, parameter: Any = None) -> bool:
        return self._can_execute is None or bool(self._can_execute(parameter))

    def execute(self, parameter: Any = None) -> Any:
        """
        執行 command。若 callable 回傳 coroutine：
          - 有執行中的 event loop：排成 Task 並回傳（可 await 取得結果）
          - 沒有 event loop：同步跑完並回傳結果
        """
        result = self._execute(parameter)
        if not inspect.iscoroutine(result):
            return result
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(result)
        task = loop.create_task(result)
        # 保留參照，避免 Task 尚未完成就被 GC
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def subscribe_can_execute_changed(self, handler: Callable[[RelayCommand], None]) -> None:
        self._can_execute_changed.append(handler)

    def raise_can_execute_changed(self) -> None:
        for handler in list(self._can_execute_changed):
            handler(self)


class LoginViewModel(BaseViewModel):
    """登入畫面：帳密輸入、送出後把 token 交給 Router。"""

    def __init__(self, router: Router):
        super().__init__()
        self.router = router
        self._username = ""
        self._password = ""
        self._is_busy = False
        self._error: Optional[str] = None
        self._session: Optional[OAuthResponse] = None
        self.login_command = RelayCommand(lambda _: self.login(), lambda _: self._ready())
        self.subscribe(self._refresh_commands)

    @property
    def username(self) -> str:
        return self._username

    @username.setter
    def username(self, value: str) -> None:
        self.set_value("username", value)

    @property
    def password(self) -> str:
        return self._password

    @password.setter
    def password(self, value: str) -> None:
        self.set_value("password", value)

    @property
    def is_busy(self) -> bool:
        return self._is_busy

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def session(self) -> Optional[OAuthResponse]:
        return self._session

    def _ready(self) -> bool:
        return bool(self._username and self._password) and not self._is_busy

    def _refresh_commands(self, _: Any, property_name: str) -> None:
        if property_name in ("username", "password", "is_busy"):
            self.login_command.raise_can_execute_changed()

    async def login(self) -> Optional[OAuthResponse]:
        if not self._ready():
            return None
        self.set_value("is_busy", True)
        self.set_value("error", None)
        try:
            response = await self.router.request(
                WebService.LOGIN,
                payload=AuthRequest(username=self._username, password=self._password),
            )
        finally:
            self.set_value("is_busy", False)

        if response.status_code != 200:
            detail = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    detail = body.get("detail")
            except ValueError:
                pass  # 非 JSON 錯誤頁
            self.set_value("error", detail or f"Login failed ({response.status_code})")
            logger.warning("Login failed for '{}': {}", self._username, response.status_code)
            return None

        data = OAuthResponse.model_validate(response.json())
        self.router.use_token(data)
        self.set_value("session", data)
        # 不在記憶體保留明碼
        self.set_value("password", "")
        return data
