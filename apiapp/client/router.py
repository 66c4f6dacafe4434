# apiapp/client/router.py
"""
桌面端呼叫後端 API 的集中路由。

每個 WebService 對應一個 Endpoint（HTTP 方法、路徑樣板、必要參數），
Router.request() 負責組 URL、附上 Bearer token / User-Agent、
POST/PUT 時把 payload 轉成 JSON，最後把原始 httpx.Response 交給 callback。
不檢查狀態碼、不重試；傳輸錯誤直接往外拋。
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from string import Formatter
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel

from apiapp.core.config import ClientSettings
from apiapp.schemas.auth import OAuthResponse


class WebService(enum.Enum):
    CREATE_RECORD = "create_record"
    REMOVE_RECORD = "remove_record"
    UPDATE_RECORD = "update_record"
    LIST_RECORDS = "list_records"
    SEARCH_RECORDS = "search_records"
    RETRIEVE_RECORD = "retrieve_record"
    LOGIN = "login"
    MOBILE_LOGIN = "mobile_login"
    REFRESH_TOKEN = "refresh_token"


class MethodType(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class RouterError(Exception):
    pass


class MissingParameterError(RouterError, KeyError):
    def __init__(self, service: WebService, key: str):
        self.service = service
        self.key = key
        super().__init__(f"{service.name} requires parameter '{key}'")

    def __str__(self) -> str:
        return self.args[0]


@dataclass(frozen=True)
class Endpoint:
    method: MethodType
    path: str

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(name for _, name, _, _ in Formatter().parse(self.path) if name)


ENDPOINTS: Dict[WebService, Endpoint] = {
    WebService.CREATE_RECORD: Endpoint(MethodType.POST, "/record"),
    WebService.REMOVE_RECORD: Endpoint(MethodType.DELETE, "/record/remove?ids={ids}"),
    WebService.UPDATE_RECORD: Endpoint(MethodType.PUT, "/record/{id}"),
    WebService.LIST_RECORDS: Endpoint(MethodType.GET, "/record/list?offset={offset}&limit={limit}"),
    WebService.SEARCH_RECORDS: Endpoint(MethodType.GET, "/record/search?keyword={keyword}"),
    WebService.RETRIEVE_RECORD: Endpoint(MethodType.GET, "/record/{id}"),
    WebService.LOGIN: Endpoint(MethodType.POST, "/auth/login"),
    WebService.MOBILE_LOGIN: Endpoint(MethodType.POST, "/auth/mobile"),
    WebService.REFRESH_TOKEN: Endpoint(MethodType.POST, "/auth/refresh"),
}

# 這些方法會帶 JSON body
_BODY_METHODS = frozenset({MethodType.POST, MethodType.PUT})


def request_method(service: WebService, endpoints: Mapping[WebService, Endpoint] = ENDPOINTS) -> MethodType:
    endpoint = endpoints.get(service)
    return endpoint.method if endpoint else MethodType.GET


def request_url(
    service: WebService,
    parameters: Optional[Mapping[str, Any]] = None,
    endpoints: Mapping[WebService, Endpoint] = ENDPOINTS,
) -> str:
    """依路徑樣板組出相對路徑；缺必要參數時拋 MissingParameterError。"""
    endpoint = endpoints.get(service)
    if endpoint is None:
        return ""
    parameters = parameters or {}
    values = {}
    for key in endpoint.required:
        if key not in parameters or parameters[key] is None:
            raise MissingParameterError(service, key)
        # ids=1,2,3 的逗號保留
        values[key] = quote(str(parameters[key]), safe=",")
    return endpoint.path.format(**values)


def _serialize(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    return payload


ResponseCallback = Callable[[httpx.Response], None]


class Router:
    """
    以 ClientSettings 建立；transport 可注入（測試用 httpx.MockTransport）。
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        endpoints: Mapping[WebService, Endpoint] = ENDPOINTS,
    ):
        self.settings = settings or ClientSettings()
        self.base_url = self.settings.BASE_URL.rstrip("/")
        self.access_token = self.settings.ACCESS_TOKEN
        self.user_agent = self.settings.USER_AGENT
        self.transport = transport
        self.endpoints = endpoints

    def use_token(self, data: OAuthResponse) -> None:
        """登入 / refresh 後換上新的 access token。"""
        if data.access_token:
            self.access_token = data.access_token

    def headers(self) -> Dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def build_request(
        self,
        client: httpx.AsyncClient,
        service: WebService,
        payload: Any = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Request:
        method = request_method(service, self.endpoints)
        url = self.base_url + request_url(service, parameters, self.endpoints)
        if method in _BODY_METHODS:
            return client.build_request(method.value, url, json=_serialize(payload), headers=self.headers())
        return client.build_request(method.value, url, headers=self.headers())

    async def request(
        self,
        service: WebService,
        callback: Optional[ResponseCallback] = None,
        payload: Any = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.settings.TIMEOUT, transport=self.transport) as client:
            req = self.build_request(client, service, payload, parameters)
            logger.debug("{} {}", req.method, req.url)
            response = await client.send(req)
        if callback is not None:
            callback(response)
        return response
