# tests/test_client_router.py
import json

import httpx
import pytest

from apiapp.client.router import (
    ENDPOINTS,
    MethodType,
    MissingParameterError,
    Router,
    WebService,
    request_method,
    request_url,
)
from apiapp.core.config import ClientSettings
from apiapp.schemas.auth import AuthRequest, OAuthResponse


@pytest.mark.parametrize(
    "service,method",
    [
        (WebService.CREATE_RECORD, MethodType.POST),
        (WebService.REMOVE_RECORD, MethodType.DELETE),
        (WebService.UPDATE_RECORD, MethodType.PUT),
        (WebService.LIST_RECORDS, MethodType.GET),
        (WebService.SEARCH_RECORDS, MethodType.GET),
    ],
)
def test_request_method(service, method):
    assert request_method(service) is method


def test_unlisted_service_defaults_to_get_and_empty_path():
    endpoints = {k: v for k, v in ENDPOINTS.items() if k is not WebService.CREATE_RECORD}
    assert request_method(WebService.CREATE_RECORD, endpoints) is MethodType.GET
    assert request_url(WebService.CREATE_RECORD, {}, endpoints) == ""


@pytest.mark.parametrize(
    "service,params,expected",
    [
        (WebService.CREATE_RECORD, None, "/record"),
        (WebService.REMOVE_RECORD, {"ids": "1,2,3"}, "/record/remove?ids=1,2,3"),
        (WebService.UPDATE_RECORD, {"id": 7}, "/record/7"),
        (WebService.LIST_RECORDS, {"offset": 0, "limit": 20}, "/record/list?offset=0&limit=20"),
        (WebService.SEARCH_RECORDS, {"keyword": "salad"}, "/record/search?keyword=salad"),
    ],
)
def test_request_url(service, params, expected):
    assert request_url(service, params) == expected


def test_request_url_escapes_values():
    assert request_url(WebService.SEARCH_RECORDS, {"keyword": "a b&c"}) == "/record/search?keyword=a%20b%26c"


@pytest.mark.parametrize(
    "service,params,missing",
    [
        (WebService.REMOVE_RECORD, None, "ids"),
        (WebService.UPDATE_RECORD, {}, "id"),
        (WebService.LIST_RECORDS, {"offset": 0}, "limit"),
        (WebService.SEARCH_RECORDS, {"keyword": None}, "keyword"),
    ],
)
def test_request_url_missing_parameter(service, params, missing):
    with pytest.raises(MissingParameterError) as exc:
        request_url(service, params)
    assert exc.value.key == missing
    assert exc.value.service is service
    assert missing in str(exc.value)
    assert isinstance(exc.value, KeyError)


def _router(handler, **settings) -> Router:
    s = ClientSettings(BASE_URL="http://api.test/api/v1/", ACCESS_TOKEN="tok-123", USER_AGENT="tester", **settings)
    return Router(s, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_request_sends_headers_and_json_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["ua"] = request.headers.get("User-Agent")
        seen["ctype"] = request.headers.get("Content-Type")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 1})

    router = _router(handler)
    received = []
    response = await router.request(
        WebService.CREATE_RECORD,
        received.append,
        payload={"name": "x", "description": None},
    )

    assert seen == {
        "method": "POST",
        "url": "http://api.test/api/v1/record",
        "auth": "Bearer tok-123",
        "ua": "tester",
        "ctype": "application/json",
        "body": {"name": "x", "description": None},
    }
    assert received == [response]
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_put_serializes_pydantic_payload():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={})

    router = _router(handler)
    await router.request(WebService.UPDATE_RECORD, payload=AuthRequest(username="u"), parameters={"id": 5})
    assert bodies == [("PUT", "/api/v1/record/5", {"username": "u", "password": None})]


@pytest.mark.asyncio
async def test_get_and_delete_have_no_body():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, str(request.url), request.content))
        return httpx.Response(200, json=[])

    router = _router(handler)
    await router.request(WebService.LIST_RECORDS, payload={"ignored": True}, parameters={"offset": 0, "limit": 5})
    await router.request(WebService.REMOVE_RECORD, parameters={"ids": "1,2"})
    assert calls == [
        ("GET", "http://api.test/api/v1/record/list?offset=0&limit=5", b""),
        ("DELETE", "http://api.test/api/v1/record/remove?ids=1,2", b""),
    ]


@pytest.mark.asyncio
async def test_error_responses_are_passed_through():
    router = _router(lambda request: httpx.Response(500, text="boom"))
    response = await router.request(WebService.SEARCH_RECORDS, parameters={"keyword": "x"})
    assert response.status_code == 500
    assert response.text == "boom"


@pytest.mark.asyncio
async def test_missing_parameter_raises_before_sending():
    calls = []
    router = _router(lambda request: calls.append(request) or httpx.Response(200))
    with pytest.raises(MissingParameterError):
        await router.request(WebService.UPDATE_RECORD, payload={})
    assert calls == []


@pytest.mark.asyncio
async def test_transport_errors_propagate():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    router = _router(handler)
    with pytest.raises(httpx.ConnectError):
        await router.request(WebService.LIST_RECORDS, parameters={"offset": 0, "limit": 1})


def test_use_token_replaces_bearer():
    router = Router(ClientSettings(ACCESS_TOKEN=None))
    assert "Authorization" not in router.headers()
    router.use_token(OAuthResponse(access_token="fresh"))
    assert router.headers()["Authorization"] == "Bearer fresh"
    router.use_token(OAuthResponse())
    assert router.headers()["Authorization"] == "Bearer fresh"
