# tests/test_viewmodel.py
import asyncio
import json

import httpx
import pytest

from apiapp.client.router import Router
from apiapp.client.viewmodel import BaseViewModel, LoginViewModel, RelayCommand
from apiapp.core.config import ClientSettings


class CounterViewModel(BaseViewModel):
    def __init__(self):
        super().__init__()
        self._count = 0

    @property
    def count(self):
        return self._count

    @count.setter
    def count(self, value):
        self.set_value("count", value)


def _recorder(vm):
    events = []
    vm.subscribe(lambda sender, name: events.append((sender, name)))
    return events


def test_set_value_notifies_once_on_change():
    vm = CounterViewModel()
    events = _recorder(vm)
    vm.count = 5
    assert vm.count == 5
    assert events == [(vm, "count")]


def test_set_value_silent_when_equal():
    vm = CounterViewModel()
    events = _recorder(vm)
    vm.count = 0
    assert events == []
    assert vm.set_value("count", 0) is False
    assert vm.set_value("count", 1) is True
    assert events == [(vm, "count")]


def test_unsubscribe_stops_notifications():
    vm = CounterViewModel()
    events = []

    def handler(sender, name):
        events.append(name)

    vm.subscribe(handler)
    vm.count = 1
    vm.unsubscribe(handler)
    vm.count = 2
    assert events == ["count"]


def test_relay_command_without_predicate_can_always_execute():
    calls = []
    cmd = RelayCommand(calls.append)
    assert cmd.can_execute() is True
    assert cmd.can_execute("anything") is True
    cmd.execute("param")
    assert calls == ["param"]


def test_relay_command_delegates_to_predicate():
    seen = []

    def predicate(param):
        seen.append(param)
        return param == "ok"

    cmd = RelayCommand(lambda _: None, predicate)
    assert cmd.can_execute("ok") is True
    assert cmd.can_execute("no") is False
    assert seen == ["ok", "no"]


def test_relay_command_can_execute_changed():
    cmd = RelayCommand(lambda _: None)
    fired = []
    cmd.subscribe_can_execute_changed(fired.append)
    cmd.raise_can_execute_changed()
    assert fired == [cmd]


def _login_vm(handler) -> LoginViewModel:
    settings = ClientSettings(BASE_URL="http://api.test/api/v1", ACCESS_TOKEN=None)
    return LoginViewModel(Router(settings, transport=httpx.MockTransport(handler)))


def test_login_command_enabled_only_with_credentials():
    vm = _login_vm(lambda request: httpx.Response(500))
    fired = []
    vm.login_command.subscribe_can_execute_changed(fired.append)

    assert vm.login_command.can_execute() is False
    vm.username = "jdoe"
    assert vm.login_command.can_execute() is False
    vm.password = "pw"
    assert vm.login_command.can_execute() is True
    assert len(fired) == 2


@pytest.mark.asyncio
async def test_login_success_stores_session_and_token():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/auth/login"
        assert json.loads(request.content) == {"username": "jdoe", "password": "pw"}
        return httpx.Response(200, json={"access_token": "acc", "token_type": "Bearer", "role": "Employee"})

    vm = _login_vm(handler)
    vm.username = "jdoe"
    vm.password = "pw"
    events = _recorder(vm)

    data = await vm.login_command.execute(None)

    assert data.access_token == "acc"
    assert vm.session == data
    assert vm.router.access_token == "acc"
    assert vm.password == ""
    assert vm.is_busy is False
    names = [name for _, name in events]
    assert names[0] == "is_busy"
    assert "session" in names


@pytest.mark.asyncio
async def test_login_failure_sets_error():
    vm = _login_vm(lambda request: httpx.Response(401, json={"detail": "Invalid credentials"}))
    vm.username = "jdoe"
    vm.password = "bad"

    assert await vm.login() is None
    assert vm.error == "Invalid credentials"
    assert vm.session is None
    assert vm.router.access_token is None
    assert vm.is_busy is False


@pytest.mark.asyncio
async def test_login_failure_with_non_json_body():
    vm = _login_vm(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    vm.username = "jdoe"
    vm.password = "pw"
    assert await vm.login() is None
    assert vm.error == "Login failed (502)"


def _ok_login(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"access_token": "acc", "token_type": "Bearer"})


def test_login_command_runs_to_completion_without_event_loop():
    vm = _login_vm(_ok_login)
    vm.username = "jdoe"
    vm.password = "pw"

    # UI 同步呼叫 execute()，不需要 await 也會真的登入
    data = vm.login_command.execute(None)

    assert data.access_token == "acc"
    assert vm.session == data
    assert vm.router.access_token == "acc"


@pytest.mark.asyncio
async def test_login_command_schedules_task_on_running_loop():
    vm = _login_vm(_ok_login)
    vm.username = "jdoe"
    vm.password = "pw"

    task = vm.login_command.execute(None)
    assert isinstance(task, asyncio.Task)

    await task
    assert vm.session is not None
    assert vm.session.access_token == "acc"
