import httpx
import pytest

import hrobot
from hrobot import transport as hrobot_transport

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def record_robot_call(calls, method, url, content, headers, **extra):
    """Check the headers every Robot request carries and store the call."""

    assert headers["Content-Type"] == FORM_CONTENT_TYPE
    assert headers["Accept"] == "application/json"
    assert headers["Authorization"].startswith("Basic ")
    calls.append(
        {
            "method": method,
            "url": url,
            "content": content,
            "authorization": headers["Authorization"],
            "headers": headers,
            **extra,
        }
    )


class RobotServiceStub:
    def __init__(self, response, calls):
        self.response = response
        self.calls = calls


class SyncClientStub(RobotServiceStub):
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def request(self, method, url, content=None, headers=None):
        record_robot_call(self.calls, method, url, content, headers)
        return self.response


class AsyncClientStub(RobotServiceStub):
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def request(self, method, url, content=None, headers=None):
        record_robot_call(self.calls, method, url, content, headers)
        return self.response


class RequestsSessionStub(SyncClientStub):
    def request(self, method, url, data=None, headers=None, timeout=None):
        record_robot_call(self.calls, method, url, data, headers, timeout=timeout)
        return self.response


@pytest.fixture
def response_factory():
    def _factory(status_code, text="", url="https://robot-ws.your-server.de/"):
        return httpx.Response(status_code, text=text, request=httpx.Request("GET", url))

    return _factory


@pytest.fixture
def robot():
    return hrobot.Robot.from_login("#ws+user", "secret", transport=hrobot.HttpxTransport())


@pytest.fixture
def mock_sync_client(monkeypatch):
    def _install(response):
        calls = []

        def client_factory(*_args, **_kwargs):
            return SyncClientStub(response, calls)

        monkeypatch.setattr(hrobot_transport.httpx, "Client", client_factory)
        return calls

    return _install


@pytest.fixture
def mock_async_client(monkeypatch):
    def _install(response):
        calls = []

        def async_client_factory(*_args, **_kwargs):
            return AsyncClientStub(response, calls)

        monkeypatch.setattr(hrobot_transport.httpx, "AsyncClient", async_client_factory)
        return calls

    return _install


@pytest.fixture
def mock_requests_session(monkeypatch):
    def _install(response):
        if hrobot_transport.requests is None:
            pytest.skip("requests is not installed")
        calls = []

        def session_factory(*_args, **_kwargs):
            return RequestsSessionStub(response, calls)

        monkeypatch.setattr(hrobot_transport.requests, "Session", session_factory)
        return calls

    return _install


@pytest.fixture(params=["sync", "async"], ids=["sync", "async"])
def mode_and_mock(request, mock_sync_client, mock_async_client):
    mode = request.param
    install = mock_sync_client if mode == "sync" else mock_async_client
    return mode, install
