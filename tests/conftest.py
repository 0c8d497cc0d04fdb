from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

BASE_URL = "http://ivr.test"


class StubApi:
    """Scripted stand-in for the remote IVR API.

    Each queued reply is either ``(status_code, body)`` or an exception to raise.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._replies: list[tuple[int, object] | Exception] = []

    def reply(self, status_code: int, body: object) -> StubApi:
        self._replies.append((status_code, body))
        return self

    def fail(self, exc: Exception) -> StubApi:
        self._replies.append(exc)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._replies:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status_code, body = reply
        if isinstance(body, (bytes, str)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, content=json.dumps(body).encode())

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture()
def stub_api() -> StubApi:
    return StubApi()


@pytest.fixture()
def make_client(stub_api: StubApi) -> Callable:
    from ivr.client import IvrClient

    def factory(base_url: str = BASE_URL, api_key: str = "k") -> IvrClient:
        return IvrClient(base_url, api_key, transport=stub_api.transport)

    return factory


@pytest.fixture()
def clear_settings_cache():
    from config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
