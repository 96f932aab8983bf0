import sys
from pathlib import Path

import httpx
import pytest

# 添加项目根目录到 PATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from accounts import Account
from major_api import MajorApi
from utils.token_store import TokenStore


BASE_URL = "https://major.test/api"


class FakeMajor:
    """按 (method, path) 返回预设响应的 major.bot 替身

    同一路由的多个响应依次返回，最后一个响应会被重复使用；
    响应可以是 (status, json) 或接收 request 的函数。
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and self._path(r) == path]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len("/api"):] if path.startswith("/api") else path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, self._path(request)))
        if not queue:
            return httpx.Response(404, json={"detail": "Not found."})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            return response(request)
        status, body = response
        return httpx.Response(status, json=body)

    def api(self) -> MajorApi:
        return MajorApi(BASE_URL, transport=httpx.MockTransport(self.handler))


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_major():
    return FakeMajor()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(str(tmp_path / "bearerAuthData.json"))


@pytest.fixture
def account():
    return Account(id=1, init_data="query_id=AAH&user=%7B%22id%22%3A1%7D&hash=abc", access_token="old-token", user_id="1", username="alice", rating=100)
