"""
Shared fixtures for the feed client tests.

FakeApi stands in for FeedApiClient: responses are queued per
(method, endpoint) and every call is recorded. A queued asyncio.Future
keeps the call in flight until the test resolves it.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from models import Post
from storage import Credential, CredentialStore


@dataclass
class RecordedCall:
    endpoint: str
    method: str
    payload: Optional[Dict[str, Any]] = None
    auth_token: Optional[str] = None
    params: Optional[Dict[str, str]] = None


class FakeApi:
    def __init__(self):
        self.calls: List[RecordedCall] = []
        self._responses: Dict[tuple, list] = {}

    def queue(self, method: str, endpoint: str, result: Any):
        self._responses.setdefault((method, endpoint), []).append(result)

    def hold(self, method: str, endpoint: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.queue(method, endpoint, future)
        return future

    def calls_to(self, method: str, endpoint: str) -> List[RecordedCall]:
        return [c for c in self.calls if c.method == method and c.endpoint == endpoint]

    async def _respond(self, key: tuple):
        pending = self._responses.get(key)
        if not pending:
            raise AssertionError(f"unexpected call: {key}")
        result = pending.pop(0)
        if isinstance(result, asyncio.Future):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result

    async def call(self, endpoint, method="GET", payload=None, auth_token=None, params=None):
        self.calls.append(RecordedCall(endpoint, method, payload, auth_token, params))
        return await self._respond((method, endpoint))

    async def fetch_bytes(self, url, auth_token=None):
        self.calls.append(RecordedCall(url, "GET", auth_token=auth_token))
        return await self._respond(("GET", url))


class FakeViewer:
    def __init__(self):
        self.opened: List[str] = []

    async def open(self, url):
        self.opened.append(url)
        return True


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def viewer():
    return FakeViewer()


@pytest.fixture
def credentials(tmp_path):
    store = CredentialStore(tmp_path / "credential.json")
    store.save(Credential(token="tok-123", username="alice"))
    return store


@pytest.fixture
def anonymous(tmp_path):
    return CredentialStore(tmp_path / "missing.json")


@pytest.fixture
def redirects():
    return []


@pytest.fixture
def post():
    return Post.from_api({"id": "p1", "content": "hello", "likes": [], "comments": []})


@pytest.fixture
def image_post():
    return Post.from_api({
        "id": 7,
        "author": {"username": "bob"},
        "content": "look",
        "image": "/media/posts/cat.png",
        "likes": [{"id": 1, "user": "carol"}],
        "comments": [],
    }, media_base_url="http://media.test")
