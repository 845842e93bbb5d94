# tests/conftest.py
import json
import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

import pytest
import requests

BASE = "http://pubsub.test"


@dataclass
class Call:
    method: str
    path: str
    params: Optional[dict]
    json: Any
    data: Optional[bytes]
    timeout: Optional[float]


def make_response(url: str, status: int, body: Any = None, raw: Optional[bytes] = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.url = url
    r.encoding = "utf-8"
    if raw is not None:
        r._content = raw
    elif body is not None:
        r._content = json.dumps(body).encode("utf-8")
    else:
        r._content = b""
    return r


class FakeSession:
    """Stands in for requests.Session; replies are queued per (method, path[, topicId])."""
    DEFAULTS = {
        ("POST", "/subscribe"): (201, {"token": "tok"}),
        ("POST", "/publish"): (201, None),
        ("GET", "/pull"): (204, None),
    }

    def __init__(self):
        self.calls = []
        self._replies = defaultdict(deque)
        self._lock = threading.Lock()

    def reply(self, method, path, status=200, body=None, *, topic=None, raw=None):
        self._replies[(method, path, topic)].append((status, body, raw))

    def fail(self, method, path, exc=None, *, topic=None):
        self._replies[(method, path, topic)].append(exc or requests.ConnectionError("connection refused"))

    def on(self, method, path, fn, *, topic=None):
        """fn(call) -> (status, body); lets a test act while a request is in flight."""
        self._replies[(method, path, topic)].append(fn)

    def pulls(self, topic=None):
        return [c for c in self.calls
                if c.path == "/pull" and (topic is None or c.params["topicId"] == topic)]

    def request(self, method, url, headers=None, params=None, json=None, data=None, timeout=None):
        path = urlsplit(url).path
        call = Call(method, path, params, json, data, timeout)
        topic = (params or {}).get("topicId")
        with self._lock:
            self.calls.append(call)
            item = None
            for k in ((method, path, topic), (method, path, None)):
                if self._replies[k]:
                    item = self._replies[k].popleft()
                    break
        if item is None:
            status, body = self.DEFAULTS.get((method, path), (404, None))
            return make_response(url, status, body)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            status, body = item(call)
            return make_response(url, status, body)
        status, body, raw = item
        return make_response(url, status, body, raw)


@pytest.fixture
def session():
    return FakeSession()
