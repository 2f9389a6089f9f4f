"""Fixtures for tests."""

import os

os.environ["VERGEKIT_ENV"] = "test"

import pytest  # noqa: E402

from vergekit.errors import ApiError  # noqa: E402


class FakeClock:
    """A monotonic clock that only moves when something sleeps on it."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeConnection:
    """Records requests and answers them from a table of routes.

    A route value may be a plain response or a function called with the
    request's keyword arguments.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.calls = []
        self.closed = False

    def _call(self, kind, path, **kwargs):
        self.calls.append((kind, path, kwargs))
        if (kind, path) not in self.routes:
            raise ApiError(404, f"No route for {kind.upper()} {path}")
        handler = self.routes[(kind, path)]
        if callable(handler):
            return handler(**kwargs)
        return handler

    def get(self, path, **kwargs):
        return self._call("get", path, **kwargs)

    def post(self, path, **kwargs):
        return self._call("post", path, **kwargs)

    def put(self, path, **kwargs):
        return self._call("put", path, **kwargs)

    def delete(self, path, **kwargs):
        return self._call("delete", path, **kwargs)

    def close(self):
        self.closed = True


class FakeResponse:
    """Stands in for a streamed ``requests.Response``."""

    def __init__(self, body: bytes, headers: dict | None = None, fail=None):
        self.body = body
        self.headers = headers if headers is not None else {}
        self.fail = fail
        self.closed = False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i : i + chunk_size]
        if self.fail is not None:
            raise self.fail

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


def sequence(*responses):
    """Make a route handler that returns each response in turn, repeating
    the last one.
    """
    items = list(responses)

    def handler(**kwargs):
        if len(items) > 1:
            return items.pop(0)
        return items[0]

    return handler


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def respond_with():
    return sequence


@pytest.fixture
def tmp_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    return tmp_path
