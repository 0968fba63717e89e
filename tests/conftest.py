import json

import httpx
import pytest

from tenny.services.api_client import ApiClient
from tenny.services.query_cache import QueryCache
from tenny.services.session import Session


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Recorder:
    """httpx.MockTransport handler that records every request and replies from a routing function."""

    def __init__(self, reply) -> None:
        self.reply = reply
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.reply(request)

    @property
    def count(self) -> int:
        return len(self.requests)


def json_reply(payload, status_code: int = 200):
    return lambda request: httpx.Response(status_code, json=payload)


def body_json(request: httpx.Request):
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(clock=clock)


@pytest.fixture
def session():
    return Session(token="tok-123")


@pytest.fixture
def make_client(session):
    clients = []

    def _make(reply) -> tuple:
        recorder = reply if isinstance(reply, Recorder) else Recorder(reply)
        client = ApiClient(session, base_url="http://ledger.test", transport=httpx.MockTransport(recorder))
        clients.append(client)
        return client, recorder

    yield _make
    for c in clients:
        c.close()


def txn(id, amount, category="Food", date="2024-02-05", merchant="Shop"):
    return {"id": id, "amount": amount, "category": category, "date": date, "merchant": merchant}
