import json
from unittest.mock import Mock

import pytest
import requests

from oandav20.core.models import Option
from oandav20.exchanges.oanda_v20 import OandaV20Adapter


class FakeClock:
    """Nanosecond clock whose ``sleep`` advances time instead of blocking."""

    def __init__(self, start: int = 1_000_000_000) -> None:
        self.now = start
        self.sleeps = []

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(round(seconds * 1e9))

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


def _make_response(status_code=200, payload=None, raw=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = raw if raw is not None else json.dumps(payload).encode("utf-8")
    response.encoding = "utf-8"
    return response


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def option():
    return Option(
        access_key="101-004-1234567-001",
        secret_key="token-abc",
        trader_id="trader-1",
        name="oanda-main",
    )


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def adapter(option, session, clock):
    return OandaV20Adapter(option, session=session, clock=clock, sleep=clock.sleep)
