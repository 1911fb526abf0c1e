import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from faraday import pricing
from faraday.pricing import (
    CustomPrices,
    Price,
    RetriesFailedError,
    ShuttingDownError,
    retry_query,
)


class MockedError(Exception):
    pass


class FakeQuery:
    """Fails until the call count passes error_until, then succeeds."""

    def __init__(self, error_until):
        self.call_count = 0
        self.error_until = error_until

    def __call__(self):
        self.call_count += 1
        if self.call_count <= self.error_until:
            raise MockedError("mocked error")
        return b""


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(pricing, "RETRY_SLEEP", 0.0)


def _parse(_data):
    return []


def test_always_failing():
    query = FakeQuery(error_until=3)
    with pytest.raises(RetriesFailedError):
        retry_query(query, _parse, threading.Event())
    assert query.call_count == pricing.MAX_RETRIES


def test_last_call_succeeds():
    query = FakeQuery(error_until=2)
    assert retry_query(query, _parse, threading.Event()) == []
    assert query.call_count == 3


def test_first_succeeds():
    query = FakeQuery(error_until=0)
    assert retry_query(query, _parse, threading.Event()) == []
    assert query.call_count == 1


def test_call_cancelled():
    cancel = threading.Event()
    cancel.set()
    query = FakeQuery(error_until=1)
    with pytest.raises(ShuttingDownError):
        retry_query(query, _parse, cancel)
    assert query.call_count == 1


def test_without_cancel_event():
    query = FakeQuery(error_until=1)
    assert retry_query(query, _parse) == []
    assert query.call_count == 2


def test_convert_receives_response():
    price = Price(datetime(2021, 1, 1, tzinfo=timezone.utc), Decimal("10"), "USD")
    result = retry_query(lambda: b"payload", lambda data: [price] if data == b"payload" else [])
    assert result == [price]


def test_convert_errors_are_not_retried():
    query = FakeQuery(error_until=0)

    def bad_convert(_data):
        raise ValueError("bad data")

    with pytest.raises(ValueError):
        retry_query(query, bad_convert)
    assert query.call_count == 1


def test_custom_prices_returns_entries():
    entries = [
        Price(datetime(2021, 1, 2, tzinfo=timezone.utc), Decimal("2"), "USD"),
        Price(datetime(2021, 1, 1, tzinfo=timezone.utc), Decimal("1"), "USD"),
    ]
    backend = CustomPrices(entries)
    start = datetime(2030, 1, 1, tzinfo=timezone.utc)
    end = datetime(2031, 1, 1, tzinfo=timezone.utc)
    assert backend.raw_price_data(start, end) == entries