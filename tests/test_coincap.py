import json
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest import mock

import pytest

from faraday.coincap import (
    COINCAP_DEFAULT_CURRENCY,
    GRANULARITY_15_MINUTE,
    GRANULARITY_DAY,
    GRANULARITY_MINUTE,
    CoinCapAPI,
    QueryTooLongError,
    best_granularity,
    parse_coincap_data,
    query_coincap,
)
from faraday.pricing import Price, ShuttingDownError

NOW = datetime(2023, 3, 1, 12, 0, tzinfo=timezone.utc)
TWO_DAYS_AGO = NOW - timedelta(days=2)


class _CountingQuery:
    def __init__(self):
        self.calls = []

    def __call__(self, start, end, granularity):
        self.calls.append((start, end, granularity))
        return b""


@pytest.mark.parametrize(
    "start, end, expected_calls",
    [
        (NOW, NOW, 1),
        (TWO_DAYS_AGO + timedelta(minutes=1), NOW, 2),
        (TWO_DAYS_AGO, NOW, 3),
    ],
    ids=["single point in time", "exact period including buffer", "extra for buffer"],
)
def test_coincap_get_prices_call_count(start, end, expected_calls):
    query = _CountingQuery()
    api = CoinCapAPI(
        granularity=GRANULARITY_MINUTE, query=query, convert=lambda data: []
    )

    result = api.raw_price_data(start, end)

    assert result == []
    assert len(query.calls) == expected_calls


def test_coincap_queries_are_contiguous_and_capped():
    query = _CountingQuery()
    api = CoinCapAPI(
        granularity=GRANULARITY_MINUTE, query=query, convert=lambda data: []
    )

    api.raw_price_data(TWO_DAYS_AGO, NOW)

    first_start = query.calls[0][0]
    assert first_start == TWO_DAYS_AGO - timedelta(minutes=1)
    for (_, prev_end, _), (next_start, _, _) in zip(query.calls, query.calls[1:]):
        assert prev_end == next_start
    assert query.calls[-1][1] == NOW
    assert all(g == GRANULARITY_MINUTE for _, _, g in query.calls)


def test_coincap_collects_records_from_every_chunk():
    price = Price(timestamp=NOW, price=Decimal("1"), currency="USD")
    api = CoinCapAPI(
        granularity=GRANULARITY_MINUTE,
        query=lambda s, e, g: b"",
        convert=lambda data: [price],
    )

    assert api.raw_price_data(TWO_DAYS_AGO, NOW) == [price, price, price]


def test_coincap_cancelled_query_raises():
    def failing(start, end, granularity):
        raise OSError("unreachable")

    cancel = threading.Event()
    cancel.set()
    api = CoinCapAPI(
        granularity=GRANULARITY_MINUTE, query=failing, convert=lambda data: []
    )

    with pytest.raises(ShuttingDownError):
        api.raw_price_data(NOW, NOW, cancel)


@pytest.mark.parametrize(
    "duration, expected",
    [
        (GRANULARITY_MINUTE.maximum_query, GRANULARITY_MINUTE),
        (timedelta(seconds=1), GRANULARITY_MINUTE),
        (
            GRANULARITY_15_MINUTE.maximum_query - timedelta(microseconds=1),
            GRANULARITY_15_MINUTE,
        ),
    ],
    ids=["equal to interval max", "less than interval", "within 15 min period"],
)
def test_best_granularity(duration, expected):
    assert best_granularity(duration) == expected


def test_best_granularity_too_long():
    with pytest.raises(QueryTooLongError):
        best_granularity(GRANULARITY_DAY.maximum_query + timedelta(microseconds=1))


def test_parse_coincap_data():
    time1 = datetime.fromtimestamp(10000, tz=timezone.utc)
    time2 = datetime.fromtimestamp(2000, tz=timezone.utc)
    payload = json.dumps(
        {
            "data": [
                {"priceUsd": "10.1", "time": 10000 * 1000},
                {"priceUsd": "110000", "time": 2000 * 1000},
            ]
        }
    ).encode()

    prices = parse_coincap_data(payload)

    assert prices == [
        Price(timestamp=time1, price=Decimal("10.1"), currency=COINCAP_DEFAULT_CURRENCY),
        Price(
            timestamp=time2, price=Decimal("110000"), currency=COINCAP_DEFAULT_CURRENCY
        ),
    ]


def test_parse_coincap_data_invalid_price():
    payload = json.dumps({"data": [{"priceUsd": "abc", "time": 0}]}).encode()
    with pytest.raises(ValueError):
        parse_coincap_data(payload)


def test_parse_coincap_data_invalid_json():
    with pytest.raises(ValueError):
        parse_coincap_data(b"not json")


def test_query_coincap_builds_url():
    start = datetime.fromtimestamp(1000, tz=timezone.utc)
    end = datetime.fromtimestamp(2000, tz=timezone.utc)
    with mock.patch("urllib.request.urlopen") as urlopen:
        urlopen.return_value.__enter__.return_value.read.return_value = b"body"
        body = query_coincap(start, end, GRANULARITY_DAY)

    assert body == b"body"
    url = urlopen.call_args[0][0]
    assert url == (
        "https://api.coincap.io/v2/assets/bitcoin/history"
        "?interval=d1&start=1000000&end=2000000"
    )