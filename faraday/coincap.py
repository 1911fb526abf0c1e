"""Historical bitcoin prices from the CoinCap API."""

from __future__ import annotations

import json
import logging
import math
import threading
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from faraday.pricing import FiatError, Price, retry_query

log = logging.getLogger(__name__)

COINCAP_HISTORY_API = "https://api.coincap.io/v2/assets/bitcoin/history"
"""Endpoint queried for historical price data."""

COINCAP_DEFAULT_CURRENCY = "USD"
"""Currency that CoinCap prices are quoted in."""

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class QueryTooLongError(FiatError):
    """Raised when no granularity level can serve a period in one query."""

    def __init__(self) -> None:
        super().__init__("period too long for coincap api, please reduce")


@dataclass(frozen=True)
class Granularity:
    """A level of price aggregation offered by CoinCap."""

    aggregation: timedelta
    """The period over which each price point is aggregated."""

    label: str
    """The value sent to the API to select this granularity."""

    maximum_query: timedelta
    """The longest range that can be queried at this granularity."""


GRANULARITY_MINUTE = Granularity(timedelta(minutes=1), "m1", timedelta(days=1))
GRANULARITY_5_MINUTE = Granularity(timedelta(minutes=5), "m5", timedelta(days=5))
GRANULARITY_15_MINUTE = Granularity(
    timedelta(minutes=15), "m15", timedelta(days=7)
)
GRANULARITY_30_MINUTE = Granularity(
    timedelta(minutes=30), "m30", timedelta(days=14)
)
GRANULARITY_HOUR = Granularity(timedelta(hours=1), "h1", timedelta(days=30))
GRANULARITY_6_HOUR = Granularity(timedelta(hours=6), "h6", timedelta(days=183))
GRANULARITY_12_HOUR = Granularity(timedelta(hours=12), "h12", timedelta(days=365))
GRANULARITY_DAY = Granularity(timedelta(days=1), "d1", timedelta(days=7305))

ASCENDING_GRANULARITY: tuple[Granularity, ...] = (
    GRANULARITY_MINUTE,
    GRANULARITY_5_MINUTE,
    GRANULARITY_15_MINUTE,
    GRANULARITY_30_MINUTE,
    GRANULARITY_HOUR,
    GRANULARITY_6_HOUR,
    GRANULARITY_12_HOUR,
    GRANULARITY_DAY,
)


def best_granularity(duration: timedelta) -> Granularity:
    """Return the finest granularity that covers `duration` in one query."""
    for granularity in ASCENDING_GRANULARITY:
        if duration <= granularity.maximum_query:
            return granularity
    raise QueryTooLongError()


def _unix_millis(moment: datetime) -> int:
    return math.floor(moment.timestamp()) * 1000


def query_coincap(start: datetime, end: datetime, granularity: Granularity) -> bytes:
    """Fetch raw CoinCap price history for a range at a granularity."""
    url = (
        f"{COINCAP_HISTORY_API}?interval={granularity.label}"
        f"&start={_unix_millis(start)}&end={_unix_millis(end)}"
    )
    log.debug("coincap url: %s", url)

    with urllib.request.urlopen(url) as response:
        return response.read()


def parse_coincap_data(data: bytes) -> list[Price]:
    """Parse a CoinCap history response into USD prices."""
    response = json.loads(data)
    entries = response.get("data") or []

    records = []
    for entry in entries:
        try:
            price = Decimal(str(entry["priceUsd"]))
        except InvalidOperation as err:
            raise ValueError(f"invalid price: {entry['priceUsd']!r}") from err

        records.append(
            Price(
                timestamp=_EPOCH + timedelta(milliseconds=int(entry["time"])),
                price=price,
                currency=COINCAP_DEFAULT_CURRENCY,
            )
        )
    return records


@dataclass
class CoinCapAPI:
    """Price backend querying CoinCap at a fixed granularity."""

    granularity: Granularity
    query: Callable[[datetime, datetime, Granularity], bytes] = query_coincap
    convert: Callable[[bytes], list[Price]] = parse_coincap_data

    def raw_price_data(
        self,
        start_time: datetime,
        end_time: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]:
        """Fetch prices for a range, splitting it into allowed query sizes.

        The start is moved back by one aggregation period so that the first
        price point returned lies before the requested start.
        """
        start_time = start_time - self.granularity.aggregation
        max_period = self.granularity.maximum_query

        records: list[Price] = []
        start, end = start_time, start_time + max_period

        while start < end_time:
            records.extend(
                retry_query(
                    lambda s=start, e=end: self.query(s, e, self.granularity),
                    self.convert,
                    cancel,
                )
            )

            start, end = end, end + max_period
            if end > end_time:
                end = end_time

        return records