"""Historical bitcoin prices from the CoinGecko API."""

from __future__ import annotations

import json
import logging
import threading
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from faraday.pricing import Price, retry_query

log = logging.getLogger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3/coins/bitcoin/market_chart"
"""Endpoint queried for historical price data."""

COINGECKO_DEFAULT_CURRENCY = "USD"
"""Currency that CoinGecko prices are requested in."""

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# CoinGecko serves hourly data for the last 90 days; one day is kept spare
# so that the range can be padded by a day before the start.
_HOURLY_WINDOW = timedelta(days=89)


def query_coingecko(lag: int) -> bytes:
    """Fetch raw CoinGecko prices for the last `lag` days."""
    url = f"{COINGECKO_URL}?vs_currency=usd&days={lag}"
    log.debug("coingecko url: %s", url)

    with urllib.request.urlopen(url) as response:
        return response.read()


def parse_coingecko_data(data: bytes) -> list[Price]:
    """Parse a CoinGecko response of [millis, price] pairs."""
    response = json.loads(data)
    entries = response.get("prices") or []

    records = []
    for entry in entries:
        if len(entry) != 2:
            raise ValueError(
                f"expected price and timestamp got: {len(entry)} entries"
            )
        millis, price = entry
        records.append(
            Price(
                timestamp=_EPOCH + timedelta(milliseconds=int(millis)),
                price=Decimal(str(price)),
                currency=COINGECKO_DEFAULT_CURRENCY,
            )
        )
    return records


@dataclass(frozen=True)
class TimeRange:
    """A span of time queried from CoinGecko."""

    start: datetime
    end: datetime


@dataclass
class CoinGeckoAPI:
    """Price backend querying CoinGecko, hourly or daily by age."""

    query: Callable[[int], bytes] = query_coingecko
    convert: Callable[[bytes], list[Price]] = parse_coingecko_data

    def query_range(
        self,
        now: datetime,
        start: datetime,
        end: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]:
        """Fetch prices from `start` up to `end`, lagged relative to `now`.

        One extra day of lag makes sure a price before `start` is included;
        records after `end` are dropped.
        """
        hours = int((now - start) / timedelta(hours=1))
        lag = int(hours / 24) + 1

        records = retry_query(lambda: self.query(lag), self.convert, cancel)
        return [record for record in records if record.timestamp <= end]

    def api_ranges(
        self, now: datetime, start: datetime, end: datetime
    ) -> list[TimeRange]:
        """Split a range into the spans served at daily and hourly detail."""
        breakpoint_ = now - _HOURLY_WINDOW
        ranges = []

        if start < breakpoint_:
            ranges.append(TimeRange(start=start, end=min(end, breakpoint_)))

        if end > breakpoint_:
            ranges.append(TimeRange(start=max(start, breakpoint_), end=end))

        return ranges

    def raw_price_data(
        self,
        start_time: datetime,
        end_time: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]:
        """Fetch prices for a range, querying each granularity span."""
        now = datetime.now(timezone.utc)
        records: list[Price] = []
        for span in self.api_ranges(now, start_time, end_time):
            records.extend(self.query_range(now, span.start, span.end, cancel))
        return records