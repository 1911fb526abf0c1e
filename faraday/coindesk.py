"""Historical bitcoin prices from the CoinDesk API."""

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

COINDESK_HISTORY_API = "https://api.coindesk.com/v1/bpi/historical/close.json"
"""Endpoint queried for historical price data."""

COINDESK_TIME_FORMAT = "%Y-%m-%d"
"""Date format used by CoinDesk."""

COINDESK_DEFAULT_CURRENCY = "USD"
"""Currency that CoinDesk prices are quoted in."""


def query_coindesk(start: datetime, end: datetime) -> bytes:
    """Fetch raw CoinDesk daily closing prices for a date range."""
    url = (
        f"{COINDESK_HISTORY_API}?start={start.strftime(COINDESK_TIME_FORMAT)}"
        f"&end={end.strftime(COINDESK_TIME_FORMAT)}"
    )
    log.debug("coindesk url: %s", url)

    with urllib.request.urlopen(url) as response:
        return response.read()


def parse_coindesk_data(data: bytes) -> list[Price]:
    """Parse a CoinDesk response mapping dates to prices."""
    response = json.loads(data)
    entries = response.get("bpi") or {}

    return [
        Price(
            timestamp=datetime.strptime(date, COINDESK_TIME_FORMAT).replace(
                tzinfo=timezone.utc
            ),
            price=Decimal(str(price)),
            currency=COINDESK_DEFAULT_CURRENCY,
        )
        for date, price in entries.items()
    ]


@dataclass
class CoinDeskAPI:
    """Price backend querying CoinDesk's daily prices."""

    query: Callable[[datetime, datetime], bytes] = query_coindesk
    convert: Callable[[bytes], list[Price]] = parse_coindesk_data

    def raw_price_data(
        self,
        start_time: datetime,
        end_time: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]:
        """Fetch daily prices for a range.

        CoinDesk omits the current day, so the start is moved back one day
        to always include at least one day's price.
        """
        start = start_time - timedelta(days=1)
        return retry_query(
            lambda: self.query(start, end_time), self.convert, cancel
        )