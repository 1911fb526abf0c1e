"""Price records and retrying price queries."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

log = logging.getLogger(__name__)

MAX_RETRIES = 3
"""Maximum number of attempts made per call to a price API."""

RETRY_SLEEP = 0.5
"""Seconds to back off between attempts."""


class FiatError(Exception):
    """Base class for fiat price errors."""


class ShuttingDownError(FiatError):
    """Raised when a query is cancelled while backing off."""

    def __init__(self) -> None:
        super().__init__("shutting down")


class RetriesFailedError(FiatError):
    """Raised when no attempt succeeded within the retry limit."""

    def __init__(self) -> None:
        super().__init__("could not get data within max retries")


@dataclass
class Price:
    """The price of 1 BTC in a currency at a point in time."""

    timestamp: datetime
    price: Decimal
    currency: str = ""


def retry_query(
    query_api: Callable[[], bytes],
    convert: Callable[[bytes], list[Price]],
    cancel: threading.Event | None = None,
) -> list[Price]:
    """Call `query_api` until it succeeds, then convert its response.

    Failed attempts are retried after a pause, up to MAX_RETRIES attempts.
    Setting `cancel` stops the wait early with ShuttingDownError.
    """
    for attempt in range(MAX_RETRIES):
        try:
            response = query_api()
        except Exception as err:  # any failed attempt is retried
            log.error("http get attempt: %d failed: %s", attempt, err)
            if cancel is not None:
                if cancel.wait(RETRY_SLEEP):
                    raise ShuttingDownError() from err
            else:
                time.sleep(RETRY_SLEEP)
            continue

        return convert(response)

    raise RetriesFailedError()


@dataclass
class CustomPrices:
    """A price backend serving a fixed set of user supplied prices."""

    entries: list[Price] = field(default_factory=list)

    def raw_price_data(
        self,
        start_time: datetime,
        end_time: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]:
        """Return all custom entries, regardless of the requested range."""
        return list(self.entries)