"""Price sources and lookups of bitcoin fiat prices."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from faraday.coincap import GRANULARITY_DAY, CoinCapAPI, Granularity
from faraday.coindesk import CoinDeskAPI
from faraday.coingecko import CoinGeckoAPI
from faraday.pricing import CustomPrices, FiatError, Price

log = logging.getLogger(__name__)

MSAT_PER_BTC = 100_000_000_000
"""Millisatoshis in one bitcoin."""


class NoPricesError(FiatError):
    """Raised when a price lookup is given no price data."""

    def __init__(self) -> None:
        super().__init__("no price data provided")


class PriceOutOfRangeError(FiatError):
    """Raised when a timestamp lies before the first price point."""

    def __init__(self) -> None:
        super().__init__("timestamp before beginning of price dataset")


class UnknownPriceBackendError(FiatError):
    """Raised when a price source is requested for an unknown backend."""

    def __init__(self) -> None:
        super().__init__("unknown price backend")


class PriceConfigError(FiatError):
    """Raised when a price source configuration is invalid."""


class GranularityUnsupportedError(PriceConfigError):
    """Raised when a backend cannot serve the requested granularity."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"api does not support requested granularity: {detail}")


class PriceBackend(enum.IntEnum):
    """The service that fiat prices are fetched from."""

    UNKNOWN = 0
    COINCAP = 1
    COINDESK = 2
    CUSTOM = 3
    COINGECKO = 4

    def __str__(self) -> str:
        return _BACKEND_NAMES[self]


_BACKEND_NAMES = {
    PriceBackend.UNKNOWN: "unknown",
    PriceBackend.COINCAP: "coincap",
    PriceBackend.COINDESK: "coindesk",
    PriceBackend.CUSTOM: "custom",
    PriceBackend.COINGECKO: "coingecko",
}


class _PriceBackendImpl(Protocol):
    def raw_price_data(
        self,
        start_time: datetime,
        end_time: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]: ...


@dataclass
class PriceSourceConfig:
    """Options used to build a PriceSource."""

    backend: PriceBackend = PriceBackend.UNKNOWN
    granularity: Granularity | None = None
    """Price granularity; only used by the CoinCap backend."""

    price_points: list[Price] = field(default_factory=list)
    """Prices served by the custom backend."""

    def validate(self) -> None:
        """Check that the options suit the chosen backend."""
        if self.backend == PriceBackend.UNKNOWN:
            if self.granularity is not None:
                raise PriceConfigError(
                    "granularity unexpect for default price backend"
                )
        elif self.backend == PriceBackend.COINCAP:
            if self.granularity is None:
                raise PriceConfigError(
                    "granularity required fiat prices are enabled"
                )
        elif self.backend == PriceBackend.COINDESK:
            if self.granularity is not None and self.granularity != GRANULARITY_DAY:
                raise GranularityUnsupportedError(
                    "coindesk only provides daily price granularity"
                )
        elif self.backend == PriceBackend.COINGECKO:
            if self.granularity is not None:
                raise GranularityUnsupportedError(
                    "coingecko automatically provides hourly price "
                    "granularity for the last 90 days and daily price "
                    "granularity for dates older than that"
                )
        elif self.backend == PriceBackend.CUSTOM:
            if not self.price_points:
                raise PriceConfigError(
                    "at least one price point required for a custom price "
                    "backend"
                )


def _validate_time_range(start: datetime, end: datetime) -> None:
    if start > end:
        raise ValueError(f"start time: {start} after end time: {end}")
    if end > datetime.now(end.tzinfo):
        raise ValueError(f"end time: {end} is in the future")


@dataclass
class PriceSource:
    """Fetches price data from a backend."""

    impl: _PriceBackendImpl

    def get_prices(
        self,
        start_time: datetime,
        end_time: datetime,
        cancel: threading.Event | None = None,
    ) -> list[Price]:
        """Return prices for a past range, sorted by ascending timestamp."""
        _validate_time_range(start_time, end_time)
        records = self.impl.raw_price_data(start_time, end_time, cancel)
        return sorted(records, key=lambda record: record.timestamp)


def new_price_source(cfg: PriceSourceConfig | None) -> PriceSource:
    """Build a price source from a validated configuration."""
    if cfg is None:
        raise PriceConfigError("a non-nil PriceSourceConfig is expected")

    cfg.validate()

    if cfg.backend == PriceBackend.COINCAP:
        assert cfg.granularity is not None
        return PriceSource(CoinCapAPI(cfg.granularity))
    if cfg.backend in (PriceBackend.UNKNOWN, PriceBackend.COINDESK):
        return PriceSource(CoinDeskAPI())
    if cfg.backend == PriceBackend.CUSTOM:
        return PriceSource(CustomPrices(entries=list(cfg.price_points)))
    if cfg.backend == PriceBackend.COINGECKO:
        return PriceSource(CoinGeckoAPI())

    raise UnknownPriceBackendError()


@dataclass(frozen=True)
class PriceRequest:
    """A request for the fiat value of an amount at a point in time."""

    identifier: str
    value: int
    """Amount in millisatoshis."""

    timestamp: datetime


def get_prices(
    timestamps: Iterable[datetime],
    price_cfg: PriceSourceConfig | None,
    cancel: threading.Event | None = None,
) -> dict[datetime, Price]:
    """Return the price in effect at each of the given timestamps."""
    ordered = sorted(timestamps)
    if not ordered:
        return {}

    log.debug("getting prices for: %d requests", len(ordered))

    source = new_price_source(price_cfg)
    price_data = source.get_prices(ordered[0], ordered[-1], cancel)

    return {ts: get_price(price_data, ts) for ts in ordered}


def msat_to_fiat(price: Decimal, amt: int) -> Decimal:
    """Convert a millisatoshi amount to fiat at a per-bitcoin price."""
    return price / Decimal(MSAT_PER_BTC) * Decimal(amt)


def get_price(prices: list[Price], timestamp: datetime) -> Price:
    """Return the latest price at or before `timestamp`.

    `prices` must be sorted ascending and start before `timestamp`.
    """
    if not prices:
        raise NoPricesError()

    last_price = None
    for price in prices:
        if timestamp < price.timestamp:
            break
        last_price = price

    if last_price is None:
        raise PriceOutOfRangeError()

    return last_price