"""Parsing and validation of fiat related RPC requests and responses."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from faraday.coincap import (
    GRANULARITY_5_MINUTE,
    GRANULARITY_6_HOUR,
    GRANULARITY_12_HOUR,
    GRANULARITY_15_MINUTE,
    GRANULARITY_30_MINUTE,
    GRANULARITY_DAY,
    GRANULARITY_HOUR,
    GRANULARITY_MINUTE,
    Granularity,
    best_granularity,
)
from faraday.prices import PriceBackend, PriceSourceConfig
from faraday.pricing import Price


class RpcGranularity(enum.IntEnum):
    """Price granularity as requested over RPC."""

    UNKNOWN_GRANULARITY = 0
    MINUTE = 1
    FIVE_MINUTES = 2
    FIFTEEN_MINUTES = 3
    THIRTY_MINUTES = 4
    HOUR = 5
    SIX_HOURS = 6
    TWELVE_HOURS = 7
    DAY = 8


class RpcFiatBackend(enum.IntEnum):
    """Fiat price backend as requested over RPC."""

    UNKNOWN_FIATBACKEND = 0
    COINCAP = 1
    COINDESK = 2
    CUSTOM = 3
    COINGECKO = 4


_GRANULARITIES = {
    RpcGranularity.MINUTE: GRANULARITY_MINUTE,
    RpcGranularity.FIVE_MINUTES: GRANULARITY_5_MINUTE,
    RpcGranularity.FIFTEEN_MINUTES: GRANULARITY_15_MINUTE,
    RpcGranularity.THIRTY_MINUTES: GRANULARITY_30_MINUTE,
    RpcGranularity.HOUR: GRANULARITY_HOUR,
    RpcGranularity.SIX_HOURS: GRANULARITY_6_HOUR,
    RpcGranularity.TWELVE_HOURS: GRANULARITY_12_HOUR,
    RpcGranularity.DAY: GRANULARITY_DAY,
}

_BACKENDS = {
    RpcFiatBackend.UNKNOWN_FIATBACKEND: PriceBackend.UNKNOWN,
    RpcFiatBackend.COINCAP: PriceBackend.COINCAP,
    RpcFiatBackend.COINDESK: PriceBackend.COINDESK,
    RpcFiatBackend.CUSTOM: PriceBackend.CUSTOM,
    RpcFiatBackend.COINGECKO: PriceBackend.COINGECKO,
}


@dataclass(frozen=True)
class BitcoinPrice:
    """A bitcoin price as carried over RPC."""

    price: str
    price_timestamp: int = 0
    currency: str = ""


@dataclass(frozen=True)
class ExchangeRate:
    """The bitcoin price in effect at a requested timestamp."""

    timestamp: int
    btc_price: BitcoinPrice


@dataclass(frozen=True)
class CustomCategory:
    """A user defined category matching labels by regular expression."""

    name: str
    on_chain: bool = False
    off_chain: bool = False
    label_patterns: list[str] = field(default_factory=list)


class CategoryError(ValueError):
    """Raised when a set of custom categories is invalid."""


def _from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, timezone.utc)


def _to_unix(moment: datetime) -> int:
    return math.floor(moment.timestamp())


def validate_times(start_time: int, end_time: int) -> tuple[datetime, datetime]:
    """Convert unix times to datetimes, defaulting a zero end to now.

    Raises ValueError if the start lies after the end.
    """
    start = _from_unix(start_time)
    end = _from_unix(end_time) if end_time else datetime.now(timezone.utc)

    if start > end:
        raise ValueError(f"start time: {start} after end: {end}")

    return start, end


def granularity_from_rpc(
    granularity: int, disable_fiat: bool, duration: timedelta
) -> Granularity | None:
    """Map an RPC granularity to a price granularity.

    An unset granularity picks the finest one that covers `duration`; no
    granularity is needed when fiat prices are disabled.
    """
    if disable_fiat:
        return None

    if granularity == RpcGranularity.UNKNOWN_GRANULARITY:
        return best_granularity(duration)

    try:
        return _GRANULARITIES[RpcGranularity(granularity)]
    except (ValueError, KeyError):
        raise ValueError(f"unknown granularity: {granularity}") from None


def fiat_backend_from_rpc(backend: int) -> PriceBackend:
    """Map an RPC fiat backend to a price backend."""
    try:
        return _BACKENDS[RpcFiatBackend(backend)]
    except (ValueError, KeyError):
        raise ValueError(f"unknown fiat backend: {backend}") from None


def price_points_from_rpc(prices: Iterable[BitcoinPrice]) -> list[Price]:
    """Convert RPC price points to prices."""
    result = []
    for point in prices:
        try:
            value = Decimal(point.price)
        except InvalidOperation:
            raise ValueError(f"invalid price: {point.price!r}") from None
        if not value.is_finite():
            raise ValueError(f"invalid price: {point.price!r}")

        result.append(
            Price(
                timestamp=_from_unix(point.price_timestamp),
                price=value,
                currency=point.currency,
            )
        )
    return result


def validate_custom_price_points(
    prices: Iterable[Price], start_time: datetime
) -> None:
    """Require at least one price point before `start_time`."""
    if not any(price.timestamp < start_time for price in prices):
        raise ValueError(
            "expected at least one price point with a timestamp preceding "
            "the given start time"
        )


def price_cfg_from_rpc(
    rpc_backend: int,
    rpc_granularity: int,
    disable: bool,
    start: datetime,
    end: datetime,
    prices: Sequence[BitcoinPrice],
) -> PriceSourceConfig:
    """Build a price source configuration from RPC request fields."""
    backend = fiat_backend_from_rpc(rpc_backend)

    if prices and backend != PriceBackend.CUSTOM:
        raise ValueError(
            "custom price points provided but custom fiat backend not set"
        )

    granularity = None
    price_points: list[Price] = []

    if backend == PriceBackend.COINCAP:
        granularity = granularity_from_rpc(rpc_granularity, disable, end - start)
    elif backend == PriceBackend.CUSTOM:
        price_points = price_points_from_rpc(prices)
        validate_custom_price_points(price_points, start)

    return PriceSourceConfig(
        backend=backend, granularity=granularity, price_points=price_points
    )


def parse_exchange_rate_request(
    timestamps: Sequence[int],
    fiat_backend: int = RpcFiatBackend.UNKNOWN_FIATBACKEND,
    granularity: int = RpcGranularity.UNKNOWN_GRANULARITY,
    custom_prices: Sequence[BitcoinPrice] = (),
) -> tuple[list[datetime], PriceSourceConfig]:
    """Return the sorted request timestamps and the price configuration."""
    if not timestamps:
        raise ValueError("at least one timestamp required")

    times = sorted(_from_unix(ts) for ts in timestamps)
    cfg = price_cfg_from_rpc(
        fiat_backend, granularity, False, times[0], times[-1], custom_prices
    )
    return times, cfg


def exchange_rate_response(prices: dict[datetime, Price]) -> list[ExchangeRate]:
    """Convert looked up prices to RPC exchange rates."""
    return [
        ExchangeRate(
            timestamp=_to_unix(ts),
            btc_price=BitcoinPrice(
                price=format(price.price, "f"),
                price_timestamp=_to_unix(price.timestamp),
                currency=price.currency,
            ),
        )
        for ts, price in prices.items()
    ]


def validate_custom_categories(categories: Iterable[CustomCategory]) -> None:
    """Check names, chain flags and that no label pattern is repeated."""
    seen: set[str] = set()

    for category in categories:
        if not category.name:
            raise CategoryError("category must have a name")

        if not category.on_chain and not category.off_chain:
            raise CategoryError(
                "category must be for on chain, off chain or both"
            )

        for pattern in category.label_patterns:
            if pattern in seen:
                raise CategoryError(f"duplicate category regex: {pattern}")
            seen.add(pattern)