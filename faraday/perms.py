"""Macaroon permissions required by each RPC method."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Op:
    """A single macaroon permission: an action on an entity."""

    entity: str
    action: str


REQUIRED_PERMISSIONS: Mapping[str, tuple[Op, ...]] = MappingProxyType(
    {
        "/frdrpc.FaradayServer/OutlierRecommendations": (
            Op(entity="recommendation", action="read"),
        ),
        "/frdrpc.FaradayServer/ThresholdRecommendations": (
            Op(entity="recommendation", action="read"),
        ),
        "/frdrpc.FaradayServer/RevenueReport": (
            Op(entity="report", action="read"),
        ),
        "/frdrpc.FaradayServer/ChannelInsights": (
            Op(entity="insights", action="read"),
        ),
        "/frdrpc.FaradayServer/ExchangeRate": (
            Op(entity="rates", action="read"),
        ),
        "/frdrpc.FaradayServer/NodeAudit": (
            Op(entity="audit", action="read"),
        ),
        "/frdrpc.FaradayServer/CloseReport": (
            Op(entity="report", action="read"),
        ),
    }
)
"""Every RPC method mapped to the permissions needed to call it."""


def permissions_for(method: str) -> tuple[Op, ...]:
    """Return the permissions a full RPC method name requires.

    Unknown methods require no listed permissions and yield an empty tuple.
    """
    return REQUIRED_PERMISSIONS.get(method, ())