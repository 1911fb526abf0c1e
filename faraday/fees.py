"""On-chain fee calculation from raw transaction details."""

from __future__ import annotations

import math
import string
from collections.abc import Callable
from dataclasses import dataclass, field

SATOSHI_PER_BITCOIN = 100_000_000
_HASH_HEX_LEN = 64


@dataclass(frozen=True)
class TxIn:
    """A transaction input, spending output `vout` of transaction `txid`."""

    txid: str
    vout: int


@dataclass(frozen=True)
class TxOut:
    """A transaction output with its value in BTC."""

    value: float


@dataclass
class RawTransaction:
    """A transaction as reported by a bitcoin node."""

    hash: str
    vin: list[TxIn] = field(default_factory=list)
    vout: list[TxOut] = field(default_factory=list)


GetDetails = Callable[[str], RawTransaction]


def btc_to_sat(value: float) -> int:
    """Convert a BTC float amount to satoshis, rounding half away from zero."""
    if math.isnan(value) or math.isinf(value):
        raise ValueError("invalid bitcoin amount")
    scaled = value * SATOSHI_PER_BITCOIN
    return int(scaled - 0.5) if scaled < 0 else int(scaled + 0.5)


def _normalise_txid(txid: str) -> str:
    if len(txid) > _HASH_HEX_LEN:
        raise ValueError(
            f"max hash string length is {_HASH_HEX_LEN} bytes"
        )
    if any(c not in string.hexdigits for c in txid):
        raise ValueError(f"invalid hash string: {txid!r}")
    return txid.lower().zfill(_HASH_HEX_LEN)


def calculate_fee(details: GetDetails, txid: str) -> int:
    """Return the fee in satoshis paid by transaction `txid`.

    `details` looks up a transaction by its id. Every input's previous output
    is looked up to total the inputs; the outputs are subtracted from that.
    """
    tx = details(_normalise_txid(txid))

    fee = 0
    for tx_in in tx.vin:
        prev_tx = details(_normalise_txid(tx_in.txid))
        fee += btc_to_sat(prev_tx.vout[tx_in.vout].value)

    fee -= sum(btc_to_sat(out.value) for out in tx.vout)
    return fee