# faraday

Accounting building blocks for a Lightning node operator: outlier and
threshold detection over channel metrics, on-chain fee calculation,
historical bitcoin fiat prices, and validation of exchange-rate and audit
requests and of daemon configuration.

No third-party libraries are required; remote price sources are fetched
with the standard library.

## Modules

- `faraday.dataset`: `Dataset`, a dict of labels to floats, with
  `quartiles()` (exclusive method), `get_outliers(multiplier)` and
  `get_threshold(value, below)`; also `get_median` and the errors
  `NoValuesError` and `TooFewValuesError`.
- `faraday.fees`: `calculate_fee(details, txid)` returns the fee in
  satoshis paid by a transaction, given a `details` function that looks up
  a `RawTransaction` (with `TxIn` and `TxOut` entries) by id.
  `btc_to_sat` converts a BTC float amount to satoshis.
- `faraday.pricing`: the `Price` record, `retry_query` (up to three
  attempts, half a second apart, cancellable with a `threading.Event`) and
  `CustomPrices`, a backend serving caller-supplied prices.
- `faraday.coincap`, `faraday.coindesk`, `faraday.coingecko`: price
  backends (`CoinCapAPI`, `CoinDeskAPI`, `CoinGeckoAPI`) with their query
  and response parsing functions. `faraday.coincap` also defines the
  `Granularity` levels and `best_granularity(duration)`.
- `faraday.prices`: `PriceBackend`, `PriceSourceConfig`, `PriceSource`,
  `new_price_source`, `get_prices`, `get_price` and `msat_to_fiat`.
- `faraday.rpcparse`: conversion and validation of request fields:
  `validate_times`, `granularity_from_rpc`, `fiat_backend_from_rpc`,
  `price_cfg_from_rpc`, `parse_exchange_rate_request`,
  `exchange_rate_response`, `price_points_from_rpc`,
  `validate_custom_price_points` and `validate_custom_categories`.
- `faraday.perms`: `REQUIRED_PERMISSIONS` and `permissions_for(method)`,
  the macaroon permissions (`Op`) each RPC method requires.
- `faraday.config`: `Config`, `LndConfig`, `BitcoinConfig`,
  `default_config()` and `validate_config(config)`, plus the helpers
  `app_data_dir` and `clean_and_expand_path`.

## Finding outliers

```python
from faraday.dataset import Dataset

uptime = Dataset({"a": 1, "b": 7, "c": 7, "d": 8, "e": 8, "f": 10})

outliers = uptime.get_outliers(3)
outliers["a"].lower_outlier   # True: far below the lower quartile

uptime.get_threshold(7, below=True)
# {"a": True, "b": True, "c": True, "d": False, "e": False, "f": False}
```

A lower multiplier flags more values. With fewer than three values
quartiles cannot be computed, and every label is reported as not being an
outlier.

## Choosing a price

`get_price` expects prices sorted by ascending timestamp, and the first
price point to lie at or before the timestamp asked about. A timestamp
between two points gets the earlier price.

```python
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from faraday.pricing import Price
from faraday.prices import get_price, msat_to_fiat

now = datetime.now(timezone.utc)
points = [
    Price(timestamp=now - timedelta(hours=1), price=Decimal(20000), currency="USD"),
    Price(timestamp=now, price=Decimal(10000), currency="USD"),
]

price = get_price(points, now - timedelta(minutes=30))
price.price                                # Decimal("20000")

msat_to_fiat(Decimal(10000), 1000)         # 1 sat at 10,000 per BTC: 0.0001
```

An empty price list raises `NoPricesError`; a timestamp before the first
price point raises `PriceOutOfRangeError`.

## Price sources

A `PriceSourceConfig` names a `PriceBackend` and, where it applies, a
`Granularity` or a list of custom price points. `new_price_source` checks
the combination with `PriceSourceConfig.validate()` and returns a
`PriceSource`:

- CoinCap requires a granularity; `best_granularity` picks the finest one
  that covers a period in a single query, and longer ranges are split into
  several queries.
- CoinDesk only serves daily prices; a granularity other than daily is
  refused.
- CoinGecko chooses hourly or daily detail by age and accepts no
  granularity.
- A custom backend needs at least one price point.
- With no backend given, CoinDesk is used.

`PriceSource.get_prices(start, end)` rejects a start after the end and an
end in the future, and returns the prices sorted by timestamp.
`get_prices(timestamps, cfg)` fetches the covering range once and returns
the price in force at each timestamp. Every fetching call accepts an
optional `cancel` event that stops retries early with `ShuttingDownError`.

## Configuration

`default_config()` returns every default: the data directory under the
user's application data folder, the `mainnet` network, lnd at
`localhost:10009`, and listening on `localhost:8465`. `validate_config`
checks the network, expands `~` and environment variables in paths,
namespaces the data directory by network and creates it, and raises
`ConfigError` for conflicting options (for example a custom data
directory together with a custom TLS or macaroon path, or a bitcoin node
connection without credentials).

## What this package does not do

It provides no command-line program and no daemon: there is no gRPC or
REST server, no connection to lnd or to a bitcoin node, no TLS
certificate generation and no macaroon store. `faraday.perms` and
`faraday.config` describe permissions and settings but nothing here
enforces or serves them. Channel recommendations, revenue reports and the
node audit report itself are not computed here; only the request
validation pieces in `faraday.rpcparse` are included.

## Testing

The test suite uses pytest and is installed with the `test` extra.