"""Daemon configuration defaults and validation."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from datetime import timedelta

DEFAULT_RPC_PORT = "10009"
DEFAULT_RPC_HOST_PORT = "localhost:" + DEFAULT_RPC_PORT
DEFAULT_NETWORK = "mainnet"
DEFAULT_MINIMUM_MONITOR = timedelta(hours=24 * 7 * 4)
DEFAULT_DEBUG_LEVEL = "info"
DEFAULT_RPC_LISTEN = "localhost:8465"
DEFAULT_CHAIN_CONN = False

DEFAULT_AUTOGEN_VALIDITY = timedelta(hours=14 * 30 * 24)
"""Validity of a self-signed certificate: 14 months of 30 days."""

NETWORKS = ("regtest", "testnet", "mainnet", "simnet")
"""Networks the daemon can run on."""

DEFAULT_TLS_CERT_FILENAME = "tls.cert"
DEFAULT_TLS_KEY_FILENAME = "tls.key"
DEFAULT_MACAROON_FILENAME = "faraday.macaroon"
DEFAULT_LND_MACAROON = "admin.macaroon"


class ConfigError(ValueError):
    """Raised when a configuration is invalid."""


def app_data_dir(app_name: str) -> str:
    """Return the per-user data directory for an application on this OS."""
    if app_name in ("", "."):
        return "."

    app_name = app_name.removeprefix(".")
    upper = app_name[:1].upper() + app_name[1:]
    lower = app_name[:1].lower() + app_name[1:]

    home = os.path.expanduser("~")
    if home == "~":
        home = os.environ.get("HOME", "")

    if sys.platform.startswith("win"):
        app_data = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if app_data:
            return os.path.join(app_data, upper)
    elif sys.platform == "darwin":
        if home:
            return os.path.join(home, "Library", "Application Support", upper)
    elif sys.platform.startswith("plan9"):
        if home:
            return os.path.join(home, lower)
    elif home:
        return os.path.join(home, "." + lower)

    return "."


_ENV_VAR = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z0-9_]+))")


def clean_and_expand_path(path: str) -> str:
    """Expand a leading ~ and environment variables, then clean the path.

    Undefined environment variables expand to nothing. An empty path stays
    empty.
    """
    if not path:
        return ""

    if path.startswith("~"):
        home = os.path.expanduser("~")
        if home == "~":
            home = os.environ.get("HOME", "")
        path = home + path[1:]

    expanded = _ENV_VAR.sub(
        lambda m: os.environ.get(m.group(1) or m.group(2), ""), path
    )
    return os.path.normpath(expanded) if expanded else "."


FARADAY_DIR_BASE = app_data_dir("faraday")
DEFAULT_TLS_CERT_PATH = os.path.join(
    FARADAY_DIR_BASE, DEFAULT_NETWORK, DEFAULT_TLS_CERT_FILENAME
)
DEFAULT_TLS_KEY_PATH = os.path.join(
    FARADAY_DIR_BASE, DEFAULT_NETWORK, DEFAULT_TLS_KEY_FILENAME
)
DEFAULT_MACAROON_PATH = os.path.join(
    FARADAY_DIR_BASE, DEFAULT_NETWORK, DEFAULT_MACAROON_FILENAME
)
DEFAULT_LND_DIR = app_data_dir("lnd")
DEFAULT_LND_MACAROON_PATH = os.path.join(
    DEFAULT_LND_DIR, "data", "chain", "bitcoin", DEFAULT_NETWORK,
    DEFAULT_LND_MACAROON,
)


@dataclass
class LndConfig:
    """Options for the connection to lnd."""

    rpc_server: str = DEFAULT_RPC_HOST_PORT
    macaroon_dir: str = ""
    """Deprecated: a directory holding lnd's macaroons."""

    macaroon_path: str = DEFAULT_LND_MACAROON_PATH
    tls_cert_path: str = ""


@dataclass
class BitcoinConfig:
    """Credentials for an optional bitcoin node connection."""

    user: str = ""
    password: str = ""
    use_tls: bool = False
    tls_path: str = ""


@dataclass
class Config:
    """The daemon's full configuration."""

    lnd: LndConfig = field(default_factory=LndConfig)
    faraday_dir: str = FARADAY_DIR_BASE
    chain_conn: bool = DEFAULT_CHAIN_CONN
    show_version: bool = False
    minimum_monitored: timedelta = DEFAULT_MINIMUM_MONITOR
    network: str = DEFAULT_NETWORK
    debug_level: str = DEFAULT_DEBUG_LEVEL
    tls_cert_path: str = DEFAULT_TLS_CERT_PATH
    tls_key_path: str = DEFAULT_TLS_KEY_PATH
    tls_extra_ips: list[str] = field(default_factory=list)
    tls_extra_domains: list[str] = field(default_factory=list)
    tls_auto_refresh: bool = False
    tls_disable_autofill: bool = False
    macaroon_path: str = DEFAULT_MACAROON_PATH
    rpc_listen: str = DEFAULT_RPC_LISTEN
    rest_listen: str = ""
    cors_origin: str = ""
    bitcoin: BitcoinConfig = field(default_factory=BitcoinConfig)


def default_config() -> Config:
    """Return a configuration holding every default value."""
    return Config()


def validate_config(config: Config) -> None:
    """Clean paths in place and reject incompatible option combinations.

    The data directory is namespaced by network and created on disk.
    """
    if config.network not in NETWORKS:
        raise ConfigError(
            f"error validating network: unknown network: {config.network}"
        )

    config.faraday_dir = clean_and_expand_path(config.faraday_dir)
    config.tls_cert_path = clean_and_expand_path(config.tls_cert_path)
    config.tls_key_path = clean_and_expand_path(config.tls_key_path)
    config.macaroon_path = clean_and_expand_path(config.macaroon_path)

    config.faraday_dir = os.path.join(config.faraday_dir, config.network)
    os.makedirs(config.faraday_dir, exist_ok=True)

    # The data directory overrides the TLS and macaroon paths, so refuse
    # both being set rather than silently picking one.
    if config.faraday_dir != FARADAY_DIR_BASE:
        if config.tls_cert_path != DEFAULT_TLS_CERT_PATH:
            raise ConfigError(
                "faradaydir overwrites tlscertpath, please only set one value"
            )
        if config.tls_key_path != DEFAULT_TLS_KEY_PATH:
            raise ConfigError(
                "faradaydir overwrites tlskeypath, please only set one value"
            )
        if config.macaroon_path != DEFAULT_MACAROON_PATH:
            raise ConfigError(
                "faradaydir overwrites macaroonpath, please only set one value"
            )

    if config.tls_cert_path == DEFAULT_TLS_CERT_PATH:
        config.tls_cert_path = os.path.join(
            config.faraday_dir, DEFAULT_TLS_CERT_FILENAME
        )
    if config.tls_key_path == DEFAULT_TLS_KEY_PATH:
        config.tls_key_path = os.path.join(
            config.faraday_dir, DEFAULT_TLS_KEY_FILENAME
        )
    if config.macaroon_path == DEFAULT_MACAROON_PATH:
        config.macaroon_path = os.path.join(
            config.faraday_dir, DEFAULT_MACAROON_FILENAME
        )

    if config.chain_conn:
        if not config.bitcoin.user or not config.bitcoin.password:
            raise ConfigError(
                "rpc user and password required when chainconn is set"
            )
        if config.bitcoin.use_tls and not config.bitcoin.tls_path:
            raise ConfigError("bitcoin.tlspath required when chainconn is set")

    lnd = config.lnd
    if lnd.macaroon_path != DEFAULT_LND_MACAROON_PATH and lnd.macaroon_dir:
        raise ConfigError("use --lnd.macaroonpath only")
    if lnd.macaroon_dir:
        lnd.macaroon_path = os.path.join(
            clean_and_expand_path(lnd.macaroon_dir), DEFAULT_LND_MACAROON
        )
    elif lnd.macaroon_path:
        lnd.macaroon_path = clean_and_expand_path(lnd.macaroon_path)
    else:
        raise ConfigError("must specify --lnd.macaroonpath")

    if (
        config.network != DEFAULT_NETWORK
        and lnd.macaroon_path == DEFAULT_LND_MACAROON_PATH
    ):
        lnd.macaroon_path = os.path.join(
            DEFAULT_LND_DIR, "data", "chain", "bitcoin", config.network,
            DEFAULT_LND_MACAROON,
        )

    lnd.tls_cert_path = clean_and_expand_path(lnd.tls_cert_path)