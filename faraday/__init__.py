"""Lightning node accounting: fiat prices, fees, outliers, and request and config validation."""

__version__ = "0.1.0"