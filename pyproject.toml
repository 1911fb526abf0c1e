[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "faraday"
version = "0.1.0"
description = "Lightning node accounting helpers: fiat price lookups, on-chain fee calculation, outlier detection and request and configuration validation."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bitcoin",
    "lightning",
    "accounting",
    "fiat",
    "exchange-rate",
    "outliers",
    "fees",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Accounting",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["faraday"]

[tool.pytest.ini_options]
addopts = "-ra"
