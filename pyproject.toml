[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "walletledger"
version = "1.0.0"
description = "A small wallet ledger: transfers between wallets, balances and transaction history over a JSON HTTP API backed by SQLite."
requires-python = ">=3.10"
dependencies = []
keywords = ["wallet", "ledger", "transactions", "transfer", "sqlite", "wsgi", "json-api"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Accounting",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
walletledger = "walletledger.app:main"

[tool.setuptools.packages.find]
include = ["walletledger*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
