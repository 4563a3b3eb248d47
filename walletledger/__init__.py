"""Wallet ledger with transfers, balances and history over a JSON HTTP API backed by SQLite."""

__version__ = "1.0.0"
__all__ = ["__version__"]