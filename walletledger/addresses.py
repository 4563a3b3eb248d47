"""Wallet address generation."""

import secrets

_ADDRESS_BYTES = 32


def generate_random_address() -> str:
    """Return a cryptographically random 32-byte address as 64 hex characters."""
    return secrets.token_hex(_ADDRESS_BYTES)