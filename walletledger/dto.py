"""Request and response records exchanged between the API, services and storage."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_AMOUNT_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_amount(value: Any) -> Decimal:
    """Convert a string, integer, float or Decimal into a finite Decimal.

    Raises ValueError for anything that is not a plain decimal number.
    """
    if isinstance(value, bool):
        raise ValueError(f"can't convert {value!r} to decimal")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"can't convert {value!r} to decimal")
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        text = repr(value)
    elif isinstance(value, str):
        text = value
    else:
        raise ValueError(f"can't convert {value!r} to decimal")
    if not _AMOUNT_PATTERN.fullmatch(text):
        raise ValueError(f"can't convert {text!r} to decimal")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"can't convert {text!r} to decimal") from exc


def _format_amount(amount: Decimal) -> str:
    if amount == 0:
        return "0"
    text = format(amount, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


_TRANSACTION_FIELDS = {"from": "from_address", "to": "to_address", "amount": "amount"}


@dataclass(frozen=True)
class TransactionRequest:
    """A request to move ``amount`` from one wallet to another."""

    from_address: str = ""
    to_address: str = ""
    amount: Decimal = field(default_factory=Decimal)

    @classmethod
    def from_mapping(cls, data: Any) -> "TransactionRequest":
        """Build a request from a decoded JSON object.

        Keys match case-insensitively, unknown keys are ignored, null and
        missing values keep their zero defaults. Raises ValueError on
        values of the wrong type.
        """
        if not isinstance(data, Mapping):
            raise ValueError("request payload must be a JSON object")
        values: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            name = _TRANSACTION_FIELDS.get(key) or _TRANSACTION_FIELDS.get(key.lower())
            if name is None or value is None:
                continue
            if name == "amount":
                values[name] = parse_amount(value)
            elif isinstance(value, str):
                values[name] = value
            else:
                raise ValueError(f"field {key!r} must be a string")
        return cls(**values)


@dataclass(frozen=True)
class TransactionResponse:
    """A stored transaction as reported to clients."""

    from_address: str
    to_address: str
    amount: Decimal
    created_at: datetime

    def to_json(self) -> dict[str, str]:
        """Return a JSON-ready mapping of this transaction."""
        return {
            "from": self.from_address,
            "to": self.to_address,
            "amount": _format_amount(self.amount),
            "created_at": _format_timestamp(self.created_at),
        }


@dataclass(frozen=True)
class BalanceRequest:
    """A request for the balance of one wallet."""

    address: str


@dataclass(frozen=True)
class BalanceResponse:
    """The current balance of a wallet."""

    amount: Decimal

    def to_json(self) -> dict[str, str]:
        """Return a JSON-ready mapping of this balance."""
        return {"amount": _format_amount(self.amount)}


@dataclass(frozen=True)
class BalanceUpdateRequest:
    """A request to set a wallet's balance to ``amount``."""

    address: str
    amount: Decimal


@dataclass(frozen=True)
class WalletRequest:
    """A new wallet with its opening balance."""

    address: str
    balance: Decimal