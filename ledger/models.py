"""Data models for the ledger domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

__all__ = [
    "Balance",
    "Category",
    "Transaction",
    "INCOME",
    "OUTCOME",
    "TRANSACTION_TYPES",
    "isoformat_utc",
    "parse_datetime",
]

INCOME = "income"
OUTCOME = "outcome"
TRANSACTION_TYPES = {INCOME, OUTCOME}


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="microseconds")
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Category:
    id: Optional[str]
    title: str
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            title=data["title"],
            created_at=parse_datetime(data["created_at"]),
        )


@dataclass(frozen=True)
class Transaction:
    id: Optional[str]
    title: str
    value: Decimal
    type: str
    category_id: str
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the transaction to JSON-friendly natives."""
        return {
            "id": self.id,
            "title": self.title,
            "value": f"{self.value:.2f}",
            "type": self.type,
            "category_id": self.category_id,
            "created_at": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Hydrate a Transaction from JSON-native data."""
        return cls(
            id=data["id"],
            title=data["title"],
            value=Decimal(str(data["value"])),
            type=data["type"],
            category_id=data["category_id"],
            created_at=parse_datetime(data["created_at"]),
        )


@dataclass(frozen=True)
class Balance:
    """Net position derived from all persisted transactions."""

    income: Decimal
    outcome: Decimal

    @property
    def total(self) -> Decimal:
        return self.income - self.outcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": f"{self.income:.2f}",
            "outcome": f"{self.outcome:.2f}",
            "total": f"{self.total:.2f}",
        }
