"""Price alert and notification records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


class AlertCondition(Enum):
    ABOVE = "above"
    BELOW = "below"


class NotificationType(Enum):
    ALERT = "alert"
    TRADE = "trade"
    SIGNAL = "signal"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class PriceAlert:
    symbol: str
    target_price: float
    condition: AlertCondition
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    triggered: bool = False
    triggered_at: datetime | None = None
    note: str | None = None

    def is_hit(self, price: float) -> bool:
        if self.condition is AlertCondition.ABOVE:
            return price >= self.target_price
        return price <= self.target_price

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "target_price": self.target_price,
            "condition": self.condition.value,
            "created_at": self.created_at.isoformat(),
            "triggered": self.triggered,
            "triggered_at": self.triggered_at.isoformat() if self.triggered_at else None,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PriceAlert:
        triggered_at = payload.get("triggered_at")
        return cls(
            id=str(payload["id"]),
            symbol=payload["symbol"],
            target_price=float(payload["target_price"]),
            condition=AlertCondition(payload["condition"]),
            created_at=datetime.fromisoformat(payload["created_at"]),
            triggered=bool(payload.get("triggered", False)),
            triggered_at=datetime.fromisoformat(triggered_at) if triggered_at else None,
            note=payload.get("note"),
        )


@dataclass(frozen=True, slots=True)
class Notification:
    type: NotificationType
    title: str
    message: str
    symbol: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    read: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "symbol": self.symbol,
            "created_at": self.created_at.isoformat(),
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Notification:
        return cls(
            id=str(payload["id"]),
            type=NotificationType(payload["type"]),
            title=payload["title"],
            message=payload["message"],
            symbol=payload.get("symbol"),
            created_at=datetime.fromisoformat(payload["created_at"]),
            read=bool(payload.get("read", False)),
        )


__all__ = ["AlertCondition", "Notification", "NotificationType", "PriceAlert"]
