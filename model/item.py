# model/item.py
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet
from pydantic import BaseModel, Field


class ItemStatus(str, Enum):
    idle = "idle"
    pending = "pending"
    generating = "generating"
    complete = "complete"
    error = "error"


# Pending -> error covers items aborted before their turn came.
TRANSITIONS: Dict[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.idle: frozenset({ItemStatus.pending}),
    ItemStatus.pending: frozenset({ItemStatus.generating, ItemStatus.error}),
    ItemStatus.generating: frozenset({ItemStatus.complete, ItemStatus.error}),
    ItemStatus.complete: frozenset({ItemStatus.pending}),
    ItemStatus.error: frozenset({ItemStatus.pending}),
}

IN_FLIGHT: FrozenSet[ItemStatus] = frozenset(
    {ItemStatus.pending, ItemStatus.generating}
)


def can_transition(current: ItemStatus, target: ItemStatus) -> bool:
    return target in TRANSITIONS[current]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Item(BaseModel):
    id: str
    text: str
    groupKey: str
    status: ItemStatus = ItemStatus.idle
    resultText: str | None = None
    resultAssetPath: str | None = None
    errorMessage: str | None = None
    lastGeneratedAt: datetime | None = None
    createdAt: datetime = Field(default_factory=_now)
