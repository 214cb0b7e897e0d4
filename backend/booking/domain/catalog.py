from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Iterable


@dataclass(frozen=True)
class Slot:
    hour: int
    minute: int
    enabled: bool = True
    capacity_limited: bool = False

    @property
    def key(self) -> str:
        return f"{self.hour}-{self.minute:02d}"

    @property
    def label(self) -> str:
        return f"{self.hour}:{self.minute:02d}"

    @property
    def starts_at(self) -> time:
        return time(self.hour, self.minute)


# 40 minute grid, 08:00 to 18:00. The lunch slots stay listed but disabled.
SLOT_CATALOG: tuple[Slot, ...] = (
    Slot(8, 0, capacity_limited=True),
    Slot(8, 40, capacity_limited=True),
    Slot(9, 20, capacity_limited=True),
    Slot(10, 0),
    Slot(10, 40),
    Slot(11, 20),
    Slot(12, 0),
    Slot(12, 40, enabled=False),
    Slot(13, 20, enabled=False),
    Slot(14, 0, capacity_limited=True),
    Slot(14, 40),
    Slot(15, 20),
    Slot(16, 0),
    Slot(16, 40),
    Slot(17, 20, capacity_limited=True),
    Slot(18, 0, capacity_limited=True),
)

_BY_KEY: dict[str, Slot] = {slot.key: slot for slot in SLOT_CATALOG}


def enabled_slots(catalog: Iterable[Slot] = SLOT_CATALOG) -> list[Slot]:
    return [slot for slot in catalog if slot.enabled]


def get_slot(key: str) -> Slot | None:
    return _BY_KEY.get(key)


def parse_slot_key(key: str) -> tuple[int, int]:
    """Split a ``"H-MM"`` key into ``(hour, minute)``. Raises ValueError on malformed keys."""
    hour, sep, minute = key.partition("-")
    if not sep:
        raise ValueError(f"malformed slot key: {key!r}")
    return int(hour), int(minute)
