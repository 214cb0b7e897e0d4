from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Protocol, Sequence

from ..models import AppointmentStatus
from .catalog import Slot

INACTIVE_STATUSES = frozenset({AppointmentStatus.DONE, AppointmentStatus.CANCELLED})
DEFAULT_CAPACITY = 2
LIMITED_CAPACITY_TODAY = 1


class BookedSlot(Protocol):
    """The fields of an appointment that the availability rules read."""

    date: date
    time: str
    status: AppointmentStatus


@dataclass(frozen=True)
class SlotSnapshot:
    slot: Slot
    is_today: bool
    active: int


def is_active(status: AppointmentStatus | str) -> bool:
    """Anything but DONE or CANCELLED holds its slot, unknown values included."""
    return str(status) not in INACTIVE_STATUSES


def slot_capacity(slot: Slot, *, is_today: bool) -> int:
    if slot.capacity_limited and is_today:
        return LIMITED_CAPACITY_TODAY
    return DEFAULT_CAPACITY


def has_capacity(snapshot: SlotSnapshot) -> bool:
    return snapshot.active < slot_capacity(snapshot.slot, is_today=snapshot.is_today)


def is_slot_past(slot: Slot, selected_date: date, now: datetime) -> bool:
    """True only for today's slots whose start is strictly before ``now``."""
    if selected_date != now.date():
        return False
    starts_at = datetime.combine(selected_date, slot.starts_at, tzinfo=now.tzinfo)
    return starts_at < now


def count_active(appointments: Iterable[BookedSlot], selected_date: date) -> Counter[str]:
    return Counter(
        appointment.time
        for appointment in appointments
        if appointment.date == selected_date and is_active(appointment.status)
    )


def filter_available(
    slots: Sequence[Slot],
    appointments: Iterable[BookedSlot],
    *,
    selected_date: date,
    now: datetime,
) -> list[Slot]:
    """
    Pure filtering: drops past slots for today, then slots whose active
    bookings reached capacity. Catalog order is preserved.
    """
    is_today = selected_date == now.date()
    active = count_active(appointments, selected_date)
    available: list[Slot] = []
    for slot in slots:
        if is_slot_past(slot, selected_date, now):
            continue
        snapshot = SlotSnapshot(slot=slot, is_today=is_today, active=active[slot.key])
        if has_capacity(snapshot):
            available.append(slot)
    return available
