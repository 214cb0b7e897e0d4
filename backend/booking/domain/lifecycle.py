from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from ..models import AppointmentStatus
from .catalog import get_slot, parse_slot_key
from .errors import InvalidTransitionError
from .services import BookedSlot

S = AppointmentStatus

TRANSITIONS: Mapping[AppointmentStatus, frozenset[AppointmentStatus]] = MappingProxyType(
    {
        S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
        S.CONFIRMED: frozenset({S.DONE, S.CANCELLED, S.OVERDUE}),
        S.OVERDUE: frozenset({S.CONFIRMED, S.DONE, S.CANCELLED}),
        S.DONE: frozenset(),
        S.CANCELLED: frozenset(),
    }
)

# Dashboard ordering for the status sort.
STATUS_ORDER: tuple[AppointmentStatus, ...] = (S.PENDING, S.CONFIRMED, S.OVERDUE, S.DONE, S.CANCELLED)


def initial_status(confirmed: bool) -> AppointmentStatus:
    return S.CONFIRMED if confirmed else S.PENDING


def is_terminal(status: AppointmentStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in TRANSITIONS[current]


def next_status(current: AppointmentStatus, requested: AppointmentStatus) -> AppointmentStatus | None:
    """
    Validate a staff-initiated status change.
    Returns the status to persist, or None when ``requested`` equals ``current``
    (nothing to write). Raises InvalidTransitionError otherwise.
    """
    if current == requested:
        return None
    if not can_transition(current, requested):
        raise InvalidTransitionError(current.value, requested.value)
    return requested


def scheduled_at(appointment: BookedSlot, tzinfo=None) -> datetime:
    slot = get_slot(appointment.time)
    if slot is not None:
        hour, minute = slot.hour, slot.minute
    else:
        hour, minute = parse_slot_key(appointment.time)
    return datetime(
        appointment.date.year,
        appointment.date.month,
        appointment.date.day,
        hour,
        minute,
        tzinfo=tzinfo,
    )


def is_overdue(appointment: BookedSlot, now: datetime) -> bool:
    """Read-time flag: an unfinished booking whose slot has already started."""
    if appointment.status not in (S.PENDING, S.CONFIRMED):
        return False
    return scheduled_at(appointment, now.tzinfo) < now
