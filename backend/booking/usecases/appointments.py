import logging
from datetime import date, datetime
from typing import Any, Mapping

from ..domain.catalog import get_slot
from ..domain.dates import date_window
from ..domain.errors import (
    ConsentRequiredError,
    DateNotEligibleError,
    ProfileRequiredError,
    SlotNotAvailableError,
)
from ..domain.lifecycle import initial_status, next_status
from ..domain.profile import ClientProfile
from ..domain.query import DashboardQuery, QueryPage, shape
from ..domain.repositories import AppointmentRepository
from ..domain.services import is_slot_past
from ..models import Appointment, AppointmentMode, AppointmentStatus
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "phone", "reason", "accessories", "outfits", "people", "mode"})


def make_uid(day: date, time: str, email: str) -> str:
    return f"{day.isoformat()}-{time}-{email}".lower()


async def create_appointment(
    repo: AppointmentRepository,
    *,
    profile: ClientProfile | None,
    day: date,
    time: str,
    accepted_terms: bool,
    confirmed: bool,
    now: datetime,
    reason: str = "",
    accessories: str = "",
    outfits: int | None = None,
    people: int | None = None,
    mode: AppointmentMode = AppointmentMode.IN_PERSON,
    cutoff_hour: int = 18,
    window_days: int = 180,
) -> Appointment:
    if profile is None:
        raise ProfileRequiredError("client profile not loaded")
    if not accepted_terms:
        raise ConsentRequiredError("terms must be accepted")

    window = date_window(now, cutoff_hour=cutoff_hour, days=window_days)
    if not window.contains(day):
        raise DateNotEligibleError(f"{day.isoformat()} is not bookable")

    slot = get_slot(time)
    if slot is None or not slot.enabled:
        raise SlotNotAvailableError(f"unknown or disabled slot {time!r}")
    if is_slot_past(slot, day, now):
        raise SlotNotAvailableError(f"slot {time} has already started")

    # Capacity is not re-checked on submit.
    email = profile.email.lower()
    stamp = utc_now_naive()
    appointment = Appointment(
        uid=make_uid(day, slot.key, email),
        name=profile.name,
        phone=profile.phone,
        email=email,
        date=day,
        time=slot.key,
        reason=reason,
        accessories=accessories,
        outfits=outfits or 1,
        people=people or 1,
        mode=mode,
        status=initial_status(confirmed),
        created_at=stamp,
        updated_at=stamp,
    )
    created = await repo.create(appointment)
    logger.info("appointment booked", extra={"uid": created.uid, "status": created.status.value})
    return created


async def get_appointment(repo: AppointmentRepository, *, uid: str) -> Appointment | None:
    return await repo.get(uid)


async def change_status(
    repo: AppointmentRepository,
    *,
    uid: str,
    status: AppointmentStatus,
) -> tuple[Appointment, AppointmentStatus] | None:
    """
    Apply a staff status change. Returns the appointment and its previous
    status, or None when no appointment has this uid.
    """
    appointment = await repo.get(uid)
    if appointment is None:
        return None
    previous = AppointmentStatus(appointment.status)
    target = next_status(previous, status)
    if target is None:
        return appointment, previous

    appointment.status = target
    appointment.updated_at = utc_now_naive()
    updated = await repo.save(appointment)
    return updated, previous


async def update_appointment(
    repo: AppointmentRepository,
    *,
    uid: str,
    changes: Mapping[str, Any],
) -> Appointment | None:
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"fields cannot be edited: {', '.join(sorted(unknown))}")
    appointment = await repo.get(uid)
    if appointment is None:
        return None
    for field, value in changes.items():
        setattr(appointment, field, value)
    appointment.updated_at = utc_now_naive()
    return await repo.save(appointment)


async def delete_appointment(repo: AppointmentRepository, *, uid: str) -> Appointment | None:
    appointment = await repo.get(uid)
    if appointment is None:
        return None
    await repo.delete(appointment)
    return appointment


async def list_dashboard(
    repo: AppointmentRepository,
    *,
    query: DashboardQuery,
    today: date,
) -> QueryPage:
    return shape(await repo.list_all(), query, today)
