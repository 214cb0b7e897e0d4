import logging
from datetime import date, datetime
from typing import Sequence

from ..domain.catalog import SLOT_CATALOG, Slot, enabled_slots
from ..domain.repositories import AppointmentRepository
from ..domain.services import filter_available

logger = logging.getLogger(__name__)


def unbooked_slots(
    selected_date: date,
    now: datetime,
    catalog: Sequence[Slot] = SLOT_CATALOG,
) -> list[Slot]:
    """Slots offered for ``selected_date`` when nothing is known about its bookings."""
    return filter_available(enabled_slots(catalog), [], selected_date=selected_date, now=now)


async def available_slots(
    repo: AppointmentRepository,
    *,
    selected_date: date | None,
    now: datetime,
    catalog: Sequence[Slot] = SLOT_CATALOG,
) -> list[Slot]:
    if selected_date is None:
        return []

    candidates = enabled_slots(catalog)
    try:
        appointments = await repo.list_by("date", selected_date)
        slots = filter_available(candidates, appointments, selected_date=selected_date, now=now)
    except Exception:
        # Fail open on transport errors and unreadable records alike.
        logger.warning("availability fetch failed, treating %s as unbooked", selected_date, exc_info=True)
        slots = unbooked_slots(selected_date, now, catalog)

    logger.debug(
        "availability resolved",
        extra={"date": selected_date.isoformat(), "candidates": len(candidates), "available": len(slots)},
    )
    return slots
