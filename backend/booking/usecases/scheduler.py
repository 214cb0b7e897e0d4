"""Date-picker state for the booking form.

Every date change starts a new fetch generation. Responses that come back
for an older generation are dropped, so the slot list always belongs to the
latest selection no matter in which order the fetches complete.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Sequence

from ..domain.catalog import SLOT_CATALOG, Slot, enabled_slots
from ..domain.repositories import AppointmentRepository
from ..utils.time import Clock
from .availability import available_slots, unbooked_slots

logger = logging.getLogger(__name__)

SlotFetcher = Callable[[date], Awaitable[list[Slot]]]
SlotFallback = Callable[[date], list[Slot]]


class DateSelection:
    def __init__(
        self,
        fetch: SlotFetcher,
        *,
        fallback: SlotFallback | None = None,
        debounce: float = 0.0,
    ) -> None:
        self._fetch = fetch
        self._fallback = fallback or (lambda day: enabled_slots())
        self._debounce = debounce
        self._generation = 0
        self.selected_date: date | None = None
        self.selected_time: str | None = None
        self.slots: list[Slot] = []
        self.loading = False

    @classmethod
    def for_repository(
        cls,
        repo: AppointmentRepository,
        clock: Clock,
        *,
        catalog: Sequence[Slot] = SLOT_CATALOG,
        debounce: float = 0.0,
    ) -> "DateSelection":
        async def fetch(day: date) -> list[Slot]:
            return await available_slots(repo, selected_date=day, now=clock.now(), catalog=catalog)

        def fallback(day: date) -> list[Slot]:
            return unbooked_slots(day, clock.now(), catalog)

        return cls(fetch, fallback=fallback, debounce=debounce)

    @property
    def generation(self) -> int:
        return self._generation

    async def select_date(self, day: date | None) -> bool:
        """Select ``day`` and load its slots. Returns False when a newer selection superseded this one."""
        self._generation += 1
        generation = self._generation
        self.selected_date = day

        if day is None:
            self.slots = []
            self.selected_time = None
            self.loading = False
            return True

        self.loading = True
        if self._debounce > 0:
            await asyncio.sleep(self._debounce)
            if generation != self._generation:
                return False

        try:
            slots = await self._fetch(day)
        except Exception:
            logger.exception("loading available slots failed", extra={"date": day.isoformat()})
            slots = self._fallback(day)

        if generation != self._generation:
            logger.debug(
                "dropping stale slot response",
                extra={"date": day.isoformat(), "generation": generation, "latest": self._generation},
            )
            return False

        self._apply(slots)
        return True

    def _apply(self, slots: list[Slot]) -> None:
        self.slots = slots
        self.loading = False
        # A chosen time survives a date change only if the new date offers it.
        if self.selected_time is not None and self.selected_time not in {s.key for s in slots}:
            self.selected_time = None

    def select_time(self, key: str) -> bool:
        if self.loading or key not in {s.key for s in self.slots}:
            return False
        self.selected_time = key
        return True
