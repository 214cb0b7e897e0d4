from __future__ import annotations

from typing import Any, Protocol

from ..models import Appointment

FILTER_COLUMNS = frozenset({"date", "email", "status", "time", "uid"})


class AppointmentRepository(Protocol):
    async def list_by(self, column: str, value: Any) -> list[Appointment]: ...

    async def list_all(self) -> list[Appointment]: ...

    async def get(self, uid: str) -> Appointment | None: ...

    async def create(self, appointment: Appointment) -> Appointment: ...

    async def save(self, appointment: Appointment) -> Appointment: ...

    async def delete(self, appointment: Appointment) -> None: ...
