from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import AvailabilityFetchError, DuplicateAppointmentError
from ..domain.repositories import FILTER_COLUMNS, AppointmentRepository
from ..models import Appointment

logger = logging.getLogger(__name__)


class SqlAlchemyAppointmentRepository(AppointmentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_by(self, column: str, value: Any) -> list[Appointment]:
        if column not in FILTER_COLUMNS:
            raise ValueError(f"cannot filter appointments by {column!r}")
        stmt = select(Appointment).where(getattr(Appointment, column) == value)
        try:
            rows = await self.session.scalars(stmt)
            return list(rows.all())
        # LookupError: a stored enum value the model does not know about.
        except (SQLAlchemyError, LookupError, ValueError) as exc:
            logger.warning("appointment query failed", extra={"column": column, "value": str(value)})
            raise AvailabilityFetchError(f"failed to fetch appointments by {column}") from exc

    async def list_all(self) -> list[Appointment]:
        rows = await self.session.scalars(select(Appointment))
        return list(rows.all())

    async def get(self, uid: str) -> Appointment | None:
        return await self.session.get(Appointment, uid)

    async def create(self, appointment: Appointment) -> Appointment:
        self.session.add(appointment)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateAppointmentError(f"appointment {appointment.uid} already exists") from exc
        return appointment

    async def save(self, appointment: Appointment) -> Appointment:
        self.session.add(appointment)
        await self.session.flush()
        return appointment

    async def delete(self, appointment: Appointment) -> None:
        await self.session.delete(appointment)
        await self.session.flush()
