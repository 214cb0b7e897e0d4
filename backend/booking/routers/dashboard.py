import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_clock, get_session, require_staff
from ..domain.errors import InvalidTransitionError
from ..domain.query import DashboardQuery, ViewFilter
from ..infrastructure.repositories import SqlAlchemyAppointmentRepository
from ..schemas import AppointmentPage, AppointmentRead, AppointmentStatusUpdate, AppointmentUpdate
from ..usecases import appointments as appointment_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import Clock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/appointments", tags=["dashboard"])


def _audit(**kwargs: Any) -> None:
    try:
        emit_audit_log(initiator="staff", **kwargs)
    except RuntimeError:
        logger.exception("audit log failed", extra={"uid": kwargs.get("appointment_uid")})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")


@router.get("", response_model=AppointmentPage)
async def list_appointments(
    search: str = Query(default="", max_length=255),
    name_sort: bool = Query(default=False),
    date_sort: bool = Query(default=False),
    time_sort: bool = Query(default=False),
    status_sort: bool = Query(default=False),
    view: ViewFilter = Query(default=ViewFilter.ALL),
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
    staff: str = Depends(require_staff),
) -> AppointmentPage:
    repo = SqlAlchemyAppointmentRepository(session)
    query = DashboardQuery(
        search=search,
        name_sort=name_sort,
        date_sort=date_sort,
        time_sort=time_sort,
        status_sort=status_sort,
        view=view,
        page=page,
        page_size=page_size or settings.page_size,
    )
    now = clock.now()
    result = await appointment_usecase.list_dashboard(repo, query=query, today=now.date())
    return AppointmentPage.from_page(result, now=now)


@router.get("/{uid}", response_model=AppointmentRead)
async def get_appointment(
    uid: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    staff: str = Depends(require_staff),
) -> AppointmentRead:
    repo = SqlAlchemyAppointmentRepository(session)
    appointment = await appointment_usecase.get_appointment(repo, uid=uid)
    if appointment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment not found")
    return AppointmentRead.from_db(appointment=appointment, now=clock.now())


@router.patch("/{uid}/status", response_model=AppointmentRead)
async def change_status(
    payload: AppointmentStatusUpdate,
    uid: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    staff: str = Depends(require_staff),
) -> AppointmentRead:
    repo = SqlAlchemyAppointmentRepository(session)
    async with session.begin():
        try:
            row = await appointment_usecase.change_status(repo, uid=uid, status=payload.status)
        except InvalidTransitionError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        # Unknown uid: nothing is written, the caller still gets a 404.
        if row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment not found")
        appointment, previous = row
        if previous != appointment.status:
            _audit(
                action="appointment.status_changed",
                appointment_uid=appointment.uid,
                appointment_date=appointment.date.isoformat(),
                slot=appointment.time,
                actor=staff,
                status_from=previous,
                status_to=appointment.status,
            )

    return AppointmentRead.from_db(appointment=appointment, now=clock.now())


@router.patch("/{uid}", response_model=AppointmentRead)
async def update_appointment(
    payload: AppointmentUpdate,
    uid: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    staff: str = Depends(require_staff),
) -> AppointmentRead:
    repo = SqlAlchemyAppointmentRepository(session)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    async with session.begin():
        appointment = await appointment_usecase.update_appointment(repo, uid=uid, changes=changes)
        # Unknown uid: nothing is written, the caller still gets a 404.
        if appointment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment not found")
        _audit(
            action="appointment.updated",
            appointment_uid=appointment.uid,
            actor=staff,
            extra={"fields": sorted(changes)},
        )

    return AppointmentRead.from_db(appointment=appointment, now=clock.now())


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    uid: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    staff: str = Depends(require_staff),
) -> Response:
    repo = SqlAlchemyAppointmentRepository(session)
    async with session.begin():
        deleted = await appointment_usecase.delete_appointment(repo, uid=uid)
        # Deleting an unknown appointment is a no-op.
        if deleted is not None:
            _audit(
                action="appointment.deleted",
                appointment_uid=deleted.uid,
                appointment_date=deleted.date.isoformat(),
                slot=deleted.time,
                actor=staff,
                status_from=deleted.status,
            )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
