import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_client_profile, get_clock, get_session
from ..domain.errors import (
    ConsentRequiredError,
    DateNotEligibleError,
    DuplicateAppointmentError,
    ProfileRequiredError,
    SlotNotAvailableError,
)
from ..domain.profile import ClientProfile
from ..infrastructure.repositories import SqlAlchemyAppointmentRepository
from ..schemas import AppointmentCreate, AppointmentRead
from ..usecases import appointments as appointment_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import Clock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["appointments"])


@router.post("/appointments", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    session: AsyncSession = Depends(get_session),
    profile: ClientProfile = Depends(get_client_profile),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> AppointmentRead:
    repo = SqlAlchemyAppointmentRepository(session)
    now = clock.now()
    async with session.begin():
        try:
            appointment = await appointment_usecase.create_appointment(
                repo,
                profile=profile,
                day=payload.date,
                time=payload.time,
                reason=payload.reason,
                accessories=payload.accessories,
                outfits=payload.outfits,
                people=payload.people,
                mode=payload.mode,
                confirmed=payload.confirmed,
                accepted_terms=payload.accepted_terms,
                now=now,
                cutoff_hour=settings.cutoff_hour,
                window_days=settings.window_days,
            )
        except ProfileRequiredError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="client profile required")
        except ConsentRequiredError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="terms must be accepted")
        except DateNotEligibleError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="date not bookable")
        except SlotNotAvailableError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="time slot not bookable")
        except DuplicateAppointmentError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="appointment already exists")

        try:
            emit_audit_log(
                action="appointment.created",
                initiator="client",
                appointment_uid=appointment.uid,
                appointment_date=appointment.date.isoformat(),
                slot=appointment.time,
                actor=profile.email,
                status_to=appointment.status,
            )
        except RuntimeError:
            logger.exception("audit log failed", extra={"uid": appointment.uid})
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")

    return AppointmentRead.from_db(appointment=appointment, now=now)
