from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_clock, get_session
from ..domain.dates import date_window
from ..infrastructure.repositories import SqlAlchemyAppointmentRepository
from ..schemas import DateWindowRead, SlotRead
from ..usecases import availability as availability_usecase
from ..utils.time import Clock

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[SlotRead])
async def list_available_slots(
    selected_date: Optional[date] = Query(default=None, alias="date", description="Local date (YYYY-MM-DD)"),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> list[SlotRead]:
    repo = SqlAlchemyAppointmentRepository(session)
    slots = await availability_usecase.available_slots(repo, selected_date=selected_date, now=clock.now())
    return [SlotRead.from_slot(slot) for slot in slots]


@router.get("/window", response_model=DateWindowRead)
async def get_booking_window(
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> DateWindowRead:
    window = date_window(clock.now(), cutoff_hour=settings.cutoff_hour, days=settings.window_days)
    return DateWindowRead.from_window(window)
