import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .domain.catalog import Slot
from .domain.dates import DateWindow
from .domain.lifecycle import is_overdue
from .domain.query import QueryPage
from .models import Appointment, AppointmentMode, AppointmentStatus


class SlotRead(BaseModel):
    key: str
    label: str
    capacity_limited: bool

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotRead":
        return cls(key=slot.key, label=slot.label, capacity_limited=slot.capacity_limited)


class DateWindowRead(BaseModel):
    earliest: dt.date
    latest: dt.date

    @classmethod
    def from_window(cls, window: DateWindow) -> "DateWindowRead":
        return cls(earliest=window.earliest, latest=window.latest)


class AppointmentCreate(BaseModel):
    date: dt.date
    time: str = Field(min_length=3, max_length=5, examples=["8-00"])
    reason: str = Field(default="", max_length=2000)
    accessories: str = Field(default="", max_length=2000)
    outfits: Optional[int] = Field(default=None, ge=1)
    people: Optional[int] = Field(default=None, ge=1)
    mode: AppointmentMode = AppointmentMode.IN_PERSON
    confirmed: bool = False
    accepted_terms: bool = False


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    reason: Optional[str] = Field(default=None, max_length=2000)
    accessories: Optional[str] = Field(default=None, max_length=2000)
    outfits: Optional[int] = Field(default=None, ge=1)
    people: Optional[int] = Field(default=None, ge=1)
    mode: Optional[AppointmentMode] = None


class AppointmentRead(BaseModel):
    uid: str
    name: str
    phone: str
    email: str
    date: dt.date
    time: str
    reason: str
    accessories: str
    outfits: int
    people: int
    mode: AppointmentMode
    status: AppointmentStatus
    overdue: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_db(cls, *, appointment: Appointment, now: Optional[dt.datetime] = None) -> "AppointmentRead":
        return cls(
            uid=appointment.uid,
            name=appointment.name,
            phone=appointment.phone,
            email=appointment.email,
            date=appointment.date,
            time=appointment.time,
            reason=appointment.reason,
            accessories=appointment.accessories,
            outfits=appointment.outfits,
            people=appointment.people,
            mode=appointment.mode,
            status=appointment.status,
            overdue=is_overdue(appointment, now) if now is not None else False,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


class AppointmentPage(BaseModel):
    items: list[AppointmentRead]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def from_page(cls, page: QueryPage, *, now: dt.datetime) -> "AppointmentPage":
        return cls(
            items=[AppointmentRead.from_db(appointment=a, now=now) for a in page.items],
            page=page.page,
            page_size=page.page_size,
            total_count=page.total_count,
            total_pages=page.total_pages,
        )
