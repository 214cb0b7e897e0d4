from __future__ import annotations

import datetime as dt
from enum import StrEnum

from sqlalchemy import CheckConstraint, Enum, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Date, DateTime, Integer, String, Text


class Base(DeclarativeBase):
    pass


class AppointmentStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DONE = "done"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


class AppointmentMode(StrEnum):
    IN_PERSON = "in_person"
    VIRTUAL = "virtual"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("people >= 1", name="chk_appointments_people"),
        CheckConstraint("outfits >= 1", name="chk_appointments_outfits"),
        Index("idx_appointments_date", "date"),
        Index("idx_appointments_email", "email"),
    )

    uid: Mapped[str] = mapped_column(String(320), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    accessories: Mapped[str] = mapped_column(Text, nullable=False, default="")
    outfits: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    people: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    mode: Mapped[AppointmentMode] = mapped_column(
        Enum(
            AppointmentMode,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=AppointmentMode.IN_PERSON,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
