from datetime import date, datetime, timedelta
from typing import Any, cast

import pytest
from booking.config import Settings
from booking.domain.query import ViewFilter
from booking.models import Appointment, AppointmentMode, AppointmentStatus
from booking.routers import dashboard as router
from booking.schemas import AppointmentStatusUpdate, AppointmentUpdate
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 11, 0)
STAFF = "front-desk@example.com"


class FixedClock:
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


class DummySession:
    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


class FakeAppointmentRepo:
    def __init__(self, appointments: list[Appointment]) -> None:
        self.items = {a.uid: a for a in appointments}
        self.saved: list[Appointment] = []

    async def list_all(self) -> list[Appointment]:
        return list(self.items.values())

    async def get(self, uid: str) -> Appointment | None:
        return self.items.get(uid)

    async def save(self, appointment: Appointment) -> Appointment:
        self.saved.append(appointment)
        return appointment

    async def delete(self, appointment: Appointment) -> None:
        del self.items[appointment.uid]


def _appointment(name: str, day: date, time: str, status: AppointmentStatus) -> Appointment:
    email = f"{name.lower()}@example.com"
    return Appointment(
        uid=f"{day.isoformat()}-{time}-{email}",
        name=name,
        phone="555-0100",
        email=email,
        date=day,
        time=time,
        reason="",
        accessories="",
        outfits=1,
        people=1,
        mode=AppointmentMode.VIRTUAL,
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def pending() -> Appointment:
    return _appointment("Rosa", TODAY, "9-20", AppointmentStatus.PENDING)


@pytest.fixture
def repo(monkeypatch: pytest.MonkeyPatch, pending: Appointment) -> FakeAppointmentRepo:
    fake = FakeAppointmentRepo(
        [
            pending,
            _appointment("Tomas", TODAY + timedelta(days=1), "10-00", AppointmentStatus.CONFIRMED),
            _appointment("Ines", TODAY + timedelta(days=3), "14-00", AppointmentStatus.DONE),
        ]
    )
    monkeypatch.setattr(router, "SqlAlchemyAppointmentRepository", lambda s: fake)  # type: ignore[assignment]
    return fake


@pytest.fixture
def audit_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_emit(**kwargs: Any) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(router, "emit_audit_log", fake_emit)
    return calls


def _session() -> AsyncSession:
    return cast(AsyncSession, DummySession())


@pytest.mark.asyncio
async def test_list_appointments_applies_query(repo: FakeAppointmentRepo) -> None:
    result = await router.list_appointments(
        search="",
        name_sort=True,
        date_sort=False,
        time_sort=False,
        status_sort=False,
        view=ViewFilter.ALL,
        page=1,
        page_size=2,
        session=_session(),
        clock=FixedClock(NOW),
        settings=Settings(),
        staff=STAFF,
    )
    assert [item.name for item in result.items] == ["Ines", "Rosa"]
    assert result.total_count == 3
    assert result.total_pages == 2
    rosa = result.items[1]
    assert rosa.status == AppointmentStatus.PENDING
    assert rosa.overdue is True


@pytest.mark.asyncio
async def test_list_appointments_uses_configured_page_size(repo: FakeAppointmentRepo) -> None:
    result = await router.list_appointments(
        search="tomas",
        name_sort=False,
        date_sort=False,
        time_sort=False,
        status_sort=False,
        view=ViewFilter.TOMORROW,
        page=1,
        page_size=None,
        session=_session(),
        clock=FixedClock(NOW),
        settings=Settings(page_size=25),
        staff=STAFF,
    )
    assert [item.name for item in result.items] == ["Tomas"]
    assert result.page_size == 25


@pytest.mark.asyncio
async def test_get_missing_appointment_returns_404(repo: FakeAppointmentRepo) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await router.get_appointment(uid="missing", session=_session(), clock=FixedClock(NOW), staff=STAFF)
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_change_status_emits_audit(
    repo: FakeAppointmentRepo, pending: Appointment, audit_calls: list[dict[str, Any]]
) -> None:
    result = await router.change_status(
        payload=AppointmentStatusUpdate(status=AppointmentStatus.CONFIRMED),
        uid=pending.uid,
        session=_session(),
        clock=FixedClock(NOW),
        staff=STAFF,
    )
    assert result.status == AppointmentStatus.CONFIRMED
    assert repo.saved == [pending]
    assert len(audit_calls) == 1
    assert audit_calls[0]["action"] == "appointment.status_changed"
    assert audit_calls[0]["initiator"] == "staff"
    assert audit_calls[0]["status_from"] == AppointmentStatus.PENDING
    assert audit_calls[0]["status_to"] == AppointmentStatus.CONFIRMED


@pytest.mark.asyncio
async def test_change_status_to_same_value_is_silent(
    repo: FakeAppointmentRepo, pending: Appointment, audit_calls: list[dict[str, Any]]
) -> None:
    await router.change_status(
        payload=AppointmentStatusUpdate(status=AppointmentStatus.PENDING),
        uid=pending.uid,
        session=_session(),
        clock=FixedClock(NOW),
        staff=STAFF,
    )
    assert repo.saved == []
    assert audit_calls == []


@pytest.mark.asyncio
async def test_illegal_transition_returns_409(
    repo: FakeAppointmentRepo, pending: Appointment, audit_calls: list[dict[str, Any]]
) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await router.change_status(
            payload=AppointmentStatusUpdate(status=AppointmentStatus.DONE),
            uid=pending.uid,
            session=_session(),
            clock=FixedClock(NOW),
            staff=STAFF,
        )
    assert excinfo.value.status_code == 409
    assert audit_calls == []


@pytest.mark.asyncio
async def test_change_status_of_missing_appointment_returns_404(
    repo: FakeAppointmentRepo, audit_calls: list[dict[str, Any]]
) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await router.change_status(
            payload=AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED),
            uid="missing",
            session=_session(),
            clock=FixedClock(NOW),
            staff=STAFF,
        )
    assert excinfo.value.status_code == 404
    assert repo.saved == []
    assert audit_calls == []


@pytest.mark.asyncio
async def test_update_missing_appointment_writes_nothing(
    repo: FakeAppointmentRepo, audit_calls: list[dict[str, Any]]
) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await router.update_appointment(
            payload=AppointmentUpdate(people=2),
            uid="missing",
            session=_session(),
            clock=FixedClock(NOW),
            staff=STAFF,
        )
    assert excinfo.value.status_code == 404
    assert repo.saved == []
    assert audit_calls == []


@pytest.mark.asyncio
async def test_status_change_audit_failure_returns_500(
    repo: FakeAppointmentRepo, pending: Appointment, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_emit(**kwargs: Any) -> None:
        raise RuntimeError("fail log")

    monkeypatch.setattr(router, "emit_audit_log", failing_emit)
    with pytest.raises(HTTPException) as excinfo:
        await router.change_status(
            payload=AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED),
            uid=pending.uid,
            session=_session(),
            clock=FixedClock(NOW),
            staff=STAFF,
        )
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_update_appointment_reports_changed_fields(
    repo: FakeAppointmentRepo, pending: Appointment, audit_calls: list[dict[str, Any]]
) -> None:
    result = await router.update_appointment(
        payload=AppointmentUpdate(people=4, accessories="gloves"),
        uid=pending.uid,
        session=_session(),
        clock=FixedClock(NOW),
        staff=STAFF,
    )
    assert (result.people, result.accessories) == (4, "gloves")
    assert audit_calls[0]["action"] == "appointment.updated"
    assert audit_calls[0]["extra"] == {"fields": ["accessories", "people"]}


@pytest.mark.asyncio
async def test_delete_appointment(
    repo: FakeAppointmentRepo, pending: Appointment, audit_calls: list[dict[str, Any]]
) -> None:
    response = await router.delete_appointment(uid=pending.uid, session=_session(), staff=STAFF)
    assert response.status_code == 204
    assert pending.uid not in repo.items
    assert audit_calls[0]["action"] == "appointment.deleted"


@pytest.mark.asyncio
async def test_delete_missing_appointment_is_a_no_op(
    repo: FakeAppointmentRepo, audit_calls: list[dict[str, Any]]
) -> None:
    response = await router.delete_appointment(uid="missing", session=_session(), staff=STAFF)
    assert response.status_code == 204
    assert audit_calls == []
