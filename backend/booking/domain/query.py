"""Dashboard state and the shaping of the appointment collection for staff review.

The dashboard keeps one immutable ``DashboardQuery``; every UI event goes
through ``reduce`` so the today/tomorrow/all views stay mutually exclusive and
page resets happen in one place. ``shape`` applies a query to a collection:
view filter, search, sort, then pagination.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import StrEnum
from typing import Iterable, Sequence, TypeVar, Union

from ..models import Appointment
from .catalog import get_slot, parse_slot_key
from .lifecycle import STATUS_ORDER

DEFAULT_PAGE_SIZE = 10

T = TypeVar("T", bound=Appointment)


class ViewFilter(StrEnum):
    ALL = "all"
    TODAY = "today"
    TOMORROW = "tomorrow"


class SortField(StrEnum):
    NAME = "name"
    DATE = "date"
    TIME = "time"
    STATUS = "status"


@dataclass(frozen=True)
class DashboardQuery:
    search: str = ""
    name_sort: bool = False
    date_sort: bool = False
    time_sort: bool = False
    status_sort: bool = False
    view: ViewFilter = ViewFilter.ALL
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def active_sorts(self) -> list[SortField]:
        flags = {
            SortField.NAME: self.name_sort,
            SortField.DATE: self.date_sort,
            SortField.TIME: self.time_sort,
            SortField.STATUS: self.status_sort,
        }
        return [field for field, on in flags.items() if on]


@dataclass(frozen=True)
class SetSearch:
    term: str


@dataclass(frozen=True)
class ToggleSort:
    field: SortField


@dataclass(frozen=True)
class SelectView:
    view: ViewFilter


@dataclass(frozen=True)
class NextPage:
    pass


@dataclass(frozen=True)
class PrevPage:
    pass


@dataclass(frozen=True)
class FirstPage:
    pass


DashboardAction = Union[SetSearch, ToggleSort, SelectView, NextPage, PrevPage, FirstPage]


def reduce(query: DashboardQuery, action: DashboardAction) -> DashboardQuery:
    if isinstance(action, SetSearch):
        return replace(query, search=action.term, page=1)
    if isinstance(action, ToggleSort):
        attr = f"{action.field.value}_sort"
        return replace(query, **{attr: not getattr(query, attr)})
    if isinstance(action, SelectView):
        view = action.view
        # Picking the active today/tomorrow view again goes back to all dates.
        if view != ViewFilter.ALL and view == query.view:
            view = ViewFilter.ALL
        return replace(query, view=view, page=1)
    if isinstance(action, NextPage):
        return replace(query, page=query.page + 1)
    if isinstance(action, PrevPage):
        return replace(query, page=max(query.page - 1, 1))
    if isinstance(action, FirstPage):
        return replace(query, page=1)
    raise TypeError(f"unknown dashboard action: {action!r}")


@dataclass(frozen=True)
class QueryPage:
    items: list[Appointment]
    page: int
    page_size: int
    total_count: int
    total_pages: int


def _slot_minutes(key: str) -> int:
    slot = get_slot(key)
    if slot is not None:
        return slot.hour * 60 + slot.minute
    try:
        hour, minute = parse_slot_key(key)
    except ValueError:
        return -1
    return hour * 60 + minute


def _status_rank(appointment: Appointment) -> int:
    try:
        return STATUS_ORDER.index(appointment.status)
    except ValueError:
        return len(STATUS_ORDER)


_SORT_KEYS = {
    SortField.NAME: lambda a: a.name.casefold(),
    SortField.DATE: lambda a: a.date,
    SortField.TIME: lambda a: _slot_minutes(a.time),
    SortField.STATUS: _status_rank,
}


def matches_view(appointment: Appointment, view: ViewFilter, today: date) -> bool:
    if view == ViewFilter.TODAY:
        return appointment.date == today
    if view == ViewFilter.TOMORROW:
        return appointment.date == today + timedelta(days=1)
    return True


def matches_search(appointment: Appointment, term: str) -> bool:
    needle = term.strip().casefold()
    if not needle:
        return True
    haystack = (appointment.name, appointment.phone, appointment.email)
    return any(needle in (value or "").casefold() for value in haystack)


def sort_appointments(appointments: Sequence[T], query: DashboardQuery) -> list[T]:
    fields = query.active_sorts()
    if not fields:
        return sorted(
            appointments,
            key=lambda a: (a.date, _slot_minutes(a.time)),
            reverse=True,
        )
    ordered = list(appointments)
    # Stable sorts applied lowest priority first compose lexicographically.
    for field in reversed(fields):
        ordered.sort(key=_SORT_KEYS[field])
    return ordered


def shape(appointments: Iterable[T], query: DashboardQuery, today: date) -> QueryPage:
    page_size = max(query.page_size, 1)
    page = max(query.page, 1)
    selected = [
        a
        for a in appointments
        if matches_view(a, query.view, today) and matches_search(a, query.search)
    ]
    ordered = sort_appointments(selected, query)
    total = len(ordered)
    start = (page - 1) * page_size
    return QueryPage(
        items=ordered[start : start + page_size],
        page=page,
        page_size=page_size,
        total_count=total,
        total_pages=max(1, math.ceil(total / page_size)),
    )
