"""
Scheduling sub-model for bookable services.

Services are not a single start time: they are either booked by
appointment inside a weekly window, offered on a weekly availability
window, or sold as specific slots. The wizard still needs one concrete
start for the listing, which `first_service_start` derives.
"""

import enum
import re
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from listing_bot.core.listing_time import (
    DATE_ISO_FORMAT,
    compose_start,
    local_today,
    parse_date_input,
    parse_time_input,
)


class ServiceScheduleType(str, enum.Enum):
    APPOINTMENT = "appointment"     # customer requests, provider confirms
    AVAILABILITY = "availability"   # recurring weekly window
    SLOTS = "slots"                 # explicit bookable sessions


WEEKDAYS: tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
DEFAULT_DAYS: list[str] = ["mon", "tue", "wed", "thu", "fri"]

_WINDOW_RE = re.compile(r"^\s*(\S+)\s*[-–]\s*(\S+)\s*$")


class ServiceSlot(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date_iso: str = Field(alias="dateISO")
    time24: str
    duration_min: int = 120


class ServiceSchedule(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ServiceScheduleType = ServiceScheduleType.APPOINTMENT
    days: list[str] = Field(default_factory=lambda: list(DEFAULT_DAYS))
    start24: str = "09:00"
    end24: str = "18:00"
    slots: list[ServiceSlot] = Field(default_factory=list)


# ── Validation ───────────────────────────────────────────────


def validate_service_schedule(
    schedule: ServiceSchedule,
    tz_name: str,
    now: datetime | None = None,
) -> str | None:
    """Return a user-facing error for an unusable schedule, or None."""
    if schedule.type == ServiceScheduleType.SLOTS:
        if not schedule.slots:
            return "Add at least 1 bookable slot."
        for slot in schedule.slots:
            start = compose_start(slot.date_iso, slot.time24, tz_name)
            if start is None:
                return "Each slot needs a date and a time."
            if start <= (now or datetime.now(timezone.utc)):
                return "Slots must be in the future."
            if slot.duration_min <= 0:
                return "Slot duration must be > 0 minutes."
        return None

    if not schedule.days:
        return "Pick at least 1 day."
    if any(d not in WEEKDAYS for d in schedule.days):
        return "Unknown day in schedule."
    start = parse_time_input(schedule.start24)
    end = parse_time_input(schedule.end24)
    if start is None or end is None:
        return "Set a start and end time."
    if start >= end:
        return "End time must be after start time."
    return None


def first_service_start(
    schedule: ServiceSchedule,
    tz_name: str,
    now: datetime | None = None,
) -> tuple[str, str] | None:
    """
    First bookable start as (date_iso, time24).

    Slots: the earliest slot still in the future.
    Appointment / availability: the next listed weekday whose window
    start is still in the future (looking at most one week ahead).
    """
    current = now or datetime.now(timezone.utc)

    if schedule.type == ServiceScheduleType.SLOTS:
        upcoming = []
        for slot in schedule.slots:
            start = compose_start(slot.date_iso, slot.time24, tz_name)
            if start is not None and start > current:
                upcoming.append((start, slot))
        if not upcoming:
            return None
        _, first = min(upcoming, key=lambda pair: pair[0])
        return first.date_iso, first.time24

    start24 = parse_time_input(schedule.start24)
    if start24 is None:
        return None
    today = local_today(tz_name, current)
    for offset in range(8):
        day = today + timedelta(days=offset)
        if WEEKDAYS[day.weekday()] not in schedule.days:
            continue
        date_iso = day.strftime(DATE_ISO_FORMAT)
        start = compose_start(date_iso, start24, tz_name)
        if start is not None and start > current:
            return date_iso, start24
    return None


# ── Chat input parsing ───────────────────────────────────────


def parse_days_input(text: str) -> list[str] | None:
    """
    Parse "mon-fri", "sat,sun" or "mon wed fri" into weekday keys.

    Ranges wrap around the week ("fri-mon"). Returns None on any
    unknown token.
    """
    tokens = [t for t in re.split(r"[,\s]+", text.strip().lower()) if t]
    if not tokens:
        return None
    days: list[str] = []
    for token in tokens:
        if "-" in token:
            first, _, last = token.partition("-")
            first, last = first[:3], last[:3]
            if first not in WEEKDAYS or last not in WEEKDAYS:
                return None
            i, j = WEEKDAYS.index(first), WEEKDAYS.index(last)
            span = (j - i) % 7
            days.extend(WEEKDAYS[(i + k) % 7] for k in range(span + 1))
        else:
            key = token[:3]
            if key not in WEEKDAYS:
                return None
            days.append(key)
    # keep week order, drop duplicates
    return [d for d in WEEKDAYS if d in days]


def parse_window_input(text: str) -> tuple[str, str] | None:
    """Parse "09:00-18:00" into ("09:00", "18:00")."""
    m = _WINDOW_RE.match(text)
    if not m:
        return None
    start, end = parse_time_input(m.group(1)), parse_time_input(m.group(2))
    if start is None or end is None:
        return None
    return start, end


def parse_slot_line(text: str) -> ServiceSlot | None:
    """
    Parse one slot line: "<date> <time> [duration_min]".

    Example: "2026-10-21 14:00 90".
    """
    parts = text.split()
    if len(parts) not in (2, 3):
        return None
    date_iso = parse_date_input(parts[0])
    time24 = parse_time_input(parts[1])
    if date_iso is None or time24 is None:
        return None
    duration = 120
    if len(parts) == 3:
        if not parts[2].isdigit():
            return None
        duration = int(parts[2])
    return ServiceSlot(date_iso=date_iso, time24=time24, duration_min=duration)
