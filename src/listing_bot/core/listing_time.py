"""
Date/time helpers for listings — platform-agnostic.

The wizard stores the start as two strings (date_iso "YYYY-MM-DD" and
time24 "HH:MM") interpreted in the listing timezone. These helpers
compose them into an aware instant and parse what users type in chat.
"""

import logging
import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DATE_ISO_FORMAT = "%Y-%m-%d"
TIME24_FORMAT = "%H:%M"

_TIME_RE = re.compile(r"^(\d{1,2})[:.](\d{2})$")


def get_zone(name: str) -> ZoneInfo | timezone:
    """Resolve an IANA zone name, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return timezone.utc


def compose_start(date_iso: str, time24: str, tz_name: str) -> datetime | None:
    """Combine date + time in the listing timezone. None if either part is missing/invalid."""
    if not date_iso or not time24:
        return None
    try:
        d = datetime.strptime(date_iso.strip(), DATE_ISO_FORMAT).date()
        t = datetime.strptime(time24.strip(), TIME24_FORMAT).time()
    except ValueError:
        return None
    return datetime.combine(d, t, tzinfo=get_zone(tz_name))


def to_starts_at(date_iso: str, time24: str, tz_name: str) -> str | None:
    """UTC ISO-8601 instant (millisecond precision, "Z" suffix) or None."""
    start = compose_start(date_iso, time24, tz_name)
    if start is None:
        return None
    utc = start.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_future_start(
    date_iso: str,
    time24: str,
    tz_name: str,
    now: datetime | None = None,
) -> bool:
    """True only when the composed start is strictly after `now`."""
    start = compose_start(date_iso, time24, tz_name)
    if start is None:
        return False
    current = now or datetime.now(timezone.utc)
    return start > current


def local_today(tz_name: str, now: datetime | None = None) -> date:
    """Today's date in the listing timezone."""
    current = now or datetime.now(timezone.utc)
    return current.astimezone(get_zone(tz_name)).date()


# ── Chat input parsing ───────────────────────────────────────


def parse_date_input(text: str) -> str | None:
    """
    Parse a user-typed date into YYYY-MM-DD.

    Accepts YYYY-MM-DD, DD.MM.YYYY or DD/MM/YYYY.
    Returns None if parsing fails.
    """
    text = text.strip()
    for fmt in (DATE_ISO_FORMAT, "%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).strftime(DATE_ISO_FORMAT)
        except ValueError:
            continue
    return None


def parse_time_input(text: str) -> str | None:
    """Parse "9:00", "09:00" or "21.30" into HH:MM."""
    m = _TIME_RE.match(text.strip())
    if not m:
        return None
    hh, mm = int(m.group(1)), int(m.group(2))
    if hh > 23 or mm > 59:
        return None
    return f"{hh:02d}:{mm:02d}"


# ── Display ──────────────────────────────────────────────────


def format_time_12h(hh: int, mm: int) -> str:
    ampm = "PM" if hh >= 12 else "AM"
    h12 = ((hh + 11) % 12) + 1
    return f"{h12}:{mm:02d} {ampm}"


def format_time24_12h(time24: str) -> str:
    """HH:MM → "9:05 AM", or "—" if unparseable."""
    parsed = parse_time_input(time24) if time24 else None
    if parsed is None:
        return "—"
    hh, mm = (int(x) for x in parsed.split(":"))
    return format_time_12h(hh, mm)


def format_date_label(date_iso: str) -> str:
    """YYYY-MM-DD → "Tue, Oct 20", or "—"."""
    try:
        d = datetime.strptime(date_iso, DATE_ISO_FORMAT)
    except ValueError:
        return "—"
    return d.strftime("%a, %b %d").replace(" 0", " ")
