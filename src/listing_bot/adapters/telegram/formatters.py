"""
Telegram-specific message formatters — HTML output.

Core modules return models and plain strings; every piece of Telegram
HTML markup is produced here. User-typed text is escaped.
"""

from html import escape

from listing_bot.core.listing_payload import parse_capacity, parse_price_to_cents, text_to_emoji
from listing_bot.core.listing_types import ListingKind, WizardState
from listing_bot.core.listing_time import format_date_label, format_time24_12h
from listing_bot.core.service_schedule import ServiceSchedule, ServiceScheduleType

KIND_TITLES: dict[ListingKind, str] = {
    ListingKind.EVENT_FREE: "Free event",
    ListingKind.EVENT_PAID: "Paid event",
    ListingKind.SERVICE: "Service",
}


def format_price(cents: int | None) -> str:
    if cents is None:
        return "—"
    return f"${cents // 100}.{cents % 100:02d}"


def format_schedule(schedule: ServiceSchedule) -> str:
    """One-line (or one line per slot) description of a service schedule."""
    if schedule.type == ServiceScheduleType.SLOTS:
        if not schedule.slots:
            return "no slots yet"
        return "\n".join(
            f"  • {format_date_label(s.date_iso)} {format_time24_12h(s.time24)} ({s.duration_min} min)"
            for s in schedule.slots
        )

    days = ", ".join(d.capitalize() for d in schedule.days) or "—"
    label = "By appointment" if schedule.type == ServiceScheduleType.APPOINTMENT else "Weekly hours"
    return (
        f"{label}: {days}, "
        f"{format_time24_12h(schedule.start24)}–{format_time24_12h(schedule.end24)}"
    )


def format_listing_review(state: WizardState, tz_name: str) -> str:
    """Review card shown before publishing."""
    kind_title = KIND_TITLES.get(state.kind, "—") if state.kind else "—"
    lines = [
        f"{text_to_emoji(state.title)} <b>{escape(state.title.strip() or '—')}</b>",
        f"<i>{kind_title}</i>",
        "",
        escape(state.description.strip()) or "—",
        "",
    ]

    if state.kind == ListingKind.SERVICE:
        lines.append(f"🗓 {escape(format_schedule(state.service_schedule))}")
    else:
        lines.append(
            f"🗓 {format_date_label(state.date_iso)}, {format_time24_12h(state.time24)} "
            f"({escape(tz_name)})"
        )

    lines.append(f"📍 {escape(state.selected_address or '—')}")
    payload = state.location_payload
    if payload is not None:
        region = ", ".join(p for p in (payload.city, payload.admin1, payload.country_code) if p)
        lines.append(f"    {escape(region)}")

    if state.needs_price:
        lines.append(f"💰 {format_price(parse_price_to_cents(state.price_text))}")
    if state.kind == ListingKind.EVENT_FREE:
        capacity = parse_capacity(state.capacity_text)
        lines.append(f"👥 {capacity if capacity else 'Unlimited'}")
    if state.kind == ListingKind.SERVICE:
        lines.append(f"🖼 {len(state.service_photos)} photo(s)")

    return "\n".join(lines)
