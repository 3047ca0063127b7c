"""
Listing submission assembler — platform-agnostic.

Builds the backend create/update/delete bodies from a validated wizard
state, and seeds a wizard state back from a persisted listing for edit
flows. All normalization of user text (price → cents, capacity →
integer, date + time → instant) happens here.

This module never imports platform-specific code.
"""

import logging
import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from listing_bot.config import settings
from listing_bot.core.address_normalizer import make_city_key
from listing_bot.core.listing_time import to_starts_at
from listing_bot.core.listing_types import (
    Coord,
    ListingKind,
    LocationPayload,
    ServicePhoto,
    WizardState,
)
from listing_bot.core.service_schedule import ServiceSchedule
from listing_bot.core.wizard_validation import parse_int_prefix, price_field_cents, validate_all
from listing_bot.errors import ListingNotReadyError, NotListingCreatorError

logger = logging.getLogger(__name__)

# Wizard kind → kind stored by the backend
BACKEND_KINDS: dict[ListingKind, str] = {
    ListingKind.EVENT_FREE: "free",
    ListingKind.EVENT_PAID: "paid",
    ListingKind.SERVICE: "service",
}
_KIND_FROM_BACKEND: dict[str, ListingKind] = {v: k for k, v in BACKEND_KINDS.items()}

_PRICE_PREFIX_RE = re.compile(r"\d+\.?\d*|\.\d+")
_CENT = Decimal("1")


# ── Price / capacity ─────────────────────────────────────────


def parse_price_to_cents(price_text: str) -> int | None:
    """
    "$20" → 2000, "19.99" → 1999, "1e2" → 10000, "0" → None.

    A field that is a plain number is read as-is. Otherwise everything
    but digits and "." is dropped and the leading decimal is parsed.
    Either way the amount is rounded half-up to whole cents.
    """
    whole = price_field_cents(price_text or "")
    if whole is not None:
        return whole
    cleaned = re.sub(r"[^\d.]", "", price_text or "")
    m = _PRICE_PREFIX_RE.match(cleaned)
    if not m:
        return None
    try:
        dollars = Decimal(m.group(0))
    except InvalidOperation:
        return None
    if not dollars.is_finite() or dollars <= 0:
        return None
    cents = int((dollars * 100).quantize(_CENT, rounding=ROUND_HALF_UP))
    return cents if cents > 0 else None


def cents_to_price_text(cents: int | float | str | None) -> str:
    """2000 → "20", 1999 → "19.99", 1950 → "19.5"; "" for missing/invalid."""
    if cents is None:
        return ""
    try:
        value = float(cents)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(value):
        return ""
    whole = max(0, round(value))
    dollars = (Decimal(whole) / 100).normalize()
    return format(dollars, "f")


def parse_capacity(capacity_text: str) -> int | None:
    """Positive integer capacity, or None for unlimited/invalid."""
    if not capacity_text or not capacity_text.strip():
        return None
    n = parse_int_prefix(capacity_text)
    return n if n is not None and n > 0 else None


# ── Emoji ────────────────────────────────────────────────────

_EMOJI_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"run|jog|sprint"), "🏃‍♂️"),
    (re.compile(r"walk|stroll"), "🚶‍♂️"),
    (re.compile(r"gym|workout|lift|barbell"), "🏋️‍♀️"),
    (re.compile(r"coffee|cafe|espresso|latte"), "☕️"),
    (re.compile(r"drink|beer|pub"), "🍺"),
    (re.compile(r"eat|food|pizza|lunch|dinner|bites"), "🍕"),
    (re.compile(r"study|learn|read"), "📚"),
    (re.compile(r"party|club|dance"), "🎉"),
    (re.compile(r"sleep|nap"), "🌙"),
    (re.compile(r"yoga|meditate|stretch"), "🧘‍♀️"),
    (re.compile(r"park|picnic"), "🌳"),
)
DEFAULT_EMOJI = "📍"


def text_to_emoji(title: str) -> str:
    """Pick a map-pin emoji from keywords in the title."""
    s = (title or "").lower()
    for pattern, emoji in _EMOJI_RULES:
        if pattern.search(s):
            return emoji
    return DEFAULT_EMOJI


# ── Location ─────────────────────────────────────────────────


def build_location_object(
    payload: LocationPayload,
    *,
    coord: Coord | None = None,
    selected_address: str = "",
    default_source: str = "user_typed",
) -> dict[str, Any]:
    """
    Wire form of a resolved location with a GeoJSON point.

    `coord` (the authoritative point) wins over the payload's own lat/lng.
    """
    lat = coord.lat if coord else payload.lat
    lng = coord.lng if coord else payload.lng

    loc = payload.model_dump(by_alias=True)
    loc.update(
        lat=lat,
        lng=lng,
        geo={"type": "Point", "coordinates": [lng, lat]},
        formattedAddress=selected_address or payload.formatted_address or "",
        placeId=payload.place_id or "",
        cityKey=payload.city_key or make_city_key(payload.city),
        source=payload.source or default_source,
    )
    return loc


# ── Assembly ─────────────────────────────────────────────────


def _listing_fields(
    state: WizardState,
    *,
    tz_name: str,
    default_source: str,
) -> dict[str, Any]:
    """Fields shared by create and update bodies."""
    if state.kind is None or state.location_payload is None:
        raise ListingNotReadyError("Pick a type and a place first.")

    price_cents: int | None = None
    if state.needs_price:
        price_cents = parse_price_to_cents(state.price_text)
        if price_cents is None:
            raise ListingNotReadyError("Enter a valid price.")

    capacity = parse_capacity(state.capacity_text) if state.kind == ListingKind.EVENT_FREE else None

    fields: dict[str, Any] = {
        "title": state.title.strip(),
        "description": state.description.strip(),
        "emoji": text_to_emoji(state.title),
        "kind": BACKEND_KINDS[state.kind],
        "priceCents": price_cents,
        "capacity": capacity,
        "timezone": tz_name,
        "startsAt": to_starts_at(state.date_iso, state.time24, tz_name),
        "date": state.date_iso.strip(),
        "time": state.time24.strip(),
        "location": build_location_object(
            state.location_payload,
            coord=state.coord,
            selected_address=state.selected_address,
            default_source=default_source,
        ),
    }

    if state.kind == ListingKind.SERVICE:
        fields["servicePhotos"] = [
            {"url": p.url, "key": p.key} for p in state.service_photos if not p.pending
        ]
        fields["serviceSchedule"] = state.service_schedule.model_dump(by_alias=True, mode="json")

    return fields


def _require_valid(state: WizardState, tz_name: str, now: datetime | None) -> None:
    err = validate_all(state, tz_name=tz_name, now=now)
    if err:
        raise ListingNotReadyError(err)


def assemble_create_payload(
    state: WizardState,
    *,
    actor_id: str,
    tz_name: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Body for POST /api/events/create-event.

    Raises ListingNotReadyError when the state does not pass validate_all.
    """
    tz = tz_name or settings.listing_timezone
    _require_valid(state, tz, now)

    body = _listing_fields(state, tz_name=tz, default_source="user_typed")
    body.update(
        creatorClerkId=actor_id,
        tags=[],
        visibility="public",
        status="active",
    )
    return body


def assemble_update_payload(
    state: WizardState,
    *,
    listing_id: str,
    actor_id: str,
    tz_name: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Body for PATCH /api/events/update-event.

    The backend reads either the `updates` object or the top-level
    fields, so both carry the same values.
    """
    tz = tz_name or settings.listing_timezone
    _require_valid(state, tz, now)

    fields = _listing_fields(state, tz_name=tz, default_source="user_edit")
    return {
        "_id": listing_id,
        "eventId": listing_id,
        "updates": dict(fields),
        **fields,
        "creatorClerkId": actor_id,
    }


def assemble_delete_payload(*, listing_id: str, actor_id: str) -> dict[str, Any]:
    """Body for POST /api/events/delete-event."""
    return {"_id": listing_id, "eventId": listing_id, "creatorClerkId": actor_id}


# ── Edit flow ────────────────────────────────────────────────


class EditableListing(BaseModel):
    """A persisted listing as returned by the backend (fields may be partial)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    title: str | None = None
    description: str | None = None
    emoji: str | None = None
    kind: str | None = None
    price_cents: int | float | str | None = Field(default=None, alias="priceCents")
    capacity: int | None = None
    date: str | None = None
    time: str | None = None
    timezone: str | None = None
    creator_clerk_id: str | None = Field(default=None, alias="creatorClerkId")
    location: dict[str, Any] | None = None
    service_photos: list[dict[str, Any]] = Field(default_factory=list, alias="servicePhotos")
    service_schedule: dict[str, Any] | None = Field(default=None, alias="serviceSchedule")


def ensure_creator(listing: EditableListing, actor_id: str | None) -> None:
    """Raise NotListingCreatorError unless `actor_id` created the listing."""
    if not actor_id or not listing.creator_clerk_id or listing.creator_clerk_id != actor_id:
        raise NotListingCreatorError(f"User {actor_id!r} is not the creator of {listing.id}")


def kind_from_backend(raw: str | None) -> ListingKind:
    """Backend kind ("free"/"paid"/"service") or wizard kind → ListingKind."""
    if raw in _KIND_FROM_BACKEND:
        return _KIND_FROM_BACKEND[raw]
    try:
        return ListingKind(raw)
    except ValueError:
        return ListingKind.EVENT_FREE


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        n = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            n = float(value)
        except ValueError:
            return None
    else:
        return None
    return n if math.isfinite(n) else None


def _seed_location(loc: dict[str, Any], lat: float, lng: float, formatted: str) -> LocationPayload | None:
    if not loc.get("city") or not loc.get("countryCode"):
        return None
    source = loc.get("source")
    data = {
        **loc,
        "lat": lat,
        "lng": lng,
        "formattedAddress": loc.get("formattedAddress") or loc.get("address") or formatted,
        "cityKey": loc.get("cityKey") or make_city_key(str(loc["city"])),
        "source": source if source in ("user_typed", "places_autocomplete", "reverse_geocode") else None,
    }
    try:
        return LocationPayload.model_validate(data)
    except ValidationError:
        logger.warning("Stored location could not be loaded: %s", loc)
        return None


def seed_state_from_listing(listing: EditableListing) -> WizardState:
    """
    Wizard state for editing a persisted listing.

    Never raises on partial records; whatever cannot be recovered stays
    empty and will be caught by validation.
    """
    kind = kind_from_backend(listing.kind)
    loc = listing.location or {}

    lat, lng = _to_number(loc.get("lat")), _to_number(loc.get("lng"))
    coord = Coord(lat=lat, lng=lng) if lat is not None and lng is not None else None
    formatted = str(loc.get("formattedAddress") or loc.get("address") or "").strip()

    price_text = ""
    if kind in (ListingKind.EVENT_PAID, ListingKind.SERVICE):
        cents = listing.price_cents
        if isinstance(cents, str):
            cents = _to_number(cents)
        price_text = cents_to_price_text(cents)

    capacity_text = ""
    if kind == ListingKind.EVENT_FREE and listing.capacity and listing.capacity > 0:
        capacity_text = str(listing.capacity)

    photos = [
        ServicePhoto(uri=str(p["url"]), url=str(p["url"]), key=p.get("key"))
        for p in listing.service_photos
        if p.get("url")
    ]

    schedule = ServiceSchedule()
    if listing.service_schedule:
        try:
            schedule = ServiceSchedule.model_validate(listing.service_schedule)
        except ValidationError:
            logger.warning("Stored service schedule for %s is invalid, using default", listing.id)

    return WizardState(
        kind=kind,
        title=listing.title or "",
        description=listing.description or "",
        date_iso=listing.date or "",
        time24=listing.time or "",
        query=formatted,
        selected_address=formatted,
        coord=coord,
        location_payload=_seed_location(loc, lat, lng, formatted) if coord else None,
        price_text=price_text,
        capacity_text=capacity_text if kind == ListingKind.EVENT_FREE else "",
        service_photos=photos if kind == ListingKind.SERVICE else [],
        service_schedule=schedule,
    )
