"""
Per-step and whole-state validation for the listing wizard.

`validate_step` gates the "Next" action of one step; rules are evaluated
for that step alone. `validate_all` is the final gate before submission
and must run even if every step was validated during navigation, since
a later kind switch can change which fields are required.
"""

import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from listing_bot.config import settings
from listing_bot.core.listing_time import is_future_start
from listing_bot.core.listing_types import ListingKind, StepKey, WizardState
from listing_bot.core.service_schedule import validate_service_schedule

# JS-style Number() for the price field: plain decimal with optional exponent
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")

# ── Messages ─────────────────────────────────────────────────

KIND_REQUIRED = "Pick a type to continue."
TITLE_REQUIRED = "Title is required."
DESCRIPTION_REQUIRED = "Description is required."
DATE_REQUIRED = "Date is required."
TIME_REQUIRED = "Time is required."
START_NOT_FUTURE = "Event must be in the future."
LOCATION_REQUIRED = "Location is required."
ADDRESS_REQUIRED = "Please select a place so address is set."
CITY_COUNTRY_REQUIRED = "Please pick a place so city/country are available."
PRICE_REQUIRED = "Price is required."
PRICE_INVALID = "Enter a valid price (> 0)."
CAPACITY_INVALID = "Capacity must be > 0 (or leave empty)."
PHOTOS_REQUIRED = "Upload at least 1 service photo."


def parse_number(text: str) -> float | None:
    """Strict numeric parse of a whole field (no currency symbols)."""
    raw = text.strip()
    if not _NUMBER_RE.match(raw):
        return None
    value = float(raw)
    return value if math.isfinite(value) else None


def price_field_cents(text: str) -> int | None:
    """
    Whole-field price → cents, rounded half-up ("1e2" → 10000).

    None unless the field is a number worth at least one cent.
    """
    if parse_number(text) is None:
        return None
    try:
        cents = (Decimal(text.strip()) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    return int(cents) if cents > 0 else None


def parse_int_prefix(text: str) -> int | None:
    """Leading integer of a string ("12 people" → 12), like JS parseInt."""
    m = _INT_PREFIX_RE.match(text)
    return int(m.group(1)) if m else None


def validate_step(
    state: WizardState,
    step: StepKey | str,
    *,
    tz_name: str | None = None,
    now: datetime | None = None,
) -> str | None:
    """Return the first error message for `step`, or None when it may be left."""
    tz = tz_name or settings.listing_timezone
    try:
        step = StepKey(step)
    except ValueError:
        return None

    if step == StepKey.KIND:
        if state.kind is None:
            return KIND_REQUIRED

    elif step == StepKey.BASICS:
        if not state.title.strip():
            return TITLE_REQUIRED
        if not state.description.strip():
            return DESCRIPTION_REQUIRED

    elif step == StepKey.WHEN:
        if not state.date_iso:
            return DATE_REQUIRED
        if not state.time24:
            return TIME_REQUIRED
        if not is_future_start(state.date_iso, state.time24, tz, now):
            return START_NOT_FUTURE

    elif step == StepKey.SERVICE_WHEN:
        return validate_service_schedule(state.service_schedule, tz, now)

    elif step == StepKey.WHERE:
        if state.coord is None:
            return LOCATION_REQUIRED
        if not state.selected_address.strip():
            return ADDRESS_REQUIRED
        payload = state.location_payload
        if payload is None or not payload.country_code or not payload.city:
            return CITY_COUNTRY_REQUIRED

    elif step == StepKey.PRICE:
        if not state.price_text.strip():
            return PRICE_REQUIRED
        if price_field_cents(state.price_text) is None:
            return PRICE_INVALID

    elif step == StepKey.CAPACITY:
        # Optional: empty means unlimited
        if not state.capacity_text.strip():
            return None
        n = parse_int_prefix(state.capacity_text)
        if n is None or n <= 0:
            return CAPACITY_INVALID

    elif step == StepKey.SERVICE_PHOTOS:
        if not state.service_photos:
            return PHOTOS_REQUIRED

    return None


def validate_all(
    state: WizardState,
    *,
    tz_name: str | None = None,
    now: datetime | None = None,
) -> str | None:
    """
    Final gate before submission.

    Fixed order, first error wins:
      kind → basics → when → where → price (paid/service) → servicePhotos (service)
    """
    steps = [StepKey.KIND, StepKey.BASICS, StepKey.WHEN, StepKey.WHERE]
    if state.kind in (ListingKind.EVENT_PAID, ListingKind.SERVICE):
        steps.append(StepKey.PRICE)
    if state.kind == ListingKind.SERVICE:
        steps.append(StepKey.SERVICE_PHOTOS)

    for step in steps:
        err = validate_step(state, step, tz_name=tz_name, now=now)
        if err:
            return err
    return None
