import pytest

from fakes import AUSTIN_ADDRESS, AUSTIN_LAT, AUSTIN_LNG, NY, austin_payload
from listing_bot.core.listing_types import Coord, ListingKind, ServicePhoto, StepKey, WizardState
from listing_bot.core import wizard_validation as v
from listing_bot.core.wizard_validation import validate_all, validate_step


def _complete(kind: ListingKind = ListingKind.EVENT_PAID, **overrides) -> WizardState:
    data = dict(
        kind=kind,
        title="Jazz Night",
        description="Live trio on the patio",
        date_iso="2026-10-24",
        time24="19:00",
        query=AUSTIN_ADDRESS,
        selected_address=AUSTIN_ADDRESS,
        coord=Coord(lat=AUSTIN_LAT, lng=AUSTIN_LNG),
        location_payload=austin_payload(),
        price_text="20",
    )
    data.update(overrides)
    return WizardState(**data)


def test_kind_required():
    assert validate_step(WizardState(), StepKey.KIND, tz_name=NY) == v.KIND_REQUIRED
    assert validate_step(_complete(), StepKey.KIND, tz_name=NY) is None


@pytest.mark.parametrize(
    ("title", "description", "expected"),
    [
        ("", "desc", v.TITLE_REQUIRED),
        ("   ", "desc", v.TITLE_REQUIRED),
        ("Title", "  ", v.DESCRIPTION_REQUIRED),
        ("Title", "desc", None),
    ],
)
def test_basics(title, description, expected):
    state = _complete(title=title, description=description)
    assert validate_step(state, StepKey.BASICS, tz_name=NY) == expected


def test_when_requires_date_then_time(now):
    assert validate_step(_complete(date_iso=""), StepKey.WHEN, tz_name=NY, now=now) == v.DATE_REQUIRED
    assert validate_step(_complete(time24=""), StepKey.WHEN, tz_name=NY, now=now) == v.TIME_REQUIRED


def test_when_must_be_strictly_in_the_future(now):
    # now is 08:00 in New York
    at_now = _complete(date_iso="2026-10-19", time24="08:00")
    just_after = _complete(date_iso="2026-10-19", time24="08:01")
    yesterday = _complete(date_iso="2026-10-18", time24="23:00")
    assert validate_step(at_now, StepKey.WHEN, tz_name=NY, now=now) == v.START_NOT_FUTURE
    assert validate_step(yesterday, StepKey.WHEN, tz_name=NY, now=now) == v.START_NOT_FUTURE
    assert validate_step(just_after, StepKey.WHEN, tz_name=NY, now=now) is None


def test_when_uses_listing_timezone(now):
    # 07:30 is past in New York (08:00) ...
    state = _complete(date_iso="2026-10-19", time24="07:30")
    assert validate_step(state, StepKey.WHEN, tz_name=NY, now=now) == v.START_NOT_FUTURE
    # ... but still ahead in Los Angeles (05:00)
    assert validate_step(state, StepKey.WHEN, tz_name="America/Los_Angeles", now=now) is None


def test_where_rules_in_order():
    assert validate_step(_complete(coord=None), StepKey.WHERE) == v.LOCATION_REQUIRED
    assert validate_step(_complete(selected_address=" "), StepKey.WHERE) == v.ADDRESS_REQUIRED
    assert validate_step(_complete(location_payload=None), StepKey.WHERE) == v.CITY_COUNTRY_REQUIRED
    assert validate_step(_complete(), StepKey.WHERE) is None


@pytest.mark.parametrize(
    ("price", "expected"),
    [
        ("", v.PRICE_REQUIRED),
        ("  ", v.PRICE_REQUIRED),
        ("abc", v.PRICE_INVALID),
        ("0", v.PRICE_INVALID),
        ("-5", v.PRICE_INVALID),
        ("$20", v.PRICE_INVALID),
        ("20", None),
        ("19.99", None),
        (" 7.5 ", None),
        ("1e2", None),
        ("5e-1", None),
        ("0.001", v.PRICE_INVALID),
    ],
)
def test_price(price, expected):
    assert validate_step(_complete(price_text=price), StepKey.PRICE) == expected


@pytest.mark.parametrize(
    ("capacity", "expected"),
    [
        ("", None),
        ("   ", None),
        ("12", None),
        ("12 people", None),
        ("0", v.CAPACITY_INVALID),
        ("-3", v.CAPACITY_INVALID),
        ("lots", v.CAPACITY_INVALID),
    ],
)
def test_capacity_is_optional(capacity, expected):
    state = _complete(ListingKind.EVENT_FREE, price_text="", capacity_text=capacity)
    assert validate_step(state, StepKey.CAPACITY) == expected


def test_service_photos_required():
    state = _complete(ListingKind.SERVICE)
    assert validate_step(state, StepKey.SERVICE_PHOTOS) == v.PHOTOS_REQUIRED
    state = _complete(ListingKind.SERVICE, service_photos=[ServicePhoto(uri="a")])
    assert validate_step(state, StepKey.SERVICE_PHOTOS) is None


def test_unknown_step_passes():
    assert validate_step(WizardState(), "bogus") is None


def test_review_step_has_no_rules():
    assert validate_step(WizardState(), StepKey.REVIEW) is None


# ── validate_all ─────────────────────────────────────────────


def test_validate_all_fixed_order(now):
    assert validate_all(WizardState(), tz_name=NY, now=now) == v.KIND_REQUIRED
    assert validate_all(WizardState(kind=ListingKind.EVENT_PAID), tz_name=NY, now=now) == v.TITLE_REQUIRED
    assert validate_all(_complete(date_iso=""), tz_name=NY, now=now) == v.DATE_REQUIRED
    assert validate_all(_complete(coord=None, price_text=""), tz_name=NY, now=now) == v.LOCATION_REQUIRED


def test_validate_all_paid_needs_price(now):
    assert validate_all(_complete(price_text=""), tz_name=NY, now=now) == v.PRICE_REQUIRED
    assert validate_all(_complete(), tz_name=NY, now=now) is None


def test_validate_all_free_with_skipped_capacity(now):
    state = _complete(ListingKind.EVENT_FREE, price_text="", capacity_text="")
    assert validate_all(state, tz_name=NY, now=now) is None


def test_validate_all_service_needs_photos_last(now):
    state = _complete(ListingKind.SERVICE)
    assert validate_all(state, tz_name=NY, now=now) == v.PHOTOS_REQUIRED
    state = _complete(ListingKind.SERVICE, price_text="", service_photos=[])
    assert validate_all(state, tz_name=NY, now=now) == v.PRICE_REQUIRED


def test_parse_number_is_strict():
    assert v.parse_number("1e2") == 100.0
    assert v.parse_number(".5") == 0.5
    assert v.parse_number("1,000") is None
    assert v.parse_number("inf") is None


def test_parse_int_prefix():
    assert v.parse_int_prefix("12 people") == 12
    assert v.parse_int_prefix("  7") == 7
    assert v.parse_int_prefix("x7") is None
