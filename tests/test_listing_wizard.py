import pytest

from fakes import AUSTIN_ADDRESS, CHICAGO, NY, austin_geocoder, austin_places
from listing_bot.core.listing_payload import EditableListing, assemble_create_payload
from listing_bot.core.listing_types import ListingKind, ServicePhoto, StepKey
from listing_bot.core.listing_wizard import ListingWizard
from listing_bot.core.location_resolver import LocationResolver
from listing_bot.core.service_schedule import ServiceSchedule, ServiceScheduleType, ServiceSlot
from listing_bot.core.wizard_reducer import AddServicePhotos, SetKind
from listing_bot.core.wizard_validation import KIND_REQUIRED, START_NOT_FUTURE, TITLE_REQUIRED
from listing_bot.errors import NotListingCreatorError


def _wizard(tz_name: str = NY) -> ListingWizard:
    resolver = LocationResolver(austin_places(), austin_geocoder(), debounce_seconds=0)
    return ListingWizard(resolver, tz_name=tz_name)


def _fill_basics(wizard: ListingWizard, now) -> None:
    wizard.set_field("title", "Jazz Night")
    wizard.set_field("description", "Live trio on the patio")
    assert wizard.go_next(now)


def test_new_wizard_is_kind_picker():
    wizard = _wizard()
    assert wizard.steps == [StepKey.KIND]
    assert wizard.current_step == StepKey.KIND
    assert wizard.is_first and wizard.is_last
    assert wizard.progress() == "Step 1 of 1"


def test_cannot_leave_kind_without_choice():
    wizard = _wizard()
    assert wizard.go_next() is False
    assert wizard.state.err == KIND_REQUIRED
    assert wizard.index == 0


def test_next_and_back(now):
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.EVENT_FREE))
    assert wizard.progress() == "Step 1 of 6"
    assert wizard.go_next(now)
    assert wizard.current_step == StepKey.BASICS

    assert wizard.go_next(now) is False
    assert wizard.state.err == TITLE_REQUIRED
    wizard.go_back()
    assert wizard.current_step == StepKey.KIND
    assert wizard.state.err is None
    wizard.go_back()
    assert wizard.index == 0


def test_when_step_rejects_past_start(now):
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.EVENT_PAID))
    wizard.go_next(now)
    _fill_basics(wizard, now)
    wizard.set_field("date_iso", "2026-10-18")
    wizard.set_field("time24", "19:00")
    assert wizard.go_next(now) is False
    assert wizard.state.err == START_NOT_FUTURE
    assert wizard.current_step == StepKey.WHEN


def test_kind_switch_clamps_cursor():
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.EVENT_FREE))
    wizard.index = 4  # capacity
    wizard.dispatch(SetKind(ListingKind.EVENT_PAID))
    assert wizard.current_step == StepKey.PRICE

    wizard.index = 3  # where
    wizard.dispatch(SetKind(ListingKind.SERVICE))
    assert wizard.current_step == StepKey.WHERE

    wizard.index = 6  # review
    wizard.dispatch(SetKind(ListingKind.EVENT_FREE))
    assert wizard.current_step == StepKey.REVIEW


@pytest.mark.asyncio
async def test_paid_event_end_to_end(now):
    wizard = _wizard(CHICAGO)
    wizard.dispatch(SetKind(ListingKind.EVENT_PAID))
    assert wizard.go_next(now)
    _fill_basics(wizard, now)

    wizard.set_field("date_iso", "2026-10-24")
    wizard.set_field("time24", "19:00")
    assert wizard.go_next(now)
    assert wizard.current_step == StepKey.WHERE

    # leaving "where" without a location fails
    assert wizard.go_next(now) is False

    wizard.resolver.on_query_change("Austin")
    suggestions = await wizard.resolver.wait_for_suggestions()
    await wizard.resolver.pick_suggestion(suggestions[0])
    assert wizard.go_next(now)
    assert wizard.state.selected_address == AUSTIN_ADDRESS
    assert wizard.state.location_payload.city == "Austin"

    wizard.set_field("price_text", "20")
    assert wizard.go_next(now)
    assert wizard.current_step == StepKey.REVIEW
    assert wizard.is_last
    # next on the last step stays put
    assert wizard.go_next(now)
    assert wizard.current_step == StepKey.REVIEW

    assert wizard.validate_for_submit(now) is None
    body = assemble_create_payload(wizard.state, actor_id="42", tz_name=wizard.tz_name, now=now)
    assert body["priceCents"] == 2000
    assert body["location"]["source"] == "places_autocomplete"


@pytest.mark.asyncio
async def test_pin_drop_syncs_into_state(now):
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.EVENT_FREE))
    wizard.index = 3
    await wizard.resolver.on_map_picked(30.2649, -97.7444)
    assert wizard.go_next(now)
    assert wizard.current_step == StepKey.CAPACITY
    assert wizard.state.location_payload.source == "reverse_geocode"


def test_service_schedule_sets_first_start(now):
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.SERVICE))
    wizard.go_next(now)
    _fill_basics(wizard, now)
    assert wizard.current_step == StepKey.SERVICE_WHEN

    assert wizard.go_next(now)
    # Monday 08:00 in New York → today's 09:00 opening
    assert (wizard.state.date_iso, wizard.state.time24) == ("2026-10-19", "09:00")
    assert wizard.current_step == StepKey.WHERE


def test_service_slots_set_first_start(now):
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.SERVICE))
    wizard.index = 2
    wizard.set_field("service_schedule", ServiceSchedule(
        type=ServiceScheduleType.SLOTS,
        slots=[
            ServiceSlot(date_iso="2026-10-22", time24="15:00"),
            ServiceSlot(date_iso="2026-10-21", time24="11:00", duration_min=45),
        ],
    ))
    assert wizard.go_next(now)
    assert (wizard.state.date_iso, wizard.state.time24) == ("2026-10-21", "11:00")


def test_invalid_schedule_blocks(now):
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.SERVICE))
    wizard.index = 2
    wizard.set_field("service_schedule", ServiceSchedule(days=[]))
    assert wizard.go_next(now) is False
    assert wizard.state.err == "Pick at least 1 day."


def test_photo_overflow_message_survives_dispatch():
    wizard = _wizard()
    wizard.dispatch(SetKind(ListingKind.SERVICE))
    wizard.dispatch(AddServicePhotos([ServicePhoto(uri=f"p{i}") for i in range(7)]))
    assert len(wizard.state.service_photos) == 6
    assert wizard.state.err is not None


def test_submit_flags():
    wizard = _wizard()
    wizard.begin_submit()
    assert wizard.state.submitting is True
    wizard.end_submit("Failed to create")
    assert wizard.state.submitting is False
    assert wizard.state.err == "Failed to create"


def test_for_edit_seeds_state_and_resolver():
    record = EditableListing.model_validate({
        "_id": "ev1",
        "title": "Jazz Night",
        "description": "Live trio",
        "kind": "paid",
        "priceCents": 2500,
        "date": "2026-10-24",
        "time": "19:00",
        "timezone": CHICAGO,
        "creatorClerkId": "42",
        "location": {
            "lat": 30.2672,
            "lng": -97.7431,
            "formattedAddress": AUSTIN_ADDRESS,
            "city": "Austin",
            "countryCode": "US",
        },
    })
    resolver = LocationResolver(austin_places(), austin_geocoder(), debounce_seconds=0)
    wizard = ListingWizard.for_edit(record, resolver, "42")

    assert wizard.is_edit
    assert wizard.listing_id == "ev1"
    assert wizard.tz_name == CHICAGO
    assert wizard.state.price_text == "25"
    assert resolver.location_payload == wizard.state.location_payload
    assert resolver.selected_address == AUSTIN_ADDRESS
    assert wizard.current_step == StepKey.KIND
    assert wizard.steps[-1] == StepKey.REVIEW


def test_for_edit_rejects_non_creator():
    record = EditableListing.model_validate({"_id": "ev1", "title": "Jazz Night", "creatorClerkId": "42"})
    resolver = LocationResolver(austin_places(), austin_geocoder(), debounce_seconds=0)
    with pytest.raises(NotListingCreatorError):
        ListingWizard.for_edit(record, resolver, "intruder")
    with pytest.raises(NotListingCreatorError):
        ListingWizard.for_edit(record, resolver, None)
    assert resolver.location_payload is None
