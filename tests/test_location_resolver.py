import asyncio

import pytest

from fakes import (
    AUSTIN_ADDRESS,
    AUSTIN_LAT,
    AUSTIN_LNG,
    OCEAN_COMPONENTS,
    FakeGeocoder,
    austin_geocoder,
    austin_places,
)
from listing_bot.core import location_resolver as r
from listing_bot.core.gateways import PlaceDetails, ReverseGeocodeResult
from listing_bot.core.listing_types import AddressComponent, Coord, StepKey, Suggestion, WizardState
from listing_bot.core.location_resolver import LocationResolver
from listing_bot.core.wizard_validation import CITY_COUNTRY_REQUIRED, validate_step
from listing_bot.errors import GatewayError

AUSTIN = Suggestion(id="place-austin", main="Austin", secondary="TX, USA")


def _resolver(places=None, geocoder=None, debounce: float = 0.0) -> LocationResolver:
    return LocationResolver(
        places or austin_places(),
        geocoder or austin_geocoder(),
        debounce_seconds=debounce,
    )


# ── Search ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_debounce_only_queries_last_text():
    places = austin_places()
    resolver = _resolver(places, debounce=0.05)
    for text in ("A", "Au", "Aus", "Austin"):
        resolver.on_query_change(text)
    suggestions = await resolver.wait_for_suggestions()
    assert places.autocomplete_calls == ["Austin"]
    assert [s.id for s in suggestions] == ["place-austin", "place-austin-mn"]
    assert resolver.loading_suggestions is False


@pytest.mark.asyncio
async def test_query_is_trimmed_and_blank_query_skipped():
    places = austin_places()
    resolver = _resolver(places)
    resolver.on_query_change("   ")
    assert await resolver.wait_for_suggestions() == []
    resolver.on_query_change("  Austin  ")
    await resolver.wait_for_suggestions()
    assert places.autocomplete_calls == ["Austin"]


@pytest.mark.asyncio
async def test_typing_clears_previous_selection():
    resolver = _resolver()
    await resolver.pick_suggestion(AUSTIN)
    assert resolver.location_payload is not None

    resolver.on_query_change("Dallas")
    assert resolver.selected_address == ""
    assert resolver.location_payload is None
    await resolver.wait_for_suggestions()


@pytest.mark.asyncio
async def test_autocomplete_failure_is_recorded():
    places = austin_places()
    places.error = GatewayError("timeout")
    resolver = _resolver(places)
    resolver.on_query_change("Austin")
    assert await resolver.wait_for_suggestions() == []
    assert resolver.err == r.SUGGESTIONS_FAILED
    assert resolver.loc_loading is False


@pytest.mark.asyncio
async def test_clear_query_resets_location():
    resolver = _resolver()
    await resolver.pick_suggestion(AUSTIN)
    resolver.clear_query()
    snap = resolver.snapshot()
    assert snap.query == snap.selected_address == ""
    assert snap.coord is None and snap.location_payload is None
    assert snap.suggestions == []


# ── Pick ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pick_suggestion_resolves_payload():
    places = austin_places()
    resolver = _resolver(places)
    resolver.on_query_change("Austin")
    await resolver.wait_for_suggestions()

    loc = await resolver.pick_suggestion(AUSTIN)

    assert loc is not None
    assert loc.source == "places_autocomplete"
    assert loc.place_id == "place-austin"
    assert (loc.city, loc.country_code, loc.city_key) == ("Austin", "US", "austin")
    assert resolver.coord == Coord(lat=AUSTIN_LAT, lng=AUSTIN_LNG)
    assert resolver.selected_address == resolver.query == AUSTIN_ADDRESS
    assert resolver.suggestions == []
    assert resolver.err is None
    assert places.details_calls == ["place-austin"]


@pytest.mark.asyncio
async def test_selected_address_does_not_reopen_suggestions():
    places = austin_places()
    resolver = _resolver(places)
    await resolver.pick_suggestion(AUSTIN)
    # the query now equals the selection: no new lookup
    await resolver._run_autocomplete(resolver._search_seq)
    assert places.autocomplete_calls == []


@pytest.mark.asyncio
async def test_pick_without_coordinates():
    places = austin_places()
    places.details["nowhere"] = PlaceDetails(coord=None, formatted_address="Nowhere")
    resolver = _resolver(places)
    assert await resolver.pick_suggestion(Suggestion(id="nowhere", main="Nowhere")) is None
    assert resolver.err == r.PLACE_NO_COORDINATES
    assert resolver.location_payload is None


@pytest.mark.asyncio
async def test_pick_without_country():
    places = austin_places()
    places.details["sea"] = PlaceDetails(
        coord=Coord(lat=25.0, lng=-90.0),
        formatted_address="Gulf of Mexico",
        address_components=[AddressComponent.model_validate(c) for c in OCEAN_COMPONENTS],
    )
    resolver = _resolver(places)
    assert await resolver.pick_suggestion(Suggestion(id="sea", main="Gulf of Mexico")) is None
    assert resolver.err == r.PLACE_NO_CITY
    assert resolver.location_payload is None


@pytest.mark.asyncio
async def test_pick_failure_is_recorded():
    places = austin_places()
    places.error = GatewayError("HTTP 500", status_code=500)
    resolver = _resolver(places)
    assert await resolver.pick_suggestion(AUSTIN) is None
    assert resolver.err == r.PLACE_FAILED
    assert resolver.loc_loading is False


# ── Pin drop ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pin_drop_resolves_payload():
    geocoder = austin_geocoder()
    resolver = _resolver(geocoder=geocoder)
    loc = await resolver.on_map_picked(30.2649, -97.7444)
    assert loc is not None
    assert loc.source == "reverse_geocode"
    assert (loc.lat, loc.lng) == (30.2649, -97.7444)
    assert resolver.selected_address == "200 Congress Ave, Austin, TX 78701, USA"
    assert geocoder.calls == [(30.2649, -97.7444)]


@pytest.mark.asyncio
async def test_pin_without_country_fails_where_step():
    geocoder = FakeGeocoder(ReverseGeocodeResult(
        formatted_address="Gulf of Mexico",
        address_components=[AddressComponent.model_validate(c) for c in OCEAN_COMPONENTS],
    ))
    resolver = _resolver(geocoder=geocoder)
    assert await resolver.on_map_picked(25.0, -90.0) is None
    assert resolver.location_payload is None
    assert resolver.coord == Coord(lat=25.0, lng=-90.0)
    assert resolver.err == r.PIN_NO_CITY

    state = WizardState(
        coord=resolver.coord,
        selected_address=resolver.selected_address,
        location_payload=resolver.location_payload,
    )
    assert validate_step(state, StepKey.WHERE) == CITY_COUNTRY_REQUIRED


@pytest.mark.asyncio
async def test_pin_with_no_address():
    resolver = _resolver(geocoder=FakeGeocoder(None))
    assert await resolver.on_map_picked(0.0, 0.0) is None
    assert resolver.selected_address == r.DROPPED_PIN_NO_ADDRESS_LABEL
    assert resolver.err == r.PIN_NO_ADDRESS


@pytest.mark.asyncio
async def test_pin_failure_is_recorded():
    geocoder = austin_geocoder()
    geocoder.error = GatewayError("request_error")
    resolver = _resolver(geocoder=geocoder)
    assert await resolver.on_map_picked(30.0, -97.0) is None
    assert resolver.err == r.PIN_FAILED
    assert resolver.selected_address == r.DROPPED_PIN_LABEL


# ── Ordering ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stale_place_details_are_discarded():
    places = austin_places()
    places.delays["place-austin"] = 0.05
    resolver = _resolver(places)

    slow_pick = asyncio.create_task(resolver.pick_suggestion(AUSTIN))
    await asyncio.sleep(0.01)
    assert resolver.loc_loading is True

    pin = await resolver.on_map_picked(30.2649, -97.7444)
    stale = await slow_pick

    assert stale is None
    assert pin is not None
    assert resolver.location_payload.source == "reverse_geocode"
    assert resolver.selected_address == "200 Congress Ave, Austin, TX 78701, USA"
    assert resolver.loc_loading is False


@pytest.mark.asyncio
async def test_clear_during_pick_discards_result():
    places = austin_places()
    places.delays["place-austin"] = 0.05
    resolver = _resolver(places)

    pick = asyncio.create_task(resolver.pick_suggestion(AUSTIN))
    await asyncio.sleep(0.01)
    resolver.clear_query()

    assert await pick is None
    assert resolver.coord is None
    assert resolver.location_payload is None


@pytest.mark.asyncio
async def test_seed_preloads_location():
    resolver = _resolver()
    loc = await _resolver().pick_suggestion(AUSTIN)
    resolver.seed(coord=loc.coord, selected_address=AUSTIN_ADDRESS, location_payload=loc)
    snap = resolver.snapshot()
    assert snap.query == AUSTIN_ADDRESS
    assert snap.location_payload == loc
    assert snap.loc_loading is False
