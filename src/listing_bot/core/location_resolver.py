"""
Location resolver — turns typed queries, picked suggestions and dropped
pins into one canonical location.

Owns the authoritative `coord` + `location_payload` for a wizard session.
Three asynchronous operations feed it:

  1. Search: every query change restarts a debounce timer; when it fires,
     Places autocomplete runs with the trimmed query.
  2. Pick: a chosen suggestion is expanded via place details and normalized.
  3. Pin: a dropped/dragged pin is reverse-geocoded and normalized.

Every request carries a monotonically increasing id; a response whose id
is no longer the latest is discarded, so a slow early answer can never
overwrite a fresher one. Failures never propagate: they are recorded in
`err` and the location stays consistent (never a half-built payload).
Nothing is retried automatically.

This module never imports platform-specific code or HTTP libraries;
gateways are injected.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from listing_bot.core.address_normalizer import build_location_from_components
from listing_bot.core.gateways import PlacesGateway, ReverseGeocodeGateway
from listing_bot.core.listing_types import Coord, LocationPayload, Suggestion
from listing_bot.errors import GatewayError

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.25

# ── User-facing messages ─────────────────────────────────────

SUGGESTIONS_FAILED = "Couldn't fetch suggestions. Check your network."
PLACE_NO_COORDINATES = "Couldn't get coordinates for that place. Try another search."
PLACE_NO_CITY = "Couldn't extract city/country from that place. Try a different result."
PLACE_FAILED = "Something went wrong while selecting that place."
PIN_NO_ADDRESS = "Couldn't resolve city/country for that pin. Try a different spot."
PIN_NO_CITY = "Couldn't extract city/country for that pin. Try a different spot."
PIN_FAILED = "Couldn't resolve that pin. Check your network."

DROPPED_PIN_LABEL = "Dropped pin"
DROPPED_PIN_NO_ADDRESS_LABEL = "Dropped pin (no address found)"


class LocationSnapshot(BaseModel):
    """Read-only view of the resolver state."""

    query: str = ""
    suggestions: list[Suggestion] = Field(default_factory=list)
    loading_suggestions: bool = False
    coord: Coord | None = None
    selected_address: str = ""
    location_payload: LocationPayload | None = None
    loc_loading: bool = False
    err: str | None = None


class LocationResolver:
    """
    Debounced search + pick + pin-drop resolution for one wizard session.

    Args:
        places:           autocomplete / place details gateway
        geocoder:         reverse-geocode gateway
        debounce_seconds: quiet period before autocomplete fires
    """

    def __init__(
        self,
        places: PlacesGateway,
        geocoder: ReverseGeocodeGateway,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self.places = places
        self.geocoder = geocoder
        self.debounce_seconds = debounce_seconds

        self.query = ""
        self.suggestions: list[Suggestion] = []
        self.loading_suggestions = False
        self.coord: Coord | None = None
        self.selected_address = ""
        self.location_payload: LocationPayload | None = None
        self.err: str | None = None

        self._search_task: asyncio.Task[None] | None = None
        self._search_seq = 0      # latest autocomplete request id
        self._resolve_seq = 0     # latest pick / pin request id
        self._inflight = 0

    # ── State ─────────────────────────────────────────────────

    @property
    def loc_loading(self) -> bool:
        """True while any autocomplete, details or reverse-geocode call is in flight."""
        return self._inflight > 0

    def snapshot(self) -> LocationSnapshot:
        return LocationSnapshot(
            query=self.query,
            suggestions=list(self.suggestions),
            loading_suggestions=self.loading_suggestions,
            coord=self.coord,
            selected_address=self.selected_address,
            location_payload=self.location_payload,
            loc_loading=self.loc_loading,
            err=self.err,
        )

    def seed(
        self,
        *,
        coord: Coord | None,
        selected_address: str = "",
        location_payload: LocationPayload | None = None,
        query: str | None = None,
    ) -> None:
        """Preload a previously resolved location (edit flows, resumed sessions)."""
        self.coord = coord
        self.selected_address = selected_address
        self.location_payload = location_payload
        self.query = selected_address if query is None else query
        self.suggestions = []
        self.err = None

    # ── Search ────────────────────────────────────────────────

    def on_query_change(self, text: str) -> None:
        """
        Record new query text and (re)start the debounce timer.

        Typing invalidates the previous selection: the address and payload
        are cleared until the user picks again or drops a pin.
        """
        self.query = text
        self.selected_address = ""
        self.location_payload = None
        self.err = None
        self._schedule_search()

    def _schedule_search(self) -> None:
        self._cancel_pending_search()
        self._search_seq += 1
        self._search_task = asyncio.create_task(self._debounced_search(self._search_seq))

    def _cancel_pending_search(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()

    async def _debounced_search(self, seq: int) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await self._run_autocomplete(seq)

    async def _run_autocomplete(self, seq: int) -> None:
        q = self.query.strip()

        if not q:
            self.suggestions = []
            return
        # Query was filled in by a selection: don't reopen suggestions
        if self.selected_address and q == self.selected_address.strip():
            self.suggestions = []
            return

        self._inflight += 1
        self.loading_suggestions = True
        try:
            results = await self.places.autocomplete(q)
        except GatewayError as e:
            if seq == self._search_seq:
                logger.warning("Autocomplete failed for %r: %s", q, e)
                self.err = SUGGESTIONS_FAILED
                self.suggestions = []
            return
        finally:
            self._inflight -= 1
            if seq == self._search_seq:
                self.loading_suggestions = False

        if seq != self._search_seq:
            logger.debug("Discarding stale autocomplete #%d for %r", seq, q)
            return
        self.suggestions = results

    async def wait_for_suggestions(self) -> list[Suggestion]:
        """Wait until the latest scheduled search has settled; return its suggestions."""
        while self._search_task is not None and not self._search_task.done():
            await asyncio.wait({self._search_task})
        return list(self.suggestions)

    def clear_query(self) -> None:
        """Drop the query together with whatever location it resolved to."""
        self._cancel_pending_search()
        self._search_seq += 1
        self._resolve_seq += 1
        self.query = ""
        self.suggestions = []
        self.loading_suggestions = False
        self.selected_address = ""
        self.coord = None
        self.location_payload = None
        self.err = None

    # ── Pick ──────────────────────────────────────────────────

    async def pick_suggestion(self, suggestion: Suggestion) -> LocationPayload | None:
        """Resolve a chosen suggestion. Returns the payload, or None (see `err`)."""
        self._cancel_pending_search()
        self._search_seq += 1
        self._resolve_seq += 1
        seq = self._resolve_seq
        self.err = None

        self._inflight += 1
        self.loading_suggestions = True
        try:
            details = await self.places.place_details(suggestion.id)
        except GatewayError as e:
            if seq == self._resolve_seq:
                logger.warning("Place details failed for %s: %s", suggestion.id, e)
                self.err = PLACE_FAILED
            return None
        finally:
            self._inflight -= 1
            self.loading_suggestions = False

        if seq != self._resolve_seq:
            logger.debug("Discarding stale place details #%d", seq)
            return None

        if details is None or details.coord is None:
            self.err = PLACE_NO_COORDINATES
            return None

        address = details.formatted_address or suggestion.label
        self.coord = details.coord
        self.selected_address = address
        self.query = address
        self.suggestions = []

        loc = build_location_from_components(
            lat=details.coord.lat,
            lng=details.coord.lng,
            components=details.address_components,
            source="places_autocomplete",
            formatted_address=address,
            place_id=suggestion.id,
        )
        if loc is None:
            self.location_payload = None
            self.err = PLACE_NO_CITY
            return None

        self.location_payload = loc
        logger.debug("Picked %s → %s, %s", suggestion.id, loc.city, loc.country_code)
        return loc

    # ── Pin drop ──────────────────────────────────────────────

    async def on_map_picked(self, lat: float, lng: float) -> LocationPayload | None:
        """
        Resolve a dropped/dragged pin.

        The point is applied optimistically with a placeholder label;
        the address follows once reverse geocoding answers.
        """
        self._cancel_pending_search()
        self._search_seq += 1
        self._resolve_seq += 1
        seq = self._resolve_seq

        self.suggestions = []
        self.loading_suggestions = False
        self.err = None
        self.coord = Coord(lat=lat, lng=lng)
        self.selected_address = DROPPED_PIN_LABEL
        self.location_payload = None

        self._inflight += 1
        try:
            geo = await self.geocoder.reverse_geocode(lat, lng)
        except GatewayError as e:
            if seq == self._resolve_seq:
                logger.warning("Reverse geocode failed for (%s, %s): %s", lat, lng, e)
                self.err = PIN_FAILED
            return None
        finally:
            self._inflight -= 1

        if seq != self._resolve_seq:
            logger.debug("Discarding stale reverse geocode #%d", seq)
            return None

        if geo is None or not geo.formatted_address or not geo.address_components:
            self.selected_address = DROPPED_PIN_NO_ADDRESS_LABEL
            self.err = PIN_NO_ADDRESS
            return None

        self.selected_address = geo.formatted_address

        loc = build_location_from_components(
            lat=lat,
            lng=lng,
            components=geo.address_components,
            source="reverse_geocode",
            formatted_address=geo.formatted_address,
            place_id=geo.place_id,
        )
        if loc is None:
            self.err = PIN_NO_CITY
            return None

        self.location_payload = loc
        return loc

    # ── Lifecycle ─────────────────────────────────────────────

    def reset(self) -> None:
        """Forget everything (wizard closed / cancelled / submitted)."""
        self.clear_query()
