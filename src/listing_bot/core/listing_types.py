"""
Data model for the listing creation wizard.

Platform-agnostic pydantic models shared by the reducer, the validator,
the location resolver and the submission assembler. Python attributes are
snake_case; anything that goes over the wire (LocationPayload, photos)
dumps to camelCase via aliases.
"""

import enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from listing_bot.core.service_schedule import ServiceSchedule


class ListingKind(str, enum.Enum):
    """Discriminant controlling required fields and the step graph."""
    EVENT_FREE = "event_free"
    EVENT_PAID = "event_paid"
    SERVICE = "service"


class StepKey(str, enum.Enum):
    """Identifiers of the wizard steps."""
    KIND = "kind"
    BASICS = "basics"
    WHEN = "when"
    SERVICE_WHEN = "serviceWhen"
    WHERE = "where"
    PRICE = "price"
    CAPACITY = "capacity"
    SERVICE_PHOTOS = "servicePhotos"
    REVIEW = "review"


LocationSource = Literal["user_typed", "places_autocomplete", "reverse_geocode"]

# Kinds that carry a price
PRICED_KINDS: frozenset[ListingKind] = frozenset({ListingKind.EVENT_PAID, ListingKind.SERVICE})


class WireModel(BaseModel):
    """Base for models serialized to the backend in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coord(BaseModel):
    """A WGS84 point."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class AddressComponent(BaseModel):
    """One raw geocoder address component (Google format)."""

    long_name: str = ""
    short_name: str = ""
    types: list[str] = Field(default_factory=list)


class Suggestion(BaseModel):
    """One autocomplete prediction."""

    id: str
    main: str
    secondary: str | None = None

    @property
    def label(self) -> str:
        return ", ".join(p for p in (self.main, self.secondary) if p)


class LocationPayload(WireModel):
    """
    Canonical resolved location.

    Construction fails unless both `city` and `country_code` are non-empty,
    so a half-populated location can never be stored.
    """

    lat: float
    lng: float
    formatted_address: str = ""
    place_id: str | None = None

    country_code: str
    country_name: str = ""

    admin1: str = ""
    admin1_code: str = ""

    city: str
    city_key: str = ""

    postal_code: str = ""
    neighborhood: str = ""

    source: LocationSource | None = None

    @model_validator(mode="after")
    def _require_city_and_country(self) -> "LocationPayload":
        if not self.city.strip() or not self.country_code.strip():
            raise ValueError("LocationPayload requires city and countryCode")
        return self

    @property
    def coord(self) -> Coord:
        return Coord(lat=self.lat, lng=self.lng)


class ServicePhoto(WireModel):
    """A service photo: local reference first, remote url/key once uploaded."""

    uri: str
    url: str | None = None
    key: str | None = None

    @property
    def pending(self) -> bool:
        return not self.url

    @property
    def identity(self) -> str:
        """Dedup identity: remote key when known, else the local uri."""
        return self.key if self.key is not None else self.uri


class WizardState(BaseModel):
    """The single aggregate for an in-progress listing."""

    model_config = ConfigDict(validate_assignment=True)

    kind: ListingKind | None = None

    title: str = ""
    description: str = ""
    date_iso: str = ""        # YYYY-MM-DD
    time24: str = ""          # HH:MM

    query: str = ""
    selected_address: str = ""
    coord: Coord | None = None
    location_payload: LocationPayload | None = None

    price_text: str = ""
    capacity_text: str = ""
    service_photos: list[ServicePhoto] = Field(default_factory=list)
    service_schedule: ServiceSchedule = Field(default_factory=ServiceSchedule)

    submitting: bool = False
    err: str | None = None

    @property
    def needs_price(self) -> bool:
        return self.kind in PRICED_KINDS

    @property
    def pending_photos(self) -> list[ServicePhoto]:
        return [p for p in self.service_photos if p.pending]
