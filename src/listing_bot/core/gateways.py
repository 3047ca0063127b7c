"""
Abstract location gateways consumed by the location resolver.

Core logic imports ONLY these interfaces — never httpx or a provider SDK.
Concrete Google implementations live in listing_bot.services; tests pass
in-memory fakes.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from listing_bot.core.listing_types import AddressComponent, Coord, Suggestion


class PlaceDetails(BaseModel):
    """Place-details lookup result. `coord` is None when the place has no geometry."""

    coord: Coord | None = None
    formatted_address: str | None = None
    address_components: list[AddressComponent] = Field(default_factory=list)


class ReverseGeocodeResult(BaseModel):
    """Top reverse-geocode hit for a point."""

    formatted_address: str = ""
    address_components: list[AddressComponent] = Field(default_factory=list)
    place_id: str | None = None


class PlacesGateway(ABC):
    """Text autocomplete + place details."""

    @abstractmethod
    async def autocomplete(self, query: str) -> list[Suggestion]:
        """Suggestions for a free-text query (empty list when nothing matches)."""
        ...

    @abstractmethod
    async def place_details(self, place_id: str) -> PlaceDetails | None:
        """Details for a suggestion id, or None when the place is unknown."""
        ...


class ReverseGeocodeGateway(ABC):
    """Coordinates → address components."""

    @abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> ReverseGeocodeResult | None:
        """Top result for the point, or None when nothing is there."""
        ...
