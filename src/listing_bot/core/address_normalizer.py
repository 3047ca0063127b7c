"""
Address normalizer — raw geocoder components → canonical LocationPayload.

Pure and synchronous. For each semantic field the first component
carrying the wanted type wins; city candidates are tried in priority
order. Anything without both a city and a country is rejected (None)
instead of being stored half-populated.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from listing_bot.core.listing_types import AddressComponent, LocationPayload, LocationSource

logger = logging.getLogger(__name__)

CITY_TYPES: tuple[str, ...] = (
    "locality",
    "postal_town",
    "administrative_area_level_3",
    "administrative_area_level_2",
)
NEIGHBORHOOD_TYPES: tuple[str, ...] = ("sublocality", "sublocality_level_1")

_WS_RE = re.compile(r"\s+")


def make_city_key(city: str) -> str:
    """
    Deterministic lookup slug for a city name.

    "  San  José " → "san-josé", "St. Louis" → "st-louis".
    """
    key = _WS_RE.sub(" ", city.strip().lower())
    key = "".join(ch for ch in key if ch.isalnum() or ch.isspace() or ch == "-")
    return _WS_RE.sub("-", key)


def _coerce(components: Iterable[AddressComponent | Mapping[str, Any]]) -> list[AddressComponent]:
    out: list[AddressComponent] = []
    for c in components or []:
        if isinstance(c, AddressComponent):
            out.append(c)
        elif isinstance(c, Mapping):
            out.append(AddressComponent.model_validate(c))
    return out


def find_component(components: list[AddressComponent], type_: str) -> AddressComponent | None:
    """First component tagged with `type_`."""
    for c in components:
        if type_ in c.types:
            return c
    return None


def build_location_from_components(
    *,
    lat: float,
    lng: float,
    components: Iterable[AddressComponent | Mapping[str, Any]],
    source: LocationSource,
    formatted_address: str = "",
    place_id: str | None = None,
) -> LocationPayload | None:
    """Normalize geocoder output. Returns None when city or country is missing."""
    comps = _coerce(components)

    city = ""
    for type_ in CITY_TYPES:
        comp = find_component(comps, type_)
        if comp and comp.long_name:
            city = comp.long_name
            break

    country = find_component(comps, "country")
    country_code = (country.short_name if country else "").upper()

    if not city.strip() or not country_code.strip():
        logger.debug(
            "Rejecting location (%s, %s): city=%r country=%r", lat, lng, city, country_code,
        )
        return None

    admin1 = find_component(comps, "administrative_area_level_1")
    postal = find_component(comps, "postal_code")
    neighborhood = next(
        (c for t in NEIGHBORHOOD_TYPES if (c := find_component(comps, t)) is not None),
        None,
    )

    return LocationPayload(
        lat=lat,
        lng=lng,
        formatted_address=formatted_address or "",
        place_id=place_id,
        country_code=country_code,
        country_name=country.long_name if country else "",
        admin1=admin1.long_name if admin1 else "",
        admin1_code=admin1.short_name if admin1 else "",
        city=city,
        city_key=make_city_key(city),
        postal_code=postal.long_name if postal else "",
        neighborhood=neighborhood.long_name if neighborhood else "",
        source=source,
    )
