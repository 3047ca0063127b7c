"""
Google Places gateway — autocomplete and place details.

Implements core.gateways.PlacesGateway over the Places web service.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from listing_bot.core.gateways import PlaceDetails, PlacesGateway
from listing_bot.core.listing_types import Coord, Suggestion
from listing_bot.errors import GatewayError
from listing_bot.services.google_maps import GoogleMapsHttp, parse_components

logger = logging.getLogger(__name__)

DETAILS_FIELDS = "geometry,formatted_address,address_component,place_id,name"


class GooglePlacesClient(GoogleMapsHttp, PlacesGateway):
    """Places autocomplete + details, optionally restricted to one country."""

    def __init__(
        self,
        api_key: str,
        *,
        country: str = "",
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, timeout_seconds=timeout_seconds, client=client)
        self.country = country.lower()

    async def autocomplete(self, query: str) -> list[Suggestion]:
        params = {"input": query}
        if self.country:
            params["components"] = f"country:{self.country}"
        data = await self._get_json("/place/autocomplete/json", params)

        predictions = data.get("predictions")
        if not isinstance(predictions, list):
            return []

        suggestions: list[Suggestion] = []
        for p in predictions:
            if not isinstance(p, dict) or not p.get("place_id"):
                continue
            fmt = p.get("structured_formatting")
            if not isinstance(fmt, dict):
                fmt = {}
            try:
                suggestions.append(Suggestion(
                    id=p["place_id"],
                    main=fmt.get("main_text") or p.get("description") or "",
                    secondary=fmt.get("secondary_text"),
                ))
            except ValidationError:
                logger.debug("Skipping malformed prediction: %r", p)
        logger.debug("Autocomplete %r → %d suggestions", query, len(suggestions))
        return suggestions

    async def place_details(self, place_id: str) -> PlaceDetails | None:
        data = await self._get_json(
            "/place/details/json",
            {"place_id": place_id, "fields": DETAILS_FIELDS},
        )
        result = data.get("result")
        if not isinstance(result, dict):
            return None

        try:
            return PlaceDetails(
                coord=_extract_coord(result),
                formatted_address=result.get("formatted_address") or result.get("name"),
                address_components=parse_components(result.get("address_components")),
            )
        except ValidationError as e:
            logger.warning("Place details for %s had an unexpected shape: %s", place_id, e)
            raise GatewayError("unexpected place details response") from e


def _extract_coord(result: dict[str, Any]) -> Coord | None:
    geometry = result.get("geometry")
    loc = geometry.get("location") if isinstance(geometry, dict) else None
    if not isinstance(loc, dict):
        return None
    lat, lng = loc.get("lat"), loc.get("lng")
    if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
        return Coord(lat=lat, lng=lng)
    return None
