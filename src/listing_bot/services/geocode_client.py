"""Google reverse-geocode gateway — coordinates → address components."""

import logging

from pydantic import ValidationError

from listing_bot.core.gateways import ReverseGeocodeGateway, ReverseGeocodeResult
from listing_bot.errors import GatewayError
from listing_bot.services.google_maps import GoogleMapsHttp, parse_components

logger = logging.getLogger(__name__)


class GoogleGeocodeClient(GoogleMapsHttp, ReverseGeocodeGateway):
    """Reverse geocoding via the Geocoding web service."""

    async def reverse_geocode(self, lat: float, lng: float) -> ReverseGeocodeResult | None:
        data = await self._get_json("/geocode/json", {"latlng": f"{lat},{lng}"})
        results = data.get("results")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            logger.debug("Reverse geocode (%s, %s): no results", lat, lng)
            return None

        top = results[0]
        try:
            return ReverseGeocodeResult(
                formatted_address=top.get("formatted_address") or "",
                address_components=parse_components(top.get("address_components")),
                place_id=top.get("place_id"),
            )
        except ValidationError as e:
            logger.warning("Reverse geocode (%s, %s) had an unexpected shape: %s", lat, lng, e)
            raise GatewayError("unexpected geocode response") from e
