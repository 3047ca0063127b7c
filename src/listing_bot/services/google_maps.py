"""
Shared HTTP plumbing for Google Maps Platform web services.

One AsyncClient per gateway instance (connection pooling). No retries:
the user re-triggers a lookup by editing the query or moving the pin.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from listing_bot.core.listing_types import AddressComponent
from listing_bot.errors import GatewayError

logger = logging.getLogger(__name__)

# Statuses that mean "the call worked"; everything else is a provider error
OK_STATUSES = frozenset({"OK", "ZERO_RESULTS"})


class GoogleMapsHttp:
    """
    Base class for Google Maps JSON endpoints.

    Reference: https://developers.google.com/maps/documentation/places/web-service
    """

    BASE_URL = "https://maps.googleapis.com/maps/api"

    def __init__(
        self,
        api_key: str,
        *,
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """GET a Maps endpoint and return its JSON body, raising GatewayError on failure."""
        query = {**params, "key": self._api_key}
        try:
            resp = await self._client.get(path, params=query)
        except httpx.TimeoutException as e:
            logger.warning("Google Maps %s timed out: %s", path, e)
            raise GatewayError("timeout") from e
        except httpx.RequestError as e:
            logger.warning("Google Maps %s request failed: %s", path, e)
            raise GatewayError("request_error") from e

        if resp.status_code >= 400:
            logger.warning("Google Maps %s returned HTTP %d", path, resp.status_code)
            raise GatewayError(f"HTTP {resp.status_code}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayError("invalid JSON from Google Maps") from e
        if not isinstance(data, dict):
            raise GatewayError("unexpected Google Maps response")

        status = data.get("status")
        if status is not None and status not in OK_STATUSES and status != "NOT_FOUND":
            message = data.get("error_message") or status
            logger.warning("Google Maps %s status=%s: %s", path, status, message)
            raise GatewayError(str(message), status_code=resp.status_code)
        return data


def parse_components(raw: Any) -> list[AddressComponent]:
    """Raw `address_components` array → models (malformed entries skipped)."""
    if not isinstance(raw, list):
        return []
    components: list[AddressComponent] = []
    for c in raw:
        if not isinstance(c, dict):
            continue
        try:
            components.append(AddressComponent.model_validate(c))
        except ValidationError:
            logger.debug("Skipping malformed address component: %r", c)
    return components
