"""
Listings backend client — create, update and delete listings.

Wraps the backend's event routes:
  POST  /api/events/create-event
  PATCH /api/events/update-event
  POST  /api/events/delete-event

Every non-2xx answer becomes a ListingApiError whose message can be shown
to the user verbatim. Ownership is checked before any request goes out.
"""

import logging
from typing import Any

import httpx

from listing_bot.core.listing_payload import EditableListing, ensure_creator
from listing_bot.errors import ListingApiError

logger = logging.getLogger(__name__)

CREATE_FAILED = "Failed to create"
UPDATE_FAILED = "Failed to update event"
DELETE_FAILED = "Failed to delete event"
NETWORK_FAILED = "Couldn't reach the server. Check your network and try again."


def _error_message(resp: httpx.Response, fallback: str) -> str:
    """`error`, else `message`, else the raw body text, else `fallback`."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for field in ("error", "message"):
            value = data.get(field)
            if isinstance(value, str) and value.strip():
                return value
    text = resp.text.strip()
    return text or fallback


def listing_id_of(data: dict[str, Any]) -> str | None:
    """Id of the listing in a `{"event": {...}}` success body."""
    event = data.get("event")
    record = event if isinstance(event, dict) else data
    listing_id = record.get("_id") or record.get("id")
    return str(listing_id) if listing_id else None


class ListingsApiClient:
    """
    Async client for the listings backend.

    Args:
        base_url:        backend root, e.g. "https://api.example.com"
        api_key:         sent as `x-api-key` when set
        timeout_seconds: upper bound for every request
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["x-api-key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        body: dict[str, Any],
        *,
        fallback: str,
    ) -> dict[str, Any]:
        """Send one JSON request, raising ListingApiError on any failure."""
        try:
            resp = await self._client.request(method, path, json=body)
        except httpx.RequestError as e:
            logger.warning("Listings API %s %s failed: %s", method, path, e)
            raise ListingApiError(NETWORK_FAILED) from e

        if resp.status_code >= 400:
            message = _error_message(resp, fallback)
            logger.warning(
                "Listings API %s %s → %d: %s", method, path, resp.status_code, message
            )
            raise ListingApiError(message, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    # ── Operations ────────────────────────────────────────────

    async def create_listing(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create a listing.

        Args:
            payload: body from core.listing_payload.assemble_create_payload

        Returns:
            The backend response, `{"event": {...}}` with the stored listing.
        """
        data = await self._send("POST", "/api/events/create-event", payload, fallback=CREATE_FAILED)
        logger.info("Listing created: id=%s", listing_id_of(data))
        return data

    async def update_listing(
        self,
        record: EditableListing,
        actor_id: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """Update a listing. Raises NotListingCreatorError before sending if `actor_id` is not its creator."""
        ensure_creator(record, actor_id)
        data = await self._send("PATCH", "/api/events/update-event", payload, fallback=UPDATE_FAILED)
        logger.info("Listing updated: id=%s", record.id)
        return data

    async def delete_listing(
        self,
        record: EditableListing,
        actor_id: str,
        payload: dict[str, Any],
    ) -> None:
        """Delete a listing (creator only)."""
        ensure_creator(record, actor_id)
        await self._send("POST", "/api/events/delete-event", payload, fallback=DELETE_FAILED)
        logger.info("Listing deleted: id=%s", record.id)
