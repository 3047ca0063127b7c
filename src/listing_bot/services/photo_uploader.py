"""
Photo upload gateway — raw image bytes → hosted url + storage key.

Platform adapters download the user's photo and pass the bytes here;
the wizard only ever stores the returned url/key.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from listing_bot.errors import GatewayError

logger = logging.getLogger(__name__)


class UploadedPhoto(BaseModel):
    url: str
    key: str | None = None


class HttpPhotoUploader:
    """Multipart upload to the backend's upload endpoint."""

    def __init__(
        self,
        upload_url: str,
        *,
        api_key: str = "",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.upload_url = upload_url
        headers = {"x-api-key": api_key} if api_key else {}
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def upload(
        self,
        data: bytes,
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
    ) -> UploadedPhoto:
        """
        Upload one image.

        Raises:
            GatewayError: network failure, non-2xx or an answer without a url
        """
        if not data:
            raise GatewayError("empty photo")

        try:
            resp = await self._client.post(
                self.upload_url,
                files={"file": (filename, data, content_type)},
            )
        except httpx.RequestError as e:
            logger.warning("Photo upload failed: %s", e)
            raise GatewayError("upload request failed") from e

        if resp.status_code >= 400:
            logger.warning("Photo upload returned HTTP %d", resp.status_code)
            raise GatewayError(f"HTTP {resp.status_code}", status_code=resp.status_code)

        try:
            body: Any = resp.json()
        except ValueError as e:
            raise GatewayError("invalid JSON from upload endpoint") from e

        # Some upload routes answer with a one-element list
        if isinstance(body, list):
            body = body[0] if body else None
        try:
            photo = UploadedPhoto.model_validate(body)
        except ValidationError as e:
            raise GatewayError("upload response has no url") from e

        logger.info("Photo uploaded: %s (%d bytes)", photo.key or photo.url, len(data))
        return photo
