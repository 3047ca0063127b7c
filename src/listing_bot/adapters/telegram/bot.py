"""
Telegram adapter — implements PlatformAdapter using aiogram 3.x.

Builds the outbound gateways (Places, reverse geocode, photo upload,
listings backend) from settings and hands them to the handlers through
the dispatcher's workflow data, so handlers receive them as keyword
arguments.
"""

import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BotCommand, BotCommandScopeAllPrivateChats

from listing_bot.adapters.base import PlatformAdapter
from listing_bot.adapters.telegram.listing_handlers import router as listing_router
from listing_bot.adapters.telegram.sessions import WizardSessionStore
from listing_bot.config import settings
from listing_bot.errors import GatewayError
from listing_bot.services.geocode_client import GoogleGeocodeClient
from listing_bot.services.listings_api import ListingsApiClient
from listing_bot.services.photo_uploader import HttpPhotoUploader
from listing_bot.services.places_client import GooglePlacesClient

logger = logging.getLogger(__name__)


class TelegramAdapter(PlatformAdapter):
    """Telegram implementation of the platform adapter (single bot, polling)."""

    platform = "telegram"

    def __init__(self) -> None:
        timeout = settings.http_timeout_seconds
        self.places = GooglePlacesClient(
            settings.google_maps_api_key,
            country=settings.places_country,
            timeout_seconds=timeout,
        )
        self.geocoder = GoogleGeocodeClient(settings.google_maps_api_key, timeout_seconds=timeout)
        self.listings_api = ListingsApiClient(
            settings.api_base_url,
            api_key=settings.event_api_key,
            timeout_seconds=timeout,
        )
        self.uploader = HttpPhotoUploader(
            settings.effective_upload_url,
            api_key=settings.event_api_key,
            timeout_seconds=timeout,
        )
        self.sessions = WizardSessionStore(
            self.places,
            self.geocoder,
            debounce_seconds=settings.search_debounce_ms / 1000,
            tz_name=settings.listing_timezone,
        )

        self._bot: Bot | None = None
        self.dp = Dispatcher()
        self.dp["sessions"] = self.sessions
        self.dp["listings_api"] = self.listings_api
        self.dp["uploader"] = self.uploader
        self.dp["adapter"] = self
        self._register_routers()

    def _register_routers(self) -> None:
        self.dp.include_router(listing_router)

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError("Bot is not started")
        return self._bot

    async def download_file(self, file_ref: str) -> bytes:
        """Download a file from Telegram by file_id."""
        try:
            file = await self.bot.get_file(file_ref)
            if file.file_path is None:
                raise GatewayError(f"Telegram returned no path for {file_ref}")
            result = await self.bot.download_file(file.file_path)
        except TelegramAPIError as e:
            raise GatewayError(f"Telegram download failed: {e}") from e
        if result is None:
            raise GatewayError(f"Download returned empty for: {file_ref}")
        return result.read()

    async def start(self) -> None:
        """Start polling for Telegram updates."""
        if not settings.telegram_bot_token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")
        if not settings.google_maps_api_key:
            logger.warning("GOOGLE_MAPS_API_KEY is not set — location search will fail")

        self._bot = Bot(
            token=settings.telegram_bot_token,
            default=DefaultBotProperties(parse_mode=ParseMode.HTML),
        )
        me = await self._bot.me()
        logger.info("Bot identity: @%s (id=%d)", me.username, me.id)

        await self._set_commands(self._bot)
        logger.info("Starting Telegram bot (polling mode)...")
        await self.dp.start_polling(self._bot)

    async def _set_commands(self, bot: Bot) -> None:
        commands = [
            BotCommand(command="newlisting", description="Create an event or service"),
            BotCommand(command="back", description="Previous step"),
            BotCommand(command="cancel", description="Discard the draft"),
        ]
        try:
            await bot.set_my_commands(commands, scope=BotCommandScopeAllPrivateChats())
        except TelegramAPIError as e:
            logger.warning("Failed to set bot commands: %s", e)

    async def stop(self) -> None:
        """Close the bot session and every HTTP client."""
        logger.info("Stopping Telegram bot...")
        for client in (self.places, self.geocoder, self.listings_api, self.uploader):
            await client.close()
        if self._bot is not None:
            await self._bot.session.close()
