"""
Main entry point for the listing bot.

Run with:  python -m listing_bot   (or the `listing-bot` script)
"""

import asyncio
import logging

from listing_bot.config import settings


def setup_logging() -> None:
    """Configure structured logging."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # httpx logs every request URL at INFO, including the Maps key
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def main() -> None:
    """Initialize and start the bot."""
    setup_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting listing bot...")
    logger.info("Backend: %s | timezone: %s", settings.api_base_url, settings.listing_timezone)

    # Import adapter here to avoid loading aiogram before logging is configured
    from listing_bot.adapters.telegram.bot import TelegramAdapter

    adapter = TelegramAdapter()

    try:
        await adapter.start()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        await adapter.stop()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
