"""
In-memory wizard sessions, one per chat.

A session lives from /newlisting until it is published or cancelled.
Nothing is persisted: restarting the bot drops every draft.
"""

import logging

from listing_bot.core.gateways import PlacesGateway, ReverseGeocodeGateway
from listing_bot.core.listing_wizard import ListingWizard
from listing_bot.core.location_resolver import LocationResolver

logger = logging.getLogger(__name__)


class WizardSessionStore:
    """Creates, looks up and discards ListingWizard sessions by chat id."""

    def __init__(
        self,
        places: PlacesGateway,
        geocoder: ReverseGeocodeGateway,
        *,
        debounce_seconds: float,
        tz_name: str | None = None,
    ) -> None:
        self.places = places
        self.geocoder = geocoder
        self.debounce_seconds = debounce_seconds
        self.tz_name = tz_name
        self._sessions: dict[int, ListingWizard] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def start(self, chat_id: int) -> ListingWizard:
        """Open a fresh wizard, discarding any draft the chat already had."""
        self.drop(chat_id)
        resolver = LocationResolver(
            self.places,
            self.geocoder,
            debounce_seconds=self.debounce_seconds,
        )
        wizard = ListingWizard(resolver, tz_name=self.tz_name)
        self._sessions[chat_id] = wizard
        logger.debug("Wizard started for chat %d (%d active)", chat_id, len(self._sessions))
        return wizard

    def get(self, chat_id: int) -> ListingWizard | None:
        return self._sessions.get(chat_id)

    def drop(self, chat_id: int) -> None:
        wizard = self._sessions.pop(chat_id, None)
        if wizard is not None:
            wizard.close()
