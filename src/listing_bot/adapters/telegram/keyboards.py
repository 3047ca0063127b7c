"""
Telegram inline keyboard builders for the listing wizard.

These helpers produce aiogram InlineKeyboardMarkup objects.
They are Telegram-specific and belong in the adapter layer.
"""

from typing import Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from listing_bot.core.listing_types import ListingKind, Suggestion
from listing_bot.core.service_schedule import ServiceScheduleType

# Telegram caps button text at 64 chars
_MAX_LABEL = 60

KIND_LABELS: dict[ListingKind, str] = {
    ListingKind.EVENT_FREE: "🎟 Free event",
    ListingKind.EVENT_PAID: "💳 Paid event",
    ListingKind.SERVICE: "🛠 Service",
}

SCHEDULE_LABELS: dict[ServiceScheduleType, str] = {
    ServiceScheduleType.APPOINTMENT: "📞 By appointment",
    ServiceScheduleType.AVAILABILITY: "🗓 Weekly hours",
    ServiceScheduleType.SLOTS: "⏱ Fixed slots",
}


def kind_keyboard() -> InlineKeyboardMarkup:
    """Free event | Paid event | Service."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=label, callback_data=f"kind:{kind.value}")]
        for kind, label in KIND_LABELS.items()
    ])


def schedule_type_keyboard() -> InlineKeyboardMarkup:
    """How customers book the service."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=label, callback_data=f"sched:{stype.value}")]
        for stype, label in SCHEDULE_LABELS.items()
    ])


def schedule_default_keyboard() -> InlineKeyboardMarkup:
    """Accept the default Mon–Fri 09:00–18:00 window."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="✅ Mon–Fri, 09:00–18:00", callback_data="sched:default")],
    ])


def suggestions_keyboard(suggestions: Sequence[Suggestion]) -> InlineKeyboardMarkup:
    """
    One button per autocomplete suggestion.

    Callback data carries the list index, not the place id: place ids can
    exceed Telegram's 64-byte callback limit.
    """
    rows = []
    for i, s in enumerate(suggestions):
        label = s.label
        if len(label) > _MAX_LABEL:
            label = label[: _MAX_LABEL - 1] + "…"
        rows.append([InlineKeyboardButton(text=f"📍 {label}", callback_data=f"place:{i}")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def skip_keyboard(prefix: str = "skip") -> InlineKeyboardMarkup:
    """Optional step — user can skip."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="⏭ Skip (unlimited)", callback_data=f"{prefix}:skip")],
    ])


def photos_done_keyboard(count: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=f"✅ Done ({count})", callback_data="photos:done")],
    ])


def review_keyboard() -> InlineKeyboardMarkup:
    """Final confirmation: Publish / Back."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🚀 Publish", callback_data="review:publish")],
        [InlineKeyboardButton(text="⬅️ Back", callback_data="review:back")],
    ])
