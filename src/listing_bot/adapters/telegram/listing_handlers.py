"""
Telegram handlers for the listing creation wizard.

The step graph, validation and location resolution all live in
core.listing_wizard.ListingWizard; these handlers only translate chat
input into wizard calls and render the current step back. aiogram's
FSM tracks which message the bot expects inside a step.

Flow:
  /newlisting → kind → title → description → date → time (events)
              | schedule (services) → location → price | capacity
              → photos (services) → review → publish
"""

import logging
from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from listing_bot.adapters.base import PlatformAdapter
from listing_bot.adapters.telegram.formatters import format_listing_review
from listing_bot.adapters.telegram.fsm_states import ListingCreation
from listing_bot.adapters.telegram.keyboards import (
    kind_keyboard,
    photos_done_keyboard,
    review_keyboard,
    schedule_default_keyboard,
    schedule_type_keyboard,
    skip_keyboard,
    suggestions_keyboard,
)
from listing_bot.adapters.telegram.sessions import WizardSessionStore
from listing_bot.core.listing_payload import assemble_create_payload
from listing_bot.core.listing_time import parse_date_input, parse_time_input
from listing_bot.core.listing_types import LocationPayload, ServicePhoto, StepKey
from listing_bot.core.listing_wizard import ListingWizard
from listing_bot.core.service_schedule import (
    ServiceScheduleType,
    parse_days_input,
    parse_slot_line,
    parse_window_input,
)
from listing_bot.core.wizard_reducer import (
    MAX_SERVICE_PHOTOS,
    AddServicePhotos,
    RemoveServicePhoto,
    SetErr,
    SetKind,
    UpdateServicePhoto,
)
from listing_bot.errors import GatewayError, ListingApiError, ListingNotReadyError
from listing_bot.services.listings_api import ListingsApiClient, listing_id_of
from listing_bot.services.photo_uploader import HttpPhotoUploader

logger = logging.getLogger(__name__)
router = Router(name="listing_creation")

NO_SESSION = "No listing in progress. Send /newlisting to start."
PHOTO_UPLOAD_FAILED = "Couldn't upload that photo. Please send it again."


async def _get_wizard(message: Message, sessions: WizardSessionStore) -> ListingWizard | None:
    wizard = sessions.get(message.chat.id)
    if wizard is None:
        await message.answer(NO_SESSION)
    return wizard


async def _show_error(message: Message, err: str | None) -> None:
    await message.answer(f"⚠️ {escape(err or 'Something went wrong.')}")


# ── Step rendering ───────────────────────────────────────────


async def _show_step(message: Message, state: FSMContext, wizard: ListingWizard) -> None:
    """Prompt for the wizard's current step and wait for its first input."""
    step = wizard.current_step
    header = f"<i>{wizard.progress()}</i>\n"

    if step == StepKey.KIND:
        await state.set_state(ListingCreation.choosing_kind)
        await message.answer(header + "What are you listing?", reply_markup=kind_keyboard())

    elif step == StepKey.BASICS:
        await state.set_state(ListingCreation.entering_title)
        await message.answer(header + "Send the <b>title</b>:")

    elif step == StepKey.WHEN:
        await state.set_state(ListingCreation.entering_date)
        await message.answer(
            header + f"📅 Send the <b>date</b> (YYYY-MM-DD or DD.MM.YYYY), {escape(wizard.tz_name)} time:"
        )

    elif step == StepKey.SERVICE_WHEN:
        await state.set_state(ListingCreation.choosing_schedule_type)
        await message.answer(
            header + "🗓 How do customers <b>book</b> this service?",
            reply_markup=schedule_type_keyboard(),
        )

    elif step == StepKey.WHERE:
        await state.set_state(ListingCreation.searching_location)
        current = wizard.state.selected_address
        hint = f"\nCurrent: {escape(current)}" if current else ""
        await message.answer(
            header + "📍 Type an <b>address or place</b>, or share a location (📎 → Location)." + hint
        )

    elif step == StepKey.PRICE:
        await state.set_state(ListingCreation.entering_price)
        await message.answer(header + "💰 Send the <b>price</b> in USD (e.g. 20 or 19.99):")

    elif step == StepKey.CAPACITY:
        await state.set_state(ListingCreation.entering_capacity)
        await message.answer(
            header + "👥 Send the <b>capacity</b> (max attendees):",
            reply_markup=skip_keyboard("capacity"),
        )

    elif step == StepKey.SERVICE_PHOTOS:
        await state.set_state(ListingCreation.uploading_photos)
        count = len(wizard.state.service_photos)
        await message.answer(
            header + f"🖼 Send up to {MAX_SERVICE_PHOTOS} <b>photos</b> of your work, then press Done.",
            reply_markup=photos_done_keyboard(count),
        )

    elif step == StepKey.REVIEW:
        await state.set_state(ListingCreation.reviewing)
        await message.answer(
            header + format_listing_review(wizard.state, wizard.tz_name),
            reply_markup=review_keyboard(),
        )


async def _advance(message: Message, state: FSMContext, wizard: ListingWizard) -> bool:
    """Leave the current step if it validates, otherwise report why not."""
    if not wizard.go_next():
        await _show_error(message, wizard.state.err)
        return False
    await _show_step(message, state, wizard)
    return True


# ── Commands ─────────────────────────────────────────────────


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await message.answer(
        "👋 I help you publish events and services.\n\n"
        "/newlisting — create a listing\n"
        "/back — previous step\n"
        "/cancel — discard the draft"
    )


@router.message(Command("newlisting"))
async def cmd_new_listing(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    """Start the listing wizard (any previous draft is discarded)."""
    await state.clear()
    wizard = sessions.start(message.chat.id)
    await message.answer("🆕 <b>New listing</b>")
    await _show_step(message, state, wizard)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    sessions.drop(message.chat.id)
    await state.clear()
    await message.answer("❌ Draft discarded.")


@router.message(Command("back"))
async def cmd_back(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.go_back()
    await _show_step(message, state, wizard)


# ── Kind ─────────────────────────────────────────────────────


@router.callback_query(ListingCreation.choosing_kind, F.data.startswith("kind:"))
async def process_kind(callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.dispatch(SetKind(callback.data.split(":", 1)[1]))  # type: ignore[union-attr]
    await _advance(message, state, wizard)


# ── Basics ───────────────────────────────────────────────────


@router.message(ListingCreation.entering_title)
async def process_title(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    if not message.text or not message.text.strip():
        await message.answer("Please send the title as text:")
        return
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("title", message.text.strip())
    await state.set_state(ListingCreation.entering_description)
    await message.answer("📝 Now a short <b>description</b>:")


@router.message(ListingCreation.entering_description)
async def process_description(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    if not message.text or not message.text.strip():
        await message.answer("Please send the description as text:")
        return
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("description", message.text.strip())
    await _advance(message, state, wizard)


# ── When (events) ────────────────────────────────────────────


@router.message(ListingCreation.entering_date)
async def process_date(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    date_iso = parse_date_input(message.text or "")
    if date_iso is None:
        await message.answer("Couldn't read that date. Use YYYY-MM-DD or DD.MM.YYYY:")
        return
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("date_iso", date_iso)
    await state.set_state(ListingCreation.entering_time)
    await message.answer("🕒 Send the <b>start time</b> (HH:MM, 24h):")


@router.message(ListingCreation.entering_time)
async def process_time(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    time24 = parse_time_input(message.text or "")
    if time24 is None:
        await message.answer("Couldn't read that time. Use HH:MM, e.g. 18:30:")
        return
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("time24", time24)
    if not await _advance(message, state, wizard):
        # Past start: the date is the usual culprit
        await state.set_state(ListingCreation.entering_date)
        await message.answer("📅 Send the date again:")


# ── When (services) ──────────────────────────────────────────


@router.callback_query(ListingCreation.choosing_schedule_type, F.data.startswith("sched:"))
async def process_schedule_type(
    callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore
) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    try:
        stype = ServiceScheduleType(callback.data.split(":", 1)[1])  # type: ignore[union-attr]
    except ValueError:
        return

    schedule = wizard.state.service_schedule.model_copy(update={"type": stype})
    wizard.set_field("service_schedule", schedule)

    if stype == ServiceScheduleType.SLOTS:
        await state.set_state(ListingCreation.entering_slots)
        await message.answer(
            "⏱ Send the <b>slots</b>, one per line:\n"
            "<code>YYYY-MM-DD HH:MM [minutes]</code>\n"
            "e.g. <code>2026-10-21 14:00 90</code> (default 120 min)"
        )
    else:
        await state.set_state(ListingCreation.entering_days)
        await message.answer(
            "📆 Which <b>days</b>? e.g. <code>mon-fri</code> or <code>sat, sun</code>",
            reply_markup=schedule_default_keyboard(),
        )


@router.callback_query(ListingCreation.entering_days, F.data == "sched:default")
async def accept_default_schedule(
    callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore
) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    await _advance(message, state, wizard)


@router.message(ListingCreation.entering_days)
async def process_days(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    days = parse_days_input(message.text or "")
    if not days:
        await message.answer("Couldn't read those days. Try <code>mon-fri</code> or <code>tue, thu</code>:")
        return
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field(
        "service_schedule",
        wizard.state.service_schedule.model_copy(update={"days": days}),
    )
    await state.set_state(ListingCreation.entering_window)
    await message.answer("🕘 Send the <b>hours</b>, e.g. <code>09:00-18:00</code>:")


@router.message(ListingCreation.entering_window)
async def process_window(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    window = parse_window_input(message.text or "")
    if window is None:
        await message.answer("Couldn't read those hours. Use <code>HH:MM-HH:MM</code>:")
        return
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    start24, end24 = window
    wizard.set_field(
        "service_schedule",
        wizard.state.service_schedule.model_copy(update={"start24": start24, "end24": end24}),
    )
    await _advance(message, state, wizard)


@router.message(ListingCreation.entering_slots)
async def process_slots(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    lines = [line for line in (message.text or "").splitlines() if line.strip()]
    if not lines:
        await message.answer("Send at least one slot line.")
        return

    slots = []
    for line in lines:
        slot = parse_slot_line(line)
        if slot is None:
            await message.answer(f"Couldn't read <code>{escape(line)}</code>. Use YYYY-MM-DD HH:MM [minutes].")
            return
        slots.append(slot)

    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field(
        "service_schedule",
        wizard.state.service_schedule.model_copy(update={"slots": slots}),
    )
    await _advance(message, state, wizard)


# ── Where ────────────────────────────────────────────────────


async def _after_location(
    message: Message,
    state: FSMContext,
    wizard: ListingWizard,
    loc: LocationPayload | None,
) -> None:
    wizard.sync_location()
    if loc is None:
        await _show_error(message, wizard.state.err)
        return
    await message.answer(f"📍 {escape(wizard.state.selected_address)}")
    await _advance(message, state, wizard)


@router.message(ListingCreation.searching_location, F.location)
async def process_shared_location(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    """A shared Telegram location is a dropped pin."""
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    point = message.location
    loc = await wizard.resolver.on_map_picked(point.latitude, point.longitude)  # type: ignore[union-attr]
    await _after_location(message, state, wizard, loc)


@router.message(ListingCreation.searching_location, F.text)
async def process_location_query(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    text = message.text or ""
    resolver = wizard.resolver
    resolver.on_query_change(text)
    suggestions = await resolver.wait_for_suggestions()

    if resolver.query != text:
        return  # superseded by a newer message
    if resolver.err:
        await _show_error(message, resolver.err)
    elif not suggestions:
        await message.answer("No matches. Try another address or share a location.")
    else:
        await message.answer("Pick a place:", reply_markup=suggestions_keyboard(suggestions))


@router.callback_query(ListingCreation.searching_location, F.data.startswith("place:"))
async def process_place(callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return

    raw = callback.data.split(":", 1)[1]  # type: ignore[union-attr]
    suggestions = wizard.resolver.suggestions
    if not raw.isdigit() or int(raw) >= len(suggestions):
        await message.answer("That suggestion has expired. Type the address again.")
        return

    loc = await wizard.resolver.pick_suggestion(suggestions[int(raw)])
    await _after_location(message, state, wizard, loc)


# ── Price / capacity ─────────────────────────────────────────


@router.message(ListingCreation.entering_price)
async def process_price(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("price_text", (message.text or "").strip())
    await _advance(message, state, wizard)


@router.message(ListingCreation.entering_capacity)
async def process_capacity(message: Message, state: FSMContext, sessions: WizardSessionStore) -> None:
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("capacity_text", (message.text or "").strip())
    await _advance(message, state, wizard)


@router.callback_query(ListingCreation.entering_capacity, F.data == "capacity:skip")
async def skip_capacity(callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.set_field("capacity_text", "")
    await _advance(message, state, wizard)


# ── Service photos ───────────────────────────────────────────


@router.message(ListingCreation.uploading_photos, F.photo)
async def process_photo(
    message: Message,
    sessions: WizardSessionStore,
    uploader: HttpPhotoUploader,
    adapter: PlatformAdapter,
) -> None:
    """Register the photo locally, then upload it and attach url/key."""
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return

    photo = message.photo[-1]  # type: ignore[index]
    before = len(wizard.state.service_photos)
    wizard.dispatch(AddServicePhotos([ServicePhoto(uri=photo.file_id)]))
    if len(wizard.state.service_photos) == before:
        if wizard.state.err:
            await _show_error(message, wizard.state.err)
        return

    try:
        data = await adapter.download_file(photo.file_id)
        uploaded = await uploader.upload(data, filename=f"{photo.file_unique_id}.jpg")
    except GatewayError as e:
        logger.warning("Service photo upload failed for chat %d: %s", message.chat.id, e)
        wizard.dispatch(SetErr(PHOTO_UPLOAD_FAILED))
        await _show_error(message, PHOTO_UPLOAD_FAILED)
        return

    wizard.dispatch(UpdateServicePhoto(photo.file_id, {"url": uploaded.url, "key": uploaded.key}))
    count = len(wizard.state.service_photos)
    await message.answer(
        f"🖼 Photo {count}/{MAX_SERVICE_PHOTOS} added.",
        reply_markup=photos_done_keyboard(count),
    )


@router.callback_query(ListingCreation.uploading_photos, F.data == "photos:done")
async def photos_done(callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return

    pending = wizard.state.pending_photos
    for photo in pending:
        wizard.dispatch(RemoveServicePhoto(photo.uri))
    if pending:
        await message.answer(f"Skipped {len(pending)} photo(s) that failed to upload.")
    await _advance(message, state, wizard)


# ── Review / publish ─────────────────────────────────────────


@router.callback_query(ListingCreation.reviewing, F.data == "review:back")
async def review_back(callback: CallbackQuery, state: FSMContext, sessions: WizardSessionStore) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None:
        return
    wizard.go_back()
    await _show_step(message, state, wizard)


@router.callback_query(ListingCreation.reviewing, F.data == "review:publish")
async def publish_listing(
    callback: CallbackQuery,
    state: FSMContext,
    sessions: WizardSessionStore,
    listings_api: ListingsApiClient,
) -> None:
    await callback.answer()
    message: Message = callback.message  # type: ignore[assignment]
    wizard = await _get_wizard(message, sessions)
    if wizard is None or wizard.state.submitting:
        return

    err = wizard.validate_for_submit()
    if err:
        await _show_error(message, err)
        return

    wizard.begin_submit()
    try:
        payload = assemble_create_payload(
            wizard.state,
            actor_id=str(callback.from_user.id),
            tz_name=wizard.tz_name,
        )
        created = await listings_api.create_listing(payload)
    except (ListingNotReadyError, ListingApiError) as e:
        wizard.end_submit(e.message)
        await _show_error(message, e.message)
        await message.answer("You can try again:", reply_markup=review_keyboard())
        return

    wizard.end_submit()
    sessions.drop(message.chat.id)
    await state.clear()
    logger.info(
        "User %d published %s listing %s",
        callback.from_user.id, payload["kind"], listing_id_of(created),
    )
    await message.answer(f"🎉 <b>Published!</b> {escape(payload['title'])}")
