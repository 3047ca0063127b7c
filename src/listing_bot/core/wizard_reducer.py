"""
Wizard state reducer — the only writer of WizardState.

`reduce(state, action)` returns a new state and never raises: unknown
actions, unknown field names and unknown kinds leave the state as is.
Validation is deferred to wizard_validation.

Kind switches clear fields the new kind cannot use, so stale values
never reach the submission payload:
  → event_free : price_text, service_photos
  → event_paid : capacity_text, service_photos
  → service    : capacity_text
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from listing_bot.core.listing_types import ListingKind, ServicePhoto, WizardState

logger = logging.getLogger(__name__)

MAX_SERVICE_PHOTOS = 6
PHOTO_LIMIT_ERROR = f"You can add up to {MAX_SERVICE_PHOTOS} service photos."

# Fields a photo patch may touch
_PHOTO_PATCH_KEYS = frozenset({"url", "key"})


# ── Actions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class SetKind:
    kind: ListingKind | str


@dataclass(frozen=True)
class SetField:
    key: str
    value: Any


@dataclass(frozen=True)
class SetErr:
    err: str | None


@dataclass(frozen=True)
class AddServicePhotos:
    photos: list[ServicePhoto]


@dataclass(frozen=True)
class UpdateServicePhoto:
    uri: str
    patch: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveServicePhoto:
    uri: str


@dataclass(frozen=True)
class Reset:
    pass


WizardAction = (
    SetKind | SetField | SetErr | AddServicePhotos | UpdateServicePhoto | RemoveServicePhoto | Reset
)


def initial_wizard_state() -> WizardState:
    """Fresh state for a new creation flow."""
    return WizardState()


# ── Reducer ──────────────────────────────────────────────────


def reduce(state: WizardState, action: WizardAction) -> WizardState:
    """Apply one action and return the resulting state."""
    if isinstance(action, SetKind):
        return _set_kind(state, action.kind)

    if isinstance(action, SetField):
        return _set_field(state, action.key, action.value)

    if isinstance(action, SetErr):
        return state.model_copy(update={"err": action.err})

    if isinstance(action, AddServicePhotos):
        return _add_photos(state, action.photos)

    if isinstance(action, UpdateServicePhoto):
        patch = {k: v for k, v in action.patch.items() if k in _PHOTO_PATCH_KEYS}
        if not patch or not any(p.uri == action.uri for p in state.service_photos):
            return state
        photos = [
            p.model_copy(update=patch) if p.uri == action.uri else p
            for p in state.service_photos
        ]
        return state.model_copy(update={"service_photos": photos})

    if isinstance(action, RemoveServicePhoto):
        photos = [p for p in state.service_photos if p.uri != action.uri]
        return state.model_copy(update={"service_photos": photos, "err": None})

    if isinstance(action, Reset):
        return initial_wizard_state()

    logger.debug("Ignoring unknown wizard action %r", action)
    return state


def _set_field(state: WizardState, key: str, value: Any) -> WizardState:
    if key not in WizardState.model_fields:
        logger.debug("Ignoring SET for unknown field %r", key)
        return state
    updated = state.model_copy()
    try:
        # validate_assignment coerces dicts into Coord / LocationPayload etc.
        setattr(updated, key, value)
    except ValidationError:
        logger.debug("Ignoring SET with invalid value for %r", key)
        return state
    updated.err = None
    return updated


def _set_kind(state: WizardState, raw_kind: ListingKind | str) -> WizardState:
    try:
        kind = ListingKind(raw_kind)
    except ValueError:
        logger.debug("Ignoring SET_KIND with unknown kind %r", raw_kind)
        return state

    update: dict[str, Any] = {"kind": kind, "err": None}
    if kind == ListingKind.EVENT_FREE:
        update.update(price_text="", service_photos=[])
    elif kind == ListingKind.EVENT_PAID:
        update.update(capacity_text="", service_photos=[])
    else:
        update.update(capacity_text="")
    return state.model_copy(update=update)


def _add_photos(state: WizardState, incoming: list[ServicePhoto]) -> WizardState:
    """
    Append, dedupe by key-or-uri, cap at MAX_SERVICE_PHOTOS.

    Overflow is dropped (oldest photos win) and reported through `err`.
    """
    seen: set[str] = set()
    merged: list[ServicePhoto] = []
    for photo in [*state.service_photos, *incoming]:
        if photo.identity in seen:
            continue
        seen.add(photo.identity)
        merged.append(photo)

    update: dict[str, Any] = {"service_photos": merged[:MAX_SERVICE_PHOTOS]}
    if len(merged) > MAX_SERVICE_PHOTOS:
        update["err"] = PHOTO_LIMIT_ERROR
    return state.model_copy(update=update)
