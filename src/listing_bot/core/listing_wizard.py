"""
Listing wizard session — one in-progress listing for one user.

Couples the reducer state, the step cursor and the location resolver.
Adapters (Telegram today) drive it with user input and render
`state` / `current_step`; they never mutate the state directly.
"""

import logging
from datetime import datetime

from listing_bot.config import settings
from listing_bot.core.listing_payload import EditableListing, ensure_creator, seed_state_from_listing
from listing_bot.core.listing_types import StepKey, WizardState
from listing_bot.core.location_resolver import LocationResolver
from listing_bot.core.service_schedule import first_service_start
from listing_bot.core.wizard_reducer import (
    SetErr,
    SetField,
    SetKind,
    WizardAction,
    initial_wizard_state,
    reduce,
)
from listing_bot.core.wizard_steps import clamp_step_index, get_steps
from listing_bot.core.wizard_validation import validate_all, validate_step

logger = logging.getLogger(__name__)

NO_UPCOMING_START = "No upcoming start in this schedule. Adjust the days or slots."


class ListingWizard:
    """
    Step navigation + state for one listing.

    Args:
        resolver:   location resolver owned by this session
        tz_name:    listing timezone (defaults to settings.listing_timezone)
        listing_id: set when editing an existing listing
    """

    def __init__(
        self,
        resolver: LocationResolver,
        *,
        tz_name: str | None = None,
        listing_id: str | None = None,
        state: WizardState | None = None,
    ) -> None:
        self.resolver = resolver
        self.tz_name = tz_name or settings.listing_timezone
        self.listing_id = listing_id
        self.state = state or initial_wizard_state()
        self.index = 0

    @classmethod
    def for_edit(
        cls,
        record: EditableListing,
        resolver: LocationResolver,
        actor_id: str | None,
        *,
        tz_name: str | None = None,
    ) -> "ListingWizard":
        """
        Session pre-filled from a persisted listing.

        Raises NotListingCreatorError unless `actor_id` created it.
        """
        ensure_creator(record, actor_id)
        state = seed_state_from_listing(record)
        resolver.seed(
            coord=state.coord,
            selected_address=state.selected_address,
            location_payload=state.location_payload,
            query=state.query,
        )
        return cls(
            resolver,
            tz_name=tz_name or record.timezone,
            listing_id=record.id,
            state=state,
        )

    # ── Cursor ────────────────────────────────────────────────

    @property
    def is_edit(self) -> bool:
        return self.listing_id is not None

    @property
    def steps(self) -> list[StepKey]:
        return get_steps(self.state.kind)

    @property
    def current_step(self) -> StepKey:
        return self.steps[self.index]

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(self.steps) - 1

    def progress(self) -> str:
        return f"Step {self.index + 1} of {len(self.steps)}"

    # ── State ─────────────────────────────────────────────────

    def dispatch(self, action: WizardAction) -> WizardState:
        """Run the reducer; re-clamp the cursor when the step graph may have changed."""
        old_steps = self.steps
        self.state = reduce(self.state, action)
        if isinstance(action, SetKind):
            self.index = clamp_step_index(old_steps, self.index, self.steps)
        return self.state

    def set_field(self, key: str, value: object) -> WizardState:
        return self.dispatch(SetField(key, value))

    def sync_location(self) -> WizardState:
        """Copy the resolver's location (and any resolution error) into the state."""
        r = self.resolver
        for key, value in (
            ("query", r.query),
            ("coord", r.coord),
            ("selected_address", r.selected_address),
            ("location_payload", r.location_payload),
        ):
            self.dispatch(SetField(key, value))
        if r.err:
            self.dispatch(SetErr(r.err))
        return self.state

    # ── Navigation ────────────────────────────────────────────

    def go_next(self, now: datetime | None = None) -> bool:
        """
        Validate the current step and advance.

        Returns False (and stores the message in `state.err`) when the
        step is not complete.
        """
        step = self.current_step
        if step == StepKey.WHERE:
            self.sync_location()

        err = validate_step(self.state, step, tz_name=self.tz_name, now=now)
        if err:
            self.dispatch(SetErr(err))
            return False

        if step == StepKey.SERVICE_WHEN:
            start = first_service_start(self.state.service_schedule, self.tz_name, now)
            if start is None:
                self.dispatch(SetErr(NO_UPCOMING_START))
                return False
            self.dispatch(SetField("date_iso", start[0]))
            self.dispatch(SetField("time24", start[1]))

        self.dispatch(SetErr(None))
        if not self.is_last:
            self.index += 1
        return True

    def go_back(self) -> None:
        if self.index > 0:
            self.index -= 1
        self.dispatch(SetErr(None))

    # ── Submission ────────────────────────────────────────────

    def validate_for_submit(self, now: datetime | None = None) -> str | None:
        """Whole-state gate; the first error is also stored in `state.err`."""
        err = validate_all(self.state, tz_name=self.tz_name, now=now)
        if err:
            self.dispatch(SetErr(err))
        return err

    def begin_submit(self) -> None:
        self.state = self.state.model_copy(update={"submitting": True, "err": None})

    def end_submit(self, err: str | None = None) -> None:
        self.state = self.state.model_copy(update={"submitting": False, "err": err})

    def close(self) -> None:
        """Cancel pending lookups; the session must not be used afterwards."""
        self.resolver.reset()
        logger.debug("Wizard closed (listing_id=%s)", self.listing_id)
