"""
Wizard step graph.

The sequence of steps depends on the listing kind. Before a kind is
chosen the wizard consists of the kind picker alone.

Flows:
  event_free → kind → basics → when → where → capacity → review
  event_paid → kind → basics → when → where → price → review
  service    → kind → basics → serviceWhen → where → price → servicePhotos → review
"""

from listing_bot.core.listing_types import ListingKind, StepKey

_STEP_GRAPH: dict[ListingKind, tuple[StepKey, ...]] = {
    ListingKind.EVENT_FREE: (
        StepKey.KIND,
        StepKey.BASICS,
        StepKey.WHEN,
        StepKey.WHERE,
        StepKey.CAPACITY,
        StepKey.REVIEW,
    ),
    ListingKind.EVENT_PAID: (
        StepKey.KIND,
        StepKey.BASICS,
        StepKey.WHEN,
        StepKey.WHERE,
        StepKey.PRICE,
        StepKey.REVIEW,
    ),
    ListingKind.SERVICE: (
        StepKey.KIND,
        StepKey.BASICS,
        StepKey.SERVICE_WHEN,
        StepKey.WHERE,
        StepKey.PRICE,
        StepKey.SERVICE_PHOTOS,
        StepKey.REVIEW,
    ),
}


def get_steps(kind: ListingKind | None) -> list[StepKey]:
    """Ordered step ids for a kind. Always starts with the kind picker."""
    if kind is None:
        return [StepKey.KIND]
    return list(_STEP_GRAPH[ListingKind(kind)])


def clamp_step_index(
    old_steps: list[StepKey],
    old_index: int,
    new_steps: list[StepKey],
) -> int:
    """
    Re-position the cursor after the step graph changed.

    Stays on the same step id when it still exists in the new graph,
    otherwise keeps the numeric position clamped into range.
    """
    if 0 <= old_index < len(old_steps):
        current = old_steps[old_index]
        if current in new_steps:
            return new_steps.index(current)
    return max(0, min(old_index, len(new_steps) - 1))
