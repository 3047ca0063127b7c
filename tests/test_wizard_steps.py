import pytest

from listing_bot.core.listing_types import ListingKind, StepKey
from listing_bot.core.wizard_steps import clamp_step_index, get_steps


def test_no_kind_is_kind_picker_only():
    assert get_steps(None) == [StepKey.KIND]


def test_free_event_flow():
    assert get_steps(ListingKind.EVENT_FREE) == [
        StepKey.KIND, StepKey.BASICS, StepKey.WHEN, StepKey.WHERE, StepKey.CAPACITY, StepKey.REVIEW,
    ]


def test_paid_event_flow():
    assert get_steps(ListingKind.EVENT_PAID) == [
        StepKey.KIND, StepKey.BASICS, StepKey.WHEN, StepKey.WHERE, StepKey.PRICE, StepKey.REVIEW,
    ]


def test_service_flow():
    assert get_steps(ListingKind.SERVICE) == [
        StepKey.KIND, StepKey.BASICS, StepKey.SERVICE_WHEN, StepKey.WHERE,
        StepKey.PRICE, StepKey.SERVICE_PHOTOS, StepKey.REVIEW,
    ]


@pytest.mark.parametrize("kind", list(ListingKind))
def test_every_flow_starts_with_kind_and_ends_with_review(kind):
    steps = get_steps(kind)
    assert steps[0] == StepKey.KIND
    assert steps[-1] == StepKey.REVIEW
    assert len(steps) == len(set(steps))


def test_step_ids_are_wire_names():
    assert StepKey.SERVICE_WHEN.value == "serviceWhen"
    assert StepKey.SERVICE_PHOTOS.value == "servicePhotos"


def test_get_steps_returns_a_fresh_list():
    steps = get_steps(ListingKind.EVENT_FREE)
    steps.clear()
    assert len(get_steps(ListingKind.EVENT_FREE)) == 6


# ── Clamp ────────────────────────────────────────────────────


def test_clamp_keeps_step_present_in_both_graphs():
    free = get_steps(ListingKind.EVENT_FREE)
    service = get_steps(ListingKind.SERVICE)
    # "where" is index 3 in both
    assert clamp_step_index(free, 3, service) == 3
    # "review" moves from index 5 to 6
    assert clamp_step_index(free, 5, service) == 6


def test_clamp_falls_back_to_same_position_when_step_disappears():
    free = get_steps(ListingKind.EVENT_FREE)
    paid = get_steps(ListingKind.EVENT_PAID)
    service = get_steps(ListingKind.SERVICE)
    # capacity (4) is not a paid step: position 4 is price
    assert paid[clamp_step_index(free, 4, paid)] == StepKey.PRICE
    # when (2) is not a service step: position 2 is serviceWhen
    assert service[clamp_step_index(free, 2, service)] == StepKey.SERVICE_WHEN


def test_clamp_never_leaves_range():
    service = get_steps(ListingKind.SERVICE)
    assert clamp_step_index(service, 5, [StepKey.KIND]) == 0
    # out-of-range cursor keeps its position, clamped to the last step
    assert clamp_step_index([StepKey.KIND], 7, service) == len(service) - 1
    assert clamp_step_index(service, 42, get_steps(ListingKind.EVENT_PAID)) == 5
