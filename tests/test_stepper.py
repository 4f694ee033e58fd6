"""Narrative stepper: index resolution, wraparound and the empty signal."""

import pytest

from core.stepper import InvalidSizeError, NarrativeStepper, narrative_index, resolve_index


# ── narrative_index ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("size", [1, 2, 5, 17])
def test_result_always_in_range(size):
    for forward in range(0, 3 * size + 2):
        for backward in range(0, 3 * size + 2):
            idx = narrative_index(forward, backward, size)
            assert 1 <= idx <= size, (forward, backward, size, idx)


@pytest.mark.parametrize("count", [0, 1, 3, 40])
def test_zero_net_steps_is_first(count):
    assert narrative_index(count, count, 5) == 1


def test_forward_steps_walk_the_selection():
    assert [narrative_index(f, 0, 5) for f in range(5)] == [1, 2, 3, 4, 5]


def test_one_step_past_last_wraps_to_first():
    assert narrative_index(5, 0, 5) == 1


def test_one_step_before_first_wraps_to_last():
    assert narrative_index(0, 1, 5) == 5


def test_backward_steps_walk_from_the_end():
    assert [narrative_index(0, b, 5) for b in range(1, 6)] == [5, 4, 3, 2, 1]


def test_larger_overshoot_resets_instead_of_modulo():
    # modulo would give 2 and 3 here
    assert narrative_index(6, 0, 5) == 1
    assert narrative_index(7, 0, 5) == 1


def test_deep_backward_overshoot_resets_to_first():
    # a single wrap of -7 over 5 records is still negative
    assert narrative_index(0, 7, 5) == 1


@pytest.mark.parametrize("forward,backward", [(0, 0), (3, 0), (0, 9), (100, 2)])
def test_empty_selection_has_no_index(forward, backward):
    assert narrative_index(forward, backward, 0) is None


def test_negative_size_raises():
    with pytest.raises(InvalidSizeError):
        narrative_index(0, 0, -1)


def test_invalid_size_error_is_value_error():
    assert issubclass(InvalidSizeError, ValueError)


# ── modulo policy ─────────────────────────────────────────────────────────────

def test_modulo_wraps_proportionally():
    assert narrative_index(6, 0, 5, wrap="modulo") == 2
    assert narrative_index(0, 7, 5, wrap="modulo") == 4
    assert narrative_index(5, 0, 5, wrap="modulo") == 1
    assert narrative_index(0, 1, 5, wrap="modulo") == 5


def test_modulo_empty_selection_has_no_index():
    assert narrative_index(4, 1, 0, wrap="modulo") is None


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        resolve_index(1, 3, wrap="bounce")


# ── NarrativeStepper ──────────────────────────────────────────────────────────

def test_stepper_starts_at_first_record():
    assert NarrativeStepper().index(4) == 1


def test_stepper_next_and_previous():
    stepper = NarrativeStepper()
    stepper.next()
    stepper.next()
    assert stepper.index(4) == 3
    stepper.previous()
    assert stepper.index(4) == 2
    assert (stepper.forward_count, stepper.backward_count, stepper.position) == (2, 1, 1)


def test_stepper_matches_two_counter_form():
    stepper = NarrativeStepper()
    for _ in range(3):
        stepper.previous()
    stepper.next()
    assert stepper.index(5) == narrative_index(stepper.forward_count, stepper.backward_count, 5)


def test_stepper_previous_from_start_shows_last():
    stepper = NarrativeStepper()
    stepper.previous()
    assert stepper.index(3) == 3


def test_stepper_reset():
    stepper = NarrativeStepper()
    stepper.next()
    stepper.previous()
    stepper.previous()
    stepper.reset()
    assert stepper == NarrativeStepper()


def test_stepper_empty_selection():
    stepper = NarrativeStepper()
    stepper.next()
    assert stepper.index(0) is None
