import random

import pytest

from itawards.errors import EmptyRosterError
from itawards.services.draw import DrawEngine


def test_draw_empty_roster() -> None:
    """Test that a draw cannot be set up without collaborators."""
    with pytest.raises(EmptyRosterError):
        DrawEngine([])


@pytest.mark.parametrize("seed", [0, 1, 42, 2024])
def test_draw_no_repeat_within_a_lap(seed: int) -> None:
    roster = ["Alice", "Bob", "Carol", "Dan", "Eve"]
    engine = DrawEngine(roster, rng=random.Random(seed))

    drawn = [engine.next() for _ in roster]

    assert sorted(drawn) == sorted(roster)
    assert engine.remaining == 0


def test_draw_starts_a_new_lap() -> None:
    roster = ["Alice", "Bob", "Carol"]
    engine = DrawEngine(roster, rng=random.Random(7))

    first_lap = [engine.next() for _ in roster]
    second_lap = [engine.next() for _ in roster]

    assert set(first_lap) == set(roster)
    assert set(second_lap) == set(roster)
    assert engine.remaining == 0


def test_draw_remaining_counts_down() -> None:
    engine = DrawEngine(["Alice", "Bob", "Carol"], rng=random.Random(3))

    assert engine.remaining == 3
    engine.next()
    assert engine.remaining == 2


def test_draw_single_entry_roster() -> None:
    engine = DrawEngine(["Alice"])
    assert [engine.next() for _ in range(3)] == ["Alice", "Alice", "Alice"]


def test_draw_reset_starts_over() -> None:
    roster = ["Alice", "Bob"]
    engine = DrawEngine(roster, rng=random.Random(5))
    engine.next()

    engine.reset()

    assert engine.remaining == 2
    assert {engine.next(), engine.next()} == set(roster)


def test_draw_recovers_from_inconsistent_state() -> None:
    """Indices outside the roster never block the draw."""
    roster = ["Alice", "Bob"]
    engine = DrawEngine(roster, rng=random.Random(9))
    engine.drawn = {0, 5}

    assert engine.next() in roster
    assert len(engine.drawn) == 1


def test_draw_roster_emptied_after_setup() -> None:
    engine = DrawEngine(["Alice"])
    engine.roster = []

    with pytest.raises(EmptyRosterError):
        engine.next()
