import random
from collections.abc import Sequence
from typing import Generic, TypeVar

from itawards.config import LOGGER
from itawards.errors import EmptyRosterError

T = TypeVar("T")


class DrawEngine(Generic[T]):
    """
    Random draw without replacement over a fixed roster.

    Every entry is returned exactly once per lap. Once the whole roster has
    been drawn a new lap starts, so a name may come back, but never twice
    within the same lap.
    """

    def __init__(self, roster: Sequence[T], rng: random.Random | None = None) -> None:
        if not roster:
            raise EmptyRosterError()
        self.roster: list[T] = list(roster)
        self.rng = rng or random.Random()
        self.drawn: set[int] = set()

    @property
    def remaining(self) -> int:
        """Entries still to be drawn in the current lap."""
        return len(self.roster) - len(self.drawn)

    def reset(self) -> None:
        self.drawn = set()

    def next(self) -> T:
        if not self.roster:
            raise EmptyRosterError()

        if len(self.drawn) >= len(self.roster):
            LOGGER.debug("Lottery lap complete, starting a new one")
            self.drawn = set()

        available = [i for i in range(len(self.roster)) if i not in self.drawn]
        if not available:
            index = self.rng.randrange(len(self.roster))
            self.drawn = {index}
            return self.roster[index]

        index = self.rng.choice(available)
        self.drawn.add(index)
        return self.roster[index]
