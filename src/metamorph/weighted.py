# src/metamorph/weighted.py
"""Weighted random selection of items.

Two selection strategies are offered:

- ``random``: independent draws. Frequencies converge to the weights only
  in the long run.
- ``random_deck``: draws from a shuffled deck holding ``weight`` copies of
  each item. Every full pass through the deck returns each item exactly
  ``weight`` times.

Usage:
    ops = Weighted([ItemWeight("put", 3), ItemWeight("get", 1)])
    next_op = ops.random_deck(random.Random(42))
    stream = generate(100, next_op)
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from metamorph.errors import WeightConfigError


@dataclass(frozen=True, slots=True)
class ItemWeight[I]:
    """An item and its relative weight.

    Attributes:
        item: The value returned when this entry is selected.
        weight: Non-negative integer weight. Zero-weight items are never selected.
    """

    item: I
    weight: int

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError(f"weight must be >= 0, got {self.weight} for {self.item!r}")


class Weighted[I]:
    """An ordered collection of items and their weights.

    Order only matters as the deck construction order; it does not change
    the distribution.
    """

    def __init__(self, entries: Iterable[ItemWeight[I]]) -> None:
        self._entries: tuple[ItemWeight[I], ...] = tuple(entries)

    @property
    def total(self) -> int:
        """Sum of all weights."""
        return sum(e.weight for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ItemWeight[I]]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> ItemWeight[I]:
        return self._entries[index]

    def _checked_total(self) -> int:
        total = self.total
        if total <= 0:
            raise WeightConfigError(total)
        return total

    def random(self, rng: random.Random) -> Callable[[], I]:
        """Return a function that selects one item per call by independent draws.

        Raises:
            WeightConfigError: If the total weight is not positive.
        """
        total = self._checked_total()
        entries = self._entries

        def next_item() -> I:
            t = rng.randrange(total)
            for entry in entries:
                t -= entry.weight
                if t < 0:
                    return entry.item
            raise AssertionError(f"unreachable: draw outside [0, {total})")

        return next_item

    def random_deck(self, rng: random.Random) -> Callable[[], I]:
        """Return a function that selects one item per call from a shuffled deck.

        The deck is reshuffled each time it is exhausted, including before
        the first draw.

        Raises:
            WeightConfigError: If the total weight is not positive.
        """
        self._checked_total()
        entries = self._entries
        deck = [i for i, entry in enumerate(entries) for _ in range(entry.weight)]
        index = len(deck)

        def next_item() -> I:
            nonlocal index
            if index == len(deck):
                rng.shuffle(deck)
                index = 0
            item = entries[deck[index]].item
            index += 1
            return item

        return next_item

    def __repr__(self) -> str:
        inner = ", ".join(f"{e.item!r}: {e.weight}" for e in self._entries)
        return f"Weighted({{{inner}}})"


def generate[I](n: int, fn: Callable[[], I]) -> list[I]:
    """Call fn n times and collect the results.

    Intended for use with the functions returned by ``Weighted.random`` and
    ``Weighted.random_deck``.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    return [fn() for _ in range(n)]
