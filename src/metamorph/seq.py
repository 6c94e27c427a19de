# src/metamorph/seq.py
"""Restartable sequences for building operation streams.

A Sequence is a stateful cursor over a cyclic domain. Each call to
``next()`` returns ``(value, restarted)``, where ``restarted`` is True
exactly when the value begins a new cycle, including on the very first
call of a fresh sequence.

Sequences are owned by a single caller and are not safe for concurrent
advancement.

Usage:
    keys = Slice(["a", "b", "c"])
    sparse = RandomFilter(IntsAscending(0, 1000), random.Random(7), p=0.1)
    key, restarted = keys.next()
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from metamorph.errors import FilterExhaustedError


@runtime_checkable
class Sequence[I](Protocol):
    """An ordered, restartable sequence of elements."""

    def next(self) -> tuple[I, bool]:
        """Return the next item and whether the sequence just (re)started."""
        ...


def _wrap(value: int, bits: int | None, signed: bool) -> int:
    """Reduce value into a fixed-width integer domain (no-op when bits is None)."""
    if bits is None:
        return value
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _check_range(min_value: int, max_value: int, bits: int | None, signed: bool) -> None:
    if min_value >= max_value:
        raise ValueError(f"empty range [{min_value}, {max_value})")
    if bits is None:
        return
    if bits < 1:
        raise ValueError(f"bits must be >= 1, got {bits}")
    lo, hi = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
    # max is exclusive, so it may sit one past the largest representable value
    if min_value < lo or max_value - 1 > hi:
        kind = "signed" if signed else "unsigned"
        raise ValueError(f"range [{min_value}, {max_value}) does not fit in {bits}-bit {kind} integers")


class IntsAscending:
    """Ascending integers in the half-open range [min, max).

    The cursor restarts at ``min`` once the advanced value reaches ``max``.
    It also restarts if the advanced value lands at or below ``min``, which
    is how a wrap-around is detected when ``bits`` pins the cursor to a
    fixed-width integer domain.
    """

    def __init__(self, min: int, max: int, *, bits: int | None = None, signed: bool = True) -> None:
        _check_range(min, max, bits, signed)
        self.min = min
        self.max = max
        self._bits = bits
        self._signed = signed
        self._v: int | None = None

    def next(self) -> tuple[int, bool]:
        if self._v is not None:
            v = _wrap(self._v + 1, self._bits, self._signed)
            if self.min < v < self.max:
                self._v = v
                return v, False
        self._v = self.min
        return self._v, True

    def __repr__(self) -> str:
        return f"IntsAscending(min={self.min}, max={self.max})"


class IntsDescending:
    """Descending integers in the half-open range [min, max).

    Starts at ``max - 1`` and restarts there once the decremented value
    drops below ``min`` (or wraps to ``max - 1`` or above).
    """

    def __init__(self, min: int, max: int, *, bits: int | None = None, signed: bool = True) -> None:
        _check_range(min, max, bits, signed)
        self.min = min
        self.max = max
        self._bits = bits
        self._signed = signed
        self._v: int | None = None

    def next(self) -> tuple[int, bool]:
        if self._v is not None:
            v = _wrap(self._v - 1, self._bits, self._signed)
            if self.min <= v < self.max - 1:
                self._v = v
                return v, False
        self._v = self.max - 1
        return self._v, True

    def __repr__(self) -> str:
        return f"IntsDescending(min={self.min}, max={self.max})"


class Slice[I]:
    """Cycles through a list in order.

    ``elems`` may be mutated between calls. If its length changed since the
    previous call, the cycle restarts from the first element.
    """

    def __init__(self, elems: list[I]) -> None:
        self.elems = elems
        self._index: IntsAscending | None = None

    def next(self) -> tuple[I, bool]:
        if not self.elems:
            raise ValueError("cannot cycle an empty list")
        if self._index is None or self._index.max != len(self.elems):
            self._index = IntsAscending(0, len(self.elems))
        i, restarted = self._index.next()
        return self.elems[i], restarted


class RandomFilter[I]:
    """Randomly filters an inner sequence, keeping each element with probability p.

    Discarded pulls still advance the inner sequence. A restart seen on any
    pull during one call is reported on the value that call returns.

    With ``max_attempts=None`` a call loops until a value is kept; the loop
    terminates with probability 1 for any p > 0.
    """

    def __init__(
        self,
        inner: Sequence[I],
        rng: random.Random,
        p: float,
        *,
        max_attempts: int | None = None,
    ) -> None:
        if not 0.0 < p <= 1.0:
            raise ValueError(f"keep probability must be in (0, 1], got {p}")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._inner = inner
        self._rng = rng
        self.probability = p
        self.max_attempts = max_attempts

    def next(self) -> tuple[I, bool]:
        restarted = False
        attempts = 0
        while self.max_attempts is None or attempts < self.max_attempts:
            attempts += 1
            curr, curr_restarted = self._inner.next()
            restarted = restarted or curr_restarted
            if self._rng.random() < self.probability:
                return curr, restarted
        raise FilterExhaustedError(attempts, self.probability)


class Func[I]:
    """Adapts a callable returning ``(value, restarted)`` to the Sequence protocol."""

    def __init__(self, fn: Callable[[], tuple[I, bool]]) -> None:
        self._fn = fn

    def next(self) -> tuple[I, bool]:
        return self._fn()


def take[I](seq: Sequence[I], n: int) -> list[tuple[I, bool]]:
    """Advance seq n times, returning each ``(value, restarted)`` pair."""
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    return [seq.next() for _ in range(n)]
