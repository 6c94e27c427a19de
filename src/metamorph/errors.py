# src/metamorph/errors.py
"""Harness-specific exceptions.

These exceptions describe failures of the harness itself or of the
timelines it drives. Exceptions raised by operations under test are not
wrapped in these types; the runner converts them into fatal reports.
"""

from __future__ import annotations


class MetamorphError(Exception):
    """Base class for all metamorph exceptions."""


class DivergenceError(MetamorphError):
    """Raised when two timelines logged different text for the same operation.

    Attributes:
        expected: Transcript segment of the reference timeline.
        actual: Transcript segment of the diverging timeline.
        op_number: Index of the operation whose segments differ, when known.
    """

    def __init__(self, expected: str, actual: str, op_number: int | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.op_number = op_number
        super().__init__(f"divergence:\n{expected}\n{actual}\n")


class RunAborted(MetamorphError):
    """Raised by the abort path to unwind the current run.

    The runner lets this propagate untouched: an abort is never converted
    into a second fatal report.

    Attributes:
        errors: Error messages recorded before the abort.
    """

    def __init__(self, errors: list[str] | None = None) -> None:
        self.errors = list(errors) if errors is not None else []
        if self.errors:
            message = "run aborted:\n" + "\n".join(self.errors)
        else:
            message = "run aborted"
        super().__init__(message)


class WeightConfigError(MetamorphError, ValueError):
    """Raised when a weighted set cannot be sampled (total weight <= 0).

    Attributes:
        total: The computed total weight.
    """

    def __init__(self, total: int) -> None:
        self.total = total
        super().__init__(f"total weight must be > 0, got {total}")


class FilterExhaustedError(MetamorphError):
    """Raised when a random filter rejects every pull within its attempt cap.

    Attributes:
        attempts: Number of pulls made from the inner sequence.
        probability: Keep probability of the filter.
    """

    def __init__(self, attempts: int, probability: float) -> None:
        self.attempts = attempts
        self.probability = probability
        super().__init__(f"random filter (p={probability}) kept no value in {attempts} attempts")
