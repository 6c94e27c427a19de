# src/metamorph/reporting.py
"""Test-reporting contract consumed by the transcript Logger and the runner.

A Reporter is the harness's view of the surrounding test framework:

- ``error(message)`` records a failure and lets the run continue
- ``log(message)`` attaches diagnostic text (e.g. a transcript dump)
- ``fail_now()`` aborts the current run by raising; it never returns
- ``failed`` tells whether any failure has been recorded

``fail_now()`` unwinds only the run in progress: callers that catch the
raised exception may keep using the process normally.
"""

from __future__ import annotations

from typing import NoReturn, Protocol, runtime_checkable

import pytest

from metamorph.errors import RunAborted


@runtime_checkable
class Reporter(Protocol):
    """Protocol for test-reporting sinks."""

    @property
    def failed(self) -> bool:
        """True once any error has been recorded or the run was aborted."""
        ...

    def error(self, message: str) -> None:
        """Record a non-fatal failure."""
        ...

    def log(self, message: str) -> None:
        """Attach diagnostic output."""
        ...

    def fail_now(self) -> NoReturn:
        """Mark the run as failed and abort it by raising."""
        ...


class RecordingReporter:
    """In-memory Reporter.

    ``fail_now()`` raises RunAborted carrying every recorded error.

    Attributes:
        errors: Messages passed to error(), in order.
        logs: Messages passed to log(), in order.
        aborted: True once fail_now() has been called.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.logs: list[str] = []
        self.aborted = False

    @property
    def failed(self) -> bool:
        return self.aborted or bool(self.errors)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def log(self, message: str) -> None:
        self.logs.append(message)

    def fail_now(self) -> NoReturn:
        self.aborted = True
        raise RunAborted(self.errors)


class PytestReporter(RecordingReporter):
    """Reporter that surfaces failures through pytest.

    ``fail_now()`` fails the current test immediately. Non-fatal errors are
    collected; call ``check()`` once the run returns to fail the test if any
    were recorded.

    Example:
        def test_store_equivalence():
            reporter = PytestReporter()
            run_in_tandem(reporter, [StoreA(), StoreB()], ops)
            reporter.check()
    """

    def fail_now(self) -> NoReturn:
        self.aborted = True
        pytest.fail(self._summary(), pytrace=False)

    def check(self) -> None:
        """Fail the current test if any error was recorded."""
        if self.failed:
            pytest.fail(self._summary(), pytrace=False)

    def _summary(self) -> str:
        parts = [*self.errors, *self.logs]
        return "\n".join(parts) if parts else "metamorphic run failed"
