# src/metamorph/logger.py
"""Transcript logger for metamorphic runs.

Each timeline of a run owns one Logger. The Logger accumulates a
deterministic, human-readable transcript:

    op      0: Put("foo", "hello world") = -
    op      1: Get("foo") = "hello world"
    op      2: Scan() = a
      b
      c
    done

Multi-line operation output is indented under its ``op`` line so that
every operation occupies exactly one unindented line. Transcripts of
different timelines are compared byte-for-byte, so operations must log
everything that matters for equivalence and nothing that is incidental
(addresses, timings).

The Logger also satisfies the Reporter protocol, so operations can use it
wherever a test-reporting sink is expected.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import NoReturn

import structlog

from metamorph.config import DEFAULT_CONFIG, HarnessConfig
from metamorph.errors import RunAborted
from metamorph.reporting import Reporter

logger = structlog.get_logger(__name__)


class NewlineIndentingWriter:
    """Writes text through to ``write``, following every newline with ``indent``."""

    def __init__(self, write: Callable[[str], None], indent: str) -> None:
        self._write = write
        self.indent = indent

    def write(self, text: str) -> None:
        if self.indent and "\n" in text:
            text = text.replace("\n", "\n" + self.indent)
        self._write(text)


class Logger:
    """Records operation outputs and errors, maintaining a cumulative history.

    Per-operation context (``op_number``, ``op``, ``logged``) is set by
    ``operation()`` before each operation runs.
    """

    def __init__(self, reporter: Reporter, *, config: HarnessConfig = DEFAULT_CONFIG) -> None:
        self._reporter = reporter
        self._config = config
        self._history = bytearray()
        self._indent_bytes = config.indent.encode()
        self._indenting = NewlineIndentingWriter(self.write, config.indent)
        self._in_op = False

        # op context; updated before each operation is run
        self.op_number = 0
        self.op: object | None = None
        self.logged = False

    @property
    def config(self) -> HarnessConfig:
        return self._config

    @property
    def failed(self) -> bool:
        return self._reporter.failed

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, text: str) -> None:
        """Append text to the history verbatim (no indentation)."""
        self._history += text.encode()

    def log(self, *args: object) -> None:
        """Record the concatenated ``str()`` of args as this operation's output."""
        self.logged = True
        self._indenting.write("".join(str(a) for a in args))

    def logf(self, fmt: str, *args: object) -> None:
        """Record ``fmt % args`` as this operation's output."""
        self.logged = True
        self._indenting.write(fmt % args if args else fmt)

    def commentf(self, fmt: str, *args: object) -> None:
        """Write a ``// `` comment line.

        A newline is written first unless the history already sits at the
        start of a line. Comments do not count as operation output.
        """
        if not self._at_line_start():
            self._newline()
        self._indenting.write("// " + (fmt % args if args else fmt))
        self._newline()

    def _newline(self) -> None:
        self.write("\n" + self._config.indent if self._in_op else "\n")

    def _at_line_start(self) -> bool:
        history = self._history
        if not history or history.endswith(b"\n"):
            return True
        return self._in_op and history.endswith(b"\n" + self._indent_bytes)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def error(self, err: object) -> None:
        """Fail the run without stopping it, logging err."""
        self.log("error: ", err)
        self._reporter.error(str(err))

    def errorf(self, fmt: str, *args: object) -> None:
        """Fail the run without stopping it, logging the formatted message."""
        message = fmt % args if args else fmt
        self.log("error: ", message)
        self._reporter.error(message)

    def fail_now(self) -> NoReturn:
        """Report the full history, then abort the run through the reporter."""
        self._reporter.log(f"History:\n\n{self.history()}")
        self._reporter.fail_now()

    def fatal(self, *args: object) -> NoReturn:
        """Equivalent to errorf followed by fail_now."""
        self.errorf("%s", "".join(str(a) for a in args))
        self.fail_now()

    # ------------------------------------------------------------------
    # History access
    # ------------------------------------------------------------------

    def history(self) -> str:
        """Return the history accumulated so far."""
        return self._history.decode()

    def offset(self) -> int:
        """Current length of the history in bytes."""
        return len(self._history)

    def segment(self, start: int, end: int | None = None) -> bytes:
        """Return the history bytes in ``[start, end)``."""
        return bytes(self._history[start:end])

    # ------------------------------------------------------------------
    # Per-operation guard
    # ------------------------------------------------------------------

    @contextmanager
    def operation(self, op_number: int, op: object) -> Iterator[None]:
        """Scope one operation's output.

        Writes the ``op N: <op> = `` prefix on entry. On normal exit writes
        ``-`` if the operation logged nothing, then ends the line. Any
        exception other than RunAborted is converted into a fatal report,
        which dumps the history and aborts the run.
        """
        self.op_number = op_number
        self.op = op
        self.logged = False
        self._in_op = True
        try:
            self.write(f"op {op_number:{self._config.op_number_width}d}: {op} = ")
            yield
        except RunAborted:
            raise
        except Exception as exc:
            logger.error(
                "Operation raised",
                op_number=op_number,
                op_type=type(op).__name__,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self.fatal(f"{type(exc).__name__}: {exc}")
        finally:
            self._in_op = False
        if not self.logged:
            self.write("-")
        self.write("\n")
