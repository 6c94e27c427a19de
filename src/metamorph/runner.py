# src/metamorph/runner.py
"""Drives operation lists against one or more states.

``run`` executes operations against a single state, producing one
transcript. ``run_in_tandem`` executes the same operations against several
independently constructed states and compares each operation's transcript
segment across timelines, reporting the operations where they diverge.

Operation i completes on every timeline before operation i+1 starts on any
timeline, so a divergence is reported at the first operation whose output
differs.

Usage:
    reporter = PytestReporter()
    run_in_tandem(reporter, [dict(), dict()], ops)
    reporter.check()
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import structlog

from metamorph.config import DEFAULT_CONFIG, HarnessConfig
from metamorph.errors import DivergenceError
from metamorph.logger import Logger
from metamorph.reporting import Reporter

logger = structlog.get_logger(__name__)


@runtime_checkable
class Op[S](Protocol):
    """A single operation within a metamorphic test.

    ``str(op)`` is written verbatim into the transcript and must be
    deterministic. It should not contain newlines.
    """

    def run(self, logger: Logger, state: S) -> None:
        """Run the operation against state, logging its outcome to logger."""
        ...


def step[S](log: Logger, state: S, op: Op[S]) -> None:
    """Run a single operation against state using the logger's next op number."""
    with log.operation(log.op_number, op):
        op.run(log, state)
    log.op_number += 1


def run[S](
    reporter: Reporter,
    initial: S,
    ops: Sequence[Op[S]],
    *,
    config: HarnessConfig = DEFAULT_CONFIG,
) -> Logger:
    """Run ops in order against initial, returning the timeline's Logger.

    The transcript ends with a ``done`` line. If the reporter recorded a
    failure, the full history is reported once the run completes.

    Raises:
        RunAborted: If an operation aborted the run (directly via
            ``Logger.fatal``/``fail_now`` or by raising).
    """
    log = Logger(reporter, config=config)
    logger.debug("Starting metamorphic run", ops=len(ops), timelines=1)
    for op in ops:
        step(log, initial, op)
    log.write("done\n")
    if reporter.failed and config.dump_history_on_failure:
        reporter.log(f"History:\n\n{log.history()}")
    logger.debug("Metamorphic run complete", ops=len(ops), failed=reporter.failed)
    return log


def run_in_tandem[S](
    reporter: Reporter,
    initial: Sequence[S],
    ops: Sequence[Op[S]],
    *,
    config: HarnessConfig = DEFAULT_CONFIG,
) -> list[Logger]:
    """Run ops against every state in initial, comparing outputs as they go.

    Each operation's output on timeline j > 0 is compared with timeline 0's
    output for the same operation. A mismatch is reported as a non-fatal
    error and the run continues, so later divergences are reported too.

    Returns:
        One Logger per state, in the order of ``initial``.

    Raises:
        RunAborted: If an operation aborted the run on any timeline.
    """
    logs = [Logger(reporter, config=config) for _ in initial]
    op_offsets = [[0] * len(ops) for _ in initial]
    divergences = 0
    logger.debug("Starting metamorphic run", ops=len(ops), timelines=len(logs))

    for i, op in enumerate(ops):
        for j, (log, state) in enumerate(zip(logs, initial, strict=True)):
            op_offsets[j][i] = log.offset()
            with log.operation(i, op):
                op.run(log, state)
            log.op_number = i + 1
            if j == 0:
                continue
            try:
                compare_op_results(logs[0], op_offsets[0][i], log, op_offsets[j][i], op_number=i)
            except DivergenceError as err:
                divergences += 1
                logger.warning("Timelines diverged", op_number=err.op_number, op=str(op), timeline=j)
                reporter.error(f"state 0 and {j} diverged at op {err.op_number}:\n{err}")

    if reporter.failed and config.dump_history_on_failure:
        for j, log in enumerate(logs):
            reporter.log(f"History of state {j}:\n\n{log.history()}")
    logger.debug("Metamorphic run complete", ops=len(ops), timelines=len(logs), divergences=divergences)
    return logs


def compare_op_results(a: Logger, off_a: int, b: Logger, off_b: int, *, op_number: int | None = None) -> None:
    """Compare the history of a from off_a with the history of b from off_b.

    op_number is attached to the raised error so callers can locate the op.

    Raises:
        DivergenceError: If the two segments are not byte-for-byte equal.
    """
    a_result = a.segment(off_a)
    b_result = b.segment(off_b)
    if a_result != b_result:
        raise DivergenceError(a_result.decode(), b_result.decode(), op_number=op_number)
