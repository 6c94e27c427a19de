# src/metamorph/harness.py
"""Per-test facade binding a HarnessConfig, its seeded PRNG and a Reporter.

Usage:
    harness = Harness(PytestReporter(), load_config(preset="quick"))
    next_op = Weighted(op_weights).random_deck(harness.rng)
    harness.run_in_tandem([StoreA(), StoreB()], harness.generate(next_op))
    harness.reporter.check()

When a run fails, the seed is reported alongside the transcripts so the
exact operation list can be regenerated with ``overrides={"seed": ...}``.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Sequence as OpList
from typing import NoReturn

from metamorph.config import DEFAULT_CONFIG, HarnessConfig, make_rng
from metamorph.logger import Logger
from metamorph.reporting import Reporter
from metamorph.runner import Op, run, run_in_tandem
from metamorph.seq import RandomFilter, Sequence
from metamorph.weighted import generate


class _SeedReporter:
    """Forwards to an inner Reporter and reports the seed once on failure.

    An abort reports the seed before the inner ``fail_now`` raises, so
    reporters that build their failure message at abort time include it.
    """

    def __init__(self, inner: Reporter, seed: int) -> None:
        self._inner = inner
        self._seed = seed
        self._seed_reported = False

    @property
    def failed(self) -> bool:
        return self._inner.failed

    def error(self, message: str) -> None:
        self._inner.error(message)

    def log(self, message: str) -> None:
        self._inner.log(message)

    def fail_now(self) -> NoReturn:
        self.report_seed()
        self._inner.fail_now()

    def report_seed(self) -> None:
        if not self._seed_reported:
            self._seed_reported = True
            self._inner.log(f"seed: {self._seed}")


class Harness[R: Reporter]:
    """Configuration, randomness and reporting for one metamorphic test."""

    def __init__(self, reporter: R, config: HarnessConfig = DEFAULT_CONFIG) -> None:
        self.reporter = reporter
        self.config = config
        self.rng, self.seed = make_rng(config)

    def generate[I](self, fn: Callable[[], I], n: int | None = None) -> list[I]:
        """Generate n items (``config.ops`` when n is None) by calling fn."""
        return generate(self.config.ops if n is None else n, fn)

    def random_filter[I](self, inner: Sequence[I], p: float) -> RandomFilter[I]:
        """RandomFilter over inner using this harness's PRNG and attempt cap."""
        return RandomFilter(inner, self.rng, p, max_attempts=self.config.filter_max_attempts)

    def run[S](self, initial: S, ops: OpList[Op[S]]) -> Logger:
        reporter = _SeedReporter(self.reporter, self.seed)
        log = run(reporter, initial, ops, config=self.config)
        if reporter.failed:
            reporter.report_seed()
        return log

    def run_in_tandem[S](self, initial: OpList[S], ops: OpList[Op[S]]) -> list[Logger]:
        reporter = _SeedReporter(self.reporter, self.seed)
        logs = run_in_tandem(reporter, initial, ops, config=self.config)
        if reporter.failed:
            reporter.report_seed()
        return logs
