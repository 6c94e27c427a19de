# src/metamorph/__init__.py
"""metamorph: metamorphic, property-based testing.

By running logically equivalent operations under different conditions
(different implementations, configurations or execution strategies),
metamorphic tests can identify bugs without requiring an oracle.

- weighted: Weighted random selection (independent draws or deck-based)
- seq: Restartable integer, list and filtered sequences
- logger: Per-timeline transcript Logger
- runner: run / run_in_tandem and divergence detection
- reporting: Reporter protocol plus in-memory and pytest reporters
- config: HarnessConfig, presets and seeded PRNG construction
- harness: Harness facade binding config, PRNG and reporter for one test
"""

from metamorph.config import (
    HarnessConfig,
    list_presets,
    load_config,
    load_preset,
    make_rng,
    merge_layers,
)
from metamorph.errors import (
    DivergenceError,
    FilterExhaustedError,
    MetamorphError,
    RunAborted,
    WeightConfigError,
)
from metamorph.harness import Harness
from metamorph.logger import Logger, NewlineIndentingWriter
from metamorph.reporting import PytestReporter, RecordingReporter, Reporter
from metamorph.runner import Op, compare_op_results, run, run_in_tandem, step
from metamorph.weighted import ItemWeight, Weighted, generate

__all__ = [
    "DivergenceError",
    "FilterExhaustedError",
    "Harness",
    "HarnessConfig",
    "ItemWeight",
    "Logger",
    "MetamorphError",
    "NewlineIndentingWriter",
    "Op",
    "PytestReporter",
    "RecordingReporter",
    "Reporter",
    "RunAborted",
    "WeightConfigError",
    "Weighted",
    "compare_op_results",
    "generate",
    "list_presets",
    "load_config",
    "load_preset",
    "make_rng",
    "merge_layers",
    "run",
    "run_in_tandem",
    "step",
]
