# src/metamorph/config.py
"""Harness configuration and preset loading.

Configuration precedence (highest to lowest):
1. overrides - Direct overrides passed by the caller
2. config_file - User's YAML configuration file
3. preset - Named preset bundled with metamorph
4. defaults - Built-in Pydantic defaults

Usage:
    config = load_config(preset="nightly", overrides={"seed": 1234})
    rng, seed = make_rng(config)
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

PRESETS_DIR = Path(__file__).parent / "presets"


class HarnessConfig(BaseModel):
    """Settings shared by every timeline of a run.

    All timelines of a tandem run must use the same config, otherwise their
    transcripts are not comparable.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    indent: str = Field(
        default="  ",
        description="Indent written after every newline of operation output",
    )
    op_number_width: int = Field(
        default=6,
        ge=1,
        description="Width of the right-aligned operation number in transcript lines",
    )
    dump_history_on_failure: bool = Field(
        default=True,
        description="Report each timeline's full transcript when a run fails",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for make_rng (None draws a fresh seed)",
    )
    ops: int = Field(
        default=1000,
        ge=0,
        description="Default number of operations to generate per run",
    )
    filter_max_attempts: int | None = Field(
        default=None,
        gt=0,
        description="Default cap on pulls per RandomFilter.next() call (None is unbounded)",
    )
    preset_name: str | None = Field(
        default=None,
        description="Preset this config was loaded from, if any",
    )


DEFAULT_CONFIG = HarnessConfig()


def merge_layers(*layers: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten config layers into one dict; later layers win key by key.

    Every HarnessConfig field is a scalar, so a mapping value is a mistake
    in the layer (usually mis-indented YAML) and is rejected by name here
    rather than surfacing as an opaque validation error.

    Raises:
        ValueError: If any layer maps a key to a nested mapping.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if isinstance(value, Mapping):
                raise ValueError(f"Config key '{key}' must be a scalar, got a mapping")
            merged[key] = value
    return merged


def list_presets(presets_dir: Path = PRESETS_DIR) -> list[str]:
    """Names of the bundled presets, sorted (empty if presets_dir is missing)."""
    if not presets_dir.is_dir():
        return []
    return sorted(path.stem for path in presets_dir.glob("*.yaml"))


def _read_mapping(path: Path, label: str) -> dict[str, Any]:
    with path.open() as f:
        loaded = yaml.safe_load(f)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{label} must be a YAML mapping, got {type(loaded).__name__}")
    return loaded


def load_preset(preset_name: str, presets_dir: Path = PRESETS_DIR) -> dict[str, Any]:
    """Raw HarnessConfig values of the named preset.

    Raises:
        FileNotFoundError: If no such preset exists; the message names the known presets.
        ValueError: If the preset file is not a YAML mapping.
    """
    path = presets_dir / f"{preset_name}.yaml"
    if not path.is_file():
        known = ", ".join(list_presets(presets_dir)) or "none"
        raise FileNotFoundError(f"Unknown preset '{preset_name}' (known presets: {known})")
    return _read_mapping(path, f"Preset '{preset_name}'")


def load_config(
    *,
    preset: str | None = None,
    config_file: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    presets_dir: Path = PRESETS_DIR,
) -> HarnessConfig:
    """Build a HarnessConfig from preset, file and override layers.

    Raises:
        FileNotFoundError: If the preset or config_file does not exist.
        ValueError: If a layer is not a flat mapping.
        pydantic.ValidationError: If the merged values fail validation.
    """
    layers: list[Mapping[str, Any]] = []
    if preset is not None:
        layers.append(load_preset(preset, presets_dir))
    if config_file is not None:
        if not config_file.is_file():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        layers.append(_read_mapping(config_file, f"Config file {config_file}"))
    if overrides is not None:
        layers.append(overrides)

    return HarnessConfig(**merge_layers(*layers, {"preset_name": preset}))


def make_rng(config: HarnessConfig = DEFAULT_CONFIG) -> tuple[random.Random, int]:
    """Create the PRNG for a run, returning it together with its seed.

    The seed is logged so that a failing run can be replayed by pinning
    ``seed`` in the config.
    """
    seed = config.seed if config.seed is not None else random.SystemRandom().randrange(2**63)
    logger.info("Seeded metamorphic run", seed=seed, preset=config.preset_name)
    return random.Random(seed), seed
