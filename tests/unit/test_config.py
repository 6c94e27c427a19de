# tests/unit/test_config.py
"""Unit tests for HarnessConfig, preset loading and PRNG construction."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from metamorph.config import (
    HarnessConfig,
    list_presets,
    load_config,
    load_preset,
    make_rng,
    merge_layers,
)


# =============================================================================
# HarnessConfig
# =============================================================================


class TestHarnessConfig:
    def test_defaults(self) -> None:
        config = HarnessConfig()
        assert config.indent == "  "
        assert config.op_number_width == 6
        assert config.dump_history_on_failure
        assert config.seed is None
        assert config.filter_max_attempts is None

    def test_frozen(self) -> None:
        config = HarnessConfig()
        with pytest.raises(ValidationError):
            config.indent = "\t"  # type: ignore[misc]

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            HarnessConfig(unknown=1)  # type: ignore[call-arg]

    @pytest.mark.parametrize(
        "overrides",
        [{"op_number_width": 0}, {"ops": -1}, {"filter_max_attempts": 0}],
    )
    def test_bounds_validated(self, overrides: dict[str, int]) -> None:
        with pytest.raises(ValidationError):
            HarnessConfig(**overrides)


# =============================================================================
# merge_layers
# =============================================================================


class TestMergeLayers:
    def test_later_layers_win(self) -> None:
        assert merge_layers({"ops": 1, "seed": 2}, {"seed": 3}, {"indent": "\t"}) == {"ops": 1, "seed": 3, "indent": "\t"}

    def test_no_layers(self) -> None:
        assert merge_layers() == {}

    def test_inputs_not_mutated(self) -> None:
        base = {"ops": 1}
        merge_layers(base, {"ops": 2})
        assert base == {"ops": 1}

    def test_nested_mapping_rejected(self) -> None:
        with pytest.raises(ValueError, match="'ops' must be a scalar"):
            merge_layers({"ops": {"count": 5}})


# =============================================================================
# Presets and Loading
# =============================================================================


class TestPresets:
    def test_bundled_presets(self) -> None:
        assert {"nightly", "quick", "sparse"} <= set(list_presets())

    def test_missing_preset_dir(self, tmp_path: Path) -> None:
        assert list_presets(tmp_path / "nope") == []

    def test_load_bundled_preset(self) -> None:
        assert load_preset("quick")["ops"] == 100

    def test_unknown_preset(self) -> None:
        with pytest.raises(FileNotFoundError, match="known presets: .*quick"):
            load_preset("does-not-exist")

    def test_non_mapping_preset(self, tmp_path: Path) -> None:
        (tmp_path / "bad.yaml").write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="must be a YAML mapping"):
            load_preset("bad", tmp_path)


class TestLoadConfig:
    def test_defaults_without_sources(self) -> None:
        config = load_config()
        assert config == HarnessConfig()

    def test_preset_recorded(self) -> None:
        config = load_config(preset="nightly")
        assert config.preset_name == "nightly"
        assert config.ops == 20000

    def test_precedence(self, tmp_path: Path) -> None:
        config_file = tmp_path / "harness.yaml"
        config_file.write_text(yaml.safe_dump({"ops": 5, "seed": 1}))
        config = load_config(preset="quick", config_file=config_file, overrides={"seed": 2})
        assert config.ops == 5
        assert config.seed == 2

    def test_empty_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_config(config_file=config_file).ops == HarnessConfig().ops

    def test_missing_config_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_file=tmp_path / "missing.yaml")

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(overrides={"op_number_width": -3})

    def test_nested_value_in_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "harness.yaml"
        config_file.write_text("ops:\n  count: 5\n")
        with pytest.raises(ValueError, match="must be a scalar"):
            load_config(config_file=config_file)


# =============================================================================
# make_rng
# =============================================================================


class TestMakeRng:
    def test_pinned_seed_is_reproducible(self) -> None:
        config = HarnessConfig(seed=7)
        rng_a, seed_a = make_rng(config)
        rng_b, seed_b = make_rng(config)
        assert seed_a == seed_b == 7
        assert [rng_a.random() for _ in range(5)] == [rng_b.random() for _ in range(5)]

    def test_fresh_seed_replays(self) -> None:
        rng, seed = make_rng()
        replay, _ = make_rng(HarnessConfig(seed=seed))
        assert [rng.random() for _ in range(5)] == [replay.random() for _ in range(5)]
