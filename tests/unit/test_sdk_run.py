from __future__ import annotations

import json
import math
from pathlib import Path

import numpy as np
import pytest
import yaml

from acoustray.config import load_config
from acoustray.sdk import simulate_from_config


def _write_config(path: Path, **overrides) -> None:
    config = {
        "frequencies": [500.0, 1000.0],
        "source_power": 100.0,
        "num_of_collectors": 37,
        "num_of_ray_squared": 5,
        "model": {"kind": "reference", "size": 1.0},
        "output": {"path": "out", "format": "json"},
    }
    config.update(overrides)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f)


def _room(n_collectors: int) -> dict:
    return {
        "kind": "custom",
        "obstacles": [
            {"kind": "plane", "point": [0.0, 0.0, -1.0], "normal": [0.0, 0.0, 1.0], "absorption": 0.5},
        ],
        "collectors": [
            {"center": [2.0 * math.cos(a), 2.0 * math.sin(a), 0.0], "radius": 1.0}
            for a in (2.0 * math.pi * i / n_collectors for i in range(n_collectors))
        ],
    }


def test_simulate_from_config_path(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sim.yaml"
    _write_config(cfg_path)

    result = simulate_from_config(cfg_path)

    assert result.output_path == (tmp_path / "out").resolve()
    assert result.reference_results is None
    assert result.results.frequencies == [500.0, 1000.0]
    for f in result.results:
        assert result.results.total(f) == pytest.approx(100.0)
    assert (result.output_path / "model.json").exists()
    with open(result.output_path / "results.json", "r", encoding="utf-8") as f:
        data = json.load(f)
    assert len(data["frequencies"]) == 2
    assert len(data["frequencies"][0]["energies"]) == 37


def test_simulate_from_config_object_with_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sim.yaml"
    _write_config(
        cfg_path,
        num_of_collectors=4,
        model=_room(4),
        offset_strategy="jitter",
        tracker={"kind": "full"},
        output={"path": "first", "format": "npz"},
    )
    cfg = load_config(cfg_path)

    override = tmp_path / "override"
    result = simulate_from_config(cfg, output=override, seed=21, reference=True)

    assert result.output_path == override.resolve()
    assert result.config.seed == 21
    assert cfg.seed is None
    assert result.reference_results is not None
    assert result.reference_results.num_collectors == 4
    for f in result.reference_results:
        assert result.reference_results.total(f) == pytest.approx(100.0)
    for f in result.results:
        assert result.results.total(f) <= 100.0 + 1e-9

    data = np.load(override / "results.npz")
    assert data["energies"].shape == (2, 4)
    assert (override / "reference.npz").exists()
    assert (override / "positions.json").exists()
    assert (override / "reference_positions.json").exists()


def test_simulate_from_config_is_reproducible(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sim.yaml"
    _write_config(cfg_path, offset_strategy="jitter", seed=5)
    a = simulate_from_config(cfg_path, output=tmp_path / "a")
    b = simulate_from_config(cfg_path, output=tmp_path / "b")
    for f in a.results:
        np.testing.assert_array_equal(a.results[f], b.results[f])
