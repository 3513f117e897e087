from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import yaml
from typer.testing import CliRunner

from acoustray.cli.main import app


def _write_config(path: Path, **overrides) -> None:
    config = {
        "frequencies": [1000.0],
        "num_of_ray_squared": 4,
        "model": {"kind": "reference", "size": 1.0},
        "output": {"path": "out_run", "format": "npz"},
        "seed": 42,
    }
    config.update(overrides)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f)


def test_cli_run_npz(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_config(cfg_path)

    runner = CliRunner()
    result = runner.invoke(app, ["run", str(cfg_path)])
    assert result.exit_code == 0, result.output

    data = np.load(tmp_path / "out_run" / "results.npz")
    assert data["energies"].shape == (1, 37)
    assert np.isclose(data["energies"].sum(), 500.0)
    assert "1000 Hz: total 500 W" in result.output


def test_cli_run_with_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_config(cfg_path, offset_strategy="jitter", output={"path": "ignored", "format": "json"})

    override = tmp_path / "custom_output"
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "run",
            str(cfg_path),
            "--output",
            str(override),
            "--seed",
            "99",
            "--reference",
            "--log-level",
            "DEBUG",
        ],
    )
    assert result.exit_code == 0, result.output
    assert (override / "results.json").exists()
    assert (override / "reference.json").exists()
    assert (override / "model.json").exists()
    assert not (tmp_path / "ignored").exists()
    assert "(reference)" in result.output


def test_cli_run_rejects_invalid_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_config(cfg_path, frequencies=[-1.0])
    runner = CliRunner()
    result = runner.invoke(app, ["run", str(cfg_path)])
    assert result.exit_code != 0


def test_cli_reference_prints_energy_vector(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["reference", "--output", str(tmp_path / "ref")])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    energy_line = next(line for line in lines if line.startswith("1000 Hz:"))
    energies = [float(v) for v in energy_line.split(":", 1)[1].split()]
    assert len(energies) == 37
    assert np.isclose(sum(energies), 500.0, rtol=1e-5)
    with open(tmp_path / "ref" / "reference.json", "r", encoding="utf-8") as f:
        data = json.load(f)
    assert data["frequencies"][0]["frequency"] == 1000.0
    assert (tmp_path / "ref" / "model.json").exists()


def test_cli_reference_multiple_frequencies_and_jitter() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "reference",
            "-f", "125",
            "-f", "4000",
            "--collectors", "12",
            "--rays-per-axis", "6",
            "--offset", "jitter",
            "--seed", "3",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "125 Hz:" in result.output
    assert "4000 Hz:" in result.output


def test_cli_reference_rejects_bad_options() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["reference", "--rays-per-axis", "0"])
    assert result.exit_code != 0
    result = runner.invoke(app, ["reference", "--offset", "spiral"])
    assert result.exit_code != 0


def test_model_export_command(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["model", "export", str(tmp_path / "model"), "--size", "2", "--collectors", "10"])
    assert result.exit_code == 0, result.output
    with open(tmp_path / "model" / "model.json", "r", encoding="utf-8") as f:
        data = json.load(f)
    assert len(data["collectors"]) == 10
    assert np.isclose(np.linalg.norm(data["collectors"][0]["center"]), 8.0)


def test_cli_reference_rejects_repeated_and_non_finite_frequencies(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["reference", "-f", "1000", "-f", "1000", "--output", str(tmp_path / "dup")])
    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)
    assert not (tmp_path / "dup").exists()
    result = runner.invoke(app, ["reference", "-f", "nan"])
    assert result.exit_code == 2
    result = runner.invoke(app, ["reference", "--source-power", "inf"])
    assert result.exit_code == 2
