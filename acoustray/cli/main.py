from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
import typer

from ..core.exporter import save_model_to_json, save_results_as_json
from ..core.scene import SceneModel
from ..core.simulator import Simulator
from ..sdk.run import simulate_from_config
from ..sources.offset import NoOffset, RandomOffset
from ..sources.speaker import PointSpeakerRayFactory

app = typer.Typer(help="acoustray acoustic ray tracing utilities")
model_app = typer.Typer(help="Scene model helpers")
app.add_typer(model_app, name="model")


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(message)s")
    logging.getLogger("acoustray").setLevel(numeric)


def _format_energies(energies: np.ndarray) -> str:
    return " ".join(f"{e:.6g}" for e in energies)


@app.command("run")
def run(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML configuration file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Override output directory."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override random seed for the jitter offset."),
    reference: Optional[bool] = typer.Option(None, "--reference/--no-reference", help="Also simulate the reference model."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Run a frequency sweep specified by a YAML config."""

    _configure_logging(log_level)
    try:
        result = simulate_from_config(config, output=output, seed=seed, reference=reference)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="CONFIG") from exc
    for f in result.results:
        typer.echo(f"{f:g} Hz: total {result.results.total(f):.6g} W")
    if result.reference_results is not None:
        for f in result.reference_results:
            typer.echo(f"{f:g} Hz (reference): total {result.reference_results.total(f):.6g} W")
    typer.echo(f"Completed {len(result.results)} frequencies → {result.output_path}")


@app.command("reference")
def reference(
    size: float = typer.Option(1.0, "--size", help="Reference model size factor."),
    frequency: List[float] = typer.Option([1000.0], "--frequency", "-f", help="Frequency in Hz (repeatable)."),
    source_power: float = typer.Option(500.0, "--source-power", help="Source power in watts."),
    collectors: int = typer.Option(37, "--collectors", help="Number of energy collectors."),
    rays_per_axis: int = typer.Option(9, "--rays-per-axis", help="Rays along each axis of the emission grid."),
    offset: str = typer.Option("none", "--offset", help="Offset strategy: none or jitter."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for the jitter offset."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Directory for model.json and reference.json."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Simulate a point source at the centre of the free-field reference model."""

    if not np.isfinite(size) or size <= 0.0:
        raise typer.BadParameter("size must be positive and finite.", param_hint="--size")
    if not np.isfinite(source_power) or source_power <= 0.0:
        raise typer.BadParameter("source power must be positive and finite.", param_hint="--source-power")
    if collectors <= 0:
        raise typer.BadParameter("collectors must be positive.", param_hint="--collectors")
    if rays_per_axis <= 0:
        raise typer.BadParameter("rays per axis must be positive.", param_hint="--rays-per-axis")
    if any(not np.isfinite(f) or f <= 0.0 for f in frequency):
        raise typer.BadParameter("frequencies must be positive and finite.", param_hint="--frequency")
    if len(set(frequency)) != len(frequency):
        raise typer.BadParameter("frequencies must be unique.", param_hint="--frequency")
    if offset not in {"none", "jitter"}:
        raise typer.BadParameter("offset must be 'none' or 'jitter'.", param_hint="--offset")

    _configure_logging(log_level)
    scene = SceneModel.reference_model(size=size, population=collectors)
    strategy = RandomOffset(seed=seed) if offset == "jitter" else NoOffset()
    factory = PointSpeakerRayFactory.from_grid(rays_per_axis, source_power=source_power, offset=strategy)
    try:
        result = Simulator(scene, factory).run(frequency)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--frequency") from exc

    if output is not None:
        out = output.resolve()
        save_model_to_json(out, scene)
        save_results_as_json(out, result, reference_model=True)

    for f in result:
        typer.echo(f"{f:g} Hz: {_format_energies(result[f])}")
        typer.echo(f"total {result.total(f):.6g} W of {source_power:g} W")


@model_app.command("export")
def model_export(
    output_dir: Path = typer.Argument(..., help="Directory receiving model.json."),
    size: float = typer.Option(1.0, "--size", help="Reference model size factor."),
    collectors: int = typer.Option(37, "--collectors", help="Number of energy collectors."),
) -> None:
    """Write the reference model description as JSON."""

    if size <= 0.0:
        raise typer.BadParameter("size must be positive.", param_hint="--size")
    if collectors <= 0:
        raise typer.BadParameter("collectors must be positive.", param_hint="--collectors")
    out = save_model_to_json(output_dir.resolve(), SceneModel.reference_model(size=size, population=collectors))
    typer.echo(f"Wrote model to {out}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
