from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..config import SimulationConfig, load_config
from ..core.exporter import save_model_to_json
from ..core.results import FrequencySweepResult
from ..core.simulator import Simulator
from ..core.utils import get_logger
from ..runtime.builders import (
    build_constants,
    build_offset,
    build_policy,
    build_position_tracker,
    build_ray_factory,
    build_reference_scene,
    build_scene,
    build_writer,
    results_path,
)

_log = get_logger()


@dataclass(frozen=True)
class ConfigRunResult:
    """Outcome of a simulation driven by a configuration file."""

    results: FrequencySweepResult
    reference_results: Optional[FrequencySweepResult]
    output_path: Path
    config: SimulationConfig


def _run_and_write(simulator: Simulator, cfg: SimulationConfig, tracker, reference_model: bool) -> FrequencySweepResult:
    writer = build_writer(cfg, reference_model=reference_model)
    try:
        return simulator.run(cfg.frequencies, position_tracker=tracker, results_sink=writer)
    finally:
        writer.close()


def simulate_from_config(
    config: Union[str, Path, SimulationConfig],
    *,
    output: Optional[Path] = None,
    seed: Optional[int] = None,
    reference: Optional[bool] = None,
) -> ConfigRunResult:
    """Run a frequency sweep described by a configuration file or object.

    Parameters
    ----------
    config:
        Path to a YAML file or a pre-loaded :class:`~acoustray.config.schema.SimulationConfig`.
    output:
        Optional override for the output directory. ``model.json``, the results
        file and any position trackings are written there.
    seed:
        Optional seed for the jitter offset strategy. Falls back to the
        configuration's seed.
    reference:
        Also run the free-field reference model after the configured one.
        Defaults to the configuration's ``reference`` flag.

    Returns
    -------
    ConfigRunResult
        The per-frequency collector energies (and reference energies when
        requested), the resolved output directory and the configuration used.
    """

    if isinstance(config, SimulationConfig):
        # re-validated so values assigned after construction are checked too
        cfg = SimulationConfig.model_validate(config.model_dump())
    else:
        cfg = load_config(config)

    if output is not None:
        cfg.output.path = Path(output).resolve()
    else:
        cfg.output.path = Path(cfg.output.path).resolve()
    if seed is not None:
        cfg.seed = seed
    if reference is not None:
        cfg.reference = reference
    out_dir = Path(cfg.output.path)

    constants = build_constants(cfg)
    scene = build_scene(cfg, constants)
    offset = build_offset(cfg)
    factory = build_ray_factory(cfg, offset)
    policy = build_policy(cfg)
    tracker = build_position_tracker(cfg, out_dir, constants.sound_speed)

    out_dir.mkdir(parents=True, exist_ok=True)
    save_model_to_json(out_dir, scene)

    _log.info(
        "Simulating %d frequencies, %d rays, %d collectors",
        len(cfg.frequencies), cfg.num_of_ray_squared ** 2, scene.num_collectors,
    )
    results = _run_and_write(Simulator(scene, factory, policy=policy, constants=constants), cfg, tracker, False)

    reference_results = None
    if cfg.reference:
        tracker.switch_to_reference_model()
        ref_scene = build_reference_scene(cfg, constants)
        # the reference source sits at the centre of the collector sphere
        ref_factory = dataclasses.replace(factory, position=np.zeros(3))
        reference_results = _run_and_write(
            Simulator(ref_scene, ref_factory, policy=policy, constants=constants), cfg, tracker, True
        )
    tracker.save()
    _log.info("Results written to %s", results_path(cfg))

    return ConfigRunResult(
        results=results,
        reference_results=reference_results,
        output_path=out_dir,
        config=cfg,
    )
