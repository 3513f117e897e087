from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..config import SimulationConfig
from ..config.schema import (
    CustomModelConfig,
    DiscObstacleConfig,
    PlaneObstacleConfig,
    SphereObstacleConfig,
)
from ..core.collection import CollectionPolicy, build_policy as _build_policy
from ..core.constants import DEFAULT_CONSTANTS, SimulationConstants
from ..core.exporter import JsonResultsWriter, NpzResultsWriter
from ..core.materials import Material
from ..core.scene import SceneModel
from ..core.shapes import Disc, EnergyCollector, Obstacle, Plane, Sphere
from ..core.trackers import JsonPositionTracker, PositionTracker, SampledPositionTracker
from ..sources.offset import NoOffset, OffsetStrategy, RandomOffset
from ..sources.speaker import PointSpeakerRayFactory


def build_constants(cfg: SimulationConfig) -> SimulationConstants:
    overrides = {k: v for k, v in cfg.propagation.model_dump().items() if v is not None}
    overrides["population"] = cfg.num_of_collectors
    return DEFAULT_CONSTANTS.replace(**overrides)


def _build_obstacle(obs_cfg) -> Obstacle:
    material = Material(obs_cfg.absorption)
    if isinstance(obs_cfg, SphereObstacleConfig):
        return Sphere(obs_cfg.center, obs_cfg.radius, material=material)
    if isinstance(obs_cfg, DiscObstacleConfig):
        return Disc(obs_cfg.point, obs_cfg.normal, material=material, radius=obs_cfg.radius)
    if isinstance(obs_cfg, PlaneObstacleConfig):
        return Plane(obs_cfg.point, obs_cfg.normal, material=material)
    raise ValueError(f"Unsupported obstacle kind: {obs_cfg.kind}")


def build_scene(cfg: SimulationConfig, constants: Optional[SimulationConstants] = None) -> SceneModel:
    constants = constants or build_constants(cfg)
    model_cfg = cfg.model
    if model_cfg.kind == "reference":
        return SceneModel.reference_model(size=model_cfg.size, population=cfg.num_of_collectors, constants=constants)
    if isinstance(model_cfg, CustomModelConfig):
        obstacles: List[Obstacle] = [_build_obstacle(o) for o in model_cfg.obstacles]
        collectors = [EnergyCollector(c.center, c.radius) for c in model_cfg.collectors]
        return SceneModel(obstacles=obstacles, collectors=collectors, constants=constants)
    raise ValueError(f"Unsupported model kind: {model_cfg.kind}")


def build_reference_scene(cfg: SimulationConfig, constants: Optional[SimulationConstants] = None) -> SceneModel:
    """Free-field model sized like the configured one, for normalisation runs."""
    constants = constants or build_constants(cfg)
    size = getattr(cfg.model, "size", 1.0)
    return SceneModel.reference_model(size=size, population=cfg.num_of_collectors, constants=constants)


def build_offset(cfg: SimulationConfig, seed: Optional[int] = None) -> OffsetStrategy:
    if cfg.offset_strategy == "none":
        return NoOffset()
    if cfg.offset_strategy == "jitter":
        return RandomOffset(sigma_deg=cfg.jitter_sigma_deg, seed=seed if seed is not None else cfg.seed)
    raise ValueError(f"Unsupported offset strategy: {cfg.offset_strategy}")


def build_ray_factory(cfg: SimulationConfig, offset: Optional[OffsetStrategy] = None) -> PointSpeakerRayFactory:
    return PointSpeakerRayFactory.from_grid(
        cfg.num_of_ray_squared,
        source_power=cfg.source_power,
        position=cfg.source_position,
        offset=offset if offset is not None else build_offset(cfg),
    )


def build_policy(cfg: SimulationConfig) -> CollectionPolicy:
    return _build_policy(cfg.collection)


def build_position_tracker(cfg: SimulationConfig, directory: Path, sound_speed: float) -> PositionTracker:
    tracker_cfg = cfg.tracker
    if tracker_cfg.kind == "none":
        return PositionTracker()
    if tracker_cfg.kind == "full":
        return JsonPositionTracker(directory, sound_speed=sound_speed)
    if tracker_cfg.kind == "sampled":
        return SampledPositionTracker(
            directory,
            num_of_rays_squared=cfg.num_of_ray_squared,
            num_of_visible_rays_squared=tracker_cfg.visible_rays_per_axis,
            sound_speed=sound_speed,
        )
    raise ValueError(f"Unsupported tracker kind: {tracker_cfg.kind}")


def results_path(cfg: SimulationConfig, reference_model: bool = False) -> Path:
    stem = "reference" if reference_model else "results"
    return Path(cfg.output.path) / f"{stem}.{cfg.output.format}"


def build_writer(cfg: SimulationConfig, reference_model: bool = False):
    path = results_path(cfg, reference_model)
    fmt = cfg.output.format.lower()
    if fmt == "json":
        return JsonResultsWriter(path)
    if fmt == "npz":
        return NpzResultsWriter(path)
    raise ValueError(f"Unsupported output format: {cfg.output.format}")
