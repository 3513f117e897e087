from __future__ import annotations

from pathlib import Path
from typing import Annotated, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Absorption = Union[float, Dict[float, float]]


class _FiniteModel(BaseModel):
    # NaN and infinities are rejected in every float field, nested ones included
    model_config = ConfigDict(allow_inf_nan=False)


def _check_absorption(value: Absorption) -> Absorption:
    values = value.values() if isinstance(value, dict) else [value]
    for a in values:
        if not 0.0 <= a <= 1.0:
            raise ValueError("absorption coefficients must lie in [0, 1]")
    if isinstance(value, dict) and not value:
        raise ValueError("absorption band table must not be empty")
    return value


class _SurfaceConfig(_FiniteModel):
    absorption: Absorption = 0.0

    @field_validator("absorption")
    @classmethod
    def _valid_absorption(cls, v: Absorption) -> Absorption:
        return _check_absorption(v)


class SphereObstacleConfig(_SurfaceConfig):
    kind: Literal["sphere"]
    center: tuple[float, float, float]
    radius: float = Field(gt=0.0)


class PlaneObstacleConfig(_SurfaceConfig):
    kind: Literal["plane"]
    point: tuple[float, float, float]
    normal: tuple[float, float, float]

    @field_validator("normal")
    @classmethod
    def _nonzero_normal(cls, v: tuple[float, float, float]) -> tuple[float, float, float]:
        if sum(c * c for c in v) == 0.0:
            raise ValueError("plane normal must be non-zero")
        return v


class DiscObstacleConfig(PlaneObstacleConfig):
    kind: Literal["disc"]
    radius: float = Field(gt=0.0)


ObstacleConfig = Annotated[
    Union[SphereObstacleConfig, PlaneObstacleConfig, DiscObstacleConfig],
    Field(discriminator="kind"),
]


class CollectorConfig(_FiniteModel):
    center: tuple[float, float, float]
    radius: float = Field(gt=0.0)


class ReferenceModelConfig(_FiniteModel):
    kind: Literal["reference"] = "reference"
    size: float = Field(default=1.0, gt=0.0)


class CustomModelConfig(_FiniteModel):
    kind: Literal["custom"]
    obstacles: List[ObstacleConfig] = Field(default_factory=list)
    collectors: List[CollectorConfig]


ModelConfig = Annotated[
    Union[ReferenceModelConfig, CustomModelConfig],
    Field(discriminator="kind"),
]


class PropagationConfig(_FiniteModel):
    max_bounces: Optional[int] = Field(default=None, ge=0)
    min_energy_ratio: Optional[float] = Field(default=None, ge=0.0, lt=1.0)
    spread_first_segment: Optional[bool] = None
    reference_distance: Optional[float] = Field(default=None, gt=0.0)


class TrackerConfig(BaseModel):
    kind: Literal["none", "full", "sampled"] = "none"
    visible_rays_per_axis: int = Field(default=5, gt=0)


class OutputConfig(BaseModel):
    path: Path = Path("results")
    format: Literal["json", "npz"] = "json"


class SimulationConfig(_FiniteModel):
    frequencies: List[float] = Field(min_length=1)
    source_power: float = Field(default=500.0, gt=0.0)
    num_of_collectors: int = Field(default=37, gt=0)
    num_of_ray_squared: int = Field(default=15, gt=0)
    offset_strategy: Literal["none", "jitter"] = "none"
    jitter_sigma_deg: float = Field(default=0.5, ge=0.0)
    collection: Literal["all", "incidence"] = "all"
    model: ModelConfig = ReferenceModelConfig()
    source_position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    propagation: PropagationConfig = PropagationConfig()
    tracker: TrackerConfig = TrackerConfig()
    output: OutputConfig = OutputConfig()
    reference: bool = False
    seed: Optional[int] = Field(default=None, ge=0)

    @field_validator("frequencies")
    @classmethod
    def _positive_frequencies(cls, v: List[float]) -> List[float]:
        if any(f <= 0.0 for f in v):
            raise ValueError("frequencies must be positive")
        if len(set(v)) != len(v):
            raise ValueError("frequencies must be unique")
        return v

    @model_validator(mode="after")
    def _check_collectors(self) -> "SimulationConfig":
        if isinstance(self.model, CustomModelConfig):
            if len(self.model.collectors) != self.num_of_collectors:
                raise ValueError(
                    f"custom model declares {len(self.model.collectors)} collectors, "
                    f"num_of_collectors is {self.num_of_collectors}"
                )
        return self


def load_config(path: str | Path) -> SimulationConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    cfg = SimulationConfig.model_validate(data)
    if not cfg.output.path.is_absolute():
        cfg.output.path = (path.parent / cfg.output.path).resolve()
    return cfg
