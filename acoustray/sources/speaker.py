from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from .base import EmittedRays
from .offset import OffsetStrategy
from .patterns import EmissionPattern, SphericalGridPattern


@dataclass
class PointSpeakerRayFactory:
    """Omnidirectional point source splitting its power evenly over the pattern rays."""

    pattern: EmissionPattern
    source_power: float = 500.0
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    offset: Optional[OffsetStrategy] = None

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        if not np.isfinite(self.source_power) or self.source_power <= 0.0:
            raise ValueError("source_power must be positive and finite.")
        self.source_power = float(self.source_power)

    @classmethod
    def from_grid(
        cls,
        num_rays_along_each_axis: int,
        source_power: float = 500.0,
        position=(0.0, 0.0, 0.0),
        offset: Optional[OffsetStrategy] = None,
    ) -> "PointSpeakerRayFactory":
        return cls(
            pattern=SphericalGridPattern(num_rays_along_each_axis),
            source_power=source_power,
            position=np.asarray(position, dtype=np.float64),
            offset=offset,
        )

    def generate(self, frequency: float) -> EmittedRays:
        sample = self.pattern.sample()
        dirs = sample.directions
        if self.offset is not None:
            dirs = self.offset.offset(dirs, frequency)

        n = dirs.shape[0]
        origins = np.tile(self.position, (n, 1))
        energies = np.full((n,), self.source_power / n, dtype=np.float64)
        meta: Dict[str, np.ndarray] = dict(sample.meta)
        return EmittedRays(
            frequency=float(frequency),
            origins=origins,
            directions=dirs,
            energies=energies,
            meta=meta,
        )
