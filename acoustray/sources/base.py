from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, Protocol, Tuple
import numpy as np

from ..core.ray import Ray
from ..core.utils import ensure_unit_vectors


@dataclass
class EmittedRays:
    frequency: float
    origins: np.ndarray          # (M, 3)
    directions: np.ndarray       # (M, 3) unit
    energies: np.ndarray         # (M,)
    meta: Dict[str, np.ndarray] = field(default_factory=dict)  # per-ray metadata

    def __post_init__(self) -> None:
        assert self.origins.shape == self.directions.shape
        assert self.energies.shape == (self.origins.shape[0],)
        self.directions = ensure_unit_vectors(self.directions)

    def __len__(self) -> int:
        return int(self.origins.shape[0])

    def __iter__(self) -> Iterator[Tuple[Ray, float]]:
        for o, d, e in zip(self.origins, self.directions, self.energies):
            yield Ray(o, d), float(e)

    @property
    def total_energy(self) -> float:
        return float(np.sum(self.energies))


class RayFactory(Protocol):
    def generate(self, frequency: float) -> EmittedRays: ...
