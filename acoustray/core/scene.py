from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple
import math
import numpy as np

from .constants import DEFAULT_CONSTANTS, SimulationConstants
from .ray import HitRecord, Ray
from .shapes import EnergyCollector, Obstacle
from .utils import get_logger

_log = get_logger()

# Azimuth rotation of the reference spiral; keeps every collector cell
# holding at least one ray of the default 9x9 emission grid.
REFERENCE_PHASE = 0.21


class EntityKind(str, Enum):
    OBSTACLE = "obstacle"
    COLLECTOR = "collector"


@dataclass(frozen=True)
class SceneHit:
    record: HitRecord
    kind: EntityKind
    index: int


def fibonacci_sphere(count: int, radius: float, phase: float = 0.0) -> np.ndarray:
    """``count`` points spread evenly over a sphere (golden-angle spiral)."""
    if count <= 0:
        raise ValueError("count must be positive.")
    i = np.arange(count, dtype=np.float64)
    z = 1.0 - (2.0 * i + 1.0) / count
    rho = np.sqrt(np.clip(1.0 - z * z, 0.0, None))
    phi = i * math.pi * (3.0 - math.sqrt(5.0)) + phase
    pts = np.column_stack([rho * np.cos(phi), rho * np.sin(phi), z])
    return radius * pts


class SceneModel:
    """Obstacles plus an ordered sequence of energy collectors.

    The scene is fixed once constructed and is only read while simulating.
    Collector order matters: simulation results are indexed by position.
    """

    def __init__(
        self,
        obstacles: Iterable[Obstacle] = (),
        collectors: Iterable[EnergyCollector] = (),
        constants: SimulationConstants = DEFAULT_CONSTANTS,
        is_reference: bool = False,
    ) -> None:
        self._obstacles: Tuple[Obstacle, ...] = tuple(obstacles)
        self._collectors: Tuple[EnergyCollector, ...] = tuple(collectors)
        self.constants = constants
        self.is_reference = bool(is_reference)

    @classmethod
    def reference_model(
        cls,
        size: float = 1.0,
        population: Optional[int] = None,
        constants: SimulationConstants = DEFAULT_CONSTANTS,
    ) -> "SceneModel":
        """Free space bounded only by a sphere of collectors.

        Collector capture radius is ``R * sqrt(4*pi / N)``, large enough for
        the collectors to cover every direction seen from the origin. A ray
        from the origin enters the collector whose centre is angularly
        nearest first, so each collector receives the rays of its spiral cell.
        """
        if size <= 0.0:
            raise ValueError("Model size must be positive.")
        count = constants.population if population is None else int(population)
        if count <= 0:
            raise ValueError("Number of collectors must be positive.")
        radius = constants.simulation_radius * float(size)
        capture = radius * math.sqrt(4.0 * math.pi / count)
        centers = fibonacci_sphere(count, radius, phase=REFERENCE_PHASE)
        collectors = [EnergyCollector(c, capture) for c in centers]
        _log.debug("Reference model: %d collectors, R=%.3f m, capture=%.3f m", count, radius, capture)
        return cls(obstacles=(), collectors=collectors, constants=constants, is_reference=True)

    # -- API --
    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return self._obstacles

    @property
    def collectors(self) -> Tuple[EnergyCollector, ...]:
        return self._collectors

    @property
    def num_collectors(self) -> int:
        return len(self._collectors)

    def nearest_hit(self, ray: Ray, frequency: float) -> Optional[SceneHit]:
        # Obstacles first, then collectors; a later entity must be closer by
        # more than `accuracy` to win, so ties go to declaration order.
        eps = self.constants.accuracy
        best: Optional[SceneHit] = None
        for kind, entities in (
            (EntityKind.OBSTACLE, self._obstacles),
            (EntityKind.COLLECTOR, self._collectors),
        ):
            for idx, entity in enumerate(entities):
                rec = entity.hit(ray, frequency, self.constants)
                if rec is None:
                    continue
                if best is None or rec.time < best.record.time - eps:
                    best = SceneHit(record=rec, kind=kind, index=idx)
        return best

    def to_dict(self) -> dict:
        return {
            "reference": self.is_reference,
            "obstacles": [o.to_dict() for o in self._obstacles],
            "collectors": [c.to_dict() for c in self._collectors],
        }
