"""Numeric constants shared by the geometry kernel, tracer and simulator.

The values are gathered in a single frozen structure that is passed by
reference, so a test or a configuration file can tighten or loosen a
tolerance without touching module globals.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConstants:
    accuracy: float = 1e-8              # root rejection / self-intersection tolerance
    hit_accuracy: float = 1e-4          # reflected origin offset along the normal [m]
    sound_speed: float = 343.216        # [m/s] at 20'C and 1000 hPa
    simulation_radius: float = 4.0      # [m] reference collector sphere
    population: int = 37                # collectors in the reference model
    parallel_threshold: float = 1e-6    # min |d.n| for plane tests
    max_bounces: int = 200
    min_energy_ratio: float = 1e-9      # relative to a ray's initial energy
    reference_distance: float = 1.0     # [m] spreading distance scale
    spread_first_segment: bool = False

    def __post_init__(self) -> None:
        if self.accuracy <= 0.0:
            raise ValueError("accuracy must be positive.")
        if self.hit_accuracy <= 0.0:
            raise ValueError("hit_accuracy must be positive.")
        if self.sound_speed <= 0.0:
            raise ValueError("sound_speed must be positive.")
        if self.simulation_radius <= 0.0:
            raise ValueError("simulation_radius must be positive.")
        if self.population <= 0:
            raise ValueError("population must be positive.")
        if self.max_bounces < 0:
            raise ValueError("max_bounces must be non-negative.")
        if not (0.0 <= self.min_energy_ratio < 1.0):
            raise ValueError("min_energy_ratio must lie in [0, 1).")
        if self.reference_distance <= 0.0:
            raise ValueError("reference_distance must be positive.")

    def replace(self, **overrides) -> "SimulationConstants":
        return dataclasses.replace(self, **overrides)


DEFAULT_CONSTANTS = SimulationConstants()
