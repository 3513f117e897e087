from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence
import numpy as np

from .collection import CaptureAllPolicy, CollectionPolicy
from .constants import SimulationConstants
from .exporter import ResultsSink
from .ray import Ray
from .results import FrequencySweepResult
from .scene import SceneModel
from .tracer import Absorbed, Escaped, RayTracer, Reflected
from .trackers import PositionTracker
from .utils import get_logger
from ..sources.base import RayFactory

_log = get_logger()


class RayFate(str, Enum):
    ABSORBED = "absorbed"
    ESCAPED = "escaped"
    EXHAUSTED = "exhausted"


@dataclass
class _PassStats:
    rays: int = 0
    bounces: int = 0
    counts: Dict[RayFate, int] = field(default_factory=lambda: {f: 0 for f in RayFate})

    def as_dict(self) -> Dict[str, int]:
        out = {"rays": self.rays, "bounces": self.bounces}
        out.update({f.value: n for f, n in self.counts.items()})
        return out


class Simulator:
    """Frequency sweep orchestrator.

    For every frequency it asks the ray factory for the emitted rays, follows
    each one through reflections until it is absorbed by a collector,
    escapes the scene or is exhausted, and sums the collected energy per
    collector. The scene is only read; trackers and sinks are borrowed for
    the duration of ``run``.
    """

    def __init__(
        self,
        scene: SceneModel,
        ray_factory: RayFactory,
        tracer: Optional[RayTracer] = None,
        policy: Optional[CollectionPolicy] = None,
        constants: Optional[SimulationConstants] = None,
    ) -> None:
        if constants is not None and constants != scene.constants:
            raise ValueError("Simulator constants must match the scene constants.")
        self.scene = scene
        self.ray_factory = ray_factory
        self.constants = scene.constants
        self.tracer = tracer if tracer is not None else RayTracer(scene, self.constants)
        self.policy = policy if policy is not None else CaptureAllPolicy()

    def _validate(self, frequencies: Sequence[float]) -> list[float]:
        freqs = [float(f) for f in frequencies]
        if not freqs:
            raise ValueError("At least one frequency is required.")
        for f in freqs:
            if not np.isfinite(f) or f <= 0.0:
                raise ValueError(f"Frequencies must be positive and finite, got {f}.")
        if len(set(freqs)) != len(freqs):
            raise ValueError("Frequencies must be unique.")
        if self.scene.num_collectors <= 0:
            raise ValueError("Scene has no energy collectors.")
        return freqs

    def _propagate(
        self,
        ray: Ray,
        energy: float,
        frequency: float,
        accumulator: np.ndarray,
        tracker: PositionTracker,
        stats: _PassStats,
    ) -> RayFate:
        c = self.constants
        floor = energy * c.min_energy_ratio
        bounce = 0
        while True:
            if bounce > c.max_bounces or energy < floor:
                _log.debug("Ray exhausted after %d bounces (energy %.3e W)", bounce, energy)
                return RayFate.EXHAUSTED
            event = self.tracer.trace(ray, frequency, bounce)
            if isinstance(event, Escaped):
                return RayFate.ESCAPED
            tracker.on_hit(event.hit)
            if isinstance(event, Absorbed):
                accumulator[event.collector_index] += self.policy.collect(ray, event.hit, energy)
                return RayFate.ABSORBED
            if isinstance(event, Reflected):
                energy *= event.attenuation
                ray = event.ray
                bounce += 1
                stats.bounces += 1
                continue
            raise TypeError(f"Unexpected trace event {event!r}")

    def run_frequency(self, frequency: float, tracker: Optional[PositionTracker] = None) -> tuple[np.ndarray, Dict[str, int]]:
        tracker = tracker or PositionTracker()
        accumulator = np.zeros((self.scene.num_collectors,), dtype=np.float64)
        stats = _PassStats()
        emitted = self.ray_factory.generate(frequency)
        for ray, energy in emitted:
            tracker.begin_tracking()
            fate = self._propagate(ray, energy, frequency, accumulator, tracker, stats)
            tracker.end_tracking()
            stats.rays += 1
            stats.counts[fate] += 1
        return accumulator, stats.as_dict()

    def run(
        self,
        frequencies: Sequence[float],
        *,
        position_tracker: Optional[PositionTracker] = None,
        results_sink: Optional[ResultsSink] = None,
    ) -> FrequencySweepResult:
        freqs = self._validate(frequencies)
        tracker = position_tracker or PositionTracker()
        result = FrequencySweepResult(self.scene.num_collectors)

        for frequency in freqs:
            tracker.begin_frequency(frequency)
            energies, stats = self.run_frequency(frequency, tracker)
            result.record(frequency, energies, stats)
            tracker.end_frequency()
            _log.info(
                "%.1f Hz: %d rays, %d absorbed, %d escaped, %d exhausted, collected %.4g W",
                frequency, stats["rays"], stats["absorbed"], stats["escaped"],
                stats["exhausted"], float(np.sum(energies)),
            )

        if results_sink is not None:
            results_sink.write_results(result)
        _log.info("Simulator finished: %d frequencies × %d collectors", len(result), result.num_collectors)
        return result
