from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pytest

from acoustray.core.collection import IncidenceWeightedPolicy
from acoustray.core.constants import SimulationConstants
from acoustray.core.materials import Material
from acoustray.core.results import FrequencySweepResult
from acoustray.core.scene import SceneModel
from acoustray.core.shapes import EnergyCollector, Plane
from acoustray.core.simulator import Simulator
from acoustray.core.tracer import RayTracer
from acoustray.core.trackers import PositionTracker
from acoustray.sources.base import EmittedRays
from acoustray.sources.speaker import PointSpeakerRayFactory


class RecordingTracker(PositionTracker):
    def __init__(self) -> None:
        self.events: List[Tuple] = []

    def begin_frequency(self, frequency: float) -> None:
        self.events.append(("begin_frequency", frequency))

    def begin_tracking(self) -> None:
        self.events.append(("begin_tracking",))

    def on_hit(self, hit) -> None:
        self.events.append(("on_hit", hit.time))

    def end_tracking(self) -> None:
        self.events.append(("end_tracking",))

    def end_frequency(self) -> None:
        self.events.append(("end_frequency",))


class SingleRayFactory:
    def __init__(self, direction, energy: float = 1.0, origin=(0.0, 0.0, 0.0)) -> None:
        self.direction = np.asarray(direction, dtype=np.float64)
        self.origin = np.asarray(origin, dtype=np.float64)
        self.energy = energy
        self.calls = 0

    def generate(self, frequency: float) -> EmittedRays:
        self.calls += 1
        return EmittedRays(
            frequency=frequency,
            origins=self.origin.reshape(1, 3),
            directions=self.direction.reshape(1, 3),
            energies=np.array([self.energy]),
        )


class DummySink:
    def __init__(self) -> None:
        self.results: List[FrequencySweepResult] = []

    def write_results(self, result: FrequencySweepResult) -> None:
        self.results.append(result)

    def close(self) -> None:
        pass


def _parallel_planes(constants: SimulationConstants) -> SceneModel:
    return SceneModel(
        obstacles=[
            Plane((0.0, 0.0, 1.0), (0.0, 0.0, 1.0)),
            Plane((0.0, 0.0, -1.0), (0.0, 0.0, 1.0)),
        ],
        collectors=[EnergyCollector((10.0, 0.0, 0.0), 1.0)],
        constants=constants,
    )


def test_reference_scenario_conserves_power() -> None:
    scene = SceneModel.reference_model()
    factory = PointSpeakerRayFactory.from_grid(9, source_power=500.0)
    result = Simulator(scene, factory).run([1000.0])
    energies = result[1000.0]
    assert energies.shape == (37,)
    assert np.all(energies >= 0.0)
    assert energies.sum() <= 500.0 * (1.0 + 1e-9)
    assert energies.sum() == pytest.approx(500.0, rel=1e-9)
    stats = result.stats(1000.0)
    assert stats["rays"] == 81
    assert stats["absorbed"] == 81
    assert stats["escaped"] == 0
    assert stats["exhausted"] == 0


def test_reference_scenario_reaches_every_collector_at_nine_by_nine() -> None:
    scene = SceneModel.reference_model()
    factory = PointSpeakerRayFactory.from_grid(9, source_power=500.0)
    energies = Simulator(scene, factory).run([1000.0])[1000.0]
    per_ray = 500.0 / 81
    mean = energies.mean()
    # 81 rays over 37 collectors: each one takes between one and three rays
    assert energies.min() >= per_ray * (1.0 - 1e-9)
    assert energies.max() <= 3.0 * per_ray * (1.0 + 1e-9)
    assert energies.max() < 1.4 * mean
    assert energies.min() > 0.4 * mean


def test_reference_scenario_is_nearly_uniform() -> None:
    scene = SceneModel.reference_model()
    factory = PointSpeakerRayFactory.from_grid(50, source_power=500.0)
    energies = Simulator(scene, factory).run([1000.0])[1000.0]
    mean = energies.mean()
    assert mean == pytest.approx(500.0 / 37)
    assert energies.min() > 0.5 * mean
    assert energies.max() < 1.5 * mean


def test_sweep_is_idempotent_and_frequency_independent_in_free_field() -> None:
    scene = SceneModel.reference_model()
    factory = PointSpeakerRayFactory.from_grid(6)
    sim = Simulator(scene, factory)
    first = sim.run([125.0, 1000.0])
    second = sim.run([125.0, 1000.0])
    assert first.frequencies == [125.0, 1000.0]
    for f in first:
        np.testing.assert_array_equal(first[f], second[f])
    np.testing.assert_allclose(first[125.0], first[1000.0])


def test_tracker_call_order() -> None:
    scene = SceneModel.reference_model()
    factory = PointSpeakerRayFactory.from_grid(2)
    tracker = RecordingTracker()
    Simulator(scene, factory).run([500.0, 1000.0], position_tracker=tracker)

    names = [e[0] for e in tracker.events]
    per_ray = ["begin_tracking", "on_hit", "end_tracking"]
    per_freq = ["begin_frequency"] + per_ray * 4 + ["end_frequency"]
    assert names == per_freq * 2
    assert tracker.events[0] == ("begin_frequency", 500.0)


def test_results_sink_receives_sweep() -> None:
    sink = DummySink()
    result = Simulator(SceneModel.reference_model(), PointSpeakerRayFactory.from_grid(3)).run(
        [1000.0], results_sink=sink
    )
    assert sink.results == [result]


def test_reflection_then_collection_carries_attenuated_energy() -> None:
    scene = SceneModel(
        obstacles=[Plane((0.0, 0.0, -1.0), (0.0, 0.0, 1.0), material=Material({125.0: 0.1, 4000.0: 0.5}))],
        collectors=[EnergyCollector((0.0, 0.0, 3.0), 0.5)],
    )
    factory = SingleRayFactory((0.0, 0.0, -1.0), energy=2.0)
    result = Simulator(scene, factory).run([125.0, 4000.0])
    assert result[125.0][0] == pytest.approx(2.0 * 0.9)
    assert result[4000.0][0] == pytest.approx(2.0 * 0.5)
    assert result.stats(125.0)["bounces"] == 1


def test_incidence_policy_is_used() -> None:
    scene = SceneModel(collectors=[EnergyCollector((0.0, 0.0, 3.0), 0.5)])
    factory = SingleRayFactory((0.0, 0.0, 1.0), energy=1.0)
    result = Simulator(scene, factory, policy=IncidenceWeightedPolicy()).run([1000.0])
    assert result[1000.0][0] == pytest.approx(1.0)


def test_escaped_ray_contributes_nothing() -> None:
    scene = SceneModel(collectors=[EnergyCollector((0.0, 0.0, 3.0), 0.5)])
    result = Simulator(scene, SingleRayFactory((0.0, 0.0, -1.0))).run([1000.0])
    assert result[1000.0][0] == 0.0
    assert result.stats(1000.0)["escaped"] == 1


def test_energy_floor_exhausts_trapped_ray() -> None:
    scene = _parallel_planes(SimulationConstants())
    tracker = RecordingTracker()
    result = Simulator(scene, SingleRayFactory((0.0, 0.0, 1.0))).run([1000.0], position_tracker=tracker)
    stats = result.stats(1000.0)
    assert stats["exhausted"] == 1
    assert stats["bounces"] < 50
    assert result.total(1000.0) == 0.0
    assert tracker.events[-2] == ("end_tracking",)


def test_bounce_limit_exhausts_trapped_ray() -> None:
    constants = SimulationConstants(max_bounces=5, reference_distance=1e9)
    scene = _parallel_planes(constants)
    result = Simulator(scene, SingleRayFactory((0.0, 0.0, 1.0))).run([1000.0])
    stats = result.stats(1000.0)
    assert stats["exhausted"] == 1
    assert stats["bounces"] == 6


def test_configuration_errors_are_raised_before_tracing() -> None:
    factory = SingleRayFactory((0.0, 0.0, 1.0))
    sim = Simulator(SceneModel.reference_model(), factory)
    with pytest.raises(ValueError):
        sim.run([])
    with pytest.raises(ValueError):
        sim.run([1000.0, -5.0])
    with pytest.raises(ValueError):
        sim.run([1000.0, 1000.0])
    with pytest.raises(ValueError):
        Simulator(SceneModel(obstacles=[Plane((0, 0, 0), (0, 0, 1))]), factory).run([1000.0])
    assert factory.calls == 0


def test_constants_must_match_the_scene() -> None:
    scene = SceneModel.reference_model()
    factory = SingleRayFactory((0.0, 0.0, 1.0))
    loose = scene.constants.replace(accuracy=1e-3)
    with pytest.raises(ValueError):
        Simulator(scene, factory, constants=loose)
    with pytest.raises(ValueError):
        RayTracer(scene, loose)
    sim = Simulator(scene, factory, constants=scene.constants.replace())
    assert sim.constants is scene.constants
    assert sim.tracer.constants is scene.constants
