from __future__ import annotations
from dataclasses import dataclass
from typing import Union
import math
import numpy as np

from .constants import SimulationConstants
from .ray import HitRecord, Ray
from .scene import EntityKind, SceneModel
from .utils import reflect


@dataclass(frozen=True)
class Escaped:
    pass


@dataclass(frozen=True)
class Absorbed:
    collector_index: int
    incidence_angle: float   # radians, between reversed ray and surface normal
    hit: HitRecord


@dataclass(frozen=True)
class Reflected:
    ray: Ray
    attenuation: float
    hit: HitRecord


HitEvent = Union[Escaped, Absorbed, Reflected]


def incidence_angle(direction: np.ndarray, normal: np.ndarray) -> float:
    cos_theta = abs(float(np.dot(-direction, normal)))
    return math.acos(min(1.0, cos_theta))


def spreading_factor(distance: float, reference_distance: float) -> float:
    """Inverse-square decay that equals 1 at zero distance.

    Applied per segment: along a multi-bounce path the product of the factors
    is not the inverse square of the total path length. The first segment is
    only spread when ``spread_first_segment`` is set (see ``RayTracer.attenuation``).
    """
    return (reference_distance / (reference_distance + max(distance, 0.0))) ** 2


class RayTracer:
    """One propagation step: find the nearest surface and decide what happens."""

    def __init__(self, scene: SceneModel, constants: SimulationConstants | None = None) -> None:
        if constants is not None and constants != scene.constants:
            raise ValueError("Tracer constants must match the scene constants.")
        self.scene = scene
        self.constants = scene.constants

    def attenuation(self, reflection_coefficient: float, distance: float, bounce: int) -> float:
        """Energy factor applied on a reflection after ``distance`` metres.

        The source-to-first-surface segment (``bounce == 0``) is not spread
        unless ``spread_first_segment`` is set.
        """
        c = self.constants
        if bounce > 0 or c.spread_first_segment:
            return reflection_coefficient * spreading_factor(distance, c.reference_distance)
        return reflection_coefficient

    def trace(self, ray: Ray, frequency: float, bounce: int = 0) -> HitEvent:
        found = self.scene.nearest_hit(ray, frequency)
        if found is None:
            return Escaped()
        rec = found.record
        if found.kind is EntityKind.COLLECTOR:
            return Absorbed(
                collector_index=found.index,
                incidence_angle=incidence_angle(ray.direction, rec.normal),
                hit=rec,
            )

        obstacle = self.scene.obstacles[found.index]
        new_dir = reflect(ray.direction, rec.normal)
        new_origin = rec.point + rec.normal * self.constants.hit_accuracy
        factor = self.attenuation(obstacle.reflection_coefficient(frequency), rec.time, bounce)
        return Reflected(ray=Ray(new_origin, new_dir), attenuation=factor, hit=rec)
