from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Protocol
import math
import numpy as np

from .constants import DEFAULT_CONSTANTS, SimulationConstants
from .materials import Material, RIGID
from .ray import HitRecord, Ray, facing_hit
from .utils import as_vec3, normalize


class Obstacle(Protocol):
    def hit(self, ray: Ray, frequency: float,
            constants: SimulationConstants = DEFAULT_CONSTANTS) -> Optional[HitRecord]: ...

    def normal_at(self, point: np.ndarray) -> np.ndarray: ...

    def reflection_coefficient(self, frequency: float) -> float: ...

    def to_dict(self) -> dict: ...


def _hit_sphere_time(ray: Ray, center: np.ndarray, radius: float, accuracy: float) -> Optional[float]:
    """Distance to the sphere along ``ray`` or None.

    Origin on the surface: first root beyond ``accuracy`` (no self-hit).
    Origin inside: the far root. Origin outside: the near root.
    """
    oc = ray.origin - center
    h = float(np.dot(ray.direction, oc))
    c = float(np.dot(oc, oc)) - radius * radius
    discriminant = h * h - c
    if discriminant < 0.0:
        return None
    sqrt_d = math.sqrt(discriminant)
    t_near = -h - sqrt_d
    t_far = -h + sqrt_d

    if abs(c) < accuracy:
        for t in (t_near, t_far):
            if t > accuracy:
                return t
        return None
    if c < 0.0:
        return t_far if t_far > 0.0 else None
    return t_near if t_near > accuracy else None


@dataclass(frozen=True)
class Sphere:
    center: np.ndarray
    radius: float
    material: Material = RIGID

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3(self.center))
        object.__setattr__(self, "radius", float(self.radius))
        if self.radius <= 0.0:
            raise ValueError("Sphere radius must be positive.")

    def is_inside(self, point: np.ndarray) -> bool:
        d = np.asarray(point, dtype=np.float64) - self.center
        return float(np.dot(d, d)) < self.radius * self.radius

    def hit(self, ray: Ray, frequency: float,
            constants: SimulationConstants = DEFAULT_CONSTANTS) -> Optional[HitRecord]:
        t = _hit_sphere_time(ray, self.center, self.radius, constants.accuracy)
        if t is None:
            return None
        return facing_hit(ray, t, self.normal_at(ray.at(t)))

    def normal_at(self, point: np.ndarray) -> np.ndarray:
        return as_vec3((np.asarray(point, dtype=np.float64) - self.center) / self.radius)

    def reflection_coefficient(self, frequency: float) -> float:
        return self.material.reflection_coefficient(frequency)

    def to_dict(self) -> dict:
        return {
            "kind": "sphere",
            "center": self.center.tolist(),
            "radius": self.radius,
            "material": self.material.to_dict(),
        }


@dataclass(frozen=True)
class Plane:
    point: np.ndarray
    normal: np.ndarray
    material: Material = RIGID

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", as_vec3(self.point))
        object.__setattr__(self, "normal", normalize(as_vec3(self.normal)))

    def _hit_time(self, ray: Ray, constants: SimulationConstants) -> Optional[float]:
        denom = float(np.dot(ray.direction, self.normal))
        if abs(denom) < constants.parallel_threshold:
            return None
        t = float(np.dot(self.point - ray.origin, self.normal)) / denom
        if t <= constants.accuracy:
            return None
        return t

    def hit(self, ray: Ray, frequency: float,
            constants: SimulationConstants = DEFAULT_CONSTANTS) -> Optional[HitRecord]:
        t = self._hit_time(ray, constants)
        if t is None:
            return None
        return facing_hit(ray, t, self.normal)

    def normal_at(self, point: np.ndarray) -> np.ndarray:
        return self.normal

    def reflection_coefficient(self, frequency: float) -> float:
        return self.material.reflection_coefficient(frequency)

    def to_dict(self) -> dict:
        return {
            "kind": "plane",
            "point": self.point.tolist(),
            "normal": self.normal.tolist(),
            "material": self.material.to_dict(),
        }


@dataclass(frozen=True)
class Disc(Plane):
    """Plane bounded to a circle of ``radius`` around ``point``."""
    radius: float = 1.0

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "radius", float(self.radius))
        if self.radius <= 0.0:
            raise ValueError("Disc radius must be positive.")

    def hit(self, ray: Ray, frequency: float,
            constants: SimulationConstants = DEFAULT_CONSTANTS) -> Optional[HitRecord]:
        t = self._hit_time(ray, constants)
        if t is None:
            return None
        p = ray.at(t)
        d = p - self.point
        if float(np.dot(d, d)) > self.radius * self.radius:
            return None
        return facing_hit(ray, t, self.normal)

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["kind"] = "disc"
        out["radius"] = self.radius
        return out


@dataclass(frozen=True)
class EnergyCollector:
    """Spherical capture volume. A strike ends the ray; nothing is reflected."""
    center: np.ndarray
    radius: float
    _shape: Sphere = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3(self.center))
        object.__setattr__(self, "radius", float(self.radius))
        object.__setattr__(self, "_shape", Sphere(self.center, self.radius))

    def is_inside(self, point: np.ndarray) -> bool:
        return self._shape.is_inside(point)

    def hit(self, ray: Ray, frequency: float,
            constants: SimulationConstants = DEFAULT_CONSTANTS) -> Optional[HitRecord]:
        return self._shape.hit(ray, frequency, constants)

    def normal_at(self, point: np.ndarray) -> np.ndarray:
        return self._shape.normal_at(point)

    def to_dict(self) -> dict:
        return {"center": self.center.tolist(), "radius": self.radius}
