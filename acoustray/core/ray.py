from __future__ import annotations
from dataclasses import dataclass
import numpy as np

from .utils import as_vec3, normalize


@dataclass(frozen=True)
class Ray:
    origin: np.ndarray       # (3,)
    direction: np.ndarray    # (3,) unit

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", as_vec3(self.origin))
        object.__setattr__(self, "direction", normalize(as_vec3(self.direction)))

    def at(self, t: float) -> np.ndarray:
        return as_vec3(self.origin + t * self.direction)


@dataclass(frozen=True)
class HitRecord:
    """Result of a successful intersection test.

    ``normal`` is unit length and faces the incoming ray; ``front_face`` is
    True when the ray struck the outward side of the surface.
    """
    time: float              # distance along the ray
    point: np.ndarray        # (3,)
    normal: np.ndarray       # (3,)
    front_face: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "time", float(self.time))
        object.__setattr__(self, "point", as_vec3(self.point))
        object.__setattr__(self, "normal", as_vec3(self.normal))


def facing_hit(ray: Ray, t: float, outward_normal: np.ndarray) -> HitRecord:
    point = ray.at(t)
    front_face = float(np.dot(ray.direction, outward_normal)) < 0.0
    normal = outward_normal if front_face else -outward_normal
    return HitRecord(time=t, point=point, normal=normal, front_face=front_face)
