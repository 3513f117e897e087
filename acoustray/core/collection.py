from __future__ import annotations
from typing import Any, Dict
import math

from .ray import HitRecord, Ray
from .tracer import incidence_angle


class CollectionPolicy:
    """Decides how much of a ray's remaining energy a collector keeps."""
    name: str = "base"

    def collect(self, ray: Ray, hit: HitRecord, energy: float) -> float:  # pragma: no cover - abstract
        raise NotImplementedError


class CaptureAllPolicy(CollectionPolicy):
    name = "all"
    def collect(self, ray: Ray, hit: HitRecord, energy: float) -> float:
        return energy


class IncidenceWeightedPolicy(CollectionPolicy):
    """Lambert-style capture: ``energy * cos(theta) ** exponent``."""
    name = "incidence"
    def __init__(self, exponent: float = 1.0) -> None:
        if exponent < 0.0:
            raise ValueError("exponent must be non-negative.")
        self.exponent = float(exponent)
    def collect(self, ray: Ray, hit: HitRecord, energy: float) -> float:
        cos_t = math.cos(incidence_angle(ray.direction, hit.normal))
        return energy * max(cos_t, 0.0) ** self.exponent


_POLICY_FACTORY: Dict[str, Any] = {
    CaptureAllPolicy.name: CaptureAllPolicy,
    IncidenceWeightedPolicy.name: IncidenceWeightedPolicy,
}


def build_policy(name: str, **kwargs: Any) -> CollectionPolicy:
    if name not in _POLICY_FACTORY:
        raise ValueError(f"Unknown collection policy '{name}'. Choose from {sorted(_POLICY_FACTORY)}.")
    return _POLICY_FACTORY[name](**kwargs)
