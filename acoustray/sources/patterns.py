from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

from ..core.utils import ensure_unit_vectors


@dataclass
class PatternSample:
    """Bundle of unit directions and per-ray metadata from an emission pattern."""

    directions: np.ndarray
    meta: Dict[str, np.ndarray]


class EmissionPattern:
    """Base class for generating source-frame ray directions."""

    @property
    def ray_count(self) -> int:
        raise NotImplementedError

    def sample(self) -> PatternSample:
        raise NotImplementedError


class SphericalGridPattern(EmissionPattern):
    """Equal-area polar x azimuth grid covering the full sphere of directions.

    The polar axis is stratified in cos(theta) and the azimuth axis in phi,
    both at cell centres, so every ray stands for the same solid angle.
    """

    def __init__(self, num_rays_along_each_axis: int) -> None:
        if num_rays_along_each_axis <= 0:
            raise ValueError("num_rays_along_each_axis must be positive.")
        self.num_rays_along_each_axis = int(num_rays_along_each_axis)

    @property
    def ray_count(self) -> int:
        return self.num_rays_along_each_axis ** 2

    def sample(self) -> PatternSample:
        n = self.num_rays_along_each_axis
        cells = (np.arange(n, dtype=np.float64) + 0.5) / n
        z_axis = 1.0 - 2.0 * cells
        phi_axis = 2.0 * np.pi * cells

        zz, pp = np.meshgrid(z_axis, phi_axis, indexing="ij")
        zz = zz.reshape(-1)
        pp = pp.reshape(-1)
        rho = np.sqrt(np.clip(1.0 - zz * zz, 0.0, None))
        dirs = np.column_stack([rho * np.cos(pp), rho * np.sin(pp), zz])
        dirs = ensure_unit_vectors(dirs)

        polar_idx, azimuth_idx = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
        meta = {
            "polar_index": polar_idx.reshape(-1).astype(np.uint32),
            "azimuth_index": azimuth_idx.reshape(-1).astype(np.uint32),
        }
        return PatternSample(directions=dirs, meta=meta)
