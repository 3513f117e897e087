from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.utils import ensure_unit_vectors


class OffsetStrategy:
    """Perturbs emitted ray directions. The base strategy leaves them untouched."""

    name: str = "none"

    def offset(self, dirs: np.ndarray, frequency: float) -> np.ndarray:
        return dirs


class NoOffset(OffsetStrategy):
    name = "none"


class RandomOffset(OffsetStrategy):
    """Gaussian angular jitter, reproducible for a given seed and frequency."""

    name = "jitter"

    def __init__(self, sigma_deg: float = 0.5, seed: Optional[int] = None) -> None:
        if sigma_deg < 0.0:
            raise ValueError("sigma_deg must be non-negative.")
        if seed is not None and seed < 0:
            raise ValueError("seed must be non-negative.")
        self.sigma_deg = float(sigma_deg)
        self.seed = seed

    def _rng(self, frequency: float) -> np.random.Generator:
        if self.seed is None:
            return np.random.default_rng()
        return np.random.default_rng([int(self.seed), int(round(abs(frequency) * 1000.0))])

    def offset(self, dirs: np.ndarray, frequency: float) -> np.ndarray:
        if self.sigma_deg == 0.0:
            return dirs
        rng = self._rng(frequency)
        sigma_rad = np.deg2rad(self.sigma_deg)
        perturb = rng.normal(scale=sigma_rad, size=dirs.shape)
        # Make perturbation orthogonal so magnitude interprets as angle
        proj = np.sum(perturb * dirs, axis=1, keepdims=True)
        perturb = perturb - proj * dirs
        return ensure_unit_vectors(dirs + perturb)
