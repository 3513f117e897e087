from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Union
import numpy as np

AbsorptionValue = Union[float, Mapping[float, float]]


@dataclass(frozen=True)
class Material:
    """Surface absorption, either broadband or tabulated per frequency band.

    A table is interpolated linearly in frequency and held constant beyond
    its first and last band.
    """
    absorption: AbsorptionValue = 0.0
    name: str = "default"
    _bands: np.ndarray = field(init=False, repr=False, compare=False)
    _alpha: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.absorption, Mapping):
            if not self.absorption:
                raise ValueError("Absorption table must contain at least one band.")
            items = sorted((float(k), float(v)) for k, v in self.absorption.items())
            bands = np.asarray([k for k, _ in items], dtype=np.float64)
            alpha = np.asarray([v for _, v in items], dtype=np.float64)
        else:
            bands = np.zeros((1,), dtype=np.float64)
            alpha = np.asarray([float(self.absorption)], dtype=np.float64)
        if np.any(alpha < 0.0) or np.any(alpha > 1.0):
            raise ValueError(f"Absorption of material '{self.name}' must lie in [0, 1].")
        object.__setattr__(self, "_bands", bands)
        object.__setattr__(self, "_alpha", alpha)

    def absorption_at(self, frequency: float) -> float:
        if len(self._alpha) == 1:
            return float(self._alpha[0])
        return float(np.interp(frequency, self._bands, self._alpha))

    def reflection_coefficient(self, frequency: float) -> float:
        return 1.0 - self.absorption_at(frequency)

    def to_dict(self) -> dict:
        if isinstance(self.absorption, Mapping):
            absorption = {str(k): float(v) for k, v in sorted(self.absorption.items())}
        else:
            absorption = float(self.absorption)
        return {"name": self.name, "absorption": absorption}


RIGID = Material(0.0, name="rigid")
