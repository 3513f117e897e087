from __future__ import annotations
from typing import Dict, Iterator, List, Mapping, Optional
import numpy as np


class FrequencySweepResult:
    """Per-collector energies for each simulated frequency.

    Frequencies keep the order in which they were recorded. A recorded energy
    vector is read-only and a frequency cannot be recorded twice.
    """

    def __init__(self, num_collectors: int) -> None:
        if num_collectors <= 0:
            raise ValueError("num_collectors must be positive.")
        self.num_collectors = int(num_collectors)
        self._energies: Dict[float, np.ndarray] = {}
        self._stats: Dict[float, Dict[str, int]] = {}

    def record(self, frequency: float, energies: np.ndarray, stats: Optional[Mapping[str, int]] = None) -> None:
        frequency = float(frequency)
        if frequency in self._energies:
            raise ValueError(f"Frequency {frequency} Hz already recorded.")
        arr = np.array(energies, dtype=np.float64).reshape(-1)
        if arr.shape[0] != self.num_collectors:
            raise ValueError(f"Expected {self.num_collectors} energies, got {arr.shape[0]}.")
        arr.flags.writeable = False
        self._energies[frequency] = arr
        self._stats[frequency] = dict(stats or {})

    @property
    def frequencies(self) -> List[float]:
        return list(self._energies)

    def stats(self, frequency: float) -> Dict[str, int]:
        return dict(self._stats[float(frequency)])

    def total(self, frequency: float) -> float:
        return float(np.sum(self._energies[float(frequency)]))

    def as_dict(self) -> Dict[float, List[float]]:
        return {f: e.tolist() for f, e in self._energies.items()}

    def __getitem__(self, frequency: float) -> np.ndarray:
        return self._energies[float(frequency)]

    def __contains__(self, frequency: object) -> bool:
        try:
            return float(frequency) in self._energies  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def __iter__(self) -> Iterator[float]:
        return iter(self._energies)

    def __len__(self) -> int:
        return len(self._energies)
