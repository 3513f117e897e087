from __future__ import annotations
import json
import pathlib
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_CONSTANTS
from .ray import HitRecord
from .utils import get_logger

_log = get_logger()


class PositionTracker:
    """Observer of ray paths. The base implementation ignores every event."""

    def begin_frequency(self, frequency: float) -> None:
        pass

    def begin_tracking(self) -> None:
        pass

    def on_hit(self, hit: HitRecord) -> None:
        pass

    def end_tracking(self) -> None:
        pass

    def end_frequency(self) -> None:
        pass

    def switch_to_reference_model(self) -> None:
        pass

    def save(self) -> None:
        pass


class JsonPositionTracker(PositionTracker):
    """Keeps every ray path and writes them as JSON on ``save``.

    Each tracking is a list of hit points with the cumulative path length
    and the arrival time at ``sound_speed``.
    """

    def __init__(self, path: str | pathlib.Path, sound_speed: float = DEFAULT_CONSTANTS.sound_speed) -> None:
        self.path = pathlib.Path(path)
        self.sound_speed = float(sound_speed)
        self._file_name = "positions.json"
        self._frequencies: List[Dict[str, Any]] = []
        self._current_frequency: Optional[Dict[str, Any]] = None
        self._current_tracking: Optional[List[Dict[str, Any]]] = None
        self._distance = 0.0

    @property
    def frequencies(self) -> List[Dict[str, Any]]:
        return self._frequencies

    def begin_frequency(self, frequency: float) -> None:
        self._current_frequency = {"frequency": float(frequency), "trackings": []}

    def begin_tracking(self) -> None:
        self._current_tracking = []
        self._distance = 0.0

    def on_hit(self, hit: HitRecord) -> None:
        if self._current_tracking is None:
            raise RuntimeError("on_hit called outside of a tracking.")
        self._distance += hit.time
        self._current_tracking.append({
            "point": hit.point.tolist(),
            "distance_m": self._distance,
            "arrival_s": self._distance / self.sound_speed,
        })

    def end_tracking(self) -> None:
        if self._current_frequency is None or self._current_tracking is None:
            raise RuntimeError("end_tracking called without begin_frequency/begin_tracking.")
        self._current_frequency["trackings"].append(self._current_tracking)
        self._current_tracking = None

    def end_frequency(self) -> None:
        if self._current_frequency is None:
            raise RuntimeError("end_frequency called without begin_frequency.")
        self._frequencies.append(self._current_frequency)
        self._current_frequency = None

    def switch_to_reference_model(self) -> None:
        self.save()
        self._frequencies = []
        self._file_name = "reference_positions.json"

    def save(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        out = self.path / self._file_name
        with open(out, "w", encoding="utf-8") as f:
            json.dump({"frequencies": self._frequencies}, f)
        _log.info("Saved %d frequency trackings to %s", len(self._frequencies), out.name)


class SampledPositionTracker(PositionTracker):
    """Forwards only every k-th tracking to a JSON tracker.

    ``num_of_rays_squared`` rays per axis are traced; about
    ``num_of_visible_rays_squared ** 2`` of the trackings are kept.
    """

    def __init__(
        self,
        path: str | pathlib.Path,
        num_of_rays_squared: int,
        num_of_visible_rays_squared: int,
        sound_speed: float = DEFAULT_CONSTANTS.sound_speed,
    ) -> None:
        if num_of_rays_squared <= 0:
            raise ValueError("num_of_rays_squared must be positive.")
        if num_of_visible_rays_squared <= 0:
            raise ValueError("num_of_visible_rays_squared must be positive.")
        self.tracker = JsonPositionTracker(path, sound_speed=sound_speed)
        self.num_of_rays_squared = int(num_of_rays_squared)
        self.num_of_visible_rays_squared = int(num_of_visible_rays_squared)
        self._stride = max(1, self.num_of_rays_squared ** 2 // self.num_of_visible_rays_squared ** 2)
        self._count = 0
        self._sampling = False

    def begin_frequency(self, frequency: float) -> None:
        self._count = 0
        self.tracker.begin_frequency(frequency)

    def begin_tracking(self) -> None:
        self._sampling = self._count % self._stride == 0
        self._count += 1
        if self._sampling:
            self.tracker.begin_tracking()

    def on_hit(self, hit: HitRecord) -> None:
        if self._sampling:
            self.tracker.on_hit(hit)

    def end_tracking(self) -> None:
        if self._sampling:
            self.tracker.end_tracking()
        self._sampling = False

    def end_frequency(self) -> None:
        self.tracker.end_frequency()

    def switch_to_reference_model(self) -> None:
        self.tracker.switch_to_reference_model()

    def save(self) -> None:
        self.tracker.save()
