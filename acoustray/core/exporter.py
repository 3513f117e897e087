from __future__ import annotations
from typing import Dict, List, Protocol
import json
import pathlib
import numpy as np

from .results import FrequencySweepResult
from .scene import SceneModel
from .utils import get_logger

_log = get_logger()

RESULTS_FILE = "results.json"
REFERENCE_FILE = "reference.json"
MODEL_FILE = "model.json"


class ResultsSink(Protocol):
    def write_results(self, result: FrequencySweepResult) -> None: ...

    def close(self) -> None: ...


def _results_payload(result: FrequencySweepResult) -> Dict[str, object]:
    return {
        "num_collectors": result.num_collectors,
        "frequencies": [
            {
                "frequency": f,
                "energies": result[f].tolist(),
                "total": result.total(f),
                "stats": result.stats(f),
            }
            for f in result
        ],
    }


class JsonResultsWriter:
    """Buffers sweep results and writes them as one JSON document on close."""

    def __init__(self, path: str | pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        self._results: List[FrequencySweepResult] = []

    def write_results(self, result: FrequencySweepResult) -> None:
        self._results.append(result)

    def close(self) -> None:
        if not self._results:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [_results_payload(r) for r in self._results]
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload[0] if len(payload) == 1 else {"runs": payload}, f, indent=2)
        _log.info("Wrote %d result set(s) to %s", len(payload), self.path.name)
        self._results.clear()


class NpzResultsWriter:
    """Writes ``frequencies`` (F,) and ``energies`` (F, N) arrays on close."""

    def __init__(self, path: str | pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        self._results: List[FrequencySweepResult] = []

    def write_results(self, result: FrequencySweepResult) -> None:
        self._results.append(result)

    def close(self) -> None:
        if not self._results:
            return
        widths = {r.num_collectors for r in self._results}
        if len(widths) != 1:
            raise ValueError("All result sets must have the same number of collectors.")
        freqs = np.array([f for r in self._results for f in r], dtype=np.float64)
        energies = np.vstack([r[f] for r in self._results for f in r])
        self.path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(self.path, frequencies=freqs, energies=energies)
        _log.info("Wrote %d frequencies to %s", len(freqs), self.path.name)
        self._results.clear()


def save_results_as_json(
    directory: str | pathlib.Path, result: FrequencySweepResult, reference_model: bool = False
) -> pathlib.Path:
    directory = pathlib.Path(directory)
    writer = JsonResultsWriter(directory / (REFERENCE_FILE if reference_model else RESULTS_FILE))
    writer.write_results(result)
    writer.close()
    return writer.path


def save_model_to_json(directory: str | pathlib.Path, scene: SceneModel) -> pathlib.Path:
    directory = pathlib.Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    out = directory / MODEL_FILE
    with open(out, "w", encoding="utf-8") as f:
        json.dump(scene.to_dict(), f, indent=2)
    _log.info("Saved model (%d obstacles, %d collectors) to %s",
              len(scene.obstacles), scene.num_collectors, out.name)
    return out
