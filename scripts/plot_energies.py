from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from acoustray.sdk import simulate_from_config

matplotlib.use("Agg")

IMAGE_DIR = Path("examples/images")


def _load_results(path: Path) -> Dict[float, np.ndarray]:
    ext = path.suffix.lower()
    if ext == ".npz":
        with np.load(path) as data:
            return {float(f): e for f, e in zip(data["frequencies"], data["energies"])}
    if ext == ".json":
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
        return {float(e["frequency"]): np.asarray(e["energies"], dtype=np.float64) for e in payload["frequencies"]}
    raise ValueError(f"Unsupported results format for plotting: {path}")


def _load_collector_centers(model_path: Path) -> Optional[np.ndarray]:
    if not model_path.exists():
        return None
    with model_path.open("r", encoding="utf-8") as fh:
        model = json.load(fh)
    return np.asarray([c["center"] for c in model["collectors"]], dtype=np.float64)


def render_energies(name: str, energies: Dict[float, np.ndarray], centers: Optional[np.ndarray]) -> Path:
    if not energies:
        raise ValueError(f"No energies to render for {name}")
    fig = plt.figure(figsize=(8, 6), dpi=150)
    ax_bar = fig.add_subplot(2, 1, 1)
    width = 0.8 / len(energies)
    for i, (freq, e) in enumerate(sorted(energies.items())):
        ax_bar.bar(np.arange(e.shape[0]) + i * width, e, width=width, label=f"{freq:g} Hz")
    ax_bar.set_title(f"{name.replace('_', ' ').title()} - collected energy")
    ax_bar.set_xlabel("Collector")
    ax_bar.set_ylabel("Energy [W]")
    ax_bar.legend(fontsize="small")

    if centers is not None:
        # Azimuth/elevation map of the first frequency
        first = energies[min(energies)]
        az = np.degrees(np.arctan2(centers[:, 1], centers[:, 0]))
        el = np.degrees(np.arcsin(np.clip(centers[:, 2] / np.linalg.norm(centers, axis=1), -1.0, 1.0)))
        ax_map = fig.add_subplot(2, 1, 2)
        sc = ax_map.scatter(az, el, c=first, s=40, cmap="viridis")
        ax_map.set_xlabel("Azimuth [deg]")
        ax_map.set_ylabel("Elevation [deg]")
        ax_map.set_xlim(-180.0, 180.0)
        ax_map.set_ylim(-90.0, 90.0)
        fig.colorbar(sc, ax=ax_map, fraction=0.046, pad=0.04, label="Energy [W]")

    fig.tight_layout()
    IMAGE_DIR.mkdir(parents=True, exist_ok=True)
    out_path = IMAGE_DIR / f"{name}.png"
    fig.savefig(out_path)
    plt.close(fig)
    return out_path


def plot_config(config: Path) -> List[Path]:
    result = simulate_from_config(config)
    out_dir = result.output_path
    fmt = result.config.output.format
    centers = _load_collector_centers(out_dir / "model.json")
    images = [render_energies(config.stem, _load_results(out_dir / f"results.{fmt}"), centers)]
    if result.reference_results is not None:
        images.append(render_energies(f"{config.stem}_reference", _load_results(out_dir / f"reference.{fmt}"), None))
    return images


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run acoustray configs and plot collector energies.")
    parser.add_argument("config", nargs="+", type=Path, help="YAML configuration file(s).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="[%(levelname)s] %(message)s")
    for cfg in args.config:
        for image in plot_config(cfg):
            logging.info("Saved %s", image)


if __name__ == "__main__":
    main()
