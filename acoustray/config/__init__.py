"""Configuration loading utilities for acoustray."""

from .schema import (
    SimulationConfig,
    load_config,
)

__all__ = ["SimulationConfig", "load_config"]
