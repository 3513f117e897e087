"""High-level entry points for running simulations from configuration."""

from .run import ConfigRunResult, simulate_from_config

__all__ = ["ConfigRunResult", "simulate_from_config"]
