from __future__ import annotations
import numpy as np
import logging

def get_logger(name: str = "acoustray") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger

def vec3(x: float, y: float, z: float) -> np.ndarray:
    """Read-only float64 vector of shape (3,)."""
    v = np.array((x, y, z), dtype=np.float64)
    v.flags.writeable = False
    return v

def as_vec3(v) -> np.ndarray:
    arr = np.array(v, dtype=np.float64).reshape(3)
    arr.flags.writeable = False
    return arr

def magnitude(v: np.ndarray) -> float:
    return float(np.sqrt(np.dot(v, v)))

def normalize(v: np.ndarray, eps: float = 1e-8) -> np.ndarray:
    n = magnitude(v)
    if n < eps:
        raise ValueError("Cannot normalize a vector of near-zero magnitude.")
    return as_vec3(np.asarray(v, dtype=np.float64) / n)

def reflect(direction: np.ndarray, normal: np.ndarray) -> np.ndarray:
    return as_vec3(direction - 2.0 * float(np.dot(direction, normal)) * normal)

def ensure_unit_vectors(v: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    norms = np.linalg.norm(v, axis=1, keepdims=True)
    norms = np.clip(norms, eps, None)
    return v / norms
