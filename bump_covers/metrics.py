# bump_covers/metrics.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

import numpy as np
from scipy.spatial.distance import cdist


__all__ = [
    "Metric",
    "EuclideanMetric",
    "S1AngleMetric",
    "T2FlatMetric",
    "SciPyCdistMetric",
    "as_metric",
    "as_points",
]


def as_points(X: np.ndarray, *, name: str = "points") -> np.ndarray:
    """Return ``X`` as a float ``(n, d)`` array; 0D/1D inputs become a single column."""
    X = np.asarray(X, dtype=float)
    if X.ndim == 0:
        return X.reshape(1, 1)
    if X.ndim == 1:
        return X.reshape(-1, 1)
    if X.ndim == 2:
        return X
    raise ValueError(f"{name} must be 1D or 2D. Got shape {X.shape}.")


# ============================================================
# Vectorized metric objects
# ============================================================

class Metric(Protocol):
    """Vectorized metric interface: returns full distance matrices."""
    name: str

    def pairwise(self, X: np.ndarray, Y: Optional[np.ndarray] = None) -> np.ndarray:
        ...


@dataclass(frozen=True)
class EuclideanMetric:
    name: str = "euclidean"

    def pairwise(self, X: np.ndarray, Y: Optional[np.ndarray] = None) -> np.ndarray:
        X = as_points(X, name="X")
        Y = X if Y is None else as_points(Y, name="Y")
        return np.linalg.norm(X[:, None, :] - Y[None, :, :], axis=-1)


@dataclass(frozen=True)
class S1AngleMetric:
    """Angles in radians; distance on S^1."""
    name: str = "S1_angle"

    def pairwise(self, X: np.ndarray, Y: Optional[np.ndarray] = None) -> np.ndarray:
        t1 = np.mod(np.asarray(X, dtype=float).reshape(-1), 2.0 * np.pi)[:, None]
        if Y is None:
            t2 = t1.T
        else:
            t2 = np.mod(np.asarray(Y, dtype=float).reshape(-1), 2.0 * np.pi)[None, :]
        d = np.abs(t2 - t1)
        return np.minimum(d, 2 * np.pi - d)


@dataclass(frozen=True)
class T2FlatMetric:
    """Flat torus distance for coords in [0,2pi)^2 (angles)."""
    name: str = "T2_flat"

    def pairwise(self, X: np.ndarray, Y: Optional[np.ndarray] = None) -> np.ndarray:
        X = np.asarray(X, dtype=float)
        Y0 = X if Y is None else np.asarray(Y, dtype=float)
        if X.ndim != 2 or X.shape[1] != 2:
            raise ValueError(f"X must be (n,2) angles. Got {X.shape}.")
        if Y0.ndim != 2 or Y0.shape[1] != 2:
            raise ValueError(f"Y must be (m,2) angles. Got {Y0.shape}.")
        diff = np.abs(np.mod(X, 2.0 * np.pi)[:, None, :] - np.mod(Y0, 2.0 * np.pi)[None, :, :])
        torus_diff = np.minimum(diff, 2.0 * np.pi - diff)
        return np.linalg.norm(torus_diff, axis=-1)


# ============================================================
# Converting scalar metrics -> vectorized metrics
# ============================================================

@dataclass(frozen=True)
class SciPyCdistMetric:
    """Wrapper for a scalar metric(p,q) using scipy.spatial.distance.cdist."""
    metric: Callable
    name: str = "scipy_cdist"

    def pairwise(self, X: np.ndarray, Y: Optional[np.ndarray] = None) -> np.ndarray:
        X = as_points(X, name="X")
        Y = X if Y is None else as_points(Y, name="Y")
        return cdist(X, Y, metric=self.metric)


def as_metric(metric: Union["Metric", Callable, None]) -> "Metric":
    """Convert either a Metric object or a callable(p,q) into a Metric object."""
    if metric is None:
        return EuclideanMetric()
    if hasattr(metric, "pairwise"):
        return metric  # type: ignore[return-value]
    return SciPyCdistMetric(metric=metric, name=getattr(metric, "__name__", "custom_metric"))
