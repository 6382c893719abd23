# bump_covers/spaces.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np

from .metrics import EuclideanMetric, S1AngleMetric, T2FlatMetric, as_metric, as_points


__all__ = [
    "AmbientSpace",
    "euclidean_space",
    "circle_space",
    "torus_space",
]


_PROPERTY_NAMES = ("hausdorff", "normal", "locally_compact", "sigma_compact")


@dataclass(frozen=True)
class AmbientSpace:
    """
    Metric space carrying the covering construction.

    The space is read-only input. Besides a vectorized metric it declares the
    topological facts the construction relies on; these are *declarations*
    supplied by the caller, not something this library can decide.

    Parameters
    ----------
    metric :
        Metric object with ``pairwise`` (or a scalar callable, see
        :func:`~bump_covers.metrics.as_metric`).
    dim :
        Coordinate dimension of points, i.e. points are ``(n, dim)`` arrays.
    origin :
        Base point of the compact exhaustion. Defaults to the zero vector.
    diameter :
        Finite for compact spaces. A compact space is exhausted in one stage.
    hausdorff, normal, locally_compact, sigma_compact :
        Declared structural properties.

    Notes
    -----
    The exhaustion is ``K_k = B̄(origin, R_k)`` with ``R_k = (k + 1) * width``.
    Stage ``k`` owns the radial band ``R_{k-1} < |y| <= R_k`` (stage 0 owns the
    closed ball ``|y| <= R_0``).
    """
    metric: Any = None
    dim: int = 1
    origin: Optional[np.ndarray] = None
    diameter: float = np.inf
    hausdorff: bool = True
    normal: bool = True
    locally_compact: bool = True
    sigma_compact: bool = True
    name: str = ""
    _origin_row: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if int(self.dim) < 1:
            raise ValueError(f"dim must be positive. Got {self.dim}.")
        object.__setattr__(self, "metric", as_metric(self.metric))
        object.__setattr__(self, "dim", int(self.dim))
        origin = np.zeros(self.dim) if self.origin is None else np.asarray(self.origin, dtype=float).reshape(-1)
        if origin.shape != (self.dim,):
            raise ValueError(f"origin must have shape ({self.dim},). Got {origin.shape}.")
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "_origin_row", origin.reshape(1, -1))
        if not self.name:
            object.__setattr__(self, "name", getattr(self.metric, "name", type(self.metric).__name__))

    @property
    def compact(self) -> bool:
        return bool(np.isfinite(self.diameter))

    def missing_properties(self, *names: str) -> List[str]:
        """Names among ``names`` (default: all) that the space does not declare."""
        names = names or _PROPERTY_NAMES
        return [n for n in names if not bool(getattr(self, n))]

    def as_points(self, X: np.ndarray, *, name: str = "points") -> np.ndarray:
        X = as_points(X, name=name)
        if X.shape[1] != self.dim:
            raise ValueError(f"{name} must be (n, {self.dim}). Got {X.shape}.")
        return X

    def distance(self, X: np.ndarray, Y: np.ndarray) -> np.ndarray:
        return self.metric.pairwise(self.as_points(X, name="X"), self.as_points(Y, name="Y"))

    def distance_to_origin(self, X: np.ndarray) -> np.ndarray:
        X = self.as_points(X)
        if X.shape[0] == 0:
            return np.zeros(0)
        return self.metric.pairwise(self._origin_row, X)[0]

    # ----------------------------
    # Compact exhaustion
    # ----------------------------

    def stage_radius(self, k: int, width: float) -> float:
        """Outer radius ``R_k`` of exhaustion stage ``k`` (``-inf`` for ``k < 0``)."""
        if k < 0:
            return -np.inf
        if self.compact:
            return np.inf
        return (int(k) + 1) * float(width)

    def stage_of(self, r: float, width: float) -> int:
        """Smallest stage ``k`` with ``r <= R_k``."""
        if self.compact or r <= width:
            return 0
        k = int(np.ceil(float(r) / float(width))) - 1
        while self.stage_radius(k, width) < r:
            k += 1
        while k > 0 and self.stage_radius(k - 1, width) >= r:
            k -= 1
        return k


def euclidean_space(dim: int = 1, **kwargs) -> AmbientSpace:
    """``R^dim`` with the Euclidean metric (locally compact, sigma-compact, normal)."""
    return AmbientSpace(metric=EuclideanMetric(), dim=dim, name=f"R^{int(dim)}", **kwargs)


def circle_space() -> AmbientSpace:
    """The circle ``S^1`` as angles in radians."""
    return AmbientSpace(metric=S1AngleMetric(), dim=1, diameter=np.pi, name="S^1")


def torus_space() -> AmbientSpace:
    """The flat torus ``T^2`` as angle pairs in ``[0, 2pi)^2``."""
    return AmbientSpace(metric=T2FlatMetric(), dim=2, diameter=np.pi * np.sqrt(2.0), name="T^2")
