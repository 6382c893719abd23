# bump_covers/regions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Tuple

import numpy as np

from .metrics import as_metric, as_points


__all__ = [
    "OpenSet",
    "OpenBall",
    "OpenBox",
    "WholeSpace",
    "EmptySet",
    "IntersectionSet",
    "FunctionSet",
    "ClosedBall",
]


class OpenSet:
    """
    Open subset of an ambient metric space.

    Subclasses implement :meth:`margin`, the distance from each point to the
    complement of the set (or any positive lower bound of it). A point lies in
    the set exactly when its margin is positive, so the open ball of radius
    ``margin(x)`` around ``x`` is contained in the set.
    """

    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        raise NotImplementedError

    def contains(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        return self.margin(points, metric) > 0.0

    def __and__(self, other: "OpenSet") -> "IntersectionSet":
        return IntersectionSet((self, other))


@dataclass(frozen=True, eq=False)
class OpenBall(OpenSet):
    center: np.ndarray
    radius: float

    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        M = as_metric(metric)
        c = np.asarray(self.center, dtype=float).reshape(1, -1)
        X = as_points(points)
        if X.shape[0] == 0:
            return np.zeros(0)
        return float(self.radius) - M.pairwise(c, X)[0]

    def __repr__(self) -> str:
        c = np.asarray(self.center, dtype=float).reshape(-1)
        return f"OpenBall(center={c.tolist()}, radius={float(self.radius):g})"


@dataclass(frozen=True, eq=False)
class OpenBox(OpenSet):
    """
    Open coordinate box ``prod_k (lower_k, upper_k)``; bounds may be infinite.

    Margins are Euclidean distances to the boundary, so they are only meaningful
    for the Euclidean metric (the metric argument is ignored).
    """
    lower: np.ndarray
    upper: np.ndarray

    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        X = as_points(points)
        lo = np.asarray(self.lower, dtype=float).reshape(1, -1)
        hi = np.asarray(self.upper, dtype=float).reshape(1, -1)
        if lo.shape[1] != X.shape[1] or hi.shape[1] != X.shape[1]:
            raise ValueError(f"Box bounds must match point dimension {X.shape[1]}. Got {lo.shape}, {hi.shape}.")
        if X.shape[0] == 0:
            return np.zeros(0)
        return np.minimum(X - lo, hi - X).min(axis=1)


@dataclass(frozen=True, eq=False)
class WholeSpace(OpenSet):
    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        return np.full(as_points(points).shape[0], np.inf)


@dataclass(frozen=True, eq=False)
class EmptySet(OpenSet):
    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        return np.full(as_points(points).shape[0], -np.inf)


@dataclass(frozen=True, eq=False)
class IntersectionSet(OpenSet):
    parts: Tuple[OpenSet, ...]

    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        n = as_points(points).shape[0]
        out = np.full(n, np.inf)
        for part in self.parts:
            out = np.minimum(out, part.margin(points, metric))
        return out

    def __and__(self, other: OpenSet) -> "IntersectionSet":
        return IntersectionSet(self.parts + (other,))


@dataclass(frozen=True, eq=False)
class FunctionSet(OpenSet):
    """Open set given by a caller-supplied vectorized margin function."""
    margin_fn: Callable[[np.ndarray], np.ndarray]
    name: str = "custom"

    def margin(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        X = as_points(points)
        out = np.asarray(self.margin_fn(X), dtype=float).reshape(-1)
        if out.shape != (X.shape[0],):
            raise ValueError(f"margin_fn must return shape ({X.shape[0]},). Got {out.shape}.")
        return out


@dataclass(frozen=True, eq=False)
class ClosedBall:
    """Closed ball ``B̄(center, radius)``; radius 0 is the singleton ``{center}``."""
    center: np.ndarray
    radius: float

    def contains(self, points: np.ndarray, metric: Any = None) -> np.ndarray:
        M = as_metric(metric)
        X = as_points(points)
        if X.shape[0] == 0:
            return np.zeros(0, dtype=bool)
        c = np.asarray(self.center, dtype=float).reshape(1, -1)
        return M.pairwise(c, X)[0] <= float(self.radius)

    def inside(self, ball: OpenBall, metric: Any = None) -> bool:
        """Whether this closed ball lies in the open ball ``ball`` (triangle inequality bound)."""
        M = as_metric(metric)
        c0 = np.asarray(self.center, dtype=float).reshape(1, -1)
        c1 = np.asarray(ball.center, dtype=float).reshape(1, -1)
        return bool(M.pairwise(c1, c0)[0, 0] + float(self.radius) < float(ball.radius))
