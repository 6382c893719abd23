# bump_covers/domains.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

from .errors import InvalidDomain
from .spaces import AmbientSpace


__all__ = [
    "Domain",
    "FiniteDomain",
    "BoxDomain",
]


_MAX_NET_POINTS = 5_000_000


class Domain:
    """
    Closed subset of an ambient space, seen through finite nets.

    A domain never has to be enumerated. It answers three questions:

    - :meth:`validate`: is it a closed subset of ``space``?
    - :meth:`extent`: the largest distance from the origin (``inf`` if unbounded,
      ``-inf`` if empty).
    - :meth:`net`: finitely many domain points in a radial band
      ``r_lo < |y| <= r_hi`` such that every domain point of the band lies within
      ``net_spacing`` of some net point (taken over all bands).

    Net points are returned in a deterministic order; the builder relies on it.
    """
    closed: bool = True
    net_spacing: float = 0.0

    def validate(self, space: AmbientSpace) -> None:
        raise NotImplementedError

    def extent(self, space: AmbientSpace) -> float:
        raise NotImplementedError

    def net(self, space: AmbientSpace, r_lo: float, r_hi: float) -> np.ndarray:
        raise NotImplementedError

    def contains(self, points: np.ndarray, space: AmbientSpace) -> np.ndarray:
        raise NotImplementedError

    @property
    def bounded(self) -> bool:
        return True


def _in_band(space: AmbientSpace, X: np.ndarray, r_lo: float, r_hi: float) -> np.ndarray:
    if space.compact:
        return np.ones(X.shape[0], dtype=bool)
    r = space.distance_to_origin(X)
    return (r > r_lo) & (r <= r_hi)


@dataclass(frozen=True, eq=False)
class FiniteDomain(Domain):
    """A finite point set; closed in any Hausdorff space, with net spacing 0."""
    points: np.ndarray

    def __post_init__(self):
        P = np.asarray(self.points, dtype=float)
        if P.ndim == 1:
            P = P.reshape(-1, 1)
        if P.ndim != 2:
            raise InvalidDomain(f"points must be (n, d). Got shape {P.shape}.")
        object.__setattr__(self, "points", P)

    def validate(self, space: AmbientSpace) -> None:
        if self.points.shape[0] and self.points.shape[1] != space.dim:
            raise InvalidDomain(f"Domain points must be (n, {space.dim}). Got {self.points.shape}.")
        if not np.all(np.isfinite(self.points)):
            raise InvalidDomain("Domain points must be finite.")

    def extent(self, space: AmbientSpace) -> float:
        if self.points.shape[0] == 0:
            return -np.inf
        return float(space.distance_to_origin(self.points).max())

    def net(self, space: AmbientSpace, r_lo: float, r_hi: float) -> np.ndarray:
        if self.points.shape[0] == 0:
            return np.zeros((0, space.dim))
        return self.points[_in_band(space, self.points, r_lo, r_hi)]

    def contains(self, points: np.ndarray, space: AmbientSpace) -> np.ndarray:
        X = space.as_points(points)
        if self.points.shape[0] == 0 or X.shape[0] == 0:
            return np.zeros(X.shape[0], dtype=bool)
        return np.any(space.distance(self.points, X) == 0.0, axis=0)


@dataclass(frozen=True, eq=False)
class BoxDomain(Domain):
    """
    Closed coordinate box ``prod_k [lower_k, upper_k]``; bounds may be infinite.

    The net is the lattice of step ``spacing`` anchored at the finite lower bound
    (else the finite upper bound, else the origin) of each coordinate, plus the
    finite upper bound itself. Consecutive lattice values are at most ``spacing``
    apart, so every box point is within ``spacing * sqrt(d) / 2`` of the lattice
    for any metric dominated by coordinate-wise Euclidean distance (Euclidean,
    circle angle, flat torus).

    Parameters
    ----------
    lower, upper :
        Bounds of shape ``(d,)`` (scalars for ``d = 1``).
    spacing :
        Lattice step.
    closed :
        Declares the box closed. ``closed=False`` describes an open box, which
        the builder rejects with :class:`~bump_covers.errors.InvalidDomain`.
    """
    lower: np.ndarray
    upper: np.ndarray
    spacing: float = 0.1
    closed: bool = True
    net_spacing: float = field(init=False)

    def __post_init__(self):
        lo = np.atleast_1d(np.asarray(self.lower, dtype=float))
        hi = np.atleast_1d(np.asarray(self.upper, dtype=float))
        if lo.ndim != 1 or lo.shape != hi.shape:
            raise ValueError(f"lower/upper must be matching (d,) arrays. Got {lo.shape}, {hi.shape}.")
        if np.any(lo > hi):
            raise ValueError("lower must be <= upper in every coordinate.")
        if np.any(np.isnan(lo)) or np.any(np.isnan(hi)):
            raise ValueError("Box bounds must not be NaN.")
        if not float(self.spacing) > 0:
            raise ValueError(f"spacing must be positive. Got {self.spacing}.")
        object.__setattr__(self, "lower", lo)
        object.__setattr__(self, "upper", hi)
        object.__setattr__(self, "spacing", float(self.spacing))
        object.__setattr__(self, "net_spacing", float(self.spacing) * np.sqrt(lo.size) / 2.0)

    @property
    def dim(self) -> int:
        return int(self.lower.size)

    @property
    def bounded(self) -> bool:
        return bool(np.all(np.isfinite(self.lower)) and np.all(np.isfinite(self.upper)))

    def validate(self, space: AmbientSpace) -> None:
        if not self.closed:
            raise InvalidDomain("Domain must be closed; got an open box.")
        if self.dim != space.dim:
            raise InvalidDomain(f"Box has dimension {self.dim}, ambient space has dimension {space.dim}.")
        if space.compact and not self.bounded:
            raise InvalidDomain("An unbounded box is not a subset of a compact space's coordinate chart.")

    def extent(self, space: AmbientSpace) -> float:
        if not self.bounded:
            return np.inf
        corners = np.array(np.meshgrid(*zip(self.lower, self.upper), indexing="ij")).reshape(self.dim, -1).T
        return float(space.distance_to_origin(corners).max())

    def _axis_values(self, k: int, w_lo: float, w_hi: float) -> np.ndarray:
        """Lattice values of coordinate ``k`` inside the window ``[w_lo, w_hi]``."""
        a, b, h = float(self.lower[k]), float(self.upper[k]), self.spacing
        lo, hi = max(a, w_lo), min(b, w_hi)
        if lo > hi:
            return np.zeros(0)
        if np.isfinite(a):
            anchor, extra = a, b
        elif np.isfinite(b):
            anchor, extra = b, np.nan
        else:
            anchor, extra = 0.0, np.nan
        n_lo = int(np.ceil((lo - anchor) / h))
        n_hi = int(np.floor((hi - anchor) / h))
        vals = anchor + h * np.arange(n_lo, n_hi + 1, dtype=float)
        vals = vals[(vals >= a) & (vals <= b)]
        if np.isfinite(extra) and lo <= extra <= hi:
            vals = np.union1d(vals, [extra])
        return vals

    def net(self, space: AmbientSpace, r_lo: float, r_hi: float) -> np.ndarray:
        if space.compact:
            windows = [(-np.inf, np.inf)] * self.dim
        else:
            o = space.origin
            windows = [(o[k] - r_hi, o[k] + r_hi) for k in range(self.dim)]

        axes: List[np.ndarray] = [self._axis_values(k, *windows[k]) for k in range(self.dim)]
        n_total = int(np.prod([a.size for a in axes], dtype=float))
        if n_total == 0:
            return np.zeros((0, self.dim))
        if n_total > _MAX_NET_POINTS:
            raise ValueError(
                f"Net band would hold {n_total} points (> {_MAX_NET_POINTS}); increase spacing "
                "or reduce the exhaustion stage width."
            )
        grid = np.array(np.meshgrid(*axes, indexing="ij")).reshape(self.dim, -1).T
        return grid[_in_band(space, grid, r_lo, r_hi)]

    def contains(self, points: np.ndarray, space: AmbientSpace) -> np.ndarray:
        X = space.as_points(points)
        return np.all((X >= self.lower[None, :]) & (X <= self.upper[None, :]), axis=1)
