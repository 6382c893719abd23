# bump_covers/blending.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import numpy as np

from .partition import PartitionOfUnity


__all__ = [
    "ConvexSet",
    "IntervalSet",
    "BoxSet",
    "BallSet",
    "Blend",
    "Blender",
    "blend",
    "AngleBlend",
    "blend_angles",
    "wrap_to_pi",
]


CandidateFn = Callable[[np.ndarray], np.ndarray]
Candidates = Union[Sequence[CandidateFn], Mapping[int, CandidateFn], Callable[[int, np.ndarray], np.ndarray]]


# ============================================================
# Convex targets
# ============================================================

class ConvexSet:
    """
    Convex subset of the value space.

    Parameters may be arrays with a leading point axis, in which case row ``s``
    of ``values`` is tested against the set of point ``s`` (a point-dependent
    target ``x -> target(x)`` evaluated on a batch).
    """

    def contains(self, values: np.ndarray) -> np.ndarray:
        raise NotImplementedError


def _as_rows(values: np.ndarray) -> np.ndarray:
    V = np.asarray(values, dtype=float)
    return V.reshape(V.shape[0], -1)


@dataclass(frozen=True)
class IntervalSet(ConvexSet):
    """Scalar interval ``[lo, hi]``."""
    lo: Any = 0.0
    hi: Any = 1.0
    atol: float = 1e-12

    def contains(self, values: np.ndarray) -> np.ndarray:
        v = np.asarray(values, dtype=float).reshape(-1)
        return (v >= np.asarray(self.lo) - self.atol) & (v <= np.asarray(self.hi) + self.atol)


@dataclass(frozen=True)
class BoxSet(ConvexSet):
    """Coordinate box ``prod_k [lower_k, upper_k]`` in value space."""
    lower: Any
    upper: Any
    atol: float = 1e-12

    def contains(self, values: np.ndarray) -> np.ndarray:
        V = _as_rows(values)
        lo = np.asarray(self.lower, dtype=float)
        hi = np.asarray(self.upper, dtype=float)
        return np.all((V >= lo - self.atol) & (V <= hi + self.atol), axis=1)


@dataclass(frozen=True)
class BallSet(ConvexSet):
    """Closed Euclidean ball in value space."""
    center: Any
    radius: Any
    atol: float = 1e-12

    def contains(self, values: np.ndarray) -> np.ndarray:
        V = _as_rows(values)
        c = np.asarray(self.center, dtype=float)
        c = c.reshape(1, -1) if c.ndim <= 1 else c.reshape(V.shape[0], -1)
        d = np.linalg.norm(V - c, axis=1)
        return d <= np.asarray(self.radius, dtype=float) + self.atol


# ============================================================
# Candidate access
# ============================================================

def _candidate_getter(candidates: Candidates) -> Callable[[int], CandidateFn]:
    if isinstance(candidates, Mapping):
        return lambda i: candidates[int(i)]
    if isinstance(candidates, Sequence) and not isinstance(candidates, (str, bytes)):
        return lambda i: candidates[int(i)]
    if callable(candidates):
        return lambda i: (lambda X: candidates(int(i), X))
    raise TypeError(
        "candidates must be a sequence/mapping of callables or a callable (index, points) -> values."
    )


def _target_at(target: Any, X: np.ndarray) -> ConvexSet:
    if isinstance(target, ConvexSet):
        return target
    out = target(X)
    if not isinstance(out, ConvexSet):
        raise TypeError(f"target(points) must return a ConvexSet. Got {type(out).__name__}.")
    return out


# ============================================================
# Linear blending
# ============================================================

class Blend:
    """
    ``x -> sum_i weight[i](x) * candidates[i](x)``.

    Candidate ``i`` is only evaluated at points where ``weight[i]`` is nonzero,
    so it only has to be defined there (e.g. on its member's support).

    Parameters
    ----------
    partition :
        Partition of unity.
    candidates :
        Sequence or mapping ``index -> (points -> values)``, or a callable
        ``(index, points) -> values``. Values are ``(n,)`` or ``(n, k)``.
    target :
        Optional convex set, or callable ``points -> ConvexSet`` for a
        point-dependent target. When given, every candidate value used with a
        nonzero weight must lie in the target; the blend then lies in the
        target at every domain point.
    """

    def __init__(self, partition: PartitionOfUnity, candidates: Candidates, target: Any = None):
        self.partition = partition
        self._get = _candidate_getter(candidates)
        self.target = target

    def __call__(self, points: np.ndarray, *, n_jobs: int = 1) -> np.ndarray:
        X = self.partition.space.as_points(points)
        table = self.partition.evaluate(X, n_jobs=n_jobs)
        n = X.shape[0]

        out: Optional[np.ndarray] = None
        for k, i in enumerate(table.indices):
            w = table.values[k]
            rows = np.flatnonzero(w != 0.0)
            if rows.size == 0:
                continue
            vals = np.asarray(self._get(int(i))(X[rows]), dtype=float)
            if vals.shape[0] != rows.size:
                raise ValueError(f"candidate {int(i)} returned {vals.shape[0]} values for {rows.size} points.")

            if self.target is not None:
                ok = _target_at(self.target, X[rows]).contains(vals)
                if not np.all(ok):
                    bad = X[rows][~ok][0]
                    raise ValueError(
                        f"candidate {int(i)} leaves the convex target at {bad.tolist()} "
                        f"where its weight is nonzero."
                    )

            if out is None:
                out = np.zeros((n,) + vals.shape[1:], dtype=float)
            out[rows] += w[rows].reshape((-1,) + (1,) * (vals.ndim - 1)) * vals

        return np.zeros(n) if out is None else out


class Blender:
    """Glues per-index candidates through partitions of unity, under a fixed convex target."""

    def __init__(self, target: Any = None):
        self.target = target

    def blend(self, partition: PartitionOfUnity, candidates: Candidates) -> Blend:
        if not isinstance(partition, PartitionOfUnity):
            raise TypeError(f"blend expects a PartitionOfUnity. Got {type(partition).__name__}.")
        return Blend(partition, candidates, target=self.target)


def blend(partition: PartitionOfUnity, candidates: Candidates, target: Any = None) -> Blend:
    """Glue per-index candidates into one global function by convex combination."""
    return Blender(target).blend(partition, candidates)


# ============================================================
# Circle-valued blending
# ============================================================

def wrap_to_pi(x: np.ndarray) -> np.ndarray:
    """Wrap angles to (-pi, pi]."""
    y = (np.asarray(x, dtype=float) + np.pi) % (2.0 * np.pi) - np.pi
    return np.where(y == -np.pi, np.pi, y)


class AngleBlend:
    """
    Weighted mean of circle-valued candidates, anchored at the heaviest chart.

    At each point, every active candidate angle is lifted to within ``(-pi, pi]``
    of the anchor (the candidate with the largest weight) and the lifts are
    averaged with the normalized weights. The active candidates must lie in an
    open semicircle around the anchor; otherwise the mean is ill-defined and
    ``ValueError`` is raised. Points with no active index give ``nan``.
    """

    def __init__(self, partition: PartitionOfUnity, candidates: Candidates, *, tol: float = 1e-8):
        self.partition = partition
        self._get = _candidate_getter(candidates)
        self.tol = float(tol)

    def __call__(self, points: np.ndarray) -> np.ndarray:
        X = self.partition.space.as_points(points)
        table = self.partition.evaluate(X)
        n = X.shape[0]
        W = table.values
        if table.indices.size == 0:
            return np.full(n, np.nan)

        A = np.zeros_like(W)
        for k, i in enumerate(table.indices):
            rows = np.flatnonzero(W[k] != 0.0)
            if rows.size:
                A[k, rows] = np.asarray(self._get(int(i))(X[rows]), dtype=float).reshape(-1)

        ws = W.sum(axis=0)
        anchor = A[np.argmax(W, axis=0), np.arange(n)]
        diffs = wrap_to_pi(A - anchor[None, :])
        active = W != 0.0
        max_abs = np.max(np.where(active, np.abs(diffs), 0.0), axis=0)
        if np.any(max_abs >= np.pi - self.tol):
            s = int(np.flatnonzero(max_abs >= np.pi - self.tol)[0])
            raise ValueError(
                "Angles are not contained in an open semicircle around the anchor "
                f"at {X[s].tolist()} (max_abs={max_abs[s]:.6f} >= pi)."
            )

        with np.errstate(invalid="ignore", divide="ignore"):
            mean = anchor + np.sum(W * diffs, axis=0) / ws
        return np.where(ws > 0, wrap_to_pi(mean), np.nan)


def blend_angles(partition: PartitionOfUnity, candidates: Candidates, *, tol: float = 1e-8) -> AngleBlend:
    """Circle-valued counterpart of :func:`blend` (angles in radians)."""
    return AngleBlend(partition, candidates, tol=tol)
