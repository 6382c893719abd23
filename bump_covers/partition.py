# bump_covers/partition.py
"""
Partition of unity from a bump covering.

For a total order ``<`` on the indices,

    weight[i](x) = w_i(x) * prod_{j < i} (1 - w_j(x))

where ``w_i`` are the member weights. At each point only the finitely many
active indices ``A(x) = {i : w_i(x) != 0}`` contribute, so evaluation is an
explicit sort-then-fold over ``A(x)``. The sum telescopes:

    sum_i weight[i](x) = 1 - prod_i (1 - w_i(x))

which is exactly 1 wherever some member equals 1, in particular on the
covering's domain.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .bumps import BumpMember
from .covers.covering import BumpCovering


__all__ = [
    "WeightTable",
    "PartitionOfUnity",
    "PartitionNormalizer",
    "normalize",
]

logger = logging.getLogger(__name__)

OrderKey = Callable[[int], Any]


@dataclass(frozen=True)
class WeightTable:
    """
    Partition weights at a batch of points.

    Attributes
    ----------
    indices :
        ``(m,)`` active covering indices, in normalization order.
    values :
        ``(m, n_points)``; ``values[k, s] = weight[indices[k]](x_s)``.
    remainder :
        ``(n_points,)``; ``prod_i (1 - w_i(x_s))``.
    """
    indices: np.ndarray
    values: np.ndarray
    remainder: np.ndarray

    @property
    def n_points(self) -> int:
        return int(self.remainder.shape[0])

    def total(self) -> np.ndarray:
        """``sum_i weight[i](x)`` through the telescoping identity (exact on the domain)."""
        return 1.0 - self.remainder

    def sums(self) -> np.ndarray:
        """Plain column sums of ``values`` (equal to :meth:`total` up to rounding)."""
        return self.values.sum(axis=0)

    def row(self, i: int) -> np.ndarray:
        """Weights of index ``i`` at every point (zeros if ``i`` is inactive everywhere)."""
        hit = np.flatnonzero(self.indices == int(i))
        if hit.size == 0:
            return np.zeros(self.n_points)
        return self.values[int(hit[0])]

    def at(self, s: int) -> Dict[int, float]:
        """Nonzero weights at sample ``s`` as ``{index: weight}``."""
        col = self.values[:, int(s)]
        return {int(i): float(v) for i, v in zip(self.indices, col) if v != 0.0}


def _check_order_keys(keys: List[Any]) -> None:
    for a, b in zip(keys, keys[1:]):
        if not a < b:
            raise ValueError(f"order must be a total order on indices; keys {a!r} and {b!r} tie.")


class PartitionOfUnity:
    """
    Partition of unity derived from a :class:`BumpCovering`.

    Weights are never stored; they are a pure function of the covering and the
    order and are evaluated on demand.

    Parameters
    ----------
    covering :
        Source covering.
    order :
        Optional key function ``index -> sortable``; must be injective on the
        indices (a total order). Defaults to the integer order.
    """

    def __init__(self, covering: BumpCovering, order: Optional[OrderKey] = None):
        self.covering = covering
        self.order = order

    @property
    def domain(self):
        return self.covering.domain

    @property
    def space(self):
        return self.covering.space

    def _sorted(self, idx: np.ndarray) -> np.ndarray:
        if self.order is None or idx.size < 2:
            return np.argsort(idx, kind="stable")
        keys = [self.order(int(i)) for i in idx]
        perm = sorted(range(idx.size), key=lambda k: keys[k])
        _check_order_keys([keys[k] for k in perm])
        return np.asarray(perm, dtype=int)

    def _evaluate(self, X: np.ndarray) -> WeightTable:
        idx, W = self.covering.weight_matrix(X)
        n = X.shape[0]
        if idx.size == 0:
            return WeightTable(indices=idx, values=W, remainder=np.ones(n))

        perm = self._sorted(idx)
        idx, W = idx[perm], W[perm]

        factors = 1.0 - W
        running = np.cumprod(factors, axis=0)
        prefix = np.vstack([np.ones((1, n)), running[:-1]])
        values = W * prefix
        return WeightTable(indices=idx, values=values, remainder=running[-1])

    def evaluate(self, points: np.ndarray, *, n_jobs: int = 1) -> WeightTable:
        """
        Partition weights over the active indices at ``points``.

        Parameters
        ----------
        points :
            ``(n, d)`` array.
        n_jobs :
            Evaluate this many point chunks concurrently. Points are independent
            of one another, so chunking does not change the result.
        """
        X = self.space.as_points(points)
        n_jobs = max(1, int(n_jobs))
        if n_jobs == 1 or X.shape[0] < 2 * n_jobs:
            table = self._evaluate(X)
            logger.debug("Evaluated partition at %d points: %d active indices.", X.shape[0], table.indices.size)
            return table

        # finalize lazily built members once, up front
        self.covering.materialize(X)
        chunks = np.array_split(np.arange(X.shape[0]), n_jobs)
        with ThreadPoolExecutor(max_workers=n_jobs) as pool:
            tables = list(pool.map(lambda rows: self._evaluate(X[rows]), chunks))
        return self._merge(tables, chunks, X.shape[0])

    def _merge(self, tables: List[WeightTable], chunks: List[np.ndarray], n: int) -> WeightTable:
        union = np.unique(np.concatenate([t.indices for t in tables])) if tables else np.zeros(0, dtype=int)
        union = union[self._sorted(union)] if union.size else union.astype(int)
        pos = {int(i): k for k, i in enumerate(union)}

        values = np.zeros((union.size, n))
        remainder = np.ones(n)
        for t, rows in zip(tables, chunks):
            remainder[rows] = t.remainder
            for k, i in enumerate(t.indices):
                values[pos[int(i)], rows] = t.values[k]
        return WeightTable(indices=union.astype(int), values=values, remainder=remainder)

    def total(self, points: np.ndarray) -> np.ndarray:
        """``sum_i weight[i](x)``; exactly 1 on the domain, in ``[0, 1]`` everywhere."""
        return self.evaluate(points).total()

    def weight(self, i: int) -> Callable[[np.ndarray], np.ndarray]:
        """The ``i``-th partition function as a vectorized callable."""
        def w(points: np.ndarray) -> np.ndarray:
            return self.evaluate(points).row(i)

        w.__name__ = f"weight_{int(i)}"
        return w

    def at(self, x: np.ndarray) -> Dict[int, float]:
        """Nonzero weights at a single point as ``{index: weight}``."""
        X = self.space.as_points(x)
        if X.shape[0] != 1:
            raise ValueError(f"at() expects a single point. Got {X.shape}.")
        return self.evaluate(X).at(0)

    def dense(self, points: np.ndarray) -> np.ndarray:
        """
        Dense ``(n_sets, n_samples)`` weight matrix for a finite covering.

        Row ``i`` is index ``i`` (not the normalization order).
        """
        if not self.covering.is_finite:
            raise ValueError("dense() needs a finite covering; use evaluate() instead.")
        table = self.evaluate(points)
        out = np.zeros((len(self.covering), table.n_points))
        if table.indices.size:
            out[table.indices] = table.values
        return out

    def as_covering(self) -> BumpCovering:
        """
        This partition as a one-member covering whose weight is the partition total.

        Normalizing the result gives back the total as its only weight. The
        total equals 1 at the center of member 0, which becomes the center; a
        partition of an empty covering gives an empty covering.
        """
        cov = self.covering
        first = next(iter(cov), None)
        if first is None:
            return BumpCovering([], domain=cov.domain, space=cov.space)
        member = BumpMember(center=first.center, weight=self.total, radius=np.inf)
        return BumpCovering([member], domain=cov.domain, space=cov.space)

    def __repr__(self) -> str:
        return f"PartitionOfUnity(covering={self.covering!r}, ordered={'custom' if self.order else 'index'})"


class PartitionNormalizer:
    """Turns coverings into partitions of unity under a fixed index order."""

    def __init__(self, order: Optional[OrderKey] = None):
        self.order = order

    def normalize(self, covering: BumpCovering) -> PartitionOfUnity:
        if not isinstance(covering, BumpCovering):
            raise TypeError(f"normalize expects a BumpCovering. Got {type(covering).__name__}.")
        return PartitionOfUnity(covering, order=self.order)


def normalize(covering: BumpCovering, order: Optional[OrderKey] = None) -> PartitionOfUnity:
    """Shorthand for ``PartitionNormalizer(order).normalize(covering)``."""
    return PartitionNormalizer(order).normalize(covering)
