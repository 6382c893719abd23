# bump_covers/covers/covering.py
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree

from ..bumps import BumpMember
from ..domains import Domain
from ..metrics import EuclideanMetric
from ..nerve.combinatorics import Edge, Tri, canon_edge, canon_tri
from ..spaces import AmbientSpace, euclidean_space


__all__ = [
    "MemberStream",
    "BumpCovering",
]

logger = logging.getLogger(__name__)


class MemberStream:
    """
    Lazy source of covering members, finalized in index order.

    Implementations append finalized members to their own ``members`` list and
    never revise them.
    """
    members: List[BumpMember]

    @property
    def exhausted(self) -> bool:
        raise NotImplementedError

    def materialize_through(self, radius: float) -> None:
        """Finalize every member that can be nonzero at a point ``x`` with ``|x| <= radius``."""
        raise NotImplementedError

    def materialize_count(self, n: int) -> None:
        """Finalize at least ``n`` members (fewer only if exhausted)."""
        raise NotImplementedError


class _SpatialIndex:
    """Candidate lookup over bounded member supports (a KD-tree for Euclidean metrics)."""

    def __init__(self, members: Sequence[BumpMember], metric: Any):
        self.metric = metric
        radii = np.array([m.radius for m in members], dtype=float)
        self.bounded = np.flatnonzero(np.isfinite(radii))
        self.unbounded = np.flatnonzero(~np.isfinite(radii))
        self.radii = radii
        self.centers = (
            np.stack([members[i].center for i in self.bounded], axis=0) if self.bounded.size else None
        )
        self.tree = None
        if self.centers is not None and isinstance(metric, EuclideanMetric):
            self.tree = cKDTree(self.centers)

    def pairs(self, X: np.ndarray, eps: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
        """
        (member, point) index pairs with ``d(center, x) <= radius + eps``.

        Every member whose support meets ``B(x, eps)`` appears; the converse need
        not hold.
        """
        mem: List[np.ndarray] = []
        pts: List[np.ndarray] = []
        n = X.shape[0]

        if self.centers is not None and n:
            R = self.radii[self.bounded]
            if self.tree is not None:
                hits = self.tree.query_ball_point(X, r=float(R.max()) + eps)
                for p, cand in enumerate(hits):
                    if not cand:
                        continue
                    cand = np.asarray(cand, dtype=int)
                    d = np.linalg.norm(self.centers[cand] - X[p], axis=1)
                    ok = cand[d <= R[cand] + eps]
                    mem.append(self.bounded[ok])
                    pts.append(np.full(ok.size, p, dtype=int))
            else:
                D = self.metric.pairwise(self.centers, X)
                mi, pi = np.nonzero(D <= R[:, None] + eps)
                mem.append(self.bounded[mi])
                pts.append(pi)

        for i in self.unbounded:
            mem.append(np.full(n, i, dtype=int))
            pts.append(np.arange(n, dtype=int))

        if not mem:
            return np.zeros(0, dtype=int), np.zeros(0, dtype=int)
        return np.concatenate(mem), np.concatenate(pts)


class BumpCovering:
    """
    Locally finite indexed family of bump members covering a closed domain.

    Members are indexed ``0, 1, 2, ...``. A covering built by
    :class:`~bump_covers.covers.builder.CoveringBuilder` over an unbounded domain
    is an infinite lazy stream: queries at points only finalize the members that
    can be nonzero there. The family itself never changes once a member is
    finalized, so a covering behaves as an immutable value.

    Parameters
    ----------
    members :
        Finalized members (the whole family when ``stream`` is None).
    domain :
        The covered closed set, if known.
    space :
        Ambient space; defaults to the Euclidean space of the members' dimension.
    stream :
        Lazy member source (builder internal).

    Notes
    -----
    Coverings assembled by hand through :meth:`from_members` are not checked for
    the covering invariants; use :meth:`check_coverage` and
    :meth:`local_indices` to inspect them.
    """

    def __init__(
        self,
        members: Sequence[BumpMember] = (),
        *,
        domain: Optional[Domain] = None,
        space: Optional[AmbientSpace] = None,
        stream: Optional[MemberStream] = None,
    ):
        self.domain = domain
        self._stream = stream
        self._members: List[BumpMember] = list(members) if stream is None else stream.members
        if space is None:
            dim = int(self._members[0].center.size) if self._members else 1
            space = euclidean_space(dim)
        self.space = space
        self._lock = threading.RLock()
        self._index: Optional[_SpatialIndex] = None
        self._index_size = -1

    @classmethod
    def from_members(
        cls,
        members: Sequence[BumpMember],
        *,
        domain: Optional[Domain] = None,
        space: Optional[AmbientSpace] = None,
    ) -> "BumpCovering":
        return cls(members, domain=domain, space=space)

    # ----------------------------
    # Family access
    # ----------------------------

    @property
    def is_finite(self) -> bool:
        return self._stream is None or self._stream.exhausted

    @property
    def n_materialized(self) -> int:
        return len(self._members)

    @property
    def members(self) -> Tuple[BumpMember, ...]:
        """Finalized members (all members for a finite covering)."""
        return tuple(self._members)

    def __len__(self) -> int:
        if not self.is_finite:
            raise TypeError("An infinite covering has no len(); use n_materialized.")
        return len(self._members)

    def __getitem__(self, i: int) -> BumpMember:
        i = int(i)
        if i < 0:
            raise IndexError("Covering indices are nonnegative.")
        if i >= len(self._members) and self._stream is not None:
            with self._lock:
                self._stream.materialize_count(i + 1)
        return self._members[i]

    def __iter__(self) -> Iterator[BumpMember]:
        i = 0
        while True:
            if i >= len(self._members):
                if self._stream is None or self._stream.exhausted:
                    return
                with self._lock:
                    self._stream.materialize_count(i + 1)
                if i >= len(self._members):
                    return
            yield self._members[i]
            i += 1

    def materialize(self, points: np.ndarray, eps: float = 0.0) -> None:
        """Finalize every member that can be nonzero within ``eps`` of ``points``."""
        if self._stream is None or self._stream.exhausted:
            return
        X = self.space.as_points(points)
        if X.shape[0] == 0:
            return
        reach = float(self.space.distance_to_origin(X).max()) + float(eps)
        with self._lock:
            self._stream.materialize_through(reach)

    def _spatial_index(self) -> _SpatialIndex:
        with self._lock:
            if self._index is None or self._index_size != len(self._members):
                self._index = _SpatialIndex(self._members, self.space.metric)
                self._index_size = len(self._members)
                logger.debug("Rebuilt spatial index over %d members.", self._index_size)
            return self._index

    # ----------------------------
    # Pointwise queries
    # ----------------------------

    def weight_matrix(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Raw member weights over the active indices at ``points``.

        Returns
        -------
        indices :
            Sorted ``(m,)`` array of indices active at some point.
        W :
            ``(m, n_points)`` weights; ``W[k, s] = members[indices[k]].weight(x_s)``.
        """
        X = self.space.as_points(points)
        self.materialize(X)
        mem, pts = self._spatial_index().pairs(X)
        n = X.shape[0]
        if mem.size == 0:
            return np.zeros(0, dtype=int), np.zeros((0, n))

        order = np.lexsort((pts, mem))
        mem, pts = mem[order], pts[order]
        uniq, starts = np.unique(mem, return_index=True)
        bounds = list(starts[1:]) + [mem.size]

        W = np.zeros((uniq.size, n), dtype=float)
        for k, (i, a, b) in enumerate(zip(uniq, starts, bounds)):
            p = pts[a:b]
            W[k, p] = self._members[int(i)](X[p])

        if np.any(W < 0) or np.any(W > 1):
            raise ValueError("Member weights must take values in [0, 1].")
        active = np.any(W != 0, axis=1)
        return uniq[active].astype(int), W[active]

    def active_indices(self, x: np.ndarray) -> List[int]:
        """Sorted indices ``i`` with ``members[i].weight(x) != 0`` at a single point."""
        X = self.space.as_points(x)
        if X.shape[0] != 1:
            raise ValueError(f"active_indices expects a single point. Got {X.shape}.")
        idx, _ = self.weight_matrix(X)
        return [int(i) for i in idx]

    def local_indices(self, x: np.ndarray, eps: float) -> List[int]:
        """
        Finite set ``F`` such that every member outside ``F`` vanishes on ``B(x, eps)``.

        This is the local-finiteness witness: for a locally finite covering it
        exists (and is finite) for small enough ``eps``. Members of unbounded
        support are always included.
        """
        X = self.space.as_points(x)
        if X.shape[0] != 1:
            raise ValueError(f"local_indices expects a single point. Got {X.shape}.")
        self.materialize(X, eps=float(eps))
        mem, _ = self._spatial_index().pairs(X, eps=float(eps))
        return sorted({int(i) for i in mem})

    def check_coverage(self, points: np.ndarray) -> np.ndarray:
        """
        For each point, whether some member equals 1 on a neighborhood of it.

        A radial member certifies this when ``d(x, center) < inner_radius``;
        other members are only checked pointwise (``weight(x) == 1``).
        """
        X = self.space.as_points(points)
        idx, W = self.weight_matrix(X)
        out = np.zeros(X.shape[0], dtype=bool)
        for k, i in enumerate(idx):
            m = self._members[int(i)]
            if m.inner_radius > 0:
                d = self.space.metric.pairwise(m.center.reshape(1, -1), X)[0]
                out |= d < m.inner_radius
            out |= W[k] == 1.0
        return out

    def check_centers(self) -> np.ndarray:
        """Whether each finalized member's center lies in the domain."""
        if self.domain is None or not self._members:
            return np.ones(len(self._members), dtype=bool)
        C = np.stack([m.center for m in self._members], axis=0)
        return self.domain.contains(C, self.space)

    # ----------------------------
    # Nerve (on samples)
    # ----------------------------

    def support_matrix(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """``(indices, U)`` with ``U[k, s] = members[indices[k]].weight(x_s) != 0``."""
        idx, W = self.weight_matrix(points)
        return idx, W != 0

    def nerve_edges(self, points: np.ndarray) -> List[Edge]:
        """
        1-simplices ``(i, j)`` whose supports share at least one sample.

        Returns
        -------
        edges :
            List of canonical edges ``(i,j)`` with ``i < j`` (covering indices).
        """
        idx, U = self.support_matrix(points)
        edges: List[Edge] = []
        for a in range(idx.size):
            Ua = U[a]
            for b in range(a + 1, idx.size):
                if np.any(Ua & U[b]):
                    edges.append(canon_edge(int(idx[a]), int(idx[b])))
        return edges

    def nerve_triangles(self, points: np.ndarray) -> List[Tri]:
        """2-simplices ``(i, j, k)`` whose supports share at least one sample."""
        idx, U = self.support_matrix(points)
        tris: List[Tri] = []
        for a in range(idx.size):
            Ua = U[a]
            for b in range(a + 1, idx.size):
                ab = Ua & U[b]
                if not np.any(ab):
                    continue
                for c in range(b + 1, idx.size):
                    if np.any(ab & U[c]):
                        tris.append(canon_tri(int(idx[a]), int(idx[b]), int(idx[c])))
        return tris

    def summarize(self, points: np.ndarray, *, verbose: bool = False, latex: str | bool = "auto"):
        """Summarize the covering over sample ``points``; see :func:`summarize_covering`."""
        from ..summaries.covering_summary import summarize_covering

        return summarize_covering(self, points, verbose=verbose, latex=latex)

    # ----------------------------
    # Records
    # ----------------------------

    def to_records(self, n: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Serializable member parameters ``{index, center, inner_radius, radius, neighborhood}``.

        Weight functions are not stored; rebuild them with :meth:`from_records`
        and the same bump factory. ``n`` limits (and, for lazy coverings,
        materializes) the number of records.
        """
        if n is None:
            if not self.is_finite:
                raise ValueError("An infinite covering needs an explicit record count n.")
            members = list(self._members)
        else:
            members = [m for _, m in zip(range(int(n)), self)]
        return [
            {
                "index": i,
                "center": m.center.tolist(),
                "inner_radius": float(m.inner_radius),
                "radius": float(m.radius),
                "neighborhood": None if m.neighborhood is None else repr(m.neighborhood),
            }
            for i, m in enumerate(members)
        ]

    @classmethod
    def from_records(
        cls,
        records: Sequence[Dict[str, Any]],
        factory: Any,
        *,
        domain: Optional[Domain] = None,
        space: Optional[AmbientSpace] = None,
    ) -> "BumpCovering":
        ordered = sorted(records, key=lambda rec: int(rec["index"]))
        if [int(rec["index"]) for rec in ordered] != list(range(len(ordered))):
            raise ValueError("Record indices must be 0..n-1.")
        members = [
            factory.member(np.asarray(rec["center"], dtype=float), rec["inner_radius"], rec["radius"])
            for rec in ordered
        ]
        return cls(members, domain=domain, space=space)

    def __repr__(self) -> str:
        size = str(len(self._members)) if self.is_finite else f"{len(self._members)}+ (lazy)"
        return f"BumpCovering(n_members={size}, space={self.space.name!r})"
