# bump_covers/covers/shrinking.py
from __future__ import annotations

from typing import List, Optional, Sequence, Union

import numpy as np

from ..domains import Domain
from ..errors import InvalidDomain, NotShrinkable
from ..regions import ClosedBall, OpenBall
from ..spaces import AmbientSpace


__all__ = [
    "ShrinkingRefiner",
    "shrink_cover",
]


class ShrinkingRefiner:
    """
    Sequential shrinking of a point-finite open ball cover to closed balls.

    Members are processed in index order. When member ``i`` is processed, every
    member ``j < i`` has already been replaced by its closed ball ``V_j`` and
    every member ``j > i`` is still its open ball. ``V_i = B̄(c_i, s_i)`` is the
    smallest closed ball around ``c_i`` keeping the net covered, i.e. ``s_i`` is
    the largest ``d(c_i, y) + margin`` over net points ``y`` that no other
    current set covers.

    Coverage is tested with a margin ``h`` (the net spacing of the domain):

    - open ball ``B(c, r)`` covers ``y`` when ``d(c, y) + h < r``,
    - closed ball ``B̄(c, s)`` covers ``y`` when ``d(c, y) + h <= s``.

    so the conclusions transfer from net points to every domain point within
    ``h`` of them.

    Parameters
    ----------
    space :
        Ambient space; must be declared normal.
    margin :
        Net spacing ``h >= 0``.

    Raises
    ------
    NotShrinkable
        If the space is not declared normal.
    """

    def __init__(self, space: AmbientSpace, margin: float = 0.0):
        if space.missing_properties("normal"):
            raise NotShrinkable(f"Ambient space {space.name!r} is not normal; the shrinking lemma does not apply.")
        if not float(margin) >= 0:
            raise ValueError(f"margin must be nonnegative. Got {margin}.")
        self.space = space
        self.margin = float(margin)
        self._shrunk: List[float] = []

    @property
    def n_shrunk(self) -> int:
        return len(self._shrunk)

    @property
    def shrunk_radii(self) -> np.ndarray:
        return np.asarray(self._shrunk, dtype=float)

    def shrink(self, net: np.ndarray, cover: Sequence[OpenBall]) -> List[ClosedBall]:
        """
        Shrink a whole finite cover of the set with ``h``-net ``net``.

        Returns ``V_i ⊆ cover[i]`` in index order. The refiner must be fresh.

        Raises
        ------
        ValueError
            If ``cover`` misses a net point, or members were already processed.
        """
        if self._shrunk:
            raise ValueError(f"shrink() needs a fresh refiner; {self.n_shrunk} members already shrunk.")
        net = self.space.as_points(net, name="net")
        if len(cover) == 0:
            if net.shape[0]:
                raise ValueError("An empty cover cannot cover a nonempty set.")
            return []

        centers = np.stack([np.asarray(b.center, dtype=float).reshape(-1) for b in cover], axis=0)
        radii = np.array([float(b.radius) for b in cover])
        if net.shape[0]:
            D = self.space.metric.pairwise(centers, net) + self.margin
            uncovered = ~np.any(D < radii[:, None], axis=0)
            if np.any(uncovered):
                raise ValueError(f"cover does not cover S: {int(uncovered.sum())} net points uncovered.")

        index = np.arange(len(cover))
        return [
            self.shrink_next(centers[i], radii[i], net, index, centers, radii)
            for i in range(len(cover))
        ]

    def shrink_next(
        self,
        center: np.ndarray,
        open_radius: float,
        net: np.ndarray,
        neighbor_index: np.ndarray,
        neighbor_centers: np.ndarray,
        neighbor_radii: np.ndarray,
    ) -> ClosedBall:
        """
        Shrink the next member (index ``n_shrunk``).

        Parameters
        ----------
        center, open_radius :
            The member's open ball ``B(c_i, r_i)``.
        net :
            ``(p, d)`` net points; at least those within ``r_i`` of ``c_i``.
        neighbor_index, neighbor_centers, neighbor_radii :
            Indices, centers ``(k, d)`` and *open* radii of every other member
            whose open ball may meet ``B(c_i, r_i)``. Entries with index ``>= i``
            are treated as open balls; entries with index ``< i`` use their
            shrunk radius.
        """
        i = self.n_shrunk
        h = self.margin
        M = self.space.metric
        c = np.asarray(center, dtype=float).reshape(1, -1)
        r = float(open_radius)

        s = 0.0
        net = np.asarray(net, dtype=float)
        if net.shape[0]:
            d_i = M.pairwise(c, net)[0]
            mine = d_i + h < r
            Y, d_mine = net[mine], d_i[mine]
            if Y.shape[0]:
                covered = np.zeros(Y.shape[0], dtype=bool)
                idx = np.asarray(neighbor_index, dtype=int).reshape(-1)
                keep = idx != i
                idx = idx[keep]
                if idx.size:
                    C = np.asarray(neighbor_centers, dtype=float)[keep]
                    R = np.asarray(neighbor_radii, dtype=float).reshape(-1)[keep]
                    D = M.pairwise(C, Y) + h  # (k, p)

                    earlier = idx < i
                    if np.any(earlier):
                        s_prev = self.shrunk_radii[idx[earlier]]
                        covered |= np.any(D[earlier] <= s_prev[:, None], axis=0)
                    later = ~earlier
                    if np.any(later):
                        covered |= np.any(D[later] < R[later][:, None], axis=0)

                need = ~covered
                if np.any(need):
                    s = float(np.max(d_mine[need] + h))

        if not s < r:
            raise ValueError(f"Shrunk radius {s} does not fit inside open radius {r} for member {i}.")
        self._shrunk.append(s)
        return ClosedBall(center=np.asarray(center, dtype=float).reshape(-1), radius=s)


def shrink_cover(
    space: AmbientSpace,
    S: Union[Domain, np.ndarray],
    cover: Sequence[OpenBall],
    *,
    margin: Optional[float] = None,
) -> List[ClosedBall]:
    """
    Shrink a finite open ball cover of ``S`` to closed balls ``V_i ⊆ cover[i]``.

    Parameters
    ----------
    space :
        Ambient space (must be normal).
    S :
        Either a bounded :class:`~bump_covers.domains.Domain` (its full net and
        net spacing are used) or an ``(n, d)`` array of points.
    cover :
        Open balls, in index order.
    margin :
        Net spacing override. Defaults to the domain's net spacing, or 0 for a
        point array.

    Returns
    -------
    closed :
        ``V_i`` for each cover member, in the same order.

    Raises
    ------
    NotShrinkable
        If the space is not normal.
    ValueError
        If ``cover`` does not cover ``S``.
    """
    if isinstance(S, Domain):
        S.validate(space)
        if not S.bounded:
            raise InvalidDomain("shrink_cover needs a bounded domain; use CoveringBuilder for unbounded ones.")
        net = S.net(space, -np.inf, np.inf)
        h = S.net_spacing if margin is None else float(margin)
    else:
        net = space.as_points(S, name="S")
        h = 0.0 if margin is None else float(margin)

    return ShrinkingRefiner(space, margin=h).shrink(net, cover)
