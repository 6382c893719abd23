# bump_covers/covers/builder.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Union

import numpy as np

from ..bumps import AdmissibleBumpFactory, BumpMember, RadialBumpFactory
from ..config import CoveringConfig
from ..domains import Domain
from ..errors import DegenerateNeighborhood, InvalidDomain, NoCoveringPossible
from ..regions import OpenBall, OpenSet, WholeSpace
from ..spaces import AmbientSpace
from ..utils.status_utils import _status, _status_clear
from .covering import BumpCovering, MemberStream
from .shrinking import ShrinkingRefiner


__all__ = [
    "NeighborhoodAssignment",
    "CoveringBuilder",
    "build_bump_covering",
]

logger = logging.getLogger(__name__)

NeighborhoodAssignment = Callable[[np.ndarray], OpenSet]


def _as_assignment(U: Union[NeighborhoodAssignment, OpenSet, None]) -> NeighborhoodAssignment:
    if U is None:
        whole = WholeSpace()
        return lambda x: whole
    if isinstance(U, OpenSet):
        return lambda x: U
    if not callable(U):
        raise TypeError(f"U must be an OpenSet or a callable point -> OpenSet. Got {type(U).__name__}.")
    return U


class _ExhaustionStream(MemberStream):
    """
    Stage-by-stage construction behind a (possibly infinite) covering.

    Open stage ``k``: walk the domain net of band ``k`` in order and open a ball
    ``B(y, r_y)`` at every net point not already covered by an earlier ball.
    Finalizing member ``i`` shrinks its ball (which needs every open ball within
    reach, i.e. stages through ``|c_i| + 2 * max_radius``) and instantiates the
    bump. Both steps only ever append.
    """

    def __init__(
        self,
        space: AmbientSpace,
        domain: Domain,
        U: NeighborhoodAssignment,
        factory: AdmissibleBumpFactory,
        config: CoveringConfig,
        refiner: ShrinkingRefiner,
        *,
        verbose: bool = False,
    ):
        self.space = space
        self.domain = domain
        self.U = U
        self.factory = factory
        self.config = config
        self.refiner = refiner
        self.verbose = bool(verbose)

        self.h = float(domain.net_spacing)
        self.max_radius = float(config.max_radius)
        self.width = float(config.width)

        self.members: List[BumpMember] = []

        # open cover, indexed like the members
        self._centers: List[np.ndarray] = []
        self._radii: List[float] = []
        self._nbhds: List[OpenSet] = []
        self._stages: List[int] = []
        self._open_cache: Optional[tuple] = None

        self._net_chunks: List[np.ndarray] = []
        self._next_stage = 0

        extent = domain.extent(space)
        if extent == -np.inf:
            self._last_stage: Optional[int] = -1
        elif np.isfinite(extent):
            self._last_stage = space.stage_of(extent, self.width)
        else:
            self._last_stage = None

    # ----------------------------
    # State
    # ----------------------------

    @property
    def n_open(self) -> int:
        return len(self._centers)

    @property
    def _stages_done(self) -> bool:
        return self._last_stage is not None and self._next_stage > self._last_stage

    @property
    def exhausted(self) -> bool:
        return self._stages_done and len(self.members) == self.n_open

    # ----------------------------
    # Step 1-2: neighborhoods + exhaustion
    # ----------------------------

    def _open_radius(self, y: np.ndarray) -> tuple:
        target = self.U(y)
        if not isinstance(target, OpenSet):
            raise TypeError(f"U(x) must return an OpenSet. Got {type(target).__name__}.")
        N = target & OpenBall(center=y.copy(), radius=self.max_radius)
        r = float(self.factory.exists_radius(y, N))
        if not r > 0:
            raise DegenerateNeighborhood(
                f"U({y.tolist()}) is empty at the point (radius {r:g}).", point=y, radius=r
            )
        if not r > self.h:
            raise DegenerateNeighborhood(
                f"U({y.tolist()}) only admits radius {r:g}, not above the net spacing {self.h:g}; "
                "refine the domain net.",
                point=y,
                radius=r,
            )
        return r, N

    def _build_stage(self) -> None:
        k = self._next_stage
        r_lo = self.space.stage_radius(k - 1, self.width)
        r_hi = self.space.stage_radius(k, self.width)
        Y = np.asarray(self.domain.net(self.space, r_lo, r_hi), dtype=float).reshape(-1, self.space.dim)
        self._net_chunks.append(Y)
        self._next_stage += 1

        n_before = self.n_open
        if Y.shape[0]:
            M = self.space.metric
            covered = np.zeros(Y.shape[0], dtype=bool)
            if self._centers:
                centers, radii, _ = self._open_arrays()
                D = M.pairwise(centers, Y) + self.h
                covered = np.any(D < radii[:, None], axis=0)
            for p in range(Y.shape[0]):
                if covered[p]:
                    continue
                y = Y[p]
                r, N = self._open_radius(y)
                self._centers.append(y.copy())
                self._radii.append(r)
                self._nbhds.append(N)
                self._stages.append(k)
                covered |= M.pairwise(y.reshape(1, -1), Y)[0] + self.h < r

        logger.debug(
            "Stage %d (band %.4g < |y| <= %.4g): %d net points, %d new open balls.",
            k, r_lo, r_hi, Y.shape[0], self.n_open - n_before,
        )
        if self.verbose:
            _status(f"[covering] stage {k}: {Y.shape[0]} net points, {self.n_open} open balls")

    def _build_open_through(self, radius: float) -> None:
        """Open every stage whose band starts below ``radius``."""
        while not self._stages_done and self.space.stage_radius(self._next_stage - 1, self.width) < radius:
            self._build_stage()

    # ----------------------------
    # Step 3-5: shrink, instantiate, verify
    # ----------------------------

    def _stage_range(self, r_lo: float, r_hi: float) -> tuple:
        return self.space.stage_of(max(r_lo, 0.0), self.width), self.space.stage_of(r_hi, self.width)

    def _open_arrays(self) -> tuple:
        """(centers, radii, stages) of the open cover, restacked only when it grows."""
        if self._open_cache is None or self._open_cache[0].shape[0] != self.n_open:
            self._open_cache = (
                np.stack(self._centers, axis=0),
                np.asarray(self._radii, dtype=float),
                np.asarray(self._stages, dtype=int),
            )
        return self._open_cache

    def _finalize_next(self) -> None:
        i = len(self.members)
        c = self._centers[i]
        r = self._radii[i]
        norm_c = float(self.space.distance_to_origin(c.reshape(1, -1))[0])
        self._build_open_through(norm_c + 2.0 * self.max_radius)

        lo, hi = self._stage_range(norm_c - r, norm_c + r)
        chunks = [self._net_chunks[k] for k in range(lo, min(hi, len(self._net_chunks) - 1) + 1)]
        net = np.concatenate(chunks, axis=0) if chunks else np.zeros((0, self.space.dim))

        centers, radii, stages = self._open_arrays()
        lo, hi = self._stage_range(norm_c - r - self.max_radius, norm_c + r + self.max_radius)
        nbr = np.flatnonzero((stages >= lo) & (stages <= hi))
        V = self.refiner.shrink_next(c, r, net, nbr, centers[nbr], radii[nbr])

        s = float(V.radius)
        rho = s + float(self.config.plateau_fraction) * (r - s)
        R = s + float(self.config.support_fraction) * (r - s)
        member = self.factory.make(c, self._nbhds[i])
        member = self.factory.restrict_radius(member, R, inner_radius=rho)

        if self.config.verify:
            self._verify(i, member, rho)
        self.members.append(member)

    def _verify(self, i: int, member: BumpMember, rho: float) -> None:
        if not (np.isfinite(member.radius) and member.radius <= self.max_radius):
            raise NoCoveringPossible(
                f"Member {i} has support radius {member.radius:g} beyond max_radius {self.max_radius:g}; "
                "the family would not be locally finite."
            )
        if member.inner_radius < rho:
            raise ValueError(f"Member {i} plateau {member.inner_radius:g} does not contain its shrunk set.")
        at_center = float(member(member.center.reshape(1, -1))[0])
        if at_center != 1.0:
            raise ValueError(f"Member {i} has weight {at_center} at its center (expected 1).")

    # ----------------------------
    # MemberStream API
    # ----------------------------

    def materialize_through(self, radius: float) -> None:
        reach = float(radius) + self.max_radius
        self._build_open_through(reach)
        last = self.space.stage_of(reach, self.width)
        while len(self.members) < self.n_open and self._stages[len(self.members)] <= last:
            self._finalize_next()

    def materialize_count(self, n: int) -> None:
        while len(self.members) < n and not self.exhausted:
            if len(self.members) < self.n_open:
                self._finalize_next()
            else:
                self._build_stage()

    def materialize_all(self) -> None:
        if self._last_stage is None:
            raise ValueError("Cannot materialize an unbounded covering.")
        while not self._stages_done:
            self._build_stage()
        while len(self.members) < self.n_open:
            self._finalize_next()


class CoveringBuilder:
    """
    Build a locally finite bump covering of a closed domain, subordinate to ``U``.

    Parameters
    ----------
    space :
        Ambient space; must be declared locally compact, Hausdorff and
        sigma-compact (and normal, for the shrinking step).
    factory :
        Bump factory. Defaults to a smooth :class:`RadialBumpFactory` on the
        space's metric.
    config :
        :class:`~bump_covers.config.CoveringConfig`.
    verbose :
        Print stage progress (notebook-aware).

    Notes
    -----
    For a bounded domain every member is built eagerly. For an unbounded one
    the returned covering is lazy: members are finalized as queries reach them.
    Either way each member ``i`` satisfies

    - ``center_i`` in the domain,
    - ``weight_i ≡ 1`` on ``B(center_i, inner_radius_i)`` which contains the
      shrunk set ``V_i``,
    - closure of its support ``⊆ B̄(center_i, radius_i) ⊆ U(center_i)``,
    - ``radius_i <= max_radius``,

    and every domain point lies in the interior of some plateau.
    """

    def __init__(
        self,
        space: AmbientSpace,
        factory: Optional[AdmissibleBumpFactory] = None,
        config: Optional[CoveringConfig] = None,
        *,
        verbose: bool = False,
    ):
        self.space = space
        self.factory = RadialBumpFactory(metric=space.metric) if factory is None else factory
        self.config = CoveringConfig() if config is None else config
        self.verbose = bool(verbose)

    def build(self, domain: Domain, U: Union[NeighborhoodAssignment, OpenSet, None] = None) -> BumpCovering:
        """
        Build the covering.

        Raises
        ------
        InvalidDomain
            If the domain is not a closed subset of the space.
        NoCoveringPossible
            If the space is not locally compact, Hausdorff and sigma-compact.
        NotShrinkable
            If the space is not normal.
        DegenerateNeighborhood
            If some ``U(x)`` is empty at ``x``, or only admits balls of radius at
            most the domain net spacing (below the working resolution, even
            though a smaller positive radius exists). Raised lazily for
            unbounded domains.
        """
        if not isinstance(domain, Domain):
            raise InvalidDomain(f"domain must be a Domain. Got {type(domain).__name__}.")
        if not domain.closed:
            raise InvalidDomain("Domain must be closed.")
        domain.validate(self.space)

        missing = self.space.missing_properties("locally_compact", "hausdorff", "sigma_compact")
        if missing:
            raise NoCoveringPossible(
                f"Ambient space {self.space.name!r} is not {', '.join(missing)}; "
                "no locally finite covering can be built."
            )

        refiner = ShrinkingRefiner(self.space, margin=domain.net_spacing)
        stream = _ExhaustionStream(
            self.space, domain, _as_assignment(U), self.factory, self.config, refiner, verbose=self.verbose
        )
        if domain.bounded:
            stream.materialize_all()
        if self.verbose:
            _status_clear()

        covering = BumpCovering(domain=domain, space=self.space, stream=stream)
        logger.info("Built %r over %s.", covering, type(domain).__name__)
        return covering


def build_bump_covering(
    space: AmbientSpace,
    domain: Domain,
    U: Union[NeighborhoodAssignment, OpenSet, None] = None,
    *,
    factory: Optional[AdmissibleBumpFactory] = None,
    config: Optional[CoveringConfig] = None,
    verbose: bool = False,
    **config_kwargs: Any,
) -> BumpCovering:
    """
    One-call covering construction.

    Extra keyword arguments become :class:`CoveringConfig` fields when
    ``config`` is not given, e.g. ``build_bump_covering(space, domain, U,
    max_radius=0.5)``.
    """
    if config is None:
        config = CoveringConfig(**config_kwargs)
    elif config_kwargs:
        raise TypeError("Pass either config or config keyword arguments, not both.")
    return CoveringBuilder(space, factory=factory, config=config, verbose=verbose).build(domain, U)
