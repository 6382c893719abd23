# bump_covers/bumps.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

import numpy as np

from .errors import DegenerateNeighborhood
from .metrics import as_metric, as_points
from .regions import OpenSet


__all__ = [
    "PROFILES",
    "BumpMember",
    "RadialWeight",
    "AdmissibleBumpFactory",
    "RadialBumpFactory",
    "make_bump_factory",
]


# ============================================================
# Falloff profiles
# ============================================================
#
# f : [0,1] -> [0,1], f(0) = 1, f(1) = 0, nonincreasing.
# Weights use f on the normalized ramp coordinate t = (d - rho) / (R - rho),
# with t <= 0 mapped to exactly 1 and t >= 1 to exactly 0.

def _linear_falloff(t: np.ndarray) -> np.ndarray:
    return 1.0 - t


def _c2_falloff(t: np.ndarray) -> np.ndarray:
    # Wendland: f(1) = f'(1) = f''(1) = 0
    return np.power(1.0 - t, 4) * (4.0 * t + 1.0)


def _smooth_falloff(t: np.ndarray) -> np.ndarray:
    # C^inf: g(1-t) / (g(1-t) + g(t)) with g(s) = exp(-1/s) for s > 0
    def g(s):
        out = np.zeros_like(s)
        pos = s > 0
        out[pos] = np.exp(-1.0 / s[pos])
        return out

    a = g(1.0 - t)
    return a / (a + g(t))


PROFILES: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "linear": _linear_falloff,
    "c2": _c2_falloff,
    "smooth": _smooth_falloff,
}

_PROFILE_ALIASES = {
    "linear": "linear", "hat": "linear", "lin": "linear",
    "c2": "c2", "wendland": "c2",
    "smooth": "smooth", "cinf": "smooth", "c_inf": "smooth", "c-inf": "smooth",
}


def _resolve_profile(kind: str) -> str:
    key = str(kind).lower().strip()
    if key not in _PROFILE_ALIASES:
        raise ValueError(f"Unknown profile={kind!r}. Expected one of {sorted(PROFILES)}.")
    return _PROFILE_ALIASES[key]


# ============================================================
# Members
# ============================================================

@dataclass(frozen=True, eq=False)
class RadialWeight:
    """
    Radial weight ``x -> f((d(x, c) - inner_radius) / (radius - inner_radius))``.

    Equal to 1 on ``B(c, inner_radius)`` (closed ball, in fact) and 0 outside
    the open ball ``B(c, radius)``.
    """
    center: np.ndarray
    inner_radius: float
    radius: float
    profile: str = "smooth"
    metric: Any = None

    def __call__(self, points: np.ndarray) -> np.ndarray:
        X = as_points(points)
        if X.shape[0] == 0:
            return np.zeros(0)
        M = as_metric(self.metric)
        d = M.pairwise(np.asarray(self.center, dtype=float).reshape(1, -1), X)[0]
        rho, R = float(self.inner_radius), float(self.radius)

        out = np.zeros(d.shape, dtype=float)
        out[d <= rho] = 1.0
        ramp = (d > rho) & (d < R)
        if np.any(ramp):
            t = (d[ramp] - rho) / (R - rho)
            out[ramp] = np.clip(PROFILES[self.profile](t), 0.0, 1.0)
        return out


@dataclass(frozen=True, eq=False)
class BumpMember:
    """
    One member of a bump covering.

    Attributes
    ----------
    center :
        Center point, shape ``(d,)``.
    weight :
        Vectorized ``(n, d) -> (n,)`` function with values in ``[0, 1]`` and
        ``weight(center) = 1``.
    radius :
        ``support(weight) ⊆ B̄(center, radius)``; ``inf`` if unknown.
    inner_radius :
        ``weight ≡ 1`` on ``B(center, inner_radius)``.
    neighborhood :
        The open set the member is subordinate to, if any.
    """
    center: np.ndarray
    weight: Callable[[np.ndarray], np.ndarray]
    radius: float = np.inf
    inner_radius: float = 0.0
    neighborhood: Optional[OpenSet] = None

    def __post_init__(self):
        object.__setattr__(self, "center", np.asarray(self.center, dtype=float).reshape(-1))
        object.__setattr__(self, "radius", float(self.radius))
        object.__setattr__(self, "inner_radius", float(self.inner_radius))

    def __call__(self, points: np.ndarray) -> np.ndarray:
        X = as_points(points)
        w = np.asarray(self.weight(X), dtype=float).reshape(-1)
        if w.shape != (X.shape[0],):
            raise ValueError(f"weight must return shape ({X.shape[0]},). Got {w.shape}.")
        return w

    @property
    def bounded(self) -> bool:
        return bool(np.isfinite(self.radius))


# ============================================================
# Factory interface + radial adapter
# ============================================================

class AdmissibleBumpFactory(Protocol):
    """Produces admissible bump members; smoothness is the factory's business."""

    def make(self, center: np.ndarray, target: OpenSet) -> BumpMember:
        ...

    def restrict_radius(
        self, member: BumpMember, new_radius: float, inner_radius: Optional[float] = None
    ) -> BumpMember:
        ...

    def exists_radius(self, center: np.ndarray, target: OpenSet) -> float:
        ...


@dataclass(frozen=True)
class RadialBumpFactory:
    """
    Radial bumps ``1`` near the center, falling off to ``0`` along a profile.

    Parameters
    ----------
    metric :
        Distance model (see :func:`~bump_covers.metrics.as_metric`).
    profile :
        ``"linear"`` (hat ramp), ``"c2"`` (Wendland) or ``"smooth"`` (``C^inf``).
    fill :
        :meth:`exists_radius` returns ``fill * margin``; the closed ball of that
        radius then lies in the target. Must be in ``(0, 1)``.
    inner_fraction :
        Plateau radius of a freshly made member, as a fraction of its radius.
    admissible :
        Optional caller-supplied predicate on members (e.g. a smoothness check).
        Members it rejects are never returned.
    """
    metric: Any = None
    profile: str = "smooth"
    fill: float = 0.95
    inner_fraction: float = 0.5
    admissible: Optional[Callable[[BumpMember], bool]] = None

    def __post_init__(self):
        object.__setattr__(self, "metric", as_metric(self.metric))
        object.__setattr__(self, "profile", _resolve_profile(self.profile))
        if not (0.0 < float(self.fill) < 1.0):
            raise ValueError(f"fill must be in (0, 1). Got {self.fill}.")
        if not (0.0 <= float(self.inner_fraction) < 1.0):
            raise ValueError(f"inner_fraction must be in [0, 1). Got {self.inner_fraction}.")

    def exists_radius(self, center: np.ndarray, target: OpenSet) -> float:
        c = np.asarray(center, dtype=float).reshape(1, -1)
        m = float(target.margin(c, self.metric)[0])
        if not m > 0:
            return m
        return float(self.fill) * m

    def member(
        self,
        center: np.ndarray,
        inner_radius: float,
        radius: float,
        neighborhood: Optional[OpenSet] = None,
    ) -> BumpMember:
        """Instantiate a member from its parameters (used to rebuild serialized coverings)."""
        inner_radius, radius = float(inner_radius), float(radius)
        if not (0.0 <= inner_radius < radius < np.inf):
            raise ValueError(f"Need 0 <= inner_radius < radius < inf. Got {inner_radius}, {radius}.")
        c = np.asarray(center, dtype=float).reshape(-1)
        w = RadialWeight(center=c, inner_radius=inner_radius, radius=radius, profile=self.profile, metric=self.metric)
        member = BumpMember(center=c, weight=w, radius=radius, inner_radius=inner_radius, neighborhood=neighborhood)
        if self.admissible is not None and not bool(self.admissible(member)):
            raise DegenerateNeighborhood(
                f"Bump at {c.tolist()} with radius {radius:g} rejected by the admissibility predicate.",
                point=c,
                radius=radius,
            )
        return member

    def make(self, center: np.ndarray, target: OpenSet) -> BumpMember:
        r = self.exists_radius(center, target)
        if not (r > 0 and np.isfinite(r)):
            raise DegenerateNeighborhood(
                f"Neighborhood of {np.asarray(center).reshape(-1).tolist()} admits no bounded positive radius (got {r}).",
                point=center,
                radius=r,
            )
        return self.member(center, float(self.inner_fraction) * r, r, neighborhood=target)

    def restrict_radius(
        self, member: BumpMember, new_radius: float, inner_radius: Optional[float] = None
    ) -> BumpMember:
        new_radius = float(new_radius)
        if not new_radius > 0:
            raise ValueError(f"new_radius must be positive. Got {new_radius}.")
        if new_radius > member.radius:
            raise ValueError(f"restrict_radius cannot grow the support ({new_radius} > {member.radius}).")
        if inner_radius is None:
            inner_radius = member.inner_radius * new_radius / member.radius
        return self.member(member.center, inner_radius, new_radius, neighborhood=member.neighborhood)


def make_bump_factory(kind: str = "smooth", metric: Any = None, **kwargs) -> RadialBumpFactory:
    """
    Factory for radial bump factories by profile name.

    kind:
      - "linear" / "hat": piecewise-linear ramp
      - "c2" / "wendland": Wendland C^2 falloff
      - "smooth" / "cinf": C^inf falloff
    """
    return RadialBumpFactory(metric=metric, profile=_resolve_profile(kind), **kwargs)
