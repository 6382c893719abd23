# bump_covers/config.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


__all__ = ["CoveringConfig"]


@dataclass(frozen=True)
class CoveringConfig:
    """
    Parameters of :class:`~bump_covers.covers.builder.CoveringBuilder`.

    Attributes
    ----------
    max_radius :
        Cap on every candidate neighborhood ``N(x) = U(x) ∩ B(x, max_radius)``.
        Bounded neighborhoods have compact closure in a locally compact metric
        space, and the cap is what makes the resulting family locally finite.
    stage_width :
        Radial width of the compact exhaustion stages. Defaults to
        ``2 * max_radius``. Ignored for compact spaces (one stage).
    plateau_fraction, support_fraction :
        Where the member plateau ``ρ_i`` and support radius ``R_i`` sit inside
        ``(s_i, r_i)``, with ``s_i`` the shrunk radius and ``r_i`` the open
        radius: ``ρ_i = s_i + plateau_fraction * (r_i - s_i)`` and likewise for
        ``R_i``. Requires ``0 < plateau_fraction < support_fraction < 1``.
    verify :
        Check the local-finiteness postcondition on every finalized member.
    """
    max_radius: float = 1.0
    stage_width: Optional[float] = None
    plateau_fraction: float = 1.0 / 3.0
    support_fraction: float = 2.0 / 3.0
    verify: bool = True

    def __post_init__(self):
        if not float(self.max_radius) > 0:
            raise ValueError(f"max_radius must be positive. Got {self.max_radius}.")
        if self.stage_width is not None and not float(self.stage_width) > 0:
            raise ValueError(f"stage_width must be positive. Got {self.stage_width}.")
        if not (0.0 < float(self.plateau_fraction) < float(self.support_fraction) < 1.0):
            raise ValueError(
                "Need 0 < plateau_fraction < support_fraction < 1. "
                f"Got {self.plateau_fraction}, {self.support_fraction}."
            )

    @property
    def width(self) -> float:
        return float(self.stage_width) if self.stage_width is not None else 2.0 * float(self.max_radius)
