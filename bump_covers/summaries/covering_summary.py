# bump_covers/summaries/covering_summary.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from ..covers.covering import BumpCovering


__all__ = [
    "CoveringSummary",
    "summarize_covering",
]


@dataclass
class CoveringSummary:
    """
    Summary of a bump covering as seen from a batch of sample points.

    Attributes
    ----------
    n_members :
        Number of finalized members (all of them for a finite covering).
    finite :
        Whether the covering is finite.
    n_samples :
        Number of sample points.
    n_active :
        Members nonzero at some sample.
    n_edges, n_triangles :
        Nerve simplices witnessed by the samples.
    radius_range, inner_radius_range :
        ``(min, median, max)`` over finalized members with bounded support.
    sample_overlap_counts :
        For each sample, the number of members nonzero there (the point-finite
        multiplicity).
    max_overlap_order :
        ``max(sample_overlap_counts)``.
    n_domain_samples, n_uncovered :
        Samples inside the domain, and how many of those no member equals 1
        around (nonzero means the coverage invariant failed).
    warnings :
        Human-readable warnings.
    """
    n_members: int
    finite: bool
    n_samples: int
    n_active: int
    n_edges: int
    n_triangles: int
    radius_range: Optional[Tuple[float, float, float]] = None
    inner_radius_range: Optional[Tuple[float, float, float]] = None
    sample_overlap_counts: Optional[np.ndarray] = None
    max_overlap_order: int = 0
    n_domain_samples: int = 0
    n_uncovered: int = 0
    warnings: Tuple[str, ...] = ()

    def to_text(self) -> str:
        lines: List[str] = []
        lines.append("Bump Covering Summary")
        size = f"{self.n_members}" if self.finite else f"{self.n_members} finalized (lazy, infinite)"
        lines.append(f"  members = {size}, n_samples = {self.n_samples}")
        lines.append("")
        lines.append(f"  active at samples = {self.n_active}")
        lines.append(f"  nerve: #edges = {self.n_edges}, #triangles = {self.n_triangles}")
        lines.append(f"  max sample overlap order = {self.max_overlap_order}")
        if self.radius_range is not None:
            lo, med, hi = self.radius_range
            lines.append(f"  support radius: min {lo:.4g}, median {med:.4g}, max {hi:.4g}")
        if self.inner_radius_range is not None:
            lo, med, hi = self.inner_radius_range
            lines.append(f"  plateau radius: min {lo:.4g}, median {med:.4g}, max {hi:.4g}")
        lines.append(f"  domain samples covered = {self.n_domain_samples - self.n_uncovered}/{self.n_domain_samples}")

        for w in self.warnings:
            lines.append("")
            lines.append(f"  WARNING: {w}")
        return "\n".join(lines)

    def to_markdown(self) -> str:
        md: List[str] = []
        md.append("### Bump Covering Summary")
        size = f"{self.n_members}" if self.finite else f"{self.n_members}\\ \\text{{(finalized)}}"
        md.append(f"- $n_\\text{{members}} = {size}$, $n_\\text{{samples}} = {self.n_samples}$")
        md.append(f"- $\\#\\{{i : w_i \\neq 0 \\text{{ at some sample}}\\}} = {self.n_active}$")
        md.append(f"- $\\#(\\text{{1-simplices}}) = {self.n_edges}$, $\\#(\\text{{2-simplices}}) = {self.n_triangles}$")
        md.append(f"- $\\max_s \\#\\{{i : w_i(x_s) \\neq 0\\}} = {self.max_overlap_order}$")
        md.append(
            f"- Domain samples covered: ${self.n_domain_samples - self.n_uncovered}/{self.n_domain_samples}$"
        )
        if self.warnings:
            md.append("")
            md.append("**Warnings:**")
            md.append("")
            for w in self.warnings:
                md.append(f"- {w}")
        return "\n".join(md)


def _range(values: np.ndarray) -> Optional[Tuple[float, float, float]]:
    values = values[np.isfinite(values)]
    if values.size == 0:
        return None
    return float(values.min()), float(np.median(values)), float(values.max())


def _try_display_markdown(md: str) -> bool:
    try:
        from IPython.display import Markdown, display
    except ImportError:
        return False
    display(Markdown(md))
    return True


def summarize_covering(
    covering: "BumpCovering",
    points: np.ndarray,
    *,
    verbose: bool = False,
    latex: str | bool = "auto",
) -> CoveringSummary:
    """
    Summarize ``covering`` over sample ``points``.

    Parameters
    ----------
    covering :
        The covering (lazy members reachable from ``points`` are finalized).
    points :
        ``(n, d)`` samples; those inside the covering's domain are checked for
        coverage.
    verbose :
        Print (or, in a notebook, display) the summary.
    latex :
        ``"auto"``/True tries Markdown display first; False prints plain text.
    """
    X = covering.space.as_points(points)
    idx, U = covering.support_matrix(X)
    overlap = U.sum(axis=0).astype(int) if idx.size else np.zeros(X.shape[0], dtype=int)
    edges = covering.nerve_edges(X)
    tris = covering.nerve_triangles(X)

    members = covering.members
    radii = np.array([m.radius for m in members], dtype=float)
    inner = np.array([m.inner_radius for m in members], dtype=float)

    in_domain = (
        covering.domain.contains(X, covering.space)
        if covering.domain is not None
        else np.zeros(X.shape[0], dtype=bool)
    )
    covered = covering.check_coverage(X[in_domain]) if np.any(in_domain) else np.zeros(0, dtype=bool)
    n_uncovered = int(np.sum(~covered))

    warnings: List[str] = []
    if n_uncovered:
        warnings.append(f"{n_uncovered} domain samples lie in no member plateau; the coverage invariant fails.")
    if np.any(~np.isfinite(radii)):
        warnings.append("Some members have unbounded support; local finiteness is not certified.")
    centers_ok = covering.check_centers()
    if not np.all(centers_ok):
        warnings.append(f"{int(np.sum(~centers_ok))} member centers lie outside the domain.")

    summ = CoveringSummary(
        n_members=len(members),
        finite=covering.is_finite,
        n_samples=int(X.shape[0]),
        n_active=int(idx.size),
        n_edges=len(edges),
        n_triangles=len(tris),
        radius_range=_range(radii),
        inner_radius_range=_range(inner),
        sample_overlap_counts=overlap,
        max_overlap_order=int(overlap.max()) if overlap.size else 0,
        n_domain_samples=int(np.sum(in_domain)),
        n_uncovered=n_uncovered,
        warnings=tuple(warnings),
    )

    if verbose:
        did_display = False
        if latex is True or latex == "auto":
            did_display = _try_display_markdown(summ.to_markdown())
        if not did_display:
            print(summ.to_text())
    return summ
