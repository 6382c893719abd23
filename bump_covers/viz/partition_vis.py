# bump_covers/viz/partition_vis.py
from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from ..partition import PartitionOfUnity

__all__ = ["plot_partition_1d", "plot_covering_2d"]


def plot_partition_1d(
    partition: PartitionOfUnity,
    grid: np.ndarray,
    *,
    show_members: bool = False,
    show_total: bool = True,
    indices: Optional[Sequence[int]] = None,
    figsize: Tuple[float, float] = (9, 4),
    dpi: int = 120,
    ax=None,
    clear_ax: bool = True,
    show: bool = True,
    save_path: Optional[str] = None,
    lw: float = 1.5,
):
    """
    Plot the partition weights of a 1D partition of unity along ``grid``.

    Draws one curve per active index (optionally only ``indices``), the raw
    member weights as dashed curves when ``show_members`` is set, and the total
    in black. The domain is shaded when it is a :class:`BoxDomain`.

    Returns
    -------
    fig, ax
    """
    import matplotlib.pyplot as plt

    X = partition.space.as_points(np.asarray(grid, dtype=float).reshape(-1, 1))
    if X.shape[1] != 1:
        raise ValueError(f"plot_partition_1d needs a 1D space. Got dim={X.shape[1]}.")
    x = X[:, 0]
    table = partition.evaluate(X)
    keep = set(int(i) for i in indices) if indices is not None else None

    created_fig = False
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize, dpi=int(dpi))
        created_fig = True
    else:
        fig = ax.figure
    if clear_ax:
        ax.cla()

    dom = partition.domain
    lower = getattr(dom, "lower", None)
    upper = getattr(dom, "upper", None)
    if lower is not None and upper is not None:
        lo = max(float(lower[0]), float(x.min()))
        hi = min(float(upper[0]), float(x.max()))
        if lo <= hi:
            ax.axvspan(lo, hi, color="lightgray", alpha=0.3, label="domain", zorder=0)

    for k, i in enumerate(table.indices):
        if keep is not None and int(i) not in keep:
            continue
        line, = ax.plot(x, table.values[k], lw=float(lw), label=f"weight {int(i)}")
        if show_members:
            w = partition.covering[int(i)](X)
            ax.plot(x, w, lw=float(lw) * 0.7, ls="--", color=line.get_color(), alpha=0.6)

    if show_total:
        ax.plot(x, table.total(), color="black", lw=float(lw) * 1.3, label="total")

    ax.set_ylim(-0.05, 1.1)
    ax.set_xlabel("x")
    ax.set_ylabel("weight")
    ax.grid(True, linestyle="--", alpha=0.4)
    if table.indices.size <= 12:
        ax.legend(loc="upper right", fontsize=8)

    if save_path is not None:
        fig.savefig(save_path, dpi=300, bbox_inches="tight")

    if created_fig:
        plt.tight_layout()
        if show:
            plt.show()

    return fig, ax


def plot_covering_2d(
    covering,
    points: Optional[np.ndarray] = None,
    *,
    n_members: Optional[int] = None,
    show_plateaus: bool = True,
    figsize: Tuple[float, float] = (6, 6),
    dpi: int = 120,
    ax=None,
    clear_ax: bool = True,
    show: bool = True,
    save_path: Optional[str] = None,
    point_s: float = 6.0,
):
    """
    Draw the member supports (and plateaus) of a 2D Euclidean bump covering.

    Each member with bounded support gets a solid circle of radius ``radius``
    and, if ``show_plateaus``, a dashed circle of radius ``inner_radius``.
    For a lazy covering only the first ``n_members`` members are drawn
    (required), otherwise every member.

    Returns
    -------
    fig, ax
    """
    import matplotlib.pyplot as plt
    from matplotlib.patches import Circle

    if covering.space.dim != 2:
        raise ValueError(f"plot_covering_2d needs a 2D space. Got dim={covering.space.dim}.")
    if n_members is None:
        if not covering.is_finite:
            raise ValueError("A lazy covering needs an explicit n_members.")
        members = list(covering.members)
    else:
        members = [m for _, m in zip(range(int(n_members)), covering)]

    created_fig = False
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize, dpi=int(dpi))
        created_fig = True
    else:
        fig = ax.figure
    if clear_ax:
        ax.cla()

    cmap = plt.get_cmap("tab20")
    for i, m in enumerate(members):
        if not m.bounded:
            continue
        color = cmap(i % 20)
        ax.add_patch(Circle(tuple(m.center), m.radius, fill=False, color=color, lw=1.0))
        if show_plateaus and m.inner_radius > 0:
            ax.add_patch(Circle(tuple(m.center), m.inner_radius, fill=False, color=color, lw=0.8, ls="--"))
        ax.scatter(*m.center, color=color, s=12, zorder=3)

    if points is not None:
        P = covering.space.as_points(points)
        ax.scatter(P[:, 0], P[:, 1], color="gray", s=float(point_s), alpha=0.5, zorder=1)

    ax.set_aspect("equal")
    ax.autoscale_view()
    ax.grid(True, linestyle="--", alpha=0.4)
    ax.set_title(f"{len(members)} members")

    if save_path is not None:
        fig.savefig(save_path, dpi=300, bbox_inches="tight")

    if created_fig:
        plt.tight_layout()
        if show:
            plt.show()

    return fig, ax
