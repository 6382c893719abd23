"""
Visualization utilities for bump_covers.

Notes
-----
Plotting depends on matplotlib, an optional dependency. It is imported inside
the plotting functions, so importing this module does not require it.
"""

from __future__ import annotations

from . import partition_vis

from .partition_vis import (
    plot_covering_2d,
    plot_partition_1d,
)

__all__ = [
    "partition_vis",
    "plot_covering_2d",
    "plot_partition_1d",
]
