# bump_covers/errors.py
from __future__ import annotations

from typing import Optional

import numpy as np


__all__ = [
    "CoveringError",
    "InvalidDomain",
    "NotShrinkable",
    "NoCoveringPossible",
    "DegenerateNeighborhood",
]


class CoveringError(ValueError):
    """
    Base class for "construction impossible for this input".

    The subclass names which structural hypothesis failed. None of these are
    transient; retrying with the same inputs fails the same way.
    """


class InvalidDomain(CoveringError):
    """The domain is not closed, or does not live in the ambient space."""


class NotShrinkable(CoveringError):
    """The ambient space is not normal, so an open cover cannot be shrunk."""


class NoCoveringPossible(CoveringError):
    """The ambient space is not locally compact, Hausdorff and sigma-compact."""


class DegenerateNeighborhood(CoveringError):
    """
    The prescribed neighborhood of a domain point admits no usable ball.

    Either ``U(x)`` is empty at ``x``, or every ball it admits has radius at
    most the domain net spacing. The second case is a resolution limit: a
    positive radius exists, but it is below the working resolution and a finer
    domain net is needed.

    Attributes
    ----------
    point :
        The offending domain point (1D array), when known.
    radius :
        The radius the bump factory reported for it (``<= 0`` for an empty
        neighborhood, otherwise below the working net resolution).
    """

    def __init__(
        self,
        message: str,
        *,
        point: Optional[np.ndarray] = None,
        radius: Optional[float] = None,
    ):
        super().__init__(message)
        self.point = None if point is None else np.asarray(point, dtype=float).copy()
        self.radius = None if radius is None else float(radius)
