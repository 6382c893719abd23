from __future__ import annotations

"""
Public API re-exports for bump_covers.

Import style:
    from bump_covers.api import euclidean_space, BoxDomain, build_bump_covering, normalize, blend

Notes
-----
- This file is curated (not a dump of every internal helper).
- Plotting lives in :mod:`bump_covers.viz` and is not re-exported here.
"""

# ----------------------------
# Spaces, open sets, domains
# ----------------------------
from .metrics import (
    Metric,
    EuclideanMetric,
    S1AngleMetric,
    T2FlatMetric,
    as_metric,
)

from .spaces import (
    AmbientSpace,
    euclidean_space,
    circle_space,
    torus_space,
)

from .regions import (
    OpenSet,
    OpenBall,
    OpenBox,
    WholeSpace,
    EmptySet,
    IntersectionSet,
    FunctionSet,
    ClosedBall,
)

from .domains import (
    Domain,
    FiniteDomain,
    BoxDomain,
)

# ----------------------------
# Bumps + coverings
# ----------------------------
from .bumps import (
    BumpMember,
    RadialWeight,
    AdmissibleBumpFactory,
    RadialBumpFactory,
    make_bump_factory,
)

from .config import CoveringConfig

from .covers.covering import BumpCovering
from .covers.shrinking import ShrinkingRefiner, shrink_cover
from .covers.builder import CoveringBuilder, build_bump_covering

# ----------------------------
# Partition of unity + blending
# ----------------------------
from .partition import (
    WeightTable,
    PartitionOfUnity,
    PartitionNormalizer,
    normalize,
)

from .blending import (
    ConvexSet,
    IntervalSet,
    BoxSet,
    BallSet,
    Blend,
    Blender,
    blend,
    AngleBlend,
    blend_angles,
    wrap_to_pi,
)

# ----------------------------
# Summaries, errors, logging
# ----------------------------
from .summaries.covering_summary import CoveringSummary, summarize_covering

from .errors import (
    CoveringError,
    InvalidDomain,
    NotShrinkable,
    NoCoveringPossible,
    DegenerateNeighborhood,
)

from .logging_config import setup_logging


__all__ = [
    # spaces / sets / domains
    "Metric",
    "EuclideanMetric",
    "S1AngleMetric",
    "T2FlatMetric",
    "as_metric",
    "AmbientSpace",
    "euclidean_space",
    "circle_space",
    "torus_space",
    "OpenSet",
    "OpenBall",
    "OpenBox",
    "WholeSpace",
    "EmptySet",
    "IntersectionSet",
    "FunctionSet",
    "ClosedBall",
    "Domain",
    "FiniteDomain",
    "BoxDomain",
    # bumps / coverings
    "BumpMember",
    "RadialWeight",
    "AdmissibleBumpFactory",
    "RadialBumpFactory",
    "make_bump_factory",
    "CoveringConfig",
    "BumpCovering",
    "ShrinkingRefiner",
    "shrink_cover",
    "CoveringBuilder",
    "build_bump_covering",
    # partition / blending
    "WeightTable",
    "PartitionOfUnity",
    "PartitionNormalizer",
    "normalize",
    "ConvexSet",
    "IntervalSet",
    "BoxSet",
    "BallSet",
    "Blend",
    "Blender",
    "blend",
    "AngleBlend",
    "blend_angles",
    "wrap_to_pi",
    # summaries / errors / logging
    "CoveringSummary",
    "summarize_covering",
    "CoveringError",
    "InvalidDomain",
    "NotShrinkable",
    "NoCoveringPossible",
    "DegenerateNeighborhood",
    "setup_logging",
]
