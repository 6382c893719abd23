from .builder import CoveringBuilder, NeighborhoodAssignment, build_bump_covering
from .covering import BumpCovering, MemberStream
from .shrinking import ShrinkingRefiner, shrink_cover

__all__ = [
    "BumpCovering",
    "CoveringBuilder",
    "MemberStream",
    "NeighborhoodAssignment",
    "ShrinkingRefiner",
    "build_bump_covering",
    "shrink_cover",
]
