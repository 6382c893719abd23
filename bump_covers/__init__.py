# bump_covers/__init__.py
from __future__ import annotations

"""
bump_covers: locally finite bump coverings, partitions of unity, and blending.

Recommended usage:
    import bump_covers as bc

Public API:
    - Curated user-facing symbols are re-exported from :mod:`bump_covers.api`.
    - The plotting subpackage is available as ``bc.viz`` and is imported lazily
      so matplotlib stays optional.
"""

import importlib
from typing import Any

from ._version import __version__
from .api import *  # noqa: F401,F403
from .api import __all__ as _api_all

_SUBPACKAGES = ("viz",)

__all__ = ["__version__", *_api_all, *_SUBPACKAGES]


def __getattr__(name: str) -> Any:
    if name in _SUBPACKAGES:
        return importlib.import_module(f"{__name__}.{name}")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    names = set(globals().keys())
    names.update(_SUBPACKAGES)
    return sorted(names)
