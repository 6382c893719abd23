from .covering_summary import CoveringSummary, summarize_covering

__all__ = ["CoveringSummary", "summarize_covering"]
