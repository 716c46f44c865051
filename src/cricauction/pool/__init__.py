"""Player pool utilities (grouping, export, etc.)."""

from .export import export_results_to_csv
from .summary import PoolSummary, group_by_pool, summarize_pools

__all__ = [
    "PoolSummary",
    "export_results_to_csv",
    "group_by_pool",
    "summarize_pools",
]
