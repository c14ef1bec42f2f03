"""Temporal analysis: git history, co-change, hotspots and trends."""

from .batch import BatchScanResult, scan_repositories
from .cache import (
    CacheStrategy,
    CoChangeCache,
    cache_strategy,
    merge_edges,
    scan_cochanges_with_cache,
)
from .cochange import analyze_cochanges, compute_cochange_edges, scan_cochanges
from .filters import compile_glob, filter_commits, filter_files
from .git_extractor import GitExtractor, parse_git_log, parse_numstat_log
from .hotspots import (
    compute_complexity_trends,
    compute_complexity_trends_from_stats,
    compute_hotspots,
    file_neighborhood,
)
from .models import CoChangeEdge, CoChangeGraph, Commit, FilePair, HotspotEntry, Trend, TrendInfo

__all__ = [
    "BatchScanResult",
    "CacheStrategy",
    "CoChangeCache",
    "CoChangeEdge",
    "CoChangeGraph",
    "Commit",
    "FilePair",
    "GitExtractor",
    "HotspotEntry",
    "Trend",
    "TrendInfo",
    "analyze_cochanges",
    "cache_strategy",
    "compile_glob",
    "compute_cochange_edges",
    "compute_complexity_trends",
    "compute_complexity_trends_from_stats",
    "compute_hotspots",
    "file_neighborhood",
    "filter_commits",
    "filter_files",
    "merge_edges",
    "parse_git_log",
    "parse_numstat_log",
    "scan_cochanges",
    "scan_cochanges_with_cache",
    "scan_repositories",
]
