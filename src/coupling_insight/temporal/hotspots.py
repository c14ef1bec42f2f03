"""Hotspot scoring, co-change neighborhoods and complexity trends.

Hotspot = change frequency x current line count: files that are both large
and frequently touched. Complexity trend compares the mean net line delta
of the older half of a file's commits with the newer half.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from ..config import FilterConfig, HotspotsConfig
from ..logging_config import get_logger
from .filters import apply_filters
from .git_extractor import GitExtractor, parse_numstat_log
from .models import (
    CoChangeEdge,
    FileNeighbor,
    FilePair,
    HotspotEntry,
    NumstatCommit,
    Trend,
    TrendInfo,
)

logger = get_logger(__name__)

_STABLE = TrendInfo(direction=Trend.STABLE, magnitude=0.0)


def compute_hotspots(
    file_frequencies: Mapping[str, int], line_counts: Mapping[str, int]
) -> list[HotspotEntry]:
    """Score files by change frequency x line count, highest first.

    Files with no known (or zero) line count are skipped; usually they were
    deleted since they were last changed.
    """
    entries = []
    for file, frequency in file_frequencies.items():
        line_count = line_counts.get(file, 0)
        if line_count <= 0:
            continue
        entries.append(
            HotspotEntry(
                file=file,
                change_frequency=frequency,
                line_count=line_count,
                score=frequency * line_count,
            )
        )
    return sorted(entries, key=lambda e: (-e.score, e.file))


def count_lines(file_paths: Iterable[str], repo_dir: str | Path) -> dict[str, int]:
    """Count lines of repo-relative files. Missing or binary files are skipped."""
    root = Path(repo_dir)
    counts: dict[str, int] = {}
    for file in file_paths:
        try:
            text = (root / file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        counts[file] = len(text.splitlines())
    return counts


def import_pairs(import_edges: Iterable) -> set[FilePair]:
    """Undirected pairs from ``ImportEdge``-like objects (``source``/``target``)."""
    pairs = set()
    for edge in import_edges:
        if edge.source != edge.target:
            pairs.add(FilePair(edge.source, edge.target))
    return pairs


def file_neighborhood(
    file: str, edges: Sequence[CoChangeEdge], import_edges: Iterable = ()
) -> list[FileNeighbor]:
    """Co-change partners of ``file`` by descending weight, with import annotation."""
    imported = import_pairs(import_edges)
    neighbors = []
    for edge in edges:
        if file not in (edge.files.first, edge.files.second):
            continue
        neighbors.append(
            FileNeighbor(
                file=edge.files.other(file),
                cochange_weight=edge.weight,
                cochange_commits=edge.commit_count,
                has_import_relation=edge.files in imported,
            )
        )
    return sorted(neighbors, key=lambda n: (-n.cochange_weight, n.file))


def classify_trend(
    deltas: Sequence[int], threshold: float = 1.0, min_commits: int = 2
) -> TrendInfo:
    """Classify chronological net line deltas (oldest first).

    The series is split in half (the newer half takes the odd element);
    a shift in mean larger than ``threshold`` is a trend.
    """
    if len(deltas) < max(2, min_commits):
        return _STABLE

    mid = len(deltas) // 2
    older, newer = deltas[:mid], deltas[mid:]
    diff = sum(newer) / len(newer) - sum(older) / len(older)

    if abs(diff) <= threshold:
        return TrendInfo(direction=Trend.STABLE, magnitude=abs(diff))
    direction = Trend.INCREASING if diff > 0 else Trend.DECREASING
    return TrendInfo(direction=direction, magnitude=abs(diff))


def compute_complexity_trends_from_stats(
    commits: Sequence[NumstatCommit],
    files: Iterable[str],
    threshold: float = 1.0,
    min_commits: int = 2,
) -> dict[str, TrendInfo]:
    """Trend per requested file from numstat commits given newest first.

    Files that appear in no commit are left out.
    """
    wanted = set(files)
    series: dict[str, list[int]] = {}
    for commit in reversed(commits):
        for entry in commit.files:
            if entry.path in wanted:
                series.setdefault(entry.path, []).append(entry.net)

    return {
        path: classify_trend(deltas, threshold=threshold, min_commits=min_commits)
        for path, deltas in series.items()
    }


def compute_complexity_trends(
    repo_dir: str | Path,
    files: Iterable[str],
    filter_config: Optional[FilterConfig] = None,
    hotspots_config: Optional[HotspotsConfig] = None,
    extractor: Optional[GitExtractor] = None,
) -> dict[str, TrendInfo]:
    """Read recent numstat history and classify trends for ``files``.

    Raises:
        GitCommandError: If git log fails
    """
    filter_config = filter_config or FilterConfig()
    hotspots_config = hotspots_config or HotspotsConfig()
    extractor = extractor or GitExtractor(repo_dir)

    raw = extractor.log(numstat=True, max_commits=hotspots_config.max_commits)
    result = apply_filters(parse_numstat_log(raw), filter_config)
    logger.debug(
        "Trend history: %d commits kept, %d filtered", len(result.kept), result.filtered
    )
    return compute_complexity_trends_from_stats(
        result.kept,
        files,
        threshold=hotspots_config.trend_threshold,
        min_commits=hotspots_config.trend_min_commits,
    )


def annotate_trends(
    hotspots: Sequence[HotspotEntry], trends: Mapping[str, TrendInfo]
) -> list[HotspotEntry]:
    """Copy hotspots with their trend attached where one is known."""
    return [replace(h, trend=trends.get(h.file, h.trend)) for h in hotspots]


def analyze_hotspots(
    repo_dir: str | Path,
    file_frequencies: Mapping[str, int],
    limit: Optional[int] = None,
    with_trends: bool = False,
    filter_config: Optional[FilterConfig] = None,
    hotspots_config: Optional[HotspotsConfig] = None,
    extractor: Optional[GitExtractor] = None,
) -> list[HotspotEntry]:
    """Rank hotspots for a repository, optionally with trends for the top entries."""
    line_counts = count_lines(file_frequencies, repo_dir)
    hotspots = compute_hotspots(file_frequencies, line_counts)
    if limit is not None:
        hotspots = hotspots[:limit]
    if with_trends and hotspots:
        trends = compute_complexity_trends(
            repo_dir,
            [h.file for h in hotspots],
            filter_config=filter_config,
            hotspots_config=hotspots_config,
            extractor=extractor,
        )
        hotspots = annotate_trends(hotspots, trends)
    return hotspots
