"""Build the weighted co-change graph from git history."""

from __future__ import annotations

import re
from collections import defaultdict
from itertools import combinations
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..config import FilterConfig
from ..logging_config import get_logger
from .filters import apply_filters
from .git_extractor import GitExtractor, parse_git_log
from .models import CoChangeEdge, CoChangeGraph, Commit, EdgeStats, FilePair

logger = get_logger(__name__)

# Conventional commit prefix: type, optional (scope), optional breaking "!", colon
_COMMIT_TYPE_RE = re.compile(r"^\s*([A-Za-z]+)(?:\([^)]*\))?!?:")


def commit_type(subject: str) -> Optional[str]:
    """Return the lowercased conventional-commit type of a subject, if any."""
    match = _COMMIT_TYPE_RE.match(subject)
    return match.group(1).lower() if match else None


def commit_multiplier(subject: str, type_multipliers: Optional[Mapping[str, float]]) -> float:
    if not type_multipliers:
        return 1.0
    kind = commit_type(subject)
    if kind is None:
        return 1.0
    return type_multipliers.get(kind, 1.0)


def accumulate_edges(
    commits: Sequence[Commit],
    type_multipliers: Optional[Mapping[str, float]] = None,
) -> dict[FilePair, EdgeStats]:
    """Fold commits into per-pair ``EdgeStats``.

    Every unordered pair in an n-file commit gets ``1/(n-1)``, scaled by the
    commit type multiplier. Commits with fewer than two distinct files, or a
    zero multiplier, add nothing.
    """
    stats: dict[FilePair, EdgeStats] = {}

    for commit in commits:
        files = sorted(set(commit.files))
        if len(files) < 2:
            continue

        weight = commit_multiplier(commit.subject, type_multipliers) / (len(files) - 1)
        if weight <= 0:
            continue

        for a, b in combinations(files, 2):
            pair = FilePair(a, b)
            existing = stats.get(pair)
            if existing is None:
                stats[pair] = EdgeStats(weight=weight, count=1)
            else:
                existing.weight += weight
                existing.count += 1

    return stats


def edges_from_stats(stats: Mapping[FilePair, EdgeStats]) -> list[CoChangeEdge]:
    """Materialise edges, sorted by pair for stable output."""
    return [
        CoChangeEdge(files=pair, weight=s.weight, commit_count=s.count)
        for pair, s in sorted(stats.items())
    ]


def compute_cochange_edges(
    commits: Sequence[Commit],
    type_multipliers: Optional[Mapping[str, float]] = None,
) -> list[CoChangeEdge]:
    return edges_from_stats(accumulate_edges(commits, type_multipliers))


def compute_file_frequencies(commits: Sequence[Commit]) -> dict[str, int]:
    """Count the commits each file appears in."""
    counts: dict[str, int] = defaultdict(int)
    for commit in commits:
        for f in set(commit.files):
            counts[f] += 1
    return dict(counts)


def analyze_cochanges(raw: str, config: Optional[FilterConfig] = None) -> CoChangeGraph:
    """Pure pipeline: parse -> filter commits -> filter paths -> weight."""
    config = config or FilterConfig()
    commits = parse_git_log(raw)
    result = apply_filters(commits, config)

    return CoChangeGraph(
        edges=compute_cochange_edges(result.kept, config.type_multipliers),
        total_commits_analyzed=len(result.kept),
        total_commits_filtered=result.filtered,
        last_sha=commits[0].sha if commits else None,
        file_frequencies=compute_file_frequencies(result.kept),
    )


def scan_cochanges(
    repo_dir: str | Path,
    config: Optional[FilterConfig] = None,
    since: Optional[str] = None,
    until: str = "HEAD",
    extractor: Optional[GitExtractor] = None,
) -> CoChangeGraph:
    """Run ``git log`` and analyze co-changes.

    With ``since``, only commits in ``since..until`` are analyzed.

    Raises:
        GitCommandError: If git log fails
    """
    extractor = extractor or GitExtractor(repo_dir)
    raw = extractor.log(since=since, until=until)
    graph = analyze_cochanges(raw, config)
    logger.info(
        "Co-change scan of %s: %d commits analyzed, %d filtered, %d edges",
        repo_dir,
        graph.total_commits_analyzed,
        graph.total_commits_filtered,
        len(graph.edges),
    )
    return graph
