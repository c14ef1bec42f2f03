"""JSON co-change cache for incremental temporal analysis.

The cache stores the merged co-change edges together with the HEAD sha and
the filter configuration they were computed with. On each scan one of three
strategies applies:

- ``current``: cache matches HEAD and config, no git work at all
- ``incremental``: config matches, HEAD moved; scan ``last_sha..HEAD`` and merge
- ``full``: no usable cache, or the config changed; rescan all history

Cache location: <repo>/.coupling/cochange.json
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from diskcache import Cache, Lock

from ..config import DEFAULT_CONFIG, FilterConfig
from ..exceptions import CouplingInsightError
from ..logging_config import get_logger
from .cochange import edges_from_stats, scan_cochanges
from .git_extractor import GitExtractor
from .models import CoChangeGraph, EdgeStats, FilePair

logger = get_logger(__name__)

CACHE_FILE = "cochange.json"
LOCK_DIR = "locks"
# A crashed scan releases its lock after this many seconds
LOCK_EXPIRE_SECONDS = 600

_KEY_SEPARATOR = "\0"
_SHA_RE = re.compile(r"^[0-9a-f]{40}$")


class CacheStrategy(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"
    CURRENT = "current"


@dataclass
class CoChangeCache:
    """Persisted co-change state for one repository."""

    last_sha: str
    filter_config: FilterConfig
    edges: dict[FilePair, EdgeStats] = field(default_factory=dict)
    file_frequencies: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_sha": self.last_sha,
            "filter_config": self.filter_config.to_dict(),
            "edges": {
                f"{pair.first}{_KEY_SEPARATOR}{pair.second}": {
                    "weight": stats.weight,
                    "count": stats.count,
                }
                for pair, stats in sorted(self.edges.items())
            },
            "file_frequencies": dict(sorted(self.file_frequencies.items())),
        }

    @classmethod
    def from_dict(cls, data: Any) -> CoChangeCache:
        """Validate and load a decoded cache document.

        Raises:
            ValueError: If any part of the document does not match the schema
            InvalidConfigError: If the stored filter config is invalid
        """
        if not isinstance(data, Mapping):
            raise ValueError("cache document must be an object")

        last_sha = data.get("last_sha")
        if not isinstance(last_sha, str) or not _SHA_RE.match(last_sha):
            raise ValueError(f"invalid last_sha: {last_sha!r}")

        filter_config = FilterConfig.from_dict(data.get("filter_config"))

        raw_edges = data.get("edges")
        if not isinstance(raw_edges, Mapping):
            raise ValueError("edges must be an object")
        edges: dict[FilePair, EdgeStats] = {}
        for key, value in raw_edges.items():
            parts = key.split(_KEY_SEPARATOR)
            if len(parts) != 2 or not all(parts):
                raise ValueError(f"invalid edge key: {key!r}")
            if not isinstance(value, Mapping):
                raise ValueError(f"invalid edge value for {key!r}")
            weight, count = value.get("weight"), value.get("count")
            if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
                raise ValueError(f"invalid weight for {key!r}: {weight!r}")
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise ValueError(f"invalid count for {key!r}: {count!r}")
            edges[FilePair(parts[0], parts[1])] = EdgeStats(weight=float(weight), count=count)

        raw_freqs = data.get("file_frequencies", {})
        if not isinstance(raw_freqs, Mapping):
            raise ValueError("file_frequencies must be an object")
        file_frequencies: dict[str, int] = {}
        for path, count in raw_freqs.items():
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise ValueError(f"invalid frequency for {path!r}: {count!r}")
            file_frequencies[path] = count

        return cls(
            last_sha=last_sha,
            filter_config=filter_config,
            edges=edges,
            file_frequencies=file_frequencies,
        )


# ── Pure functions ──


def cache_strategy(
    cache: Optional[CoChangeCache], current_head: str, config: FilterConfig
) -> CacheStrategy:
    """Decide how much history must be scanned."""
    if cache is None:
        return CacheStrategy.FULL
    # Stored weights bake in past filter decisions; any config change invalidates them
    if cache.filter_config != config:
        return CacheStrategy.FULL
    if cache.last_sha == current_head:
        return CacheStrategy.CURRENT
    return CacheStrategy.INCREMENTAL


def merge_edges(
    existing: Mapping[FilePair, EdgeStats], incremental: CoChangeGraph
) -> dict[FilePair, EdgeStats]:
    """Add an incremental graph onto stored edges. Weights and counts are additive."""
    merged = {pair: EdgeStats(s.weight, s.count) for pair, s in existing.items()}
    for edge in incremental.edges:
        prev = merged.get(edge.files)
        if prev is None:
            merged[edge.files] = EdgeStats(weight=edge.weight, count=edge.commit_count)
        else:
            prev.weight += edge.weight
            prev.count += edge.commit_count
    return merged


def merge_frequencies(existing: Mapping[str, int], new: Mapping[str, int]) -> dict[str, int]:
    merged = dict(existing)
    for path, count in new.items():
        merged[path] = merged.get(path, 0) + count
    return merged


def edges_from_graph(graph: CoChangeGraph) -> dict[FilePair, EdgeStats]:
    return {e.files: EdgeStats(weight=e.weight, count=e.commit_count) for e in graph.edges}


def graph_from_cache(cache: CoChangeCache) -> CoChangeGraph:
    """Graph for the ``current`` strategy: nothing was analyzed in this run."""
    return CoChangeGraph(
        edges=edges_from_stats(cache.edges),
        total_commits_analyzed=0,
        total_commits_filtered=0,
        last_sha=cache.last_sha,
        file_frequencies=dict(cache.file_frequencies),
    )


# ── Effectful functions ──


def read_cache(cache_dir: str | Path) -> Optional[CoChangeCache]:
    """Read the cache, or None if it is missing, unreadable or invalid."""
    path = Path(cache_dir) / CACHE_FILE
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return CoChangeCache.from_dict(json.load(f))
    except (OSError, ValueError, TypeError, CouplingInsightError) as e:
        logger.debug("Ignoring unusable co-change cache %s: %s", path, e)
        return None


def write_cache(cache_dir: str | Path, cache: CoChangeCache) -> None:
    """Atomically replace the cache file (temp file + rename)."""
    directory = Path(cache_dir)
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".cochange-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(cache.to_dict(), f, indent=2)
        os.replace(tmp_path, directory / CACHE_FILE)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
    logger.debug("Wrote co-change cache (%d edges) to %s", len(cache.edges), directory)


def clear_cache(cache_dir: str | Path) -> bool:
    """Delete the cache file. Returns True if one existed."""
    path = Path(cache_dir) / CACHE_FILE
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug("Cleared co-change cache %s", path)
    return True


@contextlib.contextmanager
def repository_lock(cache_dir: str | Path) -> Iterator[None]:
    """Serialize cache read-scan-write cycles for one repository across processes."""
    lock_dir = Path(cache_dir) / LOCK_DIR
    lock_dir.mkdir(parents=True, exist_ok=True)
    with Cache(str(lock_dir)) as lock_cache:
        with Lock(lock_cache, "cochange-scan", expire=LOCK_EXPIRE_SECONDS):
            yield


def scan_cochanges_with_cache(
    repo_dir: str | Path,
    config: Optional[FilterConfig] = None,
    cache_dir: Optional[str | Path] = None,
    extractor: Optional[GitExtractor] = None,
) -> CoChangeGraph:
    """Cached co-change scan: read cache -> pick strategy -> scan -> write cache.

    Raises:
        GitCommandError: If HEAD or the log cannot be read
        NotAGitRepositoryError: If repo_dir is not a git work tree
    """
    config = config or FilterConfig()
    repo = Path(repo_dir).resolve()
    cache_path = Path(cache_dir) if cache_dir is not None else DEFAULT_CONFIG.cache_path(repo)
    extractor = extractor or GitExtractor(repo)

    # Nothing is created on disk until repo is known to be a git work tree.
    extractor.head_sha()

    with repository_lock(cache_path):
        cache = read_cache(cache_path)
        head = extractor.head_sha()
        strategy = cache_strategy(cache, head, config)

        if cache is not None and strategy is CacheStrategy.INCREMENTAL:
            if not extractor.is_ancestor(cache.last_sha, head):
                logger.info(
                    "Cached sha %s is not an ancestor of HEAD (history rewritten); full rescan",
                    cache.last_sha[:8],
                )
                strategy = CacheStrategy.FULL
        elif cache is not None and strategy is CacheStrategy.FULL:
            logger.info("Filter configuration changed; discarding co-change cache")

        logger.debug("Co-change cache strategy for %s: %s", repo, strategy.value)

        if cache is not None and strategy is CacheStrategy.CURRENT:
            return graph_from_cache(cache)

        if cache is not None and strategy is CacheStrategy.INCREMENTAL:
            delta = scan_cochanges(
                repo, config, since=cache.last_sha, until=head, extractor=extractor
            )
            edges = merge_edges(cache.edges, delta)
            frequencies = merge_frequencies(cache.file_frequencies, delta.file_frequencies or {})
            analyzed, filtered = delta.total_commits_analyzed, delta.total_commits_filtered
        else:
            graph = scan_cochanges(repo, config, until=head, extractor=extractor)
            edges = edges_from_graph(graph)
            frequencies = dict(graph.file_frequencies or {})
            analyzed, filtered = graph.total_commits_analyzed, graph.total_commits_filtered

        write_cache(
            cache_path,
            CoChangeCache(
                last_sha=head, filter_config=config, edges=edges, file_frequencies=frequencies
            ),
        )

    return CoChangeGraph(
        edges=edges_from_stats(edges),
        total_commits_analyzed=analyzed,
        total_commits_filtered=filtered,
        last_sha=head,
        file_frequencies=frequencies,
    )
