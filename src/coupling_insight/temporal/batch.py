"""Scan many repositories in parallel.

Repositories share no state, so each cached scan runs in its own worker;
a failure in one repository is recorded and does not stop the others.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from diskcache import Timeout

from ..config import AnalysisConfig
from ..exceptions import CouplingInsightError
from ..logging_config import get_logger
from .cache import scan_cochanges_with_cache
from .models import CoChangeGraph

logger = get_logger(__name__)


@dataclass
class BatchScanResult:
    graphs: dict[str, CoChangeGraph] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


def scan_repositories(
    repo_dirs: Sequence[str | Path],
    config: Optional[AnalysisConfig] = None,
    workers: Optional[int] = None,
) -> BatchScanResult:
    """Cached co-change scan of every repository, keyed by resolved path."""
    config = config or AnalysisConfig()
    repos = list(dict.fromkeys(str(Path(r).resolve()) for r in repo_dirs))
    result = BatchScanResult()

    def _scan(repo: str) -> CoChangeGraph:
        return scan_cochanges_with_cache(
            repo, config.cochange, cache_dir=config.cache_path(repo)
        )

    max_workers = workers or config.workers
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(_scan, repo): repo for repo in repos}
        for future in as_completed(futures):
            repo = futures[future]
            try:
                result.graphs[repo] = future.result()
            except (CouplingInsightError, OSError, Timeout) as e:
                logger.warning("Co-change scan failed for %s: %s", repo, e)
                result.errors[repo] = str(e)

    return result
