"""Commit and path noise filters applied before co-change weighting."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Generic, Iterable, Sequence, TypeVar, Union

from ..config import FilterConfig
from .models import Commit, NumstatCommit

CommitT = TypeVar("CommitT", Commit, NumstatCommit)


@dataclass
class FilterResult(Generic[CommitT]):
    kept: list[CommitT]
    filtered: int  # commits dropped by the size ceiling or message patterns


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into an anchored regex.

    - ``**/`` matches zero or more whole path segments
    - ``**`` elsewhere matches anything, including ``/``
    - ``*`` matches anything except ``/``
    - every other character is literal
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:[^/]*/)*")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(compile_glob(p).match(path) for p in patterns)


def _changed_count(commit: Union[Commit, NumstatCommit]) -> int:
    if isinstance(commit, NumstatCommit):
        return len(commit.files) + commit.binary_files
    return len(commit.files)


def filter_commits(commits: Sequence[CommitT], config: FilterConfig) -> FilterResult[CommitT]:
    """Drop oversized commits and commits with mechanical subjects.

    The size ceiling is checked first; both rules count toward ``filtered``.
    Binary files in numstat commits count toward the ceiling, so name-only
    and numstat history drop the same commits.
    """
    patterns = [p.lower() for p in config.skip_message_patterns]
    kept: list[CommitT] = []
    filtered = 0

    for commit in commits:
        if _changed_count(commit) > config.max_commit_files:
            filtered += 1
            continue

        subject = commit.subject.lower()
        if any(p in subject for p in patterns):
            filtered += 1
            continue

        kept.append(commit)

    return FilterResult(kept=kept, filtered=filtered)


def _entry_path(entry: Union[str, object]) -> str:
    return entry if isinstance(entry, str) else entry.path  # type: ignore[attr-defined]


def filter_files(commits: Sequence[CommitT], exclude_paths: Sequence[str]) -> list[CommitT]:
    """Remove excluded paths from every commit.

    Commits are never dropped here, even when no files survive.
    """
    if not exclude_paths:
        return list(commits)
    return [
        replace(c, files=[f for f in c.files if not matches_any(_entry_path(f), exclude_paths)])
        for c in commits
    ]


def apply_filters(commits: Sequence[CommitT], config: FilterConfig) -> FilterResult[CommitT]:
    """Commit filters followed by path exclusion."""
    result = filter_commits(commits, config)
    kept = filter_files(result.kept, config.exclude_paths)
    return FilterResult(kept=kept, filtered=result.filtered)
