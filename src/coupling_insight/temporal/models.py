"""Data models for temporal (git-based) analysis."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass
class Commit:
    sha: str
    subject: str
    files: list[str]  # changed paths, in log order


@dataclass(frozen=True)
class NumstatEntry:
    path: str
    additions: int
    deletions: int

    @property
    def net(self) -> int:
        return self.additions - self.deletions


@dataclass
class NumstatCommit:
    sha: str
    subject: str
    files: list[NumstatEntry]
    binary_files: int = 0  # changed binary paths, which carry no line counts


@dataclass(frozen=True, order=True)
class FilePair:
    """Unordered pair of distinct paths, stored lexicographically.

    ``FilePair("b.py", "a.py") == FilePair("a.py", "b.py")``; the constructor
    swaps members so ``first < second`` always holds.
    """

    first: str
    second: str

    def __post_init__(self) -> None:
        if self.first == self.second:
            raise ValueError(f"a file cannot pair with itself: {self.first}")
        if self.second < self.first:
            a, b = self.second, self.first
            object.__setattr__(self, "first", a)
            object.__setattr__(self, "second", b)

    def __iter__(self):
        yield self.first
        yield self.second

    def other(self, path: str) -> str:
        """Return the member that is not ``path``."""
        if path == self.first:
            return self.second
        if path == self.second:
            return self.first
        raise KeyError(path)


@dataclass
class EdgeStats:
    weight: float
    count: int


@dataclass(frozen=True)
class CoChangeEdge:
    files: FilePair
    weight: float  # accumulated 1/(n-1) contributions
    commit_count: int


@dataclass
class CoChangeGraph:
    edges: list[CoChangeEdge]
    total_commits_analyzed: int
    total_commits_filtered: int
    last_sha: Optional[str] = None
    file_frequencies: Optional[dict[str, int]] = None

    def edge_map(self) -> dict[FilePair, CoChangeEdge]:
        return {edge.files: edge for edge in self.edges}


class Trend(str, Enum):
    """Direction of a file's size trajectory."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendInfo:
    direction: Trend
    magnitude: float  # |mean(second half) - mean(first half)| in lines


@dataclass
class HotspotEntry:
    file: str
    change_frequency: int
    line_count: int
    score: int  # change_frequency * line_count
    trend: Optional[TrendInfo] = None


@dataclass(frozen=True)
class FileNeighbor:
    file: str
    cochange_weight: float
    cochange_commits: int
    has_import_relation: bool
