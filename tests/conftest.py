"""Shared test fixtures for Coupling Insight."""

import shutil
import subprocess
from pathlib import Path

import pytest


def build_log(*commits) -> str:
    """Render ``(sha, subject, files)`` tuples as name-only ``git log`` text."""
    blocks = []
    for sha, subject, files in commits:
        header = f"{sha}\n{subject}"
        blocks.append(f"{header}\n\n" + "\n".join(files) if files else header)
    return "\n\n".join(blocks) + "\n"


def build_numstat_log(*commits) -> str:
    """Render ``(sha, subject, [(add, delete, path), ...])`` as numstat text."""
    blocks = []
    for sha, subject, stats in commits:
        lines = "\n".join(f"{add}\t{delete}\t{path}" for add, delete, path in stats)
        blocks.append(f"{sha}\n{subject}\n\n{lines}")
    return "\n\n".join(blocks) + "\n"


class FakeExtractor:
    """Stands in for GitExtractor: canned HEAD and log text keyed by ``since``."""

    def __init__(self, head, logs=None, numstat="", ancestor=True):
        self.head = head
        self.logs = logs or {}
        self.numstat = numstat
        self.ancestor = ancestor
        self.calls = []

    def head_sha(self):
        return self.head

    def is_ancestor(self, ancestor, descendant):
        return self.ancestor

    def log(self, since=None, until="HEAD", numstat=False, max_commits=None):
        self.calls.append({"since": since, "until": until, "numstat": numstat})
        if numstat:
            return self.numstat
        return self.logs.get(since, "")


class GitRepo:
    """Throwaway git repository driven through the git CLI."""

    def __init__(self, path: Path):
        self.path = path

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.path), *args], capture_output=True, text=True, check=True
        )
        return result.stdout

    def commit(self, message: str, files: dict, delete: tuple = ()) -> str:
        """Write ``files`` (path -> content), delete paths, commit; return the new sha."""
        for rel, content in files.items():
            target = self.path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        for rel in delete:
            (self.path / rel).unlink()
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()


@pytest.fixture
def make_log():
    return build_log


@pytest.fixture
def make_numstat_log():
    return build_numstat_log


@pytest.fixture
def fake_extractor():
    return FakeExtractor


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository with a committer identity configured."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    repo = GitRepo(tmp_path / "repo")
    repo.path.mkdir()
    repo.git("init", "-q")
    repo.git("config", "user.email", "dev@example.com")
    repo.git("config", "user.name", "Dev")
    repo.git("config", "commit.gpgsign", "false")
    return repo
