"""Read git history via subprocess and parse it into commit records.

The parsers are pure: they accept raw ``git log`` text and never raise on
malformed input. ``GitExtractor`` is the only place that touches git.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import GitCommandError, NotAGitRepositoryError
from ..logging_config import get_logger
from .models import Commit, NumstatCommit, NumstatEntry

logger = get_logger(__name__)

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")

LOG_FORMAT = "--pretty=format:%H%n%s"


def _iter_commit_blocks(raw: str) -> Iterator[tuple[str, str, list[str]]]:
    """Yield ``(sha, subject, body_lines)`` for each commit in a log dump.

    A header is a 40-hex line that starts a blank-line separated block, or
    that directly follows another header's subject (consecutive commits with
    no changed files). The line after a header is always its subject, even
    when empty. Lines before the first header are ignored.
    """
    sha: Optional[str] = None
    subject = ""
    body: list[str] = []
    expecting_subject = False
    block_start = True
    after_subject = False

    for line in raw.splitlines():
        if expecting_subject:
            subject = line.strip()
            expecting_subject = False
            after_subject = True
            block_start = False
            continue

        stripped = line.strip()
        if not stripped:
            block_start = True
            after_subject = False
            continue

        if _SHA_RE.match(stripped) and (block_start or after_subject):
            if sha is not None:
                yield sha, subject, body
            sha = stripped
            subject = ""
            body = []
            expecting_subject = True
        elif sha is not None:
            body.append(stripped)
        block_start = False
        after_subject = False

    if sha is not None:
        yield sha, subject, body


def parse_git_log(raw: str) -> list[Commit]:
    """Parse ``git log --pretty=format:%H%n%s --name-only`` output.

    Returns commits in log order (newest first). Commits without changed
    files are kept with an empty file list.
    """
    return [
        Commit(sha=sha, subject=subject, files=lines)
        for sha, subject, lines in _iter_commit_blocks(raw)
    ]


def parse_numstat_log(raw: str) -> list[NumstatCommit]:
    """Parse ``git log --pretty=format:%H%n%s --numstat`` output.

    Each body line is ``additions<TAB>deletions<TAB>path``. Binary files
    report ``-`` for both counts; they get no entry but are tallied in
    ``binary_files``. Any line that does not have that shape is skipped.
    """
    commits: list[NumstatCommit] = []
    for sha, subject, lines in _iter_commit_blocks(raw):
        entries: list[NumstatEntry] = []
        binary = 0
        for line in lines:
            parts = line.split("\t", 2)
            if len(parts) != 3 or not parts[2]:
                continue
            added, deleted, path = parts
            if added == "-" and deleted == "-":
                binary += 1
                continue
            if not (added.isdigit() and deleted.isdigit()):
                continue
            entries.append(NumstatEntry(path=path, additions=int(added), deletions=int(deleted)))
        commits.append(
            NumstatCommit(sha=sha, subject=subject, files=entries, binary_files=binary)
        )
    return commits


class GitExtractor:
    """Narrow git capability: resolve HEAD and return raw log text."""

    def __init__(self, repo_path: str | Path):
        self.repo_path = str(Path(repo_path).resolve())

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        cmd = ["git", "-C", self.repo_path, *args]
        try:
            return subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except FileNotFoundError as e:
            raise GitCommandError(cmd, f"git executable not found: {e}", returncode=127)

    def _check(self, args: list[str]) -> str:
        result = self._run(args)
        if result.returncode != 0:
            raise GitCommandError(["git", *args], result.stderr, result.returncode)
        return result.stdout

    def is_git_repo(self) -> bool:
        try:
            return self._run(["rev-parse", "--git-dir"]).returncode == 0
        except GitCommandError:
            return False

    def head_sha(self) -> str:
        """Resolve the current HEAD commit.

        Raises:
            NotAGitRepositoryError: If repo_path is not inside a git work tree
            GitCommandError: If HEAD cannot be resolved (e.g. no commits yet)
        """
        if not self.is_git_repo():
            raise NotAGitRepositoryError(Path(self.repo_path))
        return self._check(["rev-parse", "HEAD"]).strip()

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ``ancestor`` is reachable from ``descendant``."""
        result = self._run(["merge-base", "--is-ancestor", ancestor, descendant])
        return result.returncode == 0

    def log(
        self,
        since: Optional[str] = None,
        until: str = "HEAD",
        numstat: bool = False,
        max_commits: Optional[int] = None,
    ) -> str:
        """Return raw log text for ``since..until`` (or all history).

        Raises:
            GitCommandError: If git exits unsuccessfully
        """
        args = ["log", LOG_FORMAT]
        if numstat:
            args.append("--numstat")
        else:
            args.extend(["--name-only", "--diff-filter=ACMRD"])
        if max_commits is not None:
            args.append(f"-n{max_commits}")
        args.append(f"{since}..{until}" if since else until)
        args.append("--")

        logger.debug("Running git %s in %s", " ".join(args), self.repo_path)
        return self._check(args)
