"""Analysis-related exceptions: git access and repository state."""

from pathlib import Path
from typing import Sequence

from .base import CouplingInsightError


class AnalysisError(CouplingInsightError):
    """Base class for analysis-related errors."""

    pass


class GitCommandError(AnalysisError):
    """Raised when a git subprocess exits unsuccessfully."""

    def __init__(self, command: Sequence[str], stderr: str, returncode: int = 1):
        command_str = " ".join(command)
        super().__init__(
            f"git command failed: {command_str}",
            details={"returncode": str(returncode), "stderr": stderr.strip()},
        )
        self.command = list(command)
        self.stderr = stderr.strip()
        self.returncode = returncode


class NotAGitRepositoryError(AnalysisError):
    """Raised when the target directory is not inside a git work tree."""

    def __init__(self, path: Path):
        super().__init__(f"Not a git repository: {path}", details={"path": str(path)})
        self.path = path
