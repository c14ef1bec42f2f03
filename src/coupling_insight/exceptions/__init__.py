"""Exception hierarchy for Coupling Insight."""

from .analysis import AnalysisError, GitCommandError, NotAGitRepositoryError
from .base import CouplingInsightError
from .config import ConfigurationError, InvalidConfigError

__all__ = [
    "CouplingInsightError",
    "AnalysisError",
    "GitCommandError",
    "NotAGitRepositoryError",
    "ConfigurationError",
    "InvalidConfigError",
]
