"""Tests for the exception hierarchy."""

from pathlib import Path

import pytest

from coupling_insight.exceptions import (
    AnalysisError,
    ConfigurationError,
    CouplingInsightError,
    GitCommandError,
    InvalidConfigError,
    NotAGitRepositoryError,
)


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            GitCommandError(["git", "log"], "fatal: bad revision", 128),
            NotAGitRepositoryError(Path("/tmp/x")),
            InvalidConfigError("max_commit_files", 0, "must be a positive integer"),
            ConfigurationError("Config file not found"),
        ],
    )
    def test_all_derive_from_base(self, error):
        assert isinstance(error, CouplingInsightError)

    def test_analysis_errors(self):
        assert issubclass(GitCommandError, AnalysisError)
        assert issubclass(NotAGitRepositoryError, AnalysisError)
        assert issubclass(InvalidConfigError, ConfigurationError)


class TestErrorDetails:
    def test_base_without_details(self):
        error = CouplingInsightError("plain")
        assert str(error) == "plain"
        assert error.details == {}

    def test_git_command_error(self):
        error = GitCommandError(["git", "log", "a..b"], "fatal: bad revision\n", 128)
        assert error.command == ["git", "log", "a..b"]
        assert error.stderr == "fatal: bad revision"
        assert error.returncode == 128
        assert "git log a..b" in str(error)
        assert "stderr=fatal: bad revision" in str(error)

    def test_not_a_git_repository(self):
        error = NotAGitRepositoryError(Path("/srv/plain"))
        assert error.path == Path("/srv/plain")
        assert error.details == {"path": str(Path("/srv/plain"))}

    def test_invalid_config(self):
        error = InvalidConfigError("type_multipliers.feat", 3.0, "must be between 0.0 and 2.0")
        assert error.key == "type_multipliers.feat"
        assert error.value == 3.0
        assert error.details["reason"] == "must be between 0.0 and 2.0"
        assert "type_multipliers.feat" in str(error)
