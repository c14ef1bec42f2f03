"""Configuration loading and management for Coupling Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in the config dataclasses)
    2. Global config (~/.coupling-insight.toml)
    3. Project config (<repo>/coupling-insight.toml)
    4. Explicit config file
    5. Environment variables (COUPLING_* prefix)
    6. Overrides (passed as kwargs)

Example:
    >>> config = load_config(cochange={"max_commit_files": 30})
    >>> config.cochange.max_commit_files
    30
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

CouplingLevel = Literal["component", "file"]

DEFAULT_SKIP_MESSAGE_PATTERNS = ("chore", "style", "format", "lint", "merge", "rebase")
DEFAULT_EXCLUDE_PATHS = (
    "**/package-lock.json",
    "**/bun.lock",
    "**/bun.lockb",
    "**/*.d.ts",
    "**/.coupling/**",
)


def _string_tuple(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise InvalidConfigError(key, value, "expected a list of strings")
    for item in value:
        if not isinstance(item, str):
            raise InvalidConfigError(key, value, "expected a list of strings")
    return tuple(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class FilterConfig:
    """Noise controls applied to commits before co-change weighting.

    Attributes:
        max_commit_files: Commits touching more paths than this are dropped
        skip_message_patterns: Case-insensitive subject substrings that drop a commit
        exclude_paths: Glob patterns (``**`` and ``*``) removed from every commit
        type_multipliers: Optional conventional-commit type -> weight multiplier in [0, 2]
    """

    max_commit_files: int = 50
    skip_message_patterns: tuple[str, ...] = DEFAULT_SKIP_MESSAGE_PATTERNS
    exclude_paths: tuple[str, ...] = DEFAULT_EXCLUDE_PATHS
    type_multipliers: Optional[Mapping[str, float]] = None

    def __post_init__(self) -> None:
        """Validate and normalise filter configuration."""
        if isinstance(self.max_commit_files, bool) or not isinstance(self.max_commit_files, int):
            raise InvalidConfigError(
                "max_commit_files", self.max_commit_files, "must be a positive integer"
            )
        if self.max_commit_files < 1:
            raise InvalidConfigError(
                "max_commit_files", self.max_commit_files, "must be a positive integer"
            )

        patterns = _string_tuple("skip_message_patterns", self.skip_message_patterns)
        object.__setattr__(self, "skip_message_patterns", tuple(p.lower() for p in patterns))
        object.__setattr__(
            self, "exclude_paths", _string_tuple("exclude_paths", self.exclude_paths)
        )

        multipliers = self.type_multipliers
        if multipliers is None:
            return
        if not isinstance(multipliers, Mapping):
            raise InvalidConfigError("type_multipliers", multipliers, "expected a mapping")
        normalised: dict[str, float] = {}
        for commit_type, value in multipliers.items():
            if not isinstance(commit_type, str) or not _is_number(value):
                raise InvalidConfigError(
                    "type_multipliers", multipliers, "expected commit type -> number"
                )
            if not 0.0 <= value <= 2.0:
                raise InvalidConfigError(
                    f"type_multipliers.{commit_type}", value, "must be between 0.0 and 2.0"
                )
            normalised[commit_type.lower()] = float(value)
        object.__setattr__(self, "type_multipliers", normalised or None)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation (used by the co-change cache)."""
        data: dict[str, Any] = {
            "max_commit_files": self.max_commit_files,
            "skip_message_patterns": list(self.skip_message_patterns),
            "exclude_paths": list(self.exclude_paths),
        }
        if self.type_multipliers:
            data["type_multipliers"] = dict(sorted(self.type_multipliers.items()))
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FilterConfig:
        """Build from a mapping, rejecting unknown keys."""
        if not isinstance(data, Mapping):
            raise InvalidConfigError("cochange", data, "expected a table")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfigError("cochange", sorted(unknown), "unknown keys")
        return cls(**data)


@dataclass(frozen=True)
class HotspotsConfig:
    """Hotspot and complexity-trend tuning.

    Attributes:
        max_commits: Depth of the numstat history used for trends
        trend_threshold: Minimum mean net line-delta shift to call a trend
        trend_min_commits: Data points needed before a trend is classified
    """

    max_commits: int = 500
    trend_threshold: float = 1.0
    trend_min_commits: int = 2

    def __post_init__(self) -> None:
        if isinstance(self.max_commits, bool) or not isinstance(self.max_commits, int):
            raise InvalidConfigError("max_commits", self.max_commits, "must be an integer")
        if self.max_commits < 1:
            raise InvalidConfigError("max_commits", self.max_commits, "must be at least 1")
        if not _is_number(self.trend_threshold) or self.trend_threshold < 0:
            raise InvalidConfigError(
                "trend_threshold", self.trend_threshold, "must be non-negative"
            )
        if isinstance(self.trend_min_commits, bool) or not isinstance(self.trend_min_commits, int):
            raise InvalidConfigError(
                "trend_min_commits", self.trend_min_commits, "must be an integer"
            )
        if self.trend_min_commits < 2:
            raise InvalidConfigError(
                "trend_min_commits", self.trend_min_commits, "must be at least 2"
            )


@dataclass(frozen=True)
class MatrixConfig:
    """Coupling matrix options. ``None`` thresholds auto-calibrate to the median."""

    structural_threshold: Optional[float] = None
    behavioral_threshold: Optional[float] = None
    level: CouplingLevel = "component"

    def __post_init__(self) -> None:
        for name in ("structural_threshold", "behavioral_threshold"):
            value = getattr(self, name)
            if value is None:
                continue
            if not _is_number(value) or value < 0:
                raise InvalidConfigError(name, value, "must be a non-negative number")
        if self.level not in ("component", "file"):
            raise InvalidConfigError("level", self.level, "must be 'component' or 'file'")


_SECTIONS = {
    "cochange": FilterConfig,
    "hotspots": HotspotsConfig,
    "matrix": MatrixConfig,
}


@dataclass(frozen=True)
class AnalysisConfig:
    """Root configuration.

    Attributes:
        cochange: Commit/path filters for co-change mining
        hotspots: Hotspot and trend tuning
        matrix: Coupling matrix thresholds
        cache_dir: Repository-relative directory for the co-change cache
        workers: Parallel workers for multi-repository scans (None = auto)
    """

    cochange: FilterConfig = field(default_factory=FilterConfig)
    hotspots: HotspotsConfig = field(default_factory=HotspotsConfig)
    matrix: MatrixConfig = field(default_factory=MatrixConfig)
    cache_dir: str = ".coupling"
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.cache_dir:
            raise InvalidConfigError("cache_dir", self.cache_dir, "must not be empty")
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")

    def cache_path(self, repo_dir: str | Path) -> Path:
        """Absolute cache directory for a repository."""
        return Path(repo_dir).resolve() / self.cache_dir


DEFAULT_CONFIG = AnalysisConfig()


def load_config(
    repo_dir: Optional[Path] = None, config_file: Optional[Path] = None, **overrides: Any
) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        repo_dir: Repository root searched for ``coupling-insight.toml``
        config_file: Optional explicit config file path
        **overrides: Direct overrides; section overrides may be dicts or config objects

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ConfigurationError: If a config file is missing or malformed
        InvalidConfigError: If a value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".coupling-insight.toml"
    if global_config.exists():
        _merge(merged, _load_toml_file(global_config))

    project_config = Path(repo_dir or Path.cwd()) / "coupling-insight.toml"
    if project_config.exists():
        _merge(merged, _load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        _merge(merged, _load_toml_file(config_file))

    _merge(merged, _load_env_vars())

    for key, value in overrides.items():
        if key in _SECTIONS and isinstance(value, _SECTIONS[key]):
            merged[key] = value
        elif key in _SECTIONS and isinstance(value, Mapping):
            section = merged.get(key)
            if not isinstance(section, dict):
                section = {}
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value

    sections: dict[str, Any] = {}
    for name, section_cls in _SECTIONS.items():
        raw = merged.pop(name, None)
        if raw is None:
            continue
        if isinstance(raw, section_cls):
            sections[name] = raw
        elif isinstance(raw, Mapping):
            try:
                sections[name] = section_cls(**raw)
            except TypeError as e:
                raise ConfigurationError(f"Invalid [{name}] config: {e}")
        else:
            raise InvalidConfigError(name, raw, "expected a table")

    try:
        return AnalysisConfig(**sections, **merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    """Merge ``source`` into ``target``, one level deep for sections."""
    for key, value in source.items():
        if key in _SECTIONS and isinstance(value, Mapping):
            section = target.setdefault(key, {})
            section.update(value)
        else:
            target[key] = value


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from COUPLING_* environment variables.

    Root scalars use ``COUPLING_<FIELD>`` (e.g. COUPLING_CACHE_DIR); section
    scalars use ``COUPLING_<SECTION>_<FIELD>`` (e.g.
    COUPLING_COCHANGE_MAX_COMMIT_FILES). List and mapping fields are not
    configurable from the environment.
    """
    result: dict[str, Any] = {}

    root_hints = get_type_hints(AnalysisConfig)
    for f in fields(AnalysisConfig):
        if f.name in _SECTIONS:
            continue
        parsed = _env_value(f"COUPLING_{f.name.upper()}", root_hints[f.name])
        if parsed is not None:
            result[f.name] = parsed

    for section, section_cls in _SECTIONS.items():
        hints = get_type_hints(section_cls)
        for f in fields(section_cls):
            env_key = f"COUPLING_{section.upper()}_{f.name.upper()}"
            parsed = _env_value(env_key, hints[f.name])
            if parsed is not None:
                result.setdefault(section, {})[f.name] = parsed

    return result


def _env_value(env_key: str, type_hint: Any) -> Any:
    raw = os.environ.get(env_key)
    if raw is None:
        return None
    try:
        return _parse_env_value(raw, type_hint)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {env_key}: {e}")


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns None for types that cannot be expressed as a single string.
    """
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file and return the parsed dict.

    Raises:
        ConfigurationError: If the file cannot be parsed
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
