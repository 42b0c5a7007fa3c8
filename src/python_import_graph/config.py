"""
Build configuration.

Options can be passed directly as a BuildOptions instance, or read from the
``[tool.python-import-graph]`` table of the project's pyproject.toml:

    [tool.python-import-graph]
    include-typechecking-imports = false
    extra-exclude-patterns = ["_sandbox"]
    max-workers = 4
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from .errors import ConfigError
from .utils import find_project_root

logger = logging.getLogger(__name__)

TOOL_NAME = "python-import-graph"

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    ".venv",
    "venv",
    "__pycache__",
    ".git",
    ".pytest_cache",
    ".mypy_cache",
    "node_modules",
    ".tox",
    "dist",
    "build",
    "*.egg-info",
)


@dataclass(frozen=True)
class BuildOptions:
    """
    Options controlling how the package tree and the import graph are built.

    Attributes:
        include_typechecking_imports: Keep imports guarded by typing.TYPE_CHECKING
        include_external_imports: Record imports of code outside the package
        exclude_patterns: Directory and file names (or globs) skipped during the scan
        max_workers: Size of the extraction thread pool (None: executor default)
    """

    include_typechecking_imports: bool = True
    include_external_imports: bool = True
    exclude_patterns: tuple[str, ...] = field(default=DEFAULT_EXCLUDE_PATTERNS)
    max_workers: int | None = None

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")

    def with_extra_exclude_patterns(self, patterns: list[str] | tuple[str, ...]) -> BuildOptions:
        return replace(self, exclude_patterns=self.exclude_patterns + tuple(patterns))


_BOOL_KEYS = ("include_typechecking_imports", "include_external_imports")
_PATTERN_KEYS = ("exclude_patterns", "extra_exclude_patterns")


def options_from_mapping(table: dict[str, Any]) -> BuildOptions:
    """
    Build options from a parsed TOML table.

    Keys may be written with dashes or underscores.

    Raises:
        ConfigError: On unknown keys or values of the wrong type
    """
    values: dict[str, Any] = {}
    extra_patterns: tuple[str, ...] = ()

    for raw_key, value in table.items():
        key = raw_key.replace("-", "_")
        if key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigError(f"'{raw_key}' must be a boolean, got {value!r}")
            values[key] = value
        elif key in _PATTERN_KEYS:
            if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
                raise ConfigError(f"'{raw_key}' must be a list of strings, got {value!r}")
            if key == "exclude_patterns":
                values[key] = tuple(value)
            else:
                extra_patterns = tuple(value)
        elif key == "max_workers":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"'{raw_key}' must be an integer, got {value!r}")
            values[key] = value
        else:
            raise ConfigError(f"Unknown option '{raw_key}' in [tool.{TOOL_NAME}]")

    options = BuildOptions(**values)
    if extra_patterns:
        options = options.with_extra_exclude_patterns(extra_patterns)
    return options


def load_options(start_path: Path | None = None) -> BuildOptions:
    """
    Load build options from the nearest pyproject.toml.

    Args:
        start_path: Directory to start the search from (default: current directory)

    Returns:
        Options from [tool.python-import-graph], or defaults when there is no
        pyproject.toml or no such table

    Raises:
        ConfigError: If pyproject.toml cannot be parsed or the table is invalid
    """
    project_root = find_project_root(start_path)
    if project_root is None:
        logger.debug("No pyproject.toml found from %s, using default options", start_path)
        return BuildOptions()

    pyproject_path = project_root / "pyproject.toml"
    try:
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Could not read {pyproject_path}: {e}") from e

    table = data.get("tool", {}).get(TOOL_NAME)
    if table is None:
        return BuildOptions()
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.{TOOL_NAME}] in {pyproject_path} must be a table")

    logger.debug("Loaded options from %s", pyproject_path)
    return options_from_mapping(table)
