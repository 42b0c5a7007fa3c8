"""
Utility functions for project discovery and dotted path handling.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from pathlib import Path

from .errors import InvalidPypathError


def find_project_root(start_path: Path | None = None) -> Path | None:
    """
    Find the project root by searching for pyproject.toml in parent directories.

    Starts from the given path (or current directory) and walks up the directory
    tree until it finds a directory containing pyproject.toml.

    Args:
        start_path: Starting directory for the search (default: current directory)

    Returns:
        Path to the project root directory, or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()

    # Walk up the directory tree
    while current != current.parent:
        pyproject_path = current / "pyproject.toml"
        if pyproject_path.exists():
            return current
        current = current.parent

    # Check the root directory itself
    if (current / "pyproject.toml").exists():
        return current

    return None


def is_python_package_directory(path: Path) -> bool:
    """
    Check if a directory contains Python package files.

    Args:
        path: Directory to check

    Returns:
        True if the directory contains .py files or __init__.py
    """
    if not path.exists() or not path.is_dir():
        return False

    # Check for Python files
    if any(path.glob("*.py")):
        return True

    # Check for __init__.py
    if (path / "__init__.py").exists():
        return True

    return False


def matches_any_pattern(name: str, patterns: Iterable[str]) -> bool:
    """
    Check a single path component against shell-style exclude patterns.

    A component matches when it equals a pattern or matches it as an fnmatch
    glob (e.g., "*.egg-info").
    """
    return any(name == pattern or fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def split_pypath(pypath: str) -> tuple[str, ...]:
    """
    Split and validate an absolute dotted path.

    Args:
        pypath: Dotted path such as "package.sub.module"

    Returns:
        The path segments

    Raises:
        InvalidPypathError: If the path is empty, relative, or has a segment
            that is not a Python identifier
    """
    segments = tuple(pypath.split("."))
    if not pypath or not all(segment.isidentifier() for segment in segments):
        raise InvalidPypathError(f"Invalid dotted path: {pypath!r}")
    return segments


def is_equal_or_descendant_pypath(pypath: str, ancestor: str) -> bool:
    """Return True if ``pypath`` is ``ancestor`` or nested below it."""
    return pypath == ancestor or pypath.startswith(ancestor + ".")


def pypath_from_path(path: Path, root_path: Path) -> str:
    """
    Derive the dotted path of a file or directory inside the root package.

    The root package directory itself maps to its own name, so
    ``<parent>/pkg/sub/mod.py`` maps to "pkg.sub.mod".
    """
    relative = path.relative_to(root_path.parent)
    parts = list(relative.parts)
    if parts[-1].endswith(".py"):
        parts[-1] = parts[-1][: -len(".py")]
    return ".".join(parts)
