"""
Exceptions raised or recorded while building and querying an import graph.

Fatal errors (FileSystemError, UnknownItemError) are raised. Per-file and
per-statement failures (ParseError, ResolutionError) are collected as
diagnostics next to the best-effort graph instead of aborting the build.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .types import ItemHandle, RawImportStatement, ResolvedImport


class ImportGraphError(Exception):
    """Base class for all errors of this package."""


class FileSystemError(ImportGraphError):
    """The package directory, or a file inside it, cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ParseError(ImportGraphError):
    """A source file could not be parsed; its module contributes no imports."""

    def __init__(self, path: Path | str, message: str, line_number: int | None = None) -> None:
        location = f"{path}:{line_number}" if line_number else str(path)
        super().__init__(f"Could not parse {location}: {message}")
        self.path = path
        self.message = message
        self.line_number = line_number


class ResolutionError(ImportGraphError):
    """A single import statement could not be resolved."""

    def __init__(self, statement: RawImportStatement, reason: str) -> None:
        super().__init__(
            f"Could not resolve '{statement}' (line {statement.line_number}): {reason}"
        )
        self.statement = statement
        self.reason = reason

    @property
    def line_number(self) -> int:
        return self.statement.line_number


class UnresolvedRelativeImportError(ResolutionError):
    """
    A relative import climbs above the root package.

    The statement is still recorded: ``placeholders`` holds the external
    references (keys starting with "<unresolved>") kept in its place.
    """

    def __init__(
        self,
        statement: RawImportStatement,
        reason: str,
        placeholders: Iterable[ResolvedImport] = (),
    ) -> None:
        super().__init__(statement, reason)
        self.placeholders = list(placeholders)


class UnknownItemError(ImportGraphError, LookupError):
    """A handle that does not belong to the tree was passed to a query."""

    def __init__(self, handle: ItemHandle) -> None:
        super().__init__(f"Unknown package item {handle!r}")
        self.handle = handle


class NoSuchImportError(ImportGraphError, LookupError):
    """Metadata was requested for an import that does not exist."""


class InvalidPypathError(ImportGraphError, ValueError):
    """A string is not a valid dotted Python path."""


class ConfigError(ImportGraphError, ValueError):
    """The [tool.python-import-graph] configuration is invalid."""
