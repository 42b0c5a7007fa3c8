"""
Type definitions for the package.

This module contains the core data structures used throughout the package
for representing package items, raw import statements and resolved imports.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, order=True)
class ItemHandle:
    """
    Stable reference to an item of a PackageTree.

    Handles are plain values: they can be copied, compared, hashed and used as
    mapping keys. A handle is only meaningful for the tree that issued it.

    Attributes:
        index: Position of the item in the tree's arena
    """

    index: int

    def __repr__(self) -> str:
        return f"ItemHandle({self.index})"


class ItemKind(enum.Enum):
    """Whether an item is a package directory or a module file."""

    PACKAGE = "package"
    MODULE = "module"


class ImportKind(enum.Enum):
    """Whether an import statement names its module absolutely or relative to its package."""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(frozen=True)
class PackageItem:
    """
    A module or a package within the analyzed tree.

    Attributes:
        handle: Handle of this item
        pypath: Dotted import path (e.g., "mypackage.sub.module"), unique in the tree
        kind: Whether the item is a package or a module
        path: Directory of a package, or source file of a module
        parent: Handle of the containing package, None for the root package
        is_init: True for the initializer module of a package
        is_implicit: True for an initializer synthesised for a directory
            that has no __init__.py file
    """

    handle: ItemHandle
    pypath: str
    kind: ItemKind
    path: Path
    parent: ItemHandle | None = None
    is_init: bool = False
    is_implicit: bool = False

    @property
    def is_package(self) -> bool:
        return self.kind is ItemKind.PACKAGE

    @property
    def is_module(self) -> bool:
        return self.kind is ItemKind.MODULE

    @property
    def name(self) -> str:
        """The last segment of the dotted path."""
        return self.pypath.rpartition(".")[2]

    def __str__(self) -> str:
        return f"{self.kind.value.capitalize()}({self.pypath})"


@dataclass(frozen=True)
class ImportedName:
    """A name listed by a ``from ... import`` statement, with its optional alias."""

    name: str
    alias: str | None = None


@dataclass(frozen=True)
class RawImportStatement:
    """
    One syntactic import found in the source of a module.

    ``import a.b, c`` produces one statement per imported module, each with an
    empty ``names`` tuple. ``from ..x import y as z`` produces a single relative
    statement with level 2, module ("x",) and names (ImportedName("y", "z"),).

    Attributes:
        owner: Handle of the module containing the statement
        kind: Absolute or relative import
        level: Number of leading dots (0 for absolute imports)
        module: Dotted module path split into segments, empty for "from . import x"
        names: Imported names, empty when the module itself is imported
        line_number: Line of the statement in the source file
        is_typechecking: True if the statement only runs under typing.TYPE_CHECKING
    """

    owner: ItemHandle
    kind: ImportKind
    level: int
    module: tuple[str, ...]
    names: tuple[ImportedName, ...] = ()
    line_number: int = 0
    is_typechecking: bool = False

    def __str__(self) -> str:
        prefix = "." * self.level + ".".join(self.module)
        if not self.names:
            return f"import {prefix}"
        imported = ", ".join(
            n.name if n.alias is None else f"{n.name} as {n.alias}" for n in self.names
        )
        return f"from {prefix} import {imported}"


@dataclass(frozen=True)
class InternalTarget:
    """An import target inside the analyzed tree."""

    handle: ItemHandle


@dataclass(frozen=True)
class ExternalTarget:
    """An import target outside of the analyzed tree, keyed by its dotted path."""

    key: str


@dataclass(frozen=True)
class ResolvedImport:
    """
    Result of resolving one imported name of a raw statement.

    Attributes:
        source: Handle of the importing module
        target: Internal item or external reference the import points to
        deep: True when a name is imported from inside a module rather than
            the module itself (e.g., ``from pkg.mod import SomeClass``)
        line_number: Line of the originating statement
        is_typechecking: Copied from the originating statement
        imported_name: The imported name, None for plain ``import x`` statements
    """

    source: ItemHandle
    target: InternalTarget | ExternalTarget
    deep: bool = False
    line_number: int = 0
    is_typechecking: bool = False
    imported_name: str | None = None

    @property
    def is_internal(self) -> bool:
        return isinstance(self.target, InternalTarget)


@dataclass(frozen=True)
class ImportMetadata:
    """
    Why an edge exists: one record per resolved import behind the edge.

    The edge from a package to its initializer module has a single record with
    ``implicit`` set and no line number.
    """

    line_number: int = 0
    is_typechecking: bool = False
    imported_name: str | None = None
    deep: bool = False
    implicit: bool = False

    @classmethod
    def from_resolved(cls, resolved: ResolvedImport) -> ImportMetadata:
        return cls(
            line_number=resolved.line_number,
            is_typechecking=resolved.is_typechecking,
            imported_name=resolved.imported_name,
            deep=resolved.deep,
        )
