"""
Import resolution functionality.

This module provides the ImportResolver class which turns raw import
statements into concrete targets:
- Relative imports are anchored on the package that contains the importing module
- Dotted paths are matched against the package tree, segment by segment
- ``from X import Y`` targets the child item Y when X is a package that has one,
  and X itself (a "deep" import of a name defined inside X) otherwise
- Anything that cannot be matched in the tree is an external reference, keyed
  by its full dotted path
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import ResolutionError, UnknownItemError, UnresolvedRelativeImportError
from .tree import PackageTree
from .types import (
    ExternalTarget,
    ImportKind,
    InternalTarget,
    PackageItem,
    RawImportStatement,
    ResolvedImport,
)

logger = logging.getLogger(__name__)

# Prefix of the external key recorded for relative imports that climb above the root.
UNRESOLVED_PREFIX = "<unresolved>"

STAR = "*"


class ImportResolver:
    """
    Resolves raw import statements against a package tree.

    Attributes:
        tree: The package tree imports are resolved against
    """

    def __init__(self, tree: PackageTree) -> None:
        self.tree = tree

    def resolve(self, statement: RawImportStatement) -> list[ResolvedImport]:
        """
        Resolve one statement.

        A statement without imported names resolves to exactly one import of
        the module path itself; otherwise there is one import per name.

        Args:
            statement: The raw statement to resolve

        Returns:
            The resolved imports, internal and external

        Raises:
            UnresolvedRelativeImportError: If a relative import climbs above the
                root package; its ``placeholders`` hold the external references
                recorded in place of the real targets
            ResolutionError: If the statement is malformed
        """
        owner = self._validate(statement)

        if statement.kind is ImportKind.RELATIVE:
            base = self._relative_base(owner, statement.level)
            if base is None:
                raise UnresolvedRelativeImportError(
                    statement,
                    f"relative import of level {statement.level} goes beyond "
                    f"the root package {self.tree.root.pypath}",
                    placeholders=self._placeholders(statement),
                )
            segments = tuple(base.pypath.split(".")) + statement.module
        else:
            segments = statement.module

        if not statement.names:
            return [self._resolve_module(statement, segments)]
        return [self._resolve_name(statement, segments, n.name) for n in statement.names]

    def resolve_all(
        self, statements: Iterable[RawImportStatement]
    ) -> tuple[list[ResolvedImport], list[ResolutionError]]:
        """
        Resolve many statements, collecting failures instead of raising.

        Returns:
            The resolved imports and the errors, both in input order
        """
        resolved: list[ResolvedImport] = []
        errors: list[ResolutionError] = []

        for statement in statements:
            try:
                resolved.extend(self.resolve(statement))
            except UnresolvedRelativeImportError as e:
                logger.warning("%s", e)
                resolved.extend(e.placeholders)
                errors.append(e)
            except ResolutionError as e:
                logger.warning("%s", e)
                errors.append(e)

        return resolved, errors

    def match(self, segments: tuple[str, ...]) -> tuple[PackageItem | None, int]:
        """
        Match dotted path segments against the tree, starting at the root.

        Returns:
            The deepest matched item (None if the first segment is not the
            root package) and the number of segments it covers
        """
        root = self.tree.root
        if not segments or segments[0] != root.name:
            return None, 0

        item = root
        matched = 1
        for segment in segments[1:]:
            child = self.tree.child_named(item.handle, segment)
            if child is None:
                break
            item = child
            matched += 1
        return item, matched

    def _resolve_module(
        self, statement: RawImportStatement, segments: tuple[str, ...]
    ) -> ResolvedImport:
        item, matched = self.match(segments)
        if item is not None and matched == len(segments):
            target: InternalTarget | ExternalTarget = InternalTarget(item.handle)
        else:
            target = ExternalTarget(".".join(segments))
        return self._make(statement, target, deep=False, name=None)

    def _resolve_name(
        self, statement: RawImportStatement, segments: tuple[str, ...], name: str
    ) -> ResolvedImport:
        item, matched = self.match(segments)

        if item is None or matched < len(segments):
            key = ".".join(segments) if name == STAR else ".".join(segments + (name,))
            return self._make(statement, ExternalTarget(key), deep=True, name=name)

        if name != STAR and item.is_package:
            child = self.tree.child_named(item.handle, name)
            if child is not None:
                return self._make(statement, InternalTarget(child.handle), deep=False, name=name)

        return self._make(statement, InternalTarget(item.handle), deep=True, name=name)

    def _relative_base(self, owner: PackageItem, level: int) -> PackageItem | None:
        package = self.tree.parent_package(owner.handle) if owner.is_module else owner
        for _ in range(level - 1):
            if package is None:
                break
            package = self.tree.parent_package(package.handle)
        return package

    def _validate(self, statement: RawImportStatement) -> PackageItem:
        try:
            owner = self.tree.get_item(statement.owner)
        except UnknownItemError as e:
            raise ResolutionError(statement, "statement owner is not part of the tree") from e

        if statement.kind is ImportKind.ABSOLUTE:
            if statement.level != 0:
                raise ResolutionError(statement, "absolute import with a relative level")
            if not statement.module:
                raise ResolutionError(statement, "absolute import without a module path")
        elif statement.level < 1:
            raise ResolutionError(statement, "relative import without a relative level")

        for segment in statement.module:
            if not segment.isidentifier():
                raise ResolutionError(statement, f"invalid module path segment {segment!r}")
        for imported in statement.names:
            if imported.name != STAR and not imported.name.isidentifier():
                raise ResolutionError(statement, f"invalid imported name {imported.name!r}")

        return owner

    def _placeholders(self, statement: RawImportStatement) -> list[ResolvedImport]:
        base = "." * statement.level + ".".join(statement.module)
        if not statement.names:
            target = ExternalTarget(UNRESOLVED_PREFIX + base)
            return [self._make(statement, target, deep=False, name=None)]

        placeholders = []
        for imported in statement.names:
            if imported.name == STAR:
                key = base
            elif statement.module:
                key = f"{base}.{imported.name}"
            else:
                key = base + imported.name
            target = ExternalTarget(UNRESOLVED_PREFIX + key)
            placeholders.append(self._make(statement, target, deep=True, name=imported.name))
        return placeholders

    @staticmethod
    def _make(
        statement: RawImportStatement,
        target: InternalTarget | ExternalTarget,
        deep: bool,
        name: str | None,
    ) -> ResolvedImport:
        return ResolvedImport(
            source=statement.owner,
            target=target,
            deep=deep,
            line_number=statement.line_number,
            is_typechecking=statement.is_typechecking,
            imported_name=name,
        )
