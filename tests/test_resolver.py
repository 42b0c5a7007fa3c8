"""Tests for import resolution."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from python_import_graph import (
    ExternalTarget,
    ImportedName,
    ImportKind,
    ImportResolver,
    InternalTarget,
    ItemHandle,
    PackageTree,
    RawImportStatement,
    ResolutionError,
    UnresolvedRelativeImportError,
    build_package_tree,
)


@pytest.fixture
def tree(make_package: Callable[..., Path]) -> PackageTree:
    return build_package_tree(
        make_package(
            {
                "__init__.py": "",
                "sibling.py": "",
                "sub/__init__.py": "",
                "sub/mod.py": "",
                "sub/other.py": "",
            },
            name="pkg",
        )
    )


@pytest.fixture
def resolver(tree: PackageTree) -> ImportResolver:
    return ImportResolver(tree)


def absolute(tree: PackageTree, owner: str, module: str, *names: str) -> RawImportStatement:
    return RawImportStatement(
        owner=tree.handle_for(owner),
        kind=ImportKind.ABSOLUTE,
        level=0,
        module=tuple(module.split(".")),
        names=tuple(ImportedName(n) for n in names),
        line_number=7,
    )


def relative(
    tree: PackageTree, owner: str, level: int, module: str, *names: str
) -> RawImportStatement:
    return RawImportStatement(
        owner=tree.handle_for(owner),
        kind=ImportKind.RELATIVE,
        level=level,
        module=tuple(module.split(".")) if module else (),
        names=tuple(ImportedName(n) for n in names),
        line_number=3,
    )


def targets(tree: PackageTree, resolved) -> list[str]:
    """Internal targets as pypaths, external ones as their key."""
    return [
        tree.get_item(r.target.handle).pypath if r.is_internal else r.target.key
        for r in resolved
    ]


class TestAbsoluteImports:
    """Tests for absolute import resolution."""

    def test_internal_module(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sub.mod", "pkg.sibling"))

        assert targets(tree, resolved) == ["pkg.sibling"]
        assert resolved[0].source == tree.handle_for("pkg.sub.mod")
        assert resolved[0].deep is False
        assert resolved[0].line_number == 7
        assert resolved[0].imported_name is None

    def test_internal_package(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "pkg.sub"))

        assert resolved[0].target == InternalTarget(tree.handle_for("pkg.sub"))

    def test_external_module(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "os"))

        assert resolved[0].target == ExternalTarget("os")
        assert not resolved[0].is_internal

    def test_external_keeps_full_path(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "django.db.models"))

        assert resolved[0].target == ExternalTarget("django.db.models")

    def test_partial_match_inside_tree_is_external(
        self, tree: PackageTree, resolver: ImportResolver
    ) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "pkg.missing"))

        assert resolved[0].target == ExternalTarget("pkg.missing")


class TestFromImports:
    """Tests for ``from X import Y`` resolution."""

    def test_child_module_of_package(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "pkg.sub", "mod", "other"))

        assert targets(tree, resolved) == ["pkg.sub.mod", "pkg.sub.other"]
        assert [r.deep for r in resolved] == [False, False]
        assert [r.imported_name for r in resolved] == ["mod", "other"]

    def test_name_defined_in_module(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "pkg.sub.mod", "SomeClass"))

        assert targets(tree, resolved) == ["pkg.sub.mod"]
        assert resolved[0].deep is True

    def test_name_defined_in_package_initializer(
        self, tree: PackageTree, resolver: ImportResolver
    ) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "pkg.sub", "helper"))

        assert targets(tree, resolved) == ["pkg.sub"]
        assert resolved[0].deep is True

    def test_star(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "pkg.sub", "*"))

        assert targets(tree, resolved) == ["pkg.sub"]
        assert resolved[0].deep is True

    def test_external_name(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "collections", "OrderedDict"))

        assert resolved[0].target == ExternalTarget("collections.OrderedDict")

    def test_external_star(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(absolute(tree, "pkg.sibling", "os.path", "*"))

        assert resolved[0].target == ExternalTarget("os.path")


class TestRelativeImports:
    """Tests for relative import resolution."""

    def test_from_dot_import_sibling(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(relative(tree, "pkg.sub.mod", 1, "", "other"))

        assert targets(tree, resolved) == ["pkg.sub.other"]

    def test_two_levels_up(self, tree: PackageTree, resolver: ImportResolver) -> None:
        """``from .. import sibling`` in pkg.sub.mod is pkg.sibling, not pkg.sub.sibling."""
        resolved = resolver.resolve(relative(tree, "pkg.sub.mod", 2, "", "sibling"))

        assert targets(tree, resolved) == ["pkg.sibling"]

    def test_relative_module_path(self, tree: PackageTree, resolver: ImportResolver) -> None:
        resolved = resolver.resolve(relative(tree, "pkg.sibling", 1, "sub.mod", "name"))

        assert targets(tree, resolved) == ["pkg.sub.mod"]
        assert resolved[0].deep is True

    def test_initializer_resolves_from_its_own_package(
        self, tree: PackageTree, resolver: ImportResolver
    ) -> None:
        resolved = resolver.resolve(relative(tree, "pkg.sub.__init__", 1, "", "mod"))

        assert targets(tree, resolved) == ["pkg.sub.mod"]

    def test_above_root(self, tree: PackageTree, resolver: ImportResolver) -> None:
        statement = relative(tree, "pkg.sibling", 2, "", "outside")

        with pytest.raises(UnresolvedRelativeImportError) as exc_info:
            resolver.resolve(statement)

        error = exc_info.value
        assert error.statement == statement
        assert error.line_number == 3
        assert [p.target for p in error.placeholders] == [ExternalTarget("<unresolved>..outside")]

    def test_above_root_with_module(self, tree: PackageTree, resolver: ImportResolver) -> None:
        statement = relative(tree, "pkg.sub.mod", 3, "other.place", "name")

        with pytest.raises(UnresolvedRelativeImportError) as exc_info:
            resolver.resolve(statement)

        assert [p.target.key for p in exc_info.value.placeholders] == [
            "<unresolved>...other.place.name"
        ]


class TestValidation:
    """Tests for malformed statements."""

    def test_absolute_with_level(self, tree: PackageTree, resolver: ImportResolver) -> None:
        statement = RawImportStatement(
            owner=tree.root.handle, kind=ImportKind.ABSOLUTE, level=1, module=("os",)
        )

        with pytest.raises(ResolutionError):
            resolver.resolve(statement)

    def test_relative_without_level(self, tree: PackageTree, resolver: ImportResolver) -> None:
        statement = RawImportStatement(
            owner=tree.root.handle, kind=ImportKind.RELATIVE, level=0, module=("x",)
        )

        with pytest.raises(ResolutionError):
            resolver.resolve(statement)

    def test_empty_absolute_module(self, tree: PackageTree, resolver: ImportResolver) -> None:
        statement = RawImportStatement(
            owner=tree.root.handle, kind=ImportKind.ABSOLUTE, level=0, module=()
        )

        with pytest.raises(ResolutionError):
            resolver.resolve(statement)

    def test_invalid_segment(self, tree: PackageTree, resolver: ImportResolver) -> None:
        statement = RawImportStatement(
            owner=tree.root.handle, kind=ImportKind.ABSOLUTE, level=0, module=("my-lib",)
        )

        with pytest.raises(ResolutionError) as exc_info:
            resolver.resolve(statement)
        assert "my-lib" in str(exc_info.value)

    def test_unknown_owner(self, resolver: ImportResolver) -> None:
        statement = RawImportStatement(
            owner=ItemHandle(999), kind=ImportKind.ABSOLUTE, level=0, module=("os",)
        )

        with pytest.raises(ResolutionError):
            resolver.resolve(statement)


class TestResolveAll:
    """Tests for ImportResolver.resolve_all."""

    def test_collects_errors_and_keeps_going(
        self, tree: PackageTree, resolver: ImportResolver
    ) -> None:
        statements = [
            absolute(tree, "pkg.sibling", "os"),
            RawImportStatement(
                owner=tree.root.handle, kind=ImportKind.ABSOLUTE, level=0, module=("1bad",)
            ),
            relative(tree, "pkg.sibling", 5, "", "far"),
            absolute(tree, "pkg.sibling", "pkg.sub"),
        ]

        resolved, errors = resolver.resolve_all(statements)

        assert targets(tree, resolved) == ["os", "<unresolved>.....far", "pkg.sub"]
        assert len(errors) == 2
        assert isinstance(errors[1], UnresolvedRelativeImportError)

    def test_match(self, tree: PackageTree, resolver: ImportResolver) -> None:
        item, matched = resolver.match(("pkg", "sub", "missing"))

        assert item.pypath == "pkg.sub"
        assert matched == 2
        assert resolver.match(("os", "path")) == (None, 0)
