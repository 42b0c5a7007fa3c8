"""
Package tree construction and lookup.

This module provides the PackageTree class, an arena of the packages and
modules found under a root package directory. Each item is addressed by an
ItemHandle; handles are assigned in a deterministic order (a package, then its
initializer, then its other entries sorted by name, recursing depth-first) so
two scans of the same layout produce the same handles.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from .config import DEFAULT_EXCLUDE_PATTERNS
from .errors import FileSystemError, InvalidPypathError, UnknownItemError
from .types import ItemHandle, ItemKind, PackageItem
from .utils import is_python_package_directory, matches_any_pattern, pypath_from_path

logger = logging.getLogger(__name__)

INIT_FILE_NAME = "__init__.py"


class PackageTree:
    """
    Arena of the items of one Python package.

    The tree owns every PackageItem. It is built once by PackageTree.build()
    and is read-only afterwards, so it can be shared between threads.

    Attributes:
        root_path: Absolute path of the root package directory
    """

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path
        self._items: list[PackageItem] = []
        self._by_pypath: dict[str, ItemHandle] = {}
        self._by_path: dict[Path, ItemHandle] = {}
        self._children: dict[ItemHandle, dict[str, ItemHandle]] = {}
        self._init_modules: dict[ItemHandle, ItemHandle] = {}

    @classmethod
    def build(
        cls,
        root_path: Path | str,
        exclude_patterns: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
    ) -> PackageTree:
        """
        Scan a package directory and build its tree.

        Args:
            root_path: Directory of the top-level package
            exclude_patterns: Names or globs of entries to skip

        Returns:
            The populated tree

        Raises:
            FileSystemError: If the root is missing or not a directory, or a
                directory or module file cannot be read
            InvalidPypathError: If the root directory name is not a valid
                Python identifier
        """
        root_path = Path(root_path)
        if not root_path.exists():
            raise FileSystemError(root_path, "package directory not found")
        if not root_path.is_dir():
            raise FileSystemError(root_path, "not a directory")

        root_path = root_path.resolve()
        if not root_path.name.isidentifier():
            raise InvalidPypathError(
                f"Package directory name {root_path.name!r} is not a valid Python identifier"
            )

        tree = cls(root_path)
        tree._scan_package(root_path, None, tuple(exclude_patterns))
        logger.debug("Scanned %s: %d items", root_path, len(tree))
        return tree

    def _scan_package(
        self, directory: Path, parent: ItemHandle | None, patterns: tuple[str, ...]
    ) -> None:
        handle = self._add_item(directory, ItemKind.PACKAGE, parent)

        init_path = directory / INIT_FILE_NAME
        implicit = not init_path.is_file()
        if not implicit:
            self._check_readable(init_path)
        self._add_item(init_path, ItemKind.MODULE, handle, is_init=True, is_implicit=implicit)

        for entry in self._list_directory(directory):
            if entry.name == INIT_FILE_NAME or self._is_skipped(entry.name, patterns):
                continue

            if entry.is_dir():
                if not entry.name.isidentifier():
                    logger.debug("Skipping directory with non-importable name: %s", entry)
                elif self._has_python_source(entry, patterns):
                    self._scan_package(entry, handle, patterns)
            elif entry.is_file() and entry.suffix == ".py":
                if not entry.stem.isidentifier():
                    logger.debug("Skipping module with non-importable name: %s", entry)
                    continue
                self._check_readable(entry)
                self._add_item(entry, ItemKind.MODULE, handle)

    def _add_item(
        self,
        path: Path,
        kind: ItemKind,
        parent: ItemHandle | None,
        is_init: bool = False,
        is_implicit: bool = False,
    ) -> ItemHandle:
        pypath = pypath_from_path(path, self.root_path)
        if pypath in self._by_pypath:
            # A package directory shadows a module of the same name, as it does at runtime.
            logger.warning("Skipping %s: %s is already defined", path, pypath)
            return self._by_pypath[pypath]

        handle = ItemHandle(len(self._items))
        item = PackageItem(
            handle=handle,
            pypath=pypath,
            kind=kind,
            path=path,
            parent=parent,
            is_init=is_init,
            is_implicit=is_implicit,
        )
        self._items.append(item)
        self._by_pypath[pypath] = handle
        if not is_implicit:
            self._by_path[path] = handle

        if kind is ItemKind.PACKAGE:
            self._children[handle] = {}
        if parent is not None:
            self._children[parent][item.name] = handle
            if is_init:
                self._init_modules[parent] = handle
        return handle

    def _list_directory(self, directory: Path) -> list[Path]:
        try:
            return sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FileSystemError(directory, f"cannot list directory: {e}") from e

    def _has_python_source(self, directory: Path, patterns: tuple[str, ...]) -> bool:
        if is_python_package_directory(directory):
            return True
        return any(
            child.is_dir()
            and not self._is_skipped(child.name, patterns)
            and self._has_python_source(child, patterns)
            for child in self._list_directory(directory)
        )

    @staticmethod
    def _is_skipped(name: str, patterns: tuple[str, ...]) -> bool:
        return name.startswith(".") or matches_any_pattern(name, patterns)

    @staticmethod
    def _check_readable(path: Path) -> None:
        if not os.access(path, os.R_OK):
            raise FileSystemError(path, "file is not readable")

    # Lookups

    @property
    def root(self) -> PackageItem:
        return self._items[0]

    def get_item(self, handle: ItemHandle) -> PackageItem:
        """
        Return the item for a handle.

        Raises:
            UnknownItemError: If the handle was not issued by this tree
        """
        if not isinstance(handle, ItemHandle) or not 0 <= handle.index < len(self._items):
            raise UnknownItemError(handle)
        return self._items[handle.index]

    def get_item_by_pypath(self, pypath: str) -> PackageItem | None:
        handle = self._by_pypath.get(pypath)
        return None if handle is None else self._items[handle.index]

    def get_item_by_path(self, path: Path | str) -> PackageItem | None:
        handle = self._by_path.get(Path(path).resolve())
        return None if handle is None else self._items[handle.index]

    def handle_for(self, pypath: str) -> ItemHandle:
        """
        Return the handle of the item with the given dotted path.

        Raises:
            KeyError: If no item has this path
        """
        return self._by_pypath[pypath]

    def children(self, handle: ItemHandle) -> list[PackageItem]:
        """Direct children of a package, in arena order. Modules have none."""
        self.get_item(handle)
        return [self._items[h.index] for h in sorted(self._children.get(handle, {}).values())]

    def child_named(self, handle: ItemHandle, name: str) -> PackageItem | None:
        child = self._children.get(handle, {}).get(name)
        return None if child is None else self._items[child.index]

    def descendants(self, handle: ItemHandle) -> list[PackageItem]:
        """All items nested below a package at any depth, in arena order."""
        self.get_item(handle)
        found: list[ItemHandle] = []
        stack = [handle]
        while stack:
            for child in self._children.get(stack.pop(), {}).values():
                found.append(child)
                stack.append(child)
        return [self._items[h.index] for h in sorted(found)]

    def init_module(self, handle: ItemHandle) -> PackageItem:
        """
        Return the initializer module of a package.

        Raises:
            ValueError: If the item is not a package
        """
        item = self.get_item(handle)
        if not item.is_package:
            raise ValueError(f"{item} is not a package")
        return self._items[self._init_modules[handle].index]

    def parent_package(self, handle: ItemHandle) -> PackageItem | None:
        item = self.get_item(handle)
        return None if item.parent is None else self._items[item.parent.index]

    def packages(self) -> Iterator[PackageItem]:
        return (item for item in self._items if item.is_package)

    def modules(self) -> Iterator[PackageItem]:
        return (item for item in self._items if item.is_module)

    def __iter__(self) -> Iterator[PackageItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, ItemHandle) and 0 <= handle.index < len(self._items)

    def __repr__(self) -> str:
        return f"PackageTree({self.root.pypath!r}, items={len(self)})"
