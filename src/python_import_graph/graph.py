"""
Import graph functionality.

This module provides the ImportGraph class, a directed graph over the items
of a PackageTree. It keeps:
- Forward and reverse adjacency sets, built once, keyed by ItemHandle
- The metadata of every resolved import behind each edge
- A side table of external references per item (never expanded)
- The set of items that sit on an import cycle, computed once with Tarjan's
  strongly connected components algorithm

Graphs are read-only once built. Methods that drop imports return a new graph.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator

from .errors import NoSuchImportError, UnknownItemError
from .paths import PathQuery, find_path, item_scope
from .tree import PackageTree
from .types import ImportMetadata, InternalTarget, ItemHandle, ResolvedImport
from .utils import is_equal_or_descendant_pypath

Adjacency = dict[ItemHandle, set[ItemHandle]]


class ImportGraph:
    """
    Directed graph of the imports between the items of a package.

    Every package imports its initializer module: the edge is added on
    construction, with implicit metadata. Edges are unique per
    (source, target) pair; repeated imports only add metadata.

    Attributes:
        tree: The package tree the handles of this graph belong to
    """

    def __init__(self, tree: PackageTree, resolved_imports: Iterable[ResolvedImport] = ()) -> None:
        """
        Build the graph from resolved imports.

        Args:
            tree: Package tree the imports were resolved against
            resolved_imports: Internal and external imports to load

        Raises:
            UnknownItemError: If an import refers to a handle outside the tree
        """
        self.tree = tree
        self._forward: Adjacency = {item.handle: set() for item in tree}
        self._reverse: Adjacency = {item.handle: set() for item in tree}
        self._metadata: dict[tuple[ItemHandle, ItemHandle], list[ImportMetadata]] = {}
        self._external: dict[ItemHandle, set[str]] = {item.handle: set() for item in tree}
        self._external_metadata: dict[tuple[ItemHandle, str], list[ImportMetadata]] = {}

        for package in tree.packages():
            init_module = tree.init_module(package.handle)
            self._add_internal(package.handle, init_module.handle, ImportMetadata(implicit=True))

        for resolved in resolved_imports:
            metadata = ImportMetadata.from_resolved(resolved)
            if isinstance(resolved.target, InternalTarget):
                self._add_internal(resolved.source, resolved.target.handle, metadata)
            else:
                self._add_external(resolved.source, resolved.target.key, metadata)

        self._finalize()

    def _add_internal(
        self, source: ItemHandle, target: ItemHandle, metadata: ImportMetadata
    ) -> None:
        self._check(source)
        self._check(target)
        self._forward[source].add(target)
        self._reverse[target].add(source)
        self._metadata.setdefault((source, target), []).append(metadata)

    def _add_external(self, source: ItemHandle, key: str, metadata: ImportMetadata) -> None:
        self._check(source)
        self._external[source].add(key)
        self._external_metadata.setdefault((source, key), []).append(metadata)

    def _finalize(self) -> None:
        # Successors in arena order, so searches expand them deterministically.
        self._ordered_forward = {h: tuple(sorted(t)) for h, t in self._forward.items()}
        self._cyclic = self._find_cyclic_items()

    def _check(self, handle: ItemHandle) -> None:
        if handle not in self._forward:
            raise UnknownItemError(handle)

    # Direct imports

    def direct_imports(self, item: ItemHandle, as_packages: bool = False) -> frozenset[ItemHandle]:
        """
        Items imported by ``item`` through a single edge.

        With ``as_packages``, a package stands for itself and everything below
        it: the result is what any of those items import, minus the package
        contents.
        """
        self._check(item)
        if not as_packages:
            return frozenset(self._forward[item])
        scope = item_scope(self, item, as_packages)
        return frozenset(set().union(*(self._forward[i] for i in scope)) - scope)

    def direct_imported_by(
        self, item: ItemHandle, as_packages: bool = False
    ) -> frozenset[ItemHandle]:
        """Items that import ``item`` through a single edge. See ``direct_imports``."""
        self._check(item)
        if not as_packages:
            return frozenset(self._reverse[item])
        scope = item_scope(self, item, as_packages)
        return frozenset(set().union(*(self._reverse[i] for i in scope)) - scope)

    def direct_import_exists(
        self, source: ItemHandle, target: ItemHandle, as_packages: bool = False
    ) -> bool:
        self._check(source)
        self._check(target)
        if not as_packages:
            return target in self._forward[source]
        sources = item_scope(self, source, as_packages)
        targets = item_scope(self, target, as_packages) - sources
        return any(self._forward[s] & targets for s in sources)

    def successors(self, item: ItemHandle) -> tuple[ItemHandle, ...]:
        """Direct imports of ``item`` sorted by arena index."""
        self._check(item)
        return self._ordered_forward[item]

    # Transitive imports

    def downstream_items(self, item: ItemHandle, as_packages: bool = False) -> set[ItemHandle]:
        """
        Every item reachable from ``item`` by following imports.

        ``item`` itself is only part of the result when it imports itself,
        directly or through a cycle. With ``as_packages``, the search starts
        from the whole package and its contents are left out of the result.
        """
        self._check(item)
        if not as_packages:
            return self._reach(item, self._forward)
        scope = item_scope(self, item, as_packages)
        return set().union(*(self._reach(i, self._forward) for i in scope)) - scope

    def upstream_items(self, item: ItemHandle, as_packages: bool = False) -> set[ItemHandle]:
        """Every item from which ``item`` is reachable by following imports."""
        self._check(item)
        if not as_packages:
            return self._reach(item, self._reverse)
        scope = item_scope(self, item, as_packages)
        return set().union(*(self._reach(i, self._reverse) for i in scope)) - scope

    @staticmethod
    def _reach(start: ItemHandle, adjacency: Adjacency) -> set[ItemHandle]:
        seen = set(adjacency[start])
        queue = deque(seen)
        while queue:
            current = queue.popleft()
            for nxt in adjacency[current]:
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return seen

    # Cycles

    def is_in_cycle(self, item: ItemHandle) -> bool:
        """True if ``item`` can reach itself; same as ``item in downstream_items(item)``."""
        self._check(item)
        return item in self._cyclic

    def cyclic_items(self) -> frozenset[ItemHandle]:
        return self._cyclic

    def find_shortest_cycle(self, item: ItemHandle) -> list[ItemHandle] | None:
        """
        Return the shortest import cycle through ``item``.

        Returns:
            A path that starts and ends with ``item`` (``[item, item]`` for a
            self import), or None if ``item`` is not on a cycle
        """
        if not self.is_in_cycle(item):
            return None

        parents: dict[ItemHandle, ItemHandle] = {}
        queue = deque([item])
        while queue:
            current = queue.popleft()
            for nxt in self._ordered_forward[current]:
                if nxt == item:
                    chain = [current]
                    while chain[-1] != item:
                        chain.append(parents[chain[-1]])
                    return [*reversed(chain), item]
                if nxt not in parents:
                    parents[nxt] = current
                    queue.append(nxt)
        return None

    def _find_cyclic_items(self) -> frozenset[ItemHandle]:
        # Iterative Tarjan: items in a component of size > 1, or importing themselves.
        index_of: dict[ItemHandle, int] = {}
        lowlink: dict[ItemHandle, int] = {}
        stack: list[ItemHandle] = []
        on_stack: set[ItemHandle] = set()
        cyclic: set[ItemHandle] = set()

        for root in self._ordered_forward:
            if root in index_of:
                continue
            index_of[root] = lowlink[root] = len(index_of)
            stack.append(root)
            on_stack.add(root)
            work = [(root, iter(self._ordered_forward[root]))]

            while work:
                node, successors = work[-1]
                descended = False
                for succ in successors:
                    if succ not in index_of:
                        index_of[succ] = lowlink[succ] = len(index_of)
                        stack.append(succ)
                        on_stack.add(succ)
                        work.append((succ, iter(self._ordered_forward[succ])))
                        descended = True
                        break
                    if succ in on_stack:
                        lowlink[node] = min(lowlink[node], index_of[succ])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])

                if lowlink[node] == index_of[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    if len(component) > 1 or node in self._forward[node]:
                        cyclic.update(component)

        return frozenset(cyclic)

    # External imports

    def external_imports(self, item: ItemHandle) -> frozenset[str]:
        """External references imported directly by ``item``."""
        self._check(item)
        return frozenset(self._external[item])

    def downstream_external_imports(self, item: ItemHandle) -> set[str]:
        """External references imported by ``item`` or by any of its downstream items."""
        keys = set(self.external_imports(item))
        for downstream in self.downstream_items(item):
            keys.update(self._external[downstream])
        return keys

    def items_importing_external(self, key: str) -> set[ItemHandle]:
        """Items that directly import ``key`` or a reference nested below it."""
        return {
            handle
            for handle, keys in self._external.items()
            if any(is_equal_or_descendant_pypath(k, key) for k in keys)
        }

    def external_keys(self) -> set[str]:
        return set().union(*self._external.values())

    # Metadata

    def import_metadata(self, source: ItemHandle, target: ItemHandle) -> tuple[ImportMetadata, ...]:
        """
        Return the records of every import behind an internal edge.

        Raises:
            NoSuchImportError: If ``source`` does not import ``target``
        """
        if not self.direct_import_exists(source, target):
            raise NoSuchImportError(
                f"{self.tree.get_item(source)} does not import {self.tree.get_item(target)}"
            )
        return tuple(self._metadata[(source, target)])

    def external_import_metadata(self, source: ItemHandle, key: str) -> tuple[ImportMetadata, ...]:
        """
        Return the records of every import of an external reference.

        Raises:
            NoSuchImportError: If ``source`` does not import ``key``
        """
        if key not in self.external_imports(source):
            raise NoSuchImportError(f"{self.tree.get_item(source)} does not import {key}")
        return tuple(self._external_metadata[(source, key)])

    # Derived graphs

    def without_imports(
        self,
        internal: Iterable[tuple[ItemHandle, ItemHandle]] = (),
        external: Iterable[tuple[ItemHandle, str]] = (),
    ) -> ImportGraph:
        """
        Return a copy of this graph with some imports removed.

        Useful to check whether cutting a dependency breaks a cycle or a path.

        Raises:
            NoSuchImportError: If one of the imports does not exist
        """
        internal = set(internal)
        external = set(external)
        for source, target in internal:
            if not self.direct_import_exists(source, target):
                raise NoSuchImportError(
                    f"{self.tree.get_item(source)} does not import {self.tree.get_item(target)}"
                )
        for source, key in external:
            if key not in self.external_imports(source):
                raise NoSuchImportError(f"{self.tree.get_item(source)} does not import {key}")

        return self._filtered(
            keep_internal=lambda edge, _: edge not in internal,
            keep_external=lambda edge, _: edge not in external,
        )

    def without_typechecking_imports(self) -> ImportGraph:
        """
        Return a copy of this graph without imports guarded by typing.TYPE_CHECKING.

        An edge is kept if at least one of its imports runs at runtime.
        """
        return self._filtered(
            keep_internal=lambda _, metadata: not metadata.is_typechecking,
            keep_external=lambda _, metadata: not metadata.is_typechecking,
        )

    def _filtered(
        self,
        keep_internal: Callable[[tuple[ItemHandle, ItemHandle], ImportMetadata], bool],
        keep_external: Callable[[tuple[ItemHandle, str], ImportMetadata], bool],
    ) -> ImportGraph:
        graph = ImportGraph.__new__(ImportGraph)
        graph.tree = self.tree
        graph._forward = {handle: set() for handle in self._forward}
        graph._reverse = {handle: set() for handle in self._reverse}
        graph._metadata = {}
        graph._external = {handle: set() for handle in self._external}
        graph._external_metadata = {}

        for (source, target), records in self._metadata.items():
            for metadata in records:
                if metadata.implicit or keep_internal((source, target), metadata):
                    graph._add_internal(source, target, metadata)
        for (source, key), records in self._external_metadata.items():
            for metadata in records:
                if keep_external((source, key), metadata):
                    graph._add_external(source, key, metadata)

        graph._finalize()
        return graph

    # Paths

    def find_path(self, query: PathQuery) -> list[ItemHandle] | None:
        """Shortest import path for a query; see paths.find_path."""
        return find_path(self, query)

    def path_exists(self, query: PathQuery) -> bool:
        return find_path(self, query) is not None

    # Container protocol

    def items(self) -> Iterator[ItemHandle]:
        return iter(self._forward)

    def edges(self) -> Iterator[tuple[ItemHandle, ItemHandle]]:
        """All internal edges, sorted by source then target."""
        for source in sorted(self._ordered_forward):
            for target in self._ordered_forward[source]:
                yield source, target

    @property
    def edge_count(self) -> int:
        return len(self._metadata)

    def __len__(self) -> int:
        return len(self._forward)

    def __contains__(self, handle: object) -> bool:
        return handle in self._forward

    def __repr__(self) -> str:
        return f"ImportGraph({self.tree.root.pypath!r}, items={len(self)}, edges={self.edge_count})"
