"""
Path queries over an import graph.

Searches are breadth first, so the returned path has the fewest edges.
Successors are expanded in arena-index order, which makes the result
deterministic when several shortest paths exist.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import UnknownItemError
from .types import ItemHandle
from .utils import is_equal_or_descendant_pypath, split_pypath

if TYPE_CHECKING:
    from .graph import ImportGraph


@dataclass(frozen=True)
class PathQuery:
    """
    A request for the shortest import path between two items.

    Attributes:
        source: Item the path starts from
        target: Item the path ends at
        exclude: Items removed from the graph, with their edges, for this search
        exclude_external: If True, intermediate items that import an external
            reference cannot be part of the path
        as_packages: If True, a package source or target stands for itself,
            its initializer and all its descendants
    """

    source: ItemHandle
    target: ItemHandle
    exclude: frozenset[ItemHandle] = field(default_factory=frozenset)
    exclude_external: bool = False
    as_packages: bool = False

    def __post_init__(self) -> None:
        # Accept any iterable, keep the dataclass hashable.
        object.__setattr__(self, "exclude", frozenset(self.exclude))


def find_path(graph: ImportGraph, query: PathQuery) -> list[ItemHandle] | None:
    """
    Find the shortest import path described by a query.

    Args:
        graph: Graph to search
        query: Endpoints and constraints of the search

    Returns:
        The items along the path, endpoints included, or None if there is no
        path. A query whose source is its target returns ``[source]``.

    Raises:
        UnknownItemError: If an endpoint or an excluded item is not in the graph
    """
    for handle in (query.source, query.target, *query.exclude):
        if handle not in graph:
            raise UnknownItemError(handle)

    if query.source in query.exclude or query.target in query.exclude:
        return None

    sources = item_scope(graph, query.source, query.as_packages) - query.exclude
    targets = item_scope(graph, query.target, query.as_packages) - query.exclude

    overlap = sources & targets
    if overlap:
        return [min(overlap)]

    endpoints = sources | targets

    def blocked(handle: ItemHandle) -> bool:
        if handle in query.exclude:
            return True
        return (
            query.exclude_external
            and handle not in endpoints
            and bool(graph.external_imports(handle))
        )

    return _search(graph, sorted(sources), targets.__contains__, blocked)


def find_external_path(
    graph: ImportGraph,
    source: ItemHandle,
    key: str,
    exclude: Iterable[ItemHandle] = (),
) -> tuple[list[ItemHandle], str] | None:
    """
    Find the shortest path from an item to an import of an external reference.

    An item matches if it imports ``key`` itself or a reference nested below
    it: looking for "django" matches an import of "django.db.models".

    Args:
        graph: Graph to search
        source: Item the path starts from
        key: Dotted external reference
        exclude: Items that cannot be part of the path

    Returns:
        The path, ending at the importing item, and the matched reference (the
        first one in sorted order if the item imports several); or None

    Raises:
        UnknownItemError: If ``source`` or an excluded item is not in the graph
        InvalidPypathError: If ``key`` is not a dotted path
    """
    exclude = frozenset(exclude)
    for handle in (source, *exclude):
        if handle not in graph:
            raise UnknownItemError(handle)
    if source in exclude:
        return None

    split_pypath(key)

    def matched_key(handle: ItemHandle) -> str | None:
        keys = sorted(
            k for k in graph.external_imports(handle) if is_equal_or_descendant_pypath(k, key)
        )
        return keys[0] if keys else None

    if (found := matched_key(source)) is not None:
        return [source], found

    def is_target(handle: ItemHandle) -> bool:
        return handle not in exclude and matched_key(handle) is not None

    path = _search(graph, [source], is_target, exclude.__contains__)
    if path is None:
        return None
    return path, matched_key(path[-1])


def item_scope(graph: ImportGraph, handle: ItemHandle, as_packages: bool) -> set[ItemHandle]:
    """The item itself, plus everything below it when ``as_packages`` is set and it is a package."""
    item = graph.tree.get_item(handle)
    if not as_packages or not item.is_package:
        return {handle}
    return {handle} | {descendant.handle for descendant in graph.tree.descendants(handle)}


def _search(
    graph: ImportGraph,
    sources: list[ItemHandle],
    is_target: Callable[[ItemHandle], bool],
    blocked: Callable[[ItemHandle], bool],
) -> list[ItemHandle] | None:
    parents: dict[ItemHandle, ItemHandle | None] = dict.fromkeys(sources)
    queue = deque(sources)

    while queue:
        current = queue.popleft()
        for nxt in graph.successors(current):
            if nxt in parents:
                continue
            if is_target(nxt):
                path = [nxt, current]
                while (parent := parents[path[-1]]) is not None:
                    path.append(parent)
                return path[::-1]
            if blocked(nxt):
                continue
            parents[nxt] = current
            queue.append(nxt)

    return None
