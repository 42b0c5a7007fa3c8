"""
Graph build orchestration.

This module provides the GraphBuilder class which runs the whole pipeline:
scanning the package directory, extracting the imports of every module in a
thread pool, resolving them against the tree, and loading the results into an
ImportGraph.

Per-file and per-statement failures do not abort a build: they are returned as
diagnostics next to a best-effort graph.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from .analyzer import ImportAnalyzer
from .config import BuildOptions
from .errors import FileSystemError, ImportGraphError, ParseError, ResolutionError
from .graph import ImportGraph
from .resolver import ImportResolver
from .tree import PackageTree
from .types import InternalTarget, PackageItem, RawImportStatement, ResolvedImport

logger = logging.getLogger(__name__)

# Outcome of reading one module: its statements, or the per-file error.
Extracted = list[RawImportStatement] | FileSystemError | ParseError


@dataclass(frozen=True)
class GraphBuildResult:
    """
    Outcome of a graph build.

    Attributes:
        graph: The import graph, complete or best effort
        file_errors: Module files that could not be read after the scan, in tree order
        parse_errors: Files that could not be parsed, in tree order
        resolution_errors: Statements that could not be resolved, in tree order
    """

    graph: ImportGraph
    file_errors: tuple[FileSystemError, ...] = ()
    parse_errors: tuple[ParseError, ...] = ()
    resolution_errors: tuple[ResolutionError, ...] = ()

    @property
    def diagnostics(self) -> tuple[ImportGraphError, ...]:
        """All recorded errors: file and parse errors first, then resolution errors."""
        return self.file_errors + self.parse_errors + self.resolution_errors

    @property
    def is_complete(self) -> bool:
        return not self.diagnostics


class GraphBuilder:
    """
    Builds import graphs for a package tree.

    Attributes:
        options: Build options
        analyzer: Import extractor shared by the worker threads
    """

    def __init__(self, options: BuildOptions | None = None) -> None:
        self.options = options or BuildOptions()
        self.analyzer = ImportAnalyzer()

    def build_tree(self, root_path: Path | str) -> PackageTree:
        return PackageTree.build(root_path, exclude_patterns=self.options.exclude_patterns)

    def build(self, tree: PackageTree) -> GraphBuildResult:
        """
        Build the import graph of a scanned package.

        Args:
            tree: The package tree to analyze

        Returns:
            The graph and the diagnostics collected along the way. A module
            that cannot be read or parsed contributes no imports.
        """
        modules = [item for item in tree.modules() if not item.is_implicit]
        extracted = self._extract_all(tree, modules)

        statements: list[RawImportStatement] = []
        file_errors: list[FileSystemError] = []
        parse_errors: list[ParseError] = []
        for item in modules:
            result = extracted[item.handle.index]
            if isinstance(result, FileSystemError):
                logger.warning("%s", result)
                file_errors.append(result)
            elif isinstance(result, ParseError):
                logger.warning("%s", result)
                parse_errors.append(result)
            else:
                logger.debug("%s: %d import statements", item.pypath, len(result))
                statements.extend(result)

        if not self.options.include_typechecking_imports:
            statements = [s for s in statements if not s.is_typechecking]

        resolver = ImportResolver(tree)
        resolved, resolution_errors = resolver.resolve_all(statements)
        resolved = self._filter(resolved)

        graph = ImportGraph(tree, resolved)
        result = GraphBuildResult(
            graph=graph,
            file_errors=tuple(file_errors),
            parse_errors=tuple(parse_errors),
            resolution_errors=tuple(resolution_errors),
        )
        logger.info(
            "Built import graph of %s: %d items, %d imports, %d diagnostics",
            tree.root.pypath,
            len(graph),
            graph.edge_count,
            len(result.diagnostics),
        )
        return result

    def _extract_all(
        self, tree: PackageTree, modules: list[PackageItem]
    ) -> list[Extracted | None]:
        # Indexed by arena position so the results do not depend on completion order.
        results: list[Extracted | None] = [None] * len(tree)

        with ThreadPoolExecutor(max_workers=self.options.max_workers) as executor:
            futures = {
                item.handle.index: executor.submit(self._extract_one, item) for item in modules
            }
            for index, future in futures.items():
                results[index] = future.result()

        return results

    def _extract_one(self, item: PackageItem) -> Extracted:
        try:
            return self.analyzer.extract_file_imports(item.path, item.handle)
        except (FileSystemError, ParseError) as e:
            return e

    def _filter(self, resolved: list[ResolvedImport]) -> list[ResolvedImport]:
        if self.options.include_external_imports:
            return resolved
        return [r for r in resolved if isinstance(r.target, InternalTarget)]


def build_package_tree(root_path: Path | str, options: BuildOptions | None = None) -> PackageTree:
    """
    Scan a package directory.

    Raises:
        FileSystemError: If the directory or one of its files cannot be read
        InvalidPypathError: If the directory name is not a valid identifier
    """
    return GraphBuilder(options).build_tree(root_path)


def build_import_graph(tree: PackageTree, options: BuildOptions | None = None) -> GraphBuildResult:
    """Extract, resolve and load the imports of every module of ``tree``."""
    return GraphBuilder(options).build(tree)


def build_graph(root_path: Path | str, options: BuildOptions | None = None) -> GraphBuildResult:
    """
    Scan a package directory and build its import graph in one call.

    Args:
        root_path: Directory of the top-level package
        options: Build options (default: BuildOptions())

    Returns:
        The graph and its diagnostics
    """
    builder = GraphBuilder(options)
    return builder.build(builder.build_tree(root_path))
