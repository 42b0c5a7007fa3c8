"""Python import graph - Build and query the import graph of a Python package."""

__all__ = (
    "BuildOptions",
    "ConfigError",
    "ExternalTarget",
    "FileSystemError",
    "GraphBuildResult",
    "GraphBuilder",
    "ImportAnalyzer",
    "ImportGraph",
    "ImportGraphError",
    "ImportKind",
    "ImportMetadata",
    "ImportResolver",
    "ImportedName",
    "InternalTarget",
    "InvalidPypathError",
    "ItemHandle",
    "ItemKind",
    "NoSuchImportError",
    "PackageItem",
    "PackageTree",
    "ParseError",
    "PathQuery",
    "RawImportStatement",
    "ResolutionError",
    "ResolvedImport",
    "UnknownItemError",
    "UnresolvedRelativeImportError",
    "build_graph",
    "build_import_graph",
    "build_package_tree",
    "find_external_path",
    "find_path",
    "find_project_root",
    "load_options",
)

from .analyzer import ImportAnalyzer
from .builder import (
    GraphBuilder,
    GraphBuildResult,
    build_graph,
    build_import_graph,
    build_package_tree,
)
from .config import BuildOptions, load_options
from .errors import (
    ConfigError,
    FileSystemError,
    ImportGraphError,
    InvalidPypathError,
    NoSuchImportError,
    ParseError,
    ResolutionError,
    UnknownItemError,
    UnresolvedRelativeImportError,
)
from .graph import ImportGraph
from .paths import PathQuery, find_external_path, find_path
from .resolver import ImportResolver
from .tree import PackageTree
from .types import (
    ExternalTarget,
    ImportedName,
    ImportKind,
    ImportMetadata,
    InternalTarget,
    ItemHandle,
    ItemKind,
    PackageItem,
    RawImportStatement,
    ResolvedImport,
)
from .utils import find_project_root
