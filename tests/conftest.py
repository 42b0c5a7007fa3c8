"""Pytest configuration and fixtures."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from python_import_graph import GraphBuildResult, build_graph


@pytest.fixture
def make_package(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory creating a throwaway package under tmp_path.

    Keys of ``files`` are paths relative to the package directory; values are
    source code, dedented before writing. A key ending with "/" creates an
    empty directory.
    """

    def _make(files: dict[str, str], name: str = "mypackage") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content))
        return root

    return _make


@pytest.fixture
def chain_package(make_package: Callable[..., Path]) -> Path:
    """Package where root imports a and b, a imports b, b imports c and d, c imports d."""
    return make_package(
        {
            "__init__.py": "from root import a, b\n",
            "a.py": "from root import b\n",
            "b.py": "from root import c, d\n",
            "c.py": "from root import d\n",
            "d.py": "",
        },
        name="root",
    )


@pytest.fixture
def chain_result(chain_package: Path) -> GraphBuildResult:
    return build_graph(chain_package)
