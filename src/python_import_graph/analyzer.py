"""
Import extraction functionality.

This module provides the ImportAnalyzer class which is responsible for:
- Parsing the source of a module using the standard library AST
- Extracting every ``import`` and ``from ... import`` statement, in source order
- Flagging statements that only run under ``typing.TYPE_CHECKING``

Extraction is purely syntactic: relative imports are kept relative and nothing
is looked up in the package tree, so modules can be analyzed independently and
in parallel.
"""

from __future__ import annotations

import ast
from pathlib import Path

from .errors import FileSystemError, ParseError
from .types import ImportedName, ImportKind, ItemHandle, RawImportStatement

TYPE_CHECKING_NAME = "TYPE_CHECKING"


class ImportAnalyzer:
    """
    Extracts raw import statements from Python source code.

    The analyzer holds no state, so a single instance can be shared by all
    worker threads.
    """

    def extract_imports(
        self,
        content: bytes | str,
        owner: ItemHandle,
        filename: str = "<unknown>",
    ) -> list[RawImportStatement]:
        """
        Extract all import statements from the source of one module.

        Imports nested in functions, classes, conditionals and try blocks are
        included. ``import a, b`` yields one statement per imported module.

        Args:
            content: Source code; bytes are decoded following PEP 263
            owner: Handle of the module the source belongs to
            filename: File name used in error messages

        Returns:
            Statements in source order

        Raises:
            ParseError: If the source is not valid Python or cannot be decoded
        """
        try:
            tree = ast.parse(content, filename=filename)
        except SyntaxError as e:
            raise ParseError(filename, e.msg, e.lineno) from e
        except ValueError as e:
            # Null bytes and undecodable source
            raise ParseError(filename, str(e)) from e
        except (RecursionError, MemoryError) as e:
            raise ParseError(filename, f"source is too deeply nested: {e!r}") from e

        return self._collect(tree.body, owner)

    def extract_file_imports(self, file_path: Path, owner: ItemHandle) -> list[RawImportStatement]:
        """
        Read a module file and extract its import statements.

        Raises:
            FileSystemError: If the file cannot be read
            ParseError: If the file is not valid Python
        """
        try:
            content = file_path.read_bytes()
        except OSError as e:
            raise FileSystemError(file_path, f"cannot read file: {e}") from e
        return self.extract_imports(content, owner, filename=str(file_path))

    def _collect(self, body: list[ast.stmt], owner: ItemHandle) -> list[RawImportStatement]:
        statements: list[RawImportStatement] = []
        # Explicit stack of (node, is_typechecking); children pushed in reverse keep source order.
        stack: list[tuple[ast.AST, bool]] = [(node, False) for node in reversed(body)]

        while stack:
            node, is_typechecking = stack.pop()
            if isinstance(node, ast.Import):
                for alias in node.names:
                    statements.append(
                        RawImportStatement(
                            owner=owner,
                            kind=ImportKind.ABSOLUTE,
                            level=0,
                            module=tuple(alias.name.split(".")),
                            line_number=node.lineno,
                            is_typechecking=is_typechecking,
                        )
                    )
            elif isinstance(node, ast.ImportFrom):
                level = node.level or 0
                statements.append(
                    RawImportStatement(
                        owner=owner,
                        kind=ImportKind.RELATIVE if level else ImportKind.ABSOLUTE,
                        level=level,
                        module=tuple(node.module.split(".")) if node.module else (),
                        names=tuple(ImportedName(a.name, a.asname) for a in node.names),
                        line_number=node.lineno,
                        is_typechecking=is_typechecking,
                    )
                )
            elif isinstance(node, ast.If) and self._is_typechecking_test(node.test):
                stack.extend((child, is_typechecking) for child in reversed(node.orelse))
                stack.extend((child, True) for child in reversed(node.body))
            else:
                children = list(ast.iter_child_nodes(node))
                stack.extend((child, is_typechecking) for child in reversed(children))

        return statements

    @staticmethod
    def _is_typechecking_test(test: ast.expr) -> bool:
        if isinstance(test, ast.Name):
            return test.id == TYPE_CHECKING_NAME
        if isinstance(test, ast.Attribute):
            return test.attr == TYPE_CHECKING_NAME
        return False
