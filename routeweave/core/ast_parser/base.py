"""Base interface for dialect-specific tree-sitter parsers.

Defines the Strategy pattern base class that every dialect parser implements.
Shared parsing logic lives here; subclasses only name their grammar.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import tree_sitter

from .models import Dialect, ParseFailure, SyntaxTree

logger = logging.getLogger(__name__)


class BaseDialectParser(ABC):
    """Abstract base for dialect parsers.

    Subclasses implement:
    - get_dialect(): returns the Dialect handled
    - get_tree_sitter_language(): returns tree-sitter Language object
    """

    @abstractmethod
    def get_dialect(self) -> Dialect:
        """Return the dialect identifier (e.g., Dialect.TSX)."""
        ...

    @abstractmethod
    def get_tree_sitter_language(self) -> tree_sitter.Language:
        """Return the tree-sitter Language object for this dialect."""
        ...

    def parse_source(self, source_text: str, file_path: str) -> Union[SyntaxTree, ParseFailure]:
        """Parse source code string into a SyntaxTree.

        Args:
            source_text: Source code as string
            file_path: Relative file path (for metadata and messages)

        Returns:
            SyntaxTree, or ParseFailure when the grammar reports errors
        """
        return self.parse_bytes(source_text.encode("utf-8"), file_path)

    def parse_bytes(self, source: bytes, file_path: str) -> Union[SyntaxTree, ParseFailure]:
        """Parse raw UTF-8 bytes. Pure: no I/O, no shared state."""
        parser = tree_sitter.Parser(self.get_tree_sitter_language())
        tree = parser.parse(source)

        root = tree.root_node
        if root.has_error:
            bad = self._first_error_node(root)
            line = bad.start_point.row + 1 if bad is not None else 0
            column = bad.start_point.column + 1 if bad is not None else 0
            if bad is not None and bad.is_missing:
                message = f"Missing '{bad.type}'"
            else:
                message = "Syntax error"
            logger.debug(f"Parse failure in {file_path}: {message} at {line}:{column}")
            return ParseFailure(
                file_path=file_path,
                dialect=self.get_dialect(),
                message=message,
                line=line,
                column=column,
            )

        return SyntaxTree(
            file_path=file_path,
            dialect=self.get_dialect(),
            source=source,
            tree=tree,
        )

    @staticmethod
    def _first_error_node(root: tree_sitter.Node) -> Optional[tree_sitter.Node]:
        """Locate the first ERROR or MISSING node in document order."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node
            if node.has_error:
                stack.extend(reversed(node.children))
        return None
