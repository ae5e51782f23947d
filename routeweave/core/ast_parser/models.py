"""Syntax engine data models.

Defines the parsed-file representation shared by the classifier and the
rewrite passes. A ``SyntaxTree`` is never mutated in place: applying edits
produces a new, re-parsed tree so every pass sees a consistent shape.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

import tree_sitter

from ..errors import RewriteError


class Dialect(str, Enum):
    """Grammar used to parse a script file."""

    JAVASCRIPT = "javascript"  # plain script, JSX included
    TYPESCRIPT = "typescript"  # typed script without markup
    TSX = "tsx"  # typed script with markup


@dataclass(frozen=True)
class Edit:
    """Replace ``source[start_byte:end_byte]`` with ``replacement``.

    Insertions use ``start_byte == end_byte``.
    """

    start_byte: int
    end_byte: int
    replacement: str

    @classmethod
    def insert(cls, position: int, text: str) -> "Edit":
        return cls(position, position, text)

    @classmethod
    def replace(cls, node: tree_sitter.Node, text: str) -> "Edit":
        return cls(node.start_byte, node.end_byte, text)


@dataclass(frozen=True)
class ParseFailure:
    """A file that could not be parsed. Callers treat the file as opaque."""

    file_path: str
    dialect: Optional[Dialect]
    message: str
    line: int = 0
    column: int = 0

    def describe(self) -> str:
        if self.line:
            return f"{self.message} (line {self.line}, column {self.column})"
        return self.message


@dataclass
class SyntaxTree:
    """One file's parsed form: source bytes plus the tree-sitter tree."""

    file_path: str
    dialect: Dialect
    source: bytes
    tree: tree_sitter.Tree
    revision: int = 0
    edits_applied: List[Edit] = field(default_factory=list)

    @property
    def root(self) -> tree_sitter.Node:
        return self.tree.root_node

    def text(self, node: Optional[tree_sitter.Node]) -> str:
        """Source text covered by ``node`` (empty string for ``None``)."""
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def render(self) -> str:
        return self.source.decode("utf-8", errors="replace")

    def apply(self, edits: Iterable[Edit]) -> "SyntaxTree":
        """Apply a batch of non-overlapping edits and re-parse.

        Returns ``self`` when the batch is empty.

        Raises:
            ValueError: Two edits overlap.
            RewriteError: The edited source no longer parses.
        """
        ordered = sorted(edits, key=lambda e: (e.start_byte, e.end_byte))
        if not ordered:
            return self

        chunks: List[bytes] = []
        cursor = 0
        for edit in ordered:
            if edit.start_byte < cursor:
                raise ValueError(
                    f"Overlapping edits in {self.file_path} at byte {edit.start_byte}"
                )
            chunks.append(self.source[cursor:edit.start_byte])
            chunks.append(edit.replacement.encode("utf-8"))
            cursor = edit.end_byte
        chunks.append(self.source[cursor:])
        new_source = b"".join(chunks)

        from .utils import get_parser

        reparsed = get_parser(self.dialect).parse_bytes(new_source, self.file_path)
        if isinstance(reparsed, ParseFailure):
            raise RewriteError(
                f"Rewrite produced unparseable output: {reparsed.describe()}",
                file_path=self.file_path,
            )
        reparsed.revision = self.revision + 1
        reparsed.edits_applied = self.edits_applied + ordered
        return reparsed
