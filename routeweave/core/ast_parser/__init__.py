"""Routeweave syntax engine: tree-sitter based parsing and rendering.

Public API:
    parse_source(text, file_path, dialect) → SyntaxTree | ParseFailure
    render(tree) → str
    detect_dialect(file_path) → Dialect | None
"""

from typing import Optional, Union

from .models import Dialect, Edit, ParseFailure, SyntaxTree
from .utils import detect_dialect, get_parser, is_script_file, should_skip_directory

__all__ = [
    "parse_source",
    "render",
    "detect_dialect",
    "is_script_file",
    "should_skip_directory",
    "Dialect",
    "Edit",
    "ParseFailure",
    "SyntaxTree",
]


def parse_source(
    source_text: str,
    file_path: str,
    dialect: Optional[Dialect] = None,
) -> Union[SyntaxTree, ParseFailure]:
    """Parse source code string into a SyntaxTree.

    Args:
        source_text: Source code as string
        file_path: Relative file path (for metadata)
        dialect: Grammar to use. If None, detected from file_path.

    Returns:
        SyntaxTree, or ParseFailure for unparseable text and unsupported files
    """
    if dialect is None:
        dialect = detect_dialect(file_path)

    if dialect is None:
        return ParseFailure(
            file_path=file_path,
            dialect=None,
            message="Not a script file",
        )

    return get_parser(dialect).parse_source(source_text, file_path)


def render(tree: SyntaxTree) -> str:
    """Render a tree back to source text."""
    return tree.render()
