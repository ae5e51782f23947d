"""Syntax engine utilities.

Dialect detection, parser registry, and node helpers shared by the
classifier, the rewrite passes and the analyzer.
"""

import os
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

import tree_sitter

from .models import Dialect, SyntaxTree

if TYPE_CHECKING:
    from .base import BaseDialectParser

# Extension → dialect mapping
SUPPORTED_EXTENSIONS: Dict[str, Dialect] = {
    ".js": Dialect.JAVASCRIPT,
    ".jsx": Dialect.JAVASCRIPT,
    ".mjs": Dialect.JAVASCRIPT,
    ".cjs": Dialect.JAVASCRIPT,
    ".ts": Dialect.TYPESCRIPT,
    ".mts": Dialect.TYPESCRIPT,
    ".cts": Dialect.TYPESCRIPT,
    ".tsx": Dialect.TSX,
}

# Directories to skip during ingestion
SKIP_DIRECTORIES = frozenset({
    ".git",
    "node_modules",
    "dist",
    "build",
    "coverage",
    ".next",
    ".cache",
    ".parcel-cache",
    ".turbo",
    ".vercel",
    ".idea",
    ".vscode",
    "__pycache__",
})

# Parent node types whose children are statements
_STATEMENT_CONTAINERS = frozenset({
    "program",
    "statement_block",
    "switch_case",
    "switch_default",
    "class_body",
})

# Parser registry, lazy-loaded to avoid import overhead
_parser_registry: Dict[Dialect, "BaseDialectParser"] = {}


def detect_dialect(file_path: str) -> Optional[Dialect]:
    """Detect the parse dialect from a file extension.

    Args:
        file_path: Path to the source file

    Returns:
        Dialect or None if the file is not a script file
    """
    _, ext = os.path.splitext(file_path)
    return SUPPORTED_EXTENSIONS.get(ext.lower())


def get_parser(dialect: Dialect) -> "BaseDialectParser":
    """Get a parser instance for the given dialect.

    Uses a lazy-initialized registry to avoid loading every grammar
    at startup.

    Raises:
        ValueError: If dialect is not supported
    """
    if dialect not in _parser_registry:
        if dialect == Dialect.JAVASCRIPT:
            from .javascript_parser import JavaScriptParser
            _parser_registry[dialect] = JavaScriptParser()
        elif dialect == Dialect.TYPESCRIPT:
            from .typescript_parser import TypeScriptParser
            _parser_registry[dialect] = TypeScriptParser()
        elif dialect == Dialect.TSX:
            from .typescript_parser import TsxParser
            _parser_registry[dialect] = TsxParser()
        else:
            raise ValueError(
                f"Unsupported dialect: {dialect}. "
                f"Supported: {sorted({d.value for d in SUPPORTED_EXTENSIONS.values()})}"
            )

    return _parser_registry[dialect]


def should_skip_directory(dir_name: str) -> bool:
    """Check if a directory should be skipped during ingestion."""
    return dir_name in SKIP_DIRECTORIES


def is_script_file(file_path: str) -> bool:
    """Check if a file is parsed by the syntax engine."""
    return detect_dialect(file_path) is not None


# =========================================================================
# Node helpers
# =========================================================================

def walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield ``node`` and all descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def string_value(tree: SyntaxTree, node: Optional[tree_sitter.Node]) -> Optional[str]:
    """Unquoted value of a string literal (or a substitution-free template)."""
    if node is None:
        return None
    if node.type == "string":
        return tree.text(node)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
        return tree.text(node)[1:-1]
    return None


def first_argument(call: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """First argument node of a call_expression, if any."""
    args = call.child_by_field_name("arguments")
    if args is None:
        return None
    if args.type == "template_string":
        return args
    return args.named_children[0] if args.named_children else None


def is_jsx_element(node: tree_sitter.Node) -> bool:
    return node.type in ("jsx_element", "jsx_self_closing_element")


def jsx_opening(element: tree_sitter.Node) -> tree_sitter.Node:
    """Opening tag of an element (the element itself when self-closing)."""
    if element.type == "jsx_element":
        opening = element.child_by_field_name("open_tag")
        if opening is None and element.children:
            opening = element.children[0]
        return opening
    return element


def jsx_closing(element: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    if element.type != "jsx_element":
        return None
    closing = element.child_by_field_name("close_tag")
    if closing is None and element.children and element.children[-1].type == "jsx_closing_element":
        closing = element.children[-1]
    return closing


def jsx_name_node(element: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    return jsx_opening(element).child_by_field_name("name")


def jsx_name(tree: SyntaxTree, element: tree_sitter.Node) -> str:
    """Tag name of an element ("" for fragments)."""
    return tree.text(jsx_name_node(element))


def jsx_attributes(element: tree_sitter.Node) -> List[tree_sitter.Node]:
    """jsx_attribute nodes of an element's opening tag (spreads excluded)."""
    return [c for c in jsx_opening(element).named_children if c.type == "jsx_attribute"]


def jsx_attribute_name(tree: SyntaxTree, attribute: tree_sitter.Node) -> str:
    return tree.text(attribute.children[0]) if attribute.children else ""


def jsx_attribute_value(attribute: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Value node of ``name=value`` (None for boolean shorthand attributes)."""
    if len(attribute.children) >= 3:
        return attribute.children[-1]
    return None


def jsx_attribute_map(tree: SyntaxTree, element: tree_sitter.Node) -> Dict[str, tree_sitter.Node]:
    return {jsx_attribute_name(tree, attr): attr for attr in jsx_attributes(element)}


def jsx_expression_inner(node: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    """Expression wrapped by a ``{...}`` jsx_expression."""
    if node is None or node.type != "jsx_expression":
        return None
    named = [c for c in node.named_children if c.type != "comment"]
    return named[0] if named else None


def jsx_children(element: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Meaningful children between the opening and closing tags.

    Whitespace-only text and comment-only expressions are dropped.
    """
    if element.type != "jsx_element":
        return []
    result = []
    for child in element.named_children:
        if child.type in ("jsx_opening_element", "jsx_closing_element"):
            continue
        if child.type == "jsx_text" and not child.text.strip():
            continue
        if child.type == "jsx_expression" and jsx_expression_inner(child) is None:
            continue
        if child.type == "comment":
            continue
        result.append(child)
    return result


def is_jsx_child(node: tree_sitter.Node) -> bool:
    """True when ``node`` sits between the tags of a parent element."""
    parent = node.parent
    return parent is not None and parent.type in ("jsx_element", "jsx_fragment")


def enclosing_statement(node: tree_sitter.Node) -> tree_sitter.Node:
    """Closest ancestor (or self) that is a direct statement child."""
    current = node
    while current.parent is not None and current.parent.type not in _STATEMENT_CONTAINERS:
        current = current.parent
    return current


def line_indent(source: bytes, position: int) -> str:
    """Leading whitespace of the line containing ``position``."""
    line_start = source.rfind(b"\n", 0, position) + 1
    indent = bytearray()
    for byte in source[line_start:position]:
        if byte in (0x20, 0x09):
            indent.append(byte)
        else:
            break
    return indent.decode("ascii")


def preceding_text(source: bytes, position: int, window: int = 400) -> str:
    """Text before ``position`` with trailing whitespace removed."""
    start = max(0, position - window)
    return source[start:position].decode("utf-8", errors="replace").rstrip()
