"""Relocate module specifiers after files move to the new layout."""

import logging
import posixpath
from typing import Collection, Iterator, List, Mapping, Tuple

import tree_sitter

from ..analyzer.resolve import SCRIPT_SUFFIXES, relative_specifier, resolve_module
from ..ast_parser import Edit, SyntaxTree, parse_source
from ..ast_parser.utils import first_argument, string_value, walk

logger = logging.getLogger(__name__)


def module_references(tree: SyntaxTree) -> Iterator[Tuple[tree_sitter.Node, str]]:
    """(string node, specifier) for static imports, re-exports, ``import()`` and ``require()``."""
    for node in walk(tree.root):
        if node.type in ("import_statement", "export_statement"):
            source = node.child_by_field_name("source")
            value = string_value(tree, source)
            if value is not None:
                yield source, value
        elif node.type == "call_expression":
            fn = node.child_by_field_name("function")
            if fn is None or not (fn.type == "import" or tree.text(fn) == "require"):
                continue
            argument = first_argument(node)
            value = string_value(tree, argument)
            if value is not None:
                yield argument, value


def relocate_imports(
    text: str,
    source_path: str,
    output_path: str,
    placement: Mapping[str, str],
    paths: Collection[str],
    source_root: str = "",
) -> Tuple[str, List[Tuple[str, str]]]:
    """Point project-relative specifiers at the files' new locations.

    Args:
        text: File text (already rewritten)
        source_path: Where the file lived in the input project
        output_path: Where it lives in the output project
        placement: Input path -> output path of every emitted file
        paths: Every input path
        source_root: ``src`` for projects with a source root

    Returns:
        (new text, [(old specifier, new specifier), ...]). Text that does
        not parse is returned unchanged.
    """
    tree = parse_source(text, output_path)
    if not isinstance(tree, SyntaxTree):
        return text, []

    edits: List[Edit] = []
    changes: List[Tuple[str, str]] = []
    for node, specifier in module_references(tree):
        target = resolve_module(source_path, specifier, paths, source_root)
        if target is None or target not in placement:
            continue
        keep_suffix = _has_explicit_suffix(specifier) or not target.endswith(SCRIPT_SUFFIXES)
        new_specifier = relative_specifier(output_path, placement[target], keep_suffix=keep_suffix)
        if new_specifier == specifier:
            continue
        quote = tree.text(node)[0]
        edits.append(Edit.replace(node, f"{quote}{new_specifier}{quote}"))
        changes.append((specifier, new_specifier))

    if not edits:
        return text, []
    logger.debug(f"{output_path}: relocated {len(edits)} specifier(s)")
    return tree.apply(edits).render(), changes


def _has_explicit_suffix(specifier: str) -> bool:
    return posixpath.splitext(specifier)[1] in SCRIPT_SUFFIXES
