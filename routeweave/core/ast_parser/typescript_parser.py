"""TypeScript parsers using tree-sitter.

tree-sitter-typescript ships two grammars: ``typescript`` for ``.ts`` files
(where ``<T>expr`` is a type assertion) and ``tsx`` for ``.tsx`` files
(where ``<T>`` opens a JSX element).
"""

import tree_sitter
import tree_sitter_typescript

from .base import BaseDialectParser
from .models import Dialect

_TS_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_typescript())
_TSX_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_tsx())


class TypeScriptParser(BaseDialectParser):
    """tree-sitter based TypeScript parser (no markup)."""

    def get_dialect(self) -> Dialect:
        return Dialect.TYPESCRIPT

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _TS_LANGUAGE


class TsxParser(BaseDialectParser):
    """tree-sitter based TypeScript + JSX parser."""

    def get_dialect(self) -> Dialect:
        return Dialect.TSX

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _TSX_LANGUAGE
