"""JavaScript parser using tree-sitter.

The JavaScript grammar accepts JSX natively, so ``.js`` files written in the
create-react-app style (markup inside plain ``.js``) parse without a
separate markup dialect.
"""

import tree_sitter
import tree_sitter_javascript

from .base import BaseDialectParser
from .models import Dialect

_JS_LANGUAGE = tree_sitter.Language(tree_sitter_javascript.language())


class JavaScriptParser(BaseDialectParser):
    """tree-sitter based JavaScript (+JSX) parser."""

    def get_dialect(self) -> Dialect:
        return Dialect.JAVASCRIPT

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _JS_LANGUAGE
