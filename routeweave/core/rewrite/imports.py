"""Import rewrite pass.

Removes navigation-library and head-library specifiers and records which
target-framework bindings the file needs in their place. Specifiers with no
counterpart are kept on a re-rendered declaration.
"""

import logging
from typing import List, Set

from ..ast_parser.imports import ImportSpecifier, iter_imports, render_import
from ..ast_parser.models import Edit, SyntaxTree
from ..classifier.constructs import HOOK_KINDS, LINK_KINDS, REMOVED_KINDS, ConstructKind, lookup
from ..classifier.models import FileSignals
from ..constants import HEAD_MODULES, NAVIGATION_MODULES
from .base import Convention, PassResult, RequiredReference, RewriteAction, accessor_for

logger = logging.getLogger(__name__)


def rewrite_imports(tree: SyntaxTree, signals: FileSignals, convention: Convention) -> PassResult:
    """Strip navigation/head imports, returning the references they imply."""
    edits: List[Edit] = []
    references: Set[RequiredReference] = set()
    actions: List[RewriteAction] = []
    notes: List[str] = []

    for declaration in iter_imports(tree):
        module = declaration.module
        if module not in NAVIGATION_MODULES and module not in HEAD_MODULES:
            continue

        keep: List[ImportSpecifier] = []
        for spec in declaration.specifiers:
            kind = lookup(spec.imported) or ConstructKind.OTHER
            if kind in REMOVED_KINDS:
                actions.append(RewriteAction("remove-import", f"{spec.imported} from {module}"))
            elif kind in HOOK_KINDS:
                references.add(accessor_for(convention, kind).reference)
                actions.append(RewriteAction("remove-import", f"{spec.imported} from {module}"))
            elif kind in LINK_KINDS:
                references.add(RequiredReference.LINK_COMPONENT)
                actions.append(RewriteAction("remove-import", f"{spec.imported} from {module}"))
            elif kind == ConstructKind.HEAD:
                references.add(RequiredReference.HEAD_WRAPPER)
                actions.append(RewriteAction("remove-import", f"{spec.imported} from {module}"))
            else:
                keep.append(spec)
                notes.append(f"{spec.imported} from {module} has no direct equivalent and was left in place")

        if declaration.default or declaration.namespace:
            notes.append(f"Default or namespace import of {module} was left in place")

        if not keep and not declaration.default and not declaration.namespace:
            edits.append(_remove_statement(tree, declaration.node))
            if declaration.is_side_effect:
                actions.append(RewriteAction("remove-import", module))
        elif len(keep) != len(declaration.specifiers):
            quote = tree.text(declaration.node.child_by_field_name("source"))[:1] or "'"
            edits.append(Edit.replace(declaration.node, render_import(declaration, keep, quote)))

    if edits:
        logger.debug(f"{tree.file_path}: rewrote {len(edits)} navigation import(s)")

    return PassResult(
        tree=tree.apply(edits),
        references=frozenset(references),
        actions=actions,
        notes=notes,
    )


def _remove_statement(tree: SyntaxTree, node) -> Edit:
    """Delete a statement together with its line break."""
    end = node.end_byte
    if tree.source[end:end + 2] == b"\r\n":
        end += 2
    elif tree.source[end:end + 1] == b"\n":
        end += 1
    return Edit(node.start_byte, end, "")
