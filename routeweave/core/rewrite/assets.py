"""Asset/metadata rewrite pass.

Turns the references collected by the earlier passes into import
declarations, adds the client directive where the app convention needs
one, and moves environment variables to the public prefix.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Set

import tree_sitter

from ..ast_parser.imports import iter_imports
from ..ast_parser.models import Edit, SyntaxTree
from ..ast_parser.utils import string_value, walk
from ..classifier.classifier import env_reference
from ..classifier.models import FileSignals
from ..constants import ENV_PREFIXES, PUBLIC_ENV_PREFIX
from .base import (
    CLIENT_REFERENCES,
    REFERENCE_IMPORTS,
    Convention,
    PassResult,
    ReferenceImport,
    RequiredReference,
    RewriteAction,
    advisory,
)

logger = logging.getLogger(__name__)

CLIENT_DIRECTIVE = "'use client';"
IMPORTS_COMMENT = "imports added for the next router, link and head bindings used below"
METADATA_NOTE = (
    "next/head has no effect under the app directory; move the title and meta tags "
    "into a `metadata` export or `generateMetadata()` of the route's page or layout"
)


def rewrite_assets(
    tree: SyntaxTree,
    signals: FileSignals,
    convention: Convention,
    references: FrozenSet[RequiredReference] = frozenset(),
) -> PassResult:
    """Resolve ``references`` into imports and rewrite environment references."""
    edits: List[Edit] = []
    actions: List[RewriteAction] = []
    notes: List[str] = []

    for node in walk(tree.root):
        name = env_reference(tree, node) if node.type == "member_expression" else None
        if name is None:
            continue
        public = public_env_name(name)
        edits.append(Edit.replace(node, f"process.env.{public}"))
        actions.append(RewriteAction("rewrite-env", f"{name} -> {public}"))

    directives = _directive_prologue(tree)
    needs_client = convention == Convention.APP and (
        signals.uses_client_hooks or bool(references & CLIENT_REFERENCES)
    )
    if needs_client and not any(string_value(tree, d.named_children[0]) == "use client" for d in directives):
        edits.append(Edit.insert(0, CLIENT_DIRECTIVE + "\n"))
        actions.append(RewriteAction("add-directive", "use client"))

    lines = _import_lines(tree, convention, references)
    if lines:
        block = "\n".join(lines) + f"\n/* {advisory(IMPORTS_COMMENT)} */"
        declarations = iter_imports(tree)
        if declarations:
            edits.append(Edit.insert(declarations[-1].node.end_byte, "\n" + block))
        elif directives:
            edits.append(Edit.insert(directives[-1].end_byte, "\n" + block))
        else:
            edits.append(Edit.insert(0, block + "\n\n"))
        actions.extend(RewriteAction("add-import", line) for line in lines)

    if convention == Convention.APP and RequiredReference.HEAD_WRAPPER in references:
        notes.append(METADATA_NOTE)

    if actions:
        logger.debug(f"{tree.file_path}: {len(actions)} asset/metadata rewrite(s)")

    return PassResult(tree=tree.apply(edits), references=references, actions=actions, notes=notes)


def public_env_name(name: str) -> str:
    """``REACT_APP_API_URL`` -> ``NEXT_PUBLIC_API_URL``."""
    for prefix in ENV_PREFIXES:
        if name.startswith(prefix):
            return PUBLIC_ENV_PREFIX + name[len(prefix):]
    return PUBLIC_ENV_PREFIX + name


def _directive_prologue(tree: SyntaxTree) -> List[tree_sitter.Node]:
    """Leading ``'use ...';`` statements of the file."""
    directives = []
    for child in tree.root.named_children:
        if child.type == "comment":
            continue
        if child.type == "expression_statement" and child.named_children and child.named_children[0].type == "string":
            directives.append(child)
            continue
        break
    return directives


def _import_lines(
    tree: SyntaxTree,
    convention: Convention,
    references: FrozenSet[RequiredReference],
) -> List[str]:
    """Import declarations still missing for ``references``, one per module."""
    bound: Set[str] = set()
    for declaration in iter_imports(tree):
        bound.update(declaration.local_names)

    table = REFERENCE_IMPORTS[convention]
    defaults: List[ReferenceImport] = []
    named: Dict[str, List[str]] = {}
    for reference in sorted(references, key=lambda r: r.value):
        spec: Optional[ReferenceImport] = table.get(reference)
        if spec is None or spec.name in bound:
            continue
        bound.add(spec.name)
        if spec.default:
            defaults.append(spec)
        else:
            named.setdefault(spec.module, []).append(spec.name)

    lines = [spec.render() for spec in sorted(defaults, key=lambda s: s.module)]
    for module in sorted(named):
        lines.append(f"import {{ {', '.join(sorted(named[module]))} }} from '{module}';")
    return lines
