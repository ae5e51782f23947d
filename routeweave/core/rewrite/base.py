"""Shared types for the rewrite passes.

Every pass is a pure function ``(tree, signals, convention) -> PassResult``.
Effects (references the file now needs, actions performed, advisory notes)
are returned explicitly instead of being tracked in shared state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

import tree_sitter

from ..ast_parser.models import Edit, SyntaxTree
from ..ast_parser.utils import is_jsx_child, line_indent, preceding_text
from ..classifier.constructs import ConstructKind
from ..constants import ADVISORY_MARKER


class Convention(str, Enum):
    """Target directory convention."""

    PAGES = "pages"
    APP = "app"

    @classmethod
    def from_app_dir(cls, app_dir: bool) -> "Convention":
        return cls.APP if app_dir else cls.PAGES


class RequiredReference(str, Enum):
    """A binding a rewritten file needs from the target framework."""

    ROUTER_HANDLE = "router_handle"
    PARAMS_HANDLE = "params_handle"
    PATHNAME_HANDLE = "pathname_handle"
    SEARCH_PARAMS_HANDLE = "search_params_handle"
    LINK_COMPONENT = "link_component"
    HEAD_WRAPPER = "head_wrapper"
    IMAGE_COMPONENT = "image_component"
    CLIENT_DIRECTIVE = "client_directive"


@dataclass(frozen=True)
class RewriteAction:
    """One rewrite performed on a file."""

    kind: str  # "remove-import" | "rewrite-hook" | "rewrite-link" | ...
    detail: str


@dataclass
class PassResult:
    """Output of a single pass."""

    tree: SyntaxTree
    references: FrozenSet[RequiredReference] = frozenset()
    actions: List[RewriteAction] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class HandleAccessor:
    """Replacement for a navigation hook call under one convention."""

    expression: str  # "useRouter()"
    reference: RequiredReference
    note: Optional[str] = None


@dataclass(frozen=True)
class ReferenceImport:
    """Import declaration that satisfies a RequiredReference."""

    module: str
    name: str
    default: bool = False

    def render(self) -> str:
        if self.default:
            return f"import {self.name} from '{self.module}';"
        return f"import {{ {self.name} }} from '{self.module}';"


HANDLE_ACCESSORS: Dict[Convention, Dict[ConstructKind, HandleAccessor]] = {
    Convention.PAGES: {
        ConstructKind.NAVIGATE_HOOK: HandleAccessor("useRouter()", RequiredReference.ROUTER_HANDLE),
        ConstructKind.HISTORY_HOOK: HandleAccessor("useRouter()", RequiredReference.ROUTER_HANDLE),
        ConstructKind.LOCATION_HOOK: HandleAccessor(
            "useRouter()",
            RequiredReference.ROUTER_HANDLE,
            "location fields map to router.pathname, router.asPath and router.query",
        ),
        ConstructKind.PARAMS_HOOK: HandleAccessor("useRouter().query", RequiredReference.ROUTER_HANDLE),
        ConstructKind.SEARCH_PARAMS_HOOK: HandleAccessor(
            "useRouter().query",
            RequiredReference.ROUTER_HANDLE,
            "search params are exposed as the plain router.query object",
        ),
        ConstructKind.MATCH_HOOK: HandleAccessor(
            "useRouter()",
            RequiredReference.ROUTER_HANDLE,
            "route matching is replaced by comparisons against router.pathname",
        ),
    },
    Convention.APP: {
        ConstructKind.NAVIGATE_HOOK: HandleAccessor("useRouter()", RequiredReference.ROUTER_HANDLE),
        ConstructKind.HISTORY_HOOK: HandleAccessor("useRouter()", RequiredReference.ROUTER_HANDLE),
        ConstructKind.LOCATION_HOOK: HandleAccessor(
            "usePathname()",
            RequiredReference.PATHNAME_HANDLE,
            "location is reduced to the pathname string",
        ),
        ConstructKind.PARAMS_HOOK: HandleAccessor("useParams()", RequiredReference.PARAMS_HANDLE),
        ConstructKind.SEARCH_PARAMS_HOOK: HandleAccessor(
            "useSearchParams()",
            RequiredReference.SEARCH_PARAMS_HANDLE,
            "search params are read-only; update them with router.push",
        ),
        ConstructKind.MATCH_HOOK: HandleAccessor(
            "usePathname()",
            RequiredReference.PATHNAME_HANDLE,
            "route matching is replaced by comparisons against the pathname",
        ),
    },
}

_SHARED_IMPORTS = {
    RequiredReference.LINK_COMPONENT: ReferenceImport("next/link", "Link", default=True),
    RequiredReference.HEAD_WRAPPER: ReferenceImport("next/head", "Head", default=True),
    RequiredReference.IMAGE_COMPONENT: ReferenceImport("next/image", "Image", default=True),
}

REFERENCE_IMPORTS: Dict[Convention, Dict[RequiredReference, ReferenceImport]] = {
    Convention.PAGES: {
        RequiredReference.ROUTER_HANDLE: ReferenceImport("next/router", "useRouter"),
        **_SHARED_IMPORTS,
    },
    Convention.APP: {
        RequiredReference.ROUTER_HANDLE: ReferenceImport("next/navigation", "useRouter"),
        RequiredReference.PARAMS_HANDLE: ReferenceImport("next/navigation", "useParams"),
        RequiredReference.PATHNAME_HANDLE: ReferenceImport("next/navigation", "usePathname"),
        RequiredReference.SEARCH_PARAMS_HANDLE: ReferenceImport("next/navigation", "useSearchParams"),
        **_SHARED_IMPORTS,
    },
}

# References that only exist in client components
CLIENT_REFERENCES = frozenset({
    RequiredReference.ROUTER_HANDLE,
    RequiredReference.PARAMS_HANDLE,
    RequiredReference.PATHNAME_HANDLE,
    RequiredReference.SEARCH_PARAMS_HANDLE,
    RequiredReference.CLIENT_DIRECTIVE,
})


def accessor_for(convention: Convention, kind: ConstructKind) -> Optional[HandleAccessor]:
    return HANDLE_ACCESSORS[convention].get(kind)


# =========================================================================
# Advisory comments
# =========================================================================

def advisory(message: str) -> str:
    """Comment body carrying the marker later runs look for."""
    return f"{ADVISORY_MARKER} {message.replace('*/', '* /')}"


def is_marked(tree: SyntaxTree, node: tree_sitter.Node) -> bool:
    """True when ``node`` is already preceded by an advisory comment."""
    before = preceding_text(tree.source, node.start_byte)
    if not before.endswith(("*/", "*/}")):
        return False
    return ADVISORY_MARKER in before[before.rfind("/*"):]


def comment_before(tree: SyntaxTree, node: tree_sitter.Node, message: str) -> Optional[Edit]:
    """Insert an advisory comment immediately before ``node``.

    Uses ``{/* ... */}`` between JSX tags and ``/* ... */`` elsewhere.
    Returns None when the node is already annotated.
    """
    if is_marked(tree, node):
        return None
    body = advisory(message)
    if is_jsx_child(node):
        return Edit.insert(node.start_byte, "{/* " + body + " */}" + line_break(tree, node))
    return Edit.insert(node.start_byte, "/* " + body + " */ ")


def comment_above_statement(tree: SyntaxTree, statement: tree_sitter.Node, message: str) -> Optional[Edit]:
    """Insert an advisory comment on its own line above ``statement``."""
    if is_marked(tree, statement):
        return None
    indent = line_indent(tree.source, statement.start_byte)
    return Edit.insert(statement.start_byte, f"/* {advisory(message)} */\n{indent}")


def line_break(tree: SyntaxTree, node: tree_sitter.Node) -> str:
    """Newline plus indent when ``node`` starts its line, a space otherwise."""
    line_start = tree.source.rfind(b"\n", 0, node.start_byte) + 1
    if tree.source[line_start:node.start_byte].strip():
        return " "
    return "\n" + line_indent(tree.source, node.start_byte)


def drop_nested(edits: Iterable[Edit]) -> List[Edit]:
    """Keep outer edits, dropping any edit that falls inside an earlier one."""
    ordered = sorted(
        edits,
        key=lambda e: (e.start_byte, e.start_byte != e.end_byte, -e.end_byte),
    )
    kept: List[Edit] = []
    cursor = -1
    for edit in ordered:
        if kept and edit.start_byte < cursor:
            continue
        kept.append(edit)
        cursor = max(cursor, edit.end_byte)
    return kept


def merge_results(results: Iterable[PassResult]) -> Tuple[FrozenSet[RequiredReference], List[RewriteAction], List[str]]:
    references: FrozenSet[RequiredReference] = frozenset()
    actions: List[RewriteAction] = []
    notes: List[str] = []
    for result in results:
        references |= result.references
        actions.extend(result.actions)
        notes.extend(n for n in result.notes if n not in notes)
    return references, actions, notes
