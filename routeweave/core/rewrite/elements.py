"""Element rewrite pass.

Runs in three rounds, each applied and re-parsed before the next:

1. leaf elements: links, images, head/title, redirects and outlets
2. route declarations: route tables collapse to the ``children`` slot
3. wrapper containers: unwrapped to their children, outermost first
"""

import logging
from typing import List, Optional, Set

import tree_sitter

from ..ast_parser.models import Edit, SyntaxTree
from ..ast_parser.utils import (
    is_jsx_child,
    is_jsx_element,
    jsx_attribute_map,
    jsx_attribute_name,
    jsx_attribute_value,
    jsx_attributes,
    jsx_children,
    jsx_closing,
    jsx_expression_inner,
    jsx_name,
    jsx_name_node,
    jsx_opening,
    string_value,
    walk,
)
from ..classifier.constructs import LINK_KINDS, ConstructKind, lookup
from ..classifier.models import FileSignals
from ..constants import ACTIVE_STATE_ATTRIBUTES, ACTIVE_STATE_FUNCTION_ATTRIBUTES
from .base import (
    Convention,
    PassResult,
    RequiredReference,
    RewriteAction,
    advisory,
    comment_before,
    drop_nested,
    line_break,
)

logger = logging.getLogger(__name__)

_ROUTE_KINDS = frozenset({ConstructKind.ROUTE_TABLE, ConstructKind.ROUTE})
_HEAD_SCOPES = frozenset({"Head", "head", "svg"})
_FUNCTION_NODES = frozenset({"arrow_function", "function_expression", "function"})
_MAX_UNWRAP_ROUNDS = 16

IMAGE_MESSAGE = "img left as is; next/image needs explicit width and height"


def rewrite_elements(tree: SyntaxTree, signals: FileSignals, convention: Convention) -> PassResult:
    """Rewrite JSX elements produced by the navigation and head libraries."""
    references: Set[RequiredReference] = set()
    actions: List[RewriteAction] = []
    notes: List[str] = []

    tree = _rewrite_leaf_elements(tree, signals, references, actions, notes)
    tree = _collapse_route_declarations(tree, signals, actions, notes)
    tree = _unwrap_containers(tree, signals, actions)

    if actions:
        logger.debug(f"{tree.file_path}: {len(actions)} element rewrite(s)")

    return PassResult(tree=tree, references=frozenset(references), actions=actions, notes=notes)


# =========================================================================
# Round 1: leaf elements
# =========================================================================

def _rewrite_leaf_elements(
    tree: SyntaxTree,
    signals: FileSignals,
    references: Set[RequiredReference],
    actions: List[RewriteAction],
    notes: List[str],
) -> SyntaxTree:
    edits: List[Edit] = []

    for node in walk(tree.root):
        if not is_jsx_element(node):
            continue
        name = jsx_name(tree, node)
        if not name or _inside_route_declaration(tree, signals, node):
            continue
        kind = _imported_kind(signals, name)

        if kind in LINK_KINDS:
            edits.extend(_rewrite_link(tree, node, name))
            references.add(RequiredReference.LINK_COMPONENT)
            actions.append(RewriteAction("rewrite-link", name))
        elif kind is None and lookup(name) in LINK_KINDS and name not in signals.framework_imports:
            if "to" in jsx_attribute_map(tree, node):
                edit = comment_before(tree, node, f"{name} is not the navigation library link; review its to prop")
                if edit is not None:
                    edits.append(edit)
                    actions.append(RewriteAction("flag-link", name))
        elif kind == ConstructKind.HEAD:
            edits.extend(_rename_element(tree, node, "Head"))
            references.add(RequiredReference.HEAD_WRAPPER)
            actions.append(RewriteAction("rewrite-head", name))
        elif kind == ConstructKind.REDIRECT:
            edits.append(_replace_redirect(tree, node, name))
            actions.append(RewriteAction("remove-redirect", name))
            note = f"{name} elements were removed; configure redirects in next.config.js or call router.replace"
            if note not in notes:
                notes.append(note)
        elif kind == ConstructKind.OUTLET:
            edits.append(Edit.replace(node, "{children}" if is_jsx_child(node) else "children"))
            actions.append(RewriteAction("replace-outlet", name))
            note = f"{name} replaced by children; the layout component must accept a children prop"
            if note not in notes:
                notes.append(note)
        elif name == "img":
            edit = comment_before(tree, node, IMAGE_MESSAGE)
            if edit is not None:
                edits.append(edit)
                actions.append(RewriteAction("flag-image", _attribute_text(tree, node, "src") or name))
        elif name == "title" and not _inside_head(tree, signals, node):
            edits.append(Edit.replace(node, f"<Head>{tree.text(node)}</Head>"))
            references.add(RequiredReference.HEAD_WRAPPER)
            actions.append(RewriteAction("wrap-title", tree.text(node)))

    return tree.apply(drop_nested(edits))


def _rewrite_link(tree: SyntaxTree, element: tree_sitter.Node, name: str) -> List[Edit]:
    edits = _rename_element(tree, element, "Link") if name != "Link" else []
    flagged = []
    for attribute in jsx_attributes(element):
        attr_name = jsx_attribute_name(tree, attribute)
        if attr_name == "to":
            edits.append(Edit.replace(attribute.children[0], "href"))
        elif attr_name in ACTIVE_STATE_ATTRIBUTES:
            flagged.append(attr_name)
        elif attr_name in ACTIVE_STATE_FUNCTION_ATTRIBUTES:
            inner = jsx_expression_inner(jsx_attribute_value(attribute))
            if inner is not None and inner.type in _FUNCTION_NODES:
                flagged.append(attr_name)
    if flagged:
        edit = comment_before(
            tree, element,
            f"active state ({', '.join(flagged)}) has no next/link equivalent; derive it from the pathname",
        )
        if edit is not None:
            edits.append(edit)
    return edits


def _rename_element(tree: SyntaxTree, element: tree_sitter.Node, new_name: str) -> List[Edit]:
    edits = [Edit.replace(jsx_name_node(element), new_name)]
    closing = jsx_closing(element)
    if closing is not None:
        closing_name = closing.child_by_field_name("name")
        if closing_name is not None:
            edits.append(Edit.replace(closing_name, new_name))
    return edits


def _replace_redirect(tree: SyntaxTree, element: tree_sitter.Node, name: str) -> Edit:
    target = _attribute_text(tree, element, "to") or "?"
    body = advisory(f"{name} to {target} removed; redirect with next.config.js or router.replace")
    if is_jsx_child(element):
        return Edit.replace(element, "{/* " + body + " */}")
    return Edit.replace(element, f"/* {body} */ null")


# =========================================================================
# Round 2: route declarations
# =========================================================================

def _collapse_route_declarations(
    tree: SyntaxTree,
    signals: FileSignals,
    actions: List[RewriteAction],
    notes: List[str],
) -> SyntaxTree:
    edits: List[Edit] = []
    slotted_parents: Set[int] = set()

    for node in walk(tree.root):
        if not is_jsx_element(node):
            continue
        name = jsx_name(tree, node)
        kind = _imported_kind(signals, name)
        if kind not in _ROUTE_KINDS or _inside_route_declaration(tree, signals, node):
            continue

        paths = [p for p in (_attribute_text(tree, el, "path") for el in walk(node) if is_jsx_element(el)) if p]
        if paths:
            message = "routes moved to file-system routing: " + ", ".join(paths)
        else:
            message = f"{name} moved to file-system routing"
        body = advisory(message)

        # Sibling <Route> elements outside a table share one children slot
        parent_key = node.parent.start_byte if node.parent is not None else -1
        with_slot = kind == ConstructKind.ROUTE_TABLE or parent_key not in slotted_parents
        slotted_parents.add(parent_key)

        if is_jsx_child(node):
            text = "{/* " + body + " */}"
            if with_slot:
                text += line_break(tree, node) + "{children}"
        else:
            text = f"/* {body} */ " + ("children" if with_slot else "null")

        edits.append(Edit.replace(node, text))
        actions.append(RewriteAction("collapse-routes", name))
        note = f"{name} replaced by children; the enclosing component must accept a children prop"
        if note not in notes:
            notes.append(note)

    return tree.apply(drop_nested(edits))


# =========================================================================
# Round 3: wrapper containers
# =========================================================================

def _unwrap_containers(tree: SyntaxTree, signals: FileSignals, actions: List[RewriteAction]) -> SyntaxTree:
    for _ in range(_MAX_UNWRAP_ROUNDS):
        targets = [
            node for node in walk(tree.root)
            if is_jsx_element(node)
            and _is_container(tree, signals, node)
            and not _has_ancestor(node, lambda a: _is_container(tree, signals, a))
        ]
        if not targets:
            break
        edits = []
        for element in targets:
            edits.append(Edit.replace(element, _unwrapped_text(tree, element)))
            actions.append(RewriteAction("unwrap-container", jsx_name(tree, element)))
        tree = tree.apply(edits)
    return tree


def _unwrapped_text(tree: SyntaxTree, element: tree_sitter.Node) -> str:
    closing = jsx_closing(element)
    if closing is None:
        return "" if is_jsx_child(element) else "null"

    inner = tree.source[jsx_opening(element).end_byte:closing.start_byte].decode("utf-8", errors="replace").strip()
    if is_jsx_child(element):
        return inner

    children = jsx_children(element)
    commented = any(
        c.type == "jsx_expression" and jsx_expression_inner(c) is None for c in element.named_children
    )
    if not children and not commented:
        return "null"
    if len(children) == 1 and not commented:
        child = children[0]
        if is_jsx_element(child) or child.type == "jsx_fragment":
            return tree.text(child)
        if child.type == "jsx_expression":
            return tree.text(jsx_expression_inner(child))
    return f"<>{inner}</>"


# =========================================================================
# Helpers
# =========================================================================

def _imported_kind(signals: FileSignals, name: str) -> Optional[ConstructKind]:
    entry = signals.imported_entry(name)
    return entry.kind if entry is not None else None


def _is_container(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> bool:
    if not is_jsx_element(node):
        return False
    return _imported_kind(signals, jsx_name(tree, node)) == ConstructKind.WRAPPER_CONTAINER


def _has_ancestor(node: tree_sitter.Node, predicate) -> bool:
    current = node.parent
    while current is not None:
        if predicate(current):
            return True
        current = current.parent
    return False


def _inside_route_declaration(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> bool:
    return _has_ancestor(
        node,
        lambda a: is_jsx_element(a) and _imported_kind(signals, jsx_name(tree, a)) in _ROUTE_KINDS,
    )


def _inside_head(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> bool:
    def _is_head(a: tree_sitter.Node) -> bool:
        if not is_jsx_element(a):
            return False
        name = jsx_name(tree, a)
        return name in _HEAD_SCOPES or _imported_kind(signals, name) == ConstructKind.HEAD

    return _has_ancestor(node, _is_head)


def _attribute_text(tree: SyntaxTree, element: tree_sitter.Node, attribute: str) -> Optional[str]:
    """String value of an attribute, or the raw expression text."""
    node = jsx_attribute_map(tree, element).get(attribute)
    if node is None:
        return None
    value = jsx_attribute_value(node)
    if value is None:
        return None
    literal = string_value(tree, value)
    if literal is not None:
        return literal
    inner = jsx_expression_inner(value)
    if inner is not None:
        literal = string_value(tree, inner)
        return literal if literal is not None else tree.text(inner)
    return tree.text(value)

