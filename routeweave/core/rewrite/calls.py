"""Call-expression rewrite pass.

Hook calls imported from the navigation library become the convention's
router-handle accessor. Navigator calls become router-handle method calls.
Path arguments are kept as written; a history step such as ``navigate(-1)``
becomes ``back()`` and a ``{ replace: true }`` option selects ``replace()``.
"""

import logging
from typing import List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.models import Edit, SyntaxTree
from ..ast_parser.utils import enclosing_statement, walk
from ..classifier.constructs import CALL_KINDS, HOOK_KINDS, ConstructKind, lookup
from ..classifier.models import FileSignals
from ..constants import (
    HEAD_MODULES,
    HISTORY_STEPS,
    NAVIGATION_METHODS,
    NAVIGATOR_NAMES,
    ROUTER_ACCESSOR,
    ROUTER_HANDLE_NAME,
)
from .base import (
    Convention,
    PassResult,
    RequiredReference,
    RewriteAction,
    accessor_for,
    advisory,
    comment_above_statement,
    drop_nested,
)

logger = logging.getLogger(__name__)

HANDLE_NOTE = (
    f"Navigation calls now go through the router handle; declare "
    f"`const {ROUTER_HANDLE_NAME} = {ROUTER_ACCESSOR}()` in every component that navigates"
)


def rewrite_calls(tree: SyntaxTree, signals: FileSignals, convention: Convention) -> PassResult:
    """Rewrite hook and navigator calls for ``convention``."""
    edits: List[Edit] = []
    references: Set[RequiredReference] = set()
    actions: List[RewriteAction] = []
    notes: List[str] = []
    navigator_statements: List[tree_sitter.Node] = []
    reviewed: Set[int] = set()

    for node in walk(tree.root):
        if node.type != "call_expression":
            continue
        fn = node.child_by_field_name("function")
        if fn is None:
            continue

        if fn.type == "identifier":
            name = tree.text(fn)
            entry = signals.imported_entry(name)
            if entry is not None and entry.module not in HEAD_MODULES and entry.kind in CALL_KINDS:
                edit = _rewrite_imported_call(tree, node, entry.imported, entry.kind, convention,
                                              references, actions, notes)
                if edit is not None:
                    edits.append(edit)
                continue

            if lookup(name) in CALL_KINDS and name not in signals.framework_imports:
                statement = enclosing_statement(node)
                if statement.start_byte not in reviewed:
                    reviewed.add(statement.start_byte)
                    edit = comment_above_statement(
                        tree, statement,
                        f"{name} is not imported from the navigation library; review this call",
                    )
                    if edit is not None:
                        edits.append(edit)
                        actions.append(RewriteAction("flag-call", name))
                continue

            bound = signals.handle_bindings.get(name)
            if bound is not None and lookup(bound) == ConstructKind.NAVIGATE_HOOK:
                target = name
            elif bound is None and name in NAVIGATOR_NAMES:
                target = ROUTER_HANDLE_NAME
            else:
                continue

            statement = enclosing_statement(node)
            mapped = _map_navigator_call(tree, node, fn, target)
            if mapped is None:
                if statement.start_byte not in reviewed:
                    reviewed.add(statement.start_byte)
                    edit = comment_above_statement(
                        tree, statement,
                        f"{name}() arguments have no router handle equivalent; review this call",
                    )
                    if edit is not None:
                        edits.append(edit)
                        actions.append(RewriteAction("flag-call", name))
                continue

            edit, method = mapped
            edits.append(edit)
            if target == ROUTER_HANDLE_NAME:
                references.add(RequiredReference.ROUTER_HANDLE)
            actions.append(RewriteAction("rewrite-navigator", f"{name}() -> {target}.{method}()"))
            navigator_statements.append(statement)

        elif fn.type == "member_expression":
            edit = _rewrite_method_call(tree, fn, signals, references, actions)
            if edit is not None:
                edits.append(edit)
                navigator_statements.append(enclosing_statement(node))

    if navigator_statements:
        first = min(navigator_statements, key=lambda n: n.start_byte)
        edit = comment_above_statement(tree, first, "declare the router handle in this scope")
        if edit is not None:
            edits.append(edit)
        notes.append(HANDLE_NOTE)

    if edits:
        logger.debug(f"{tree.file_path}: {len(actions)} call rewrite(s)")

    return PassResult(
        tree=tree.apply(drop_nested(edits)),
        references=frozenset(references),
        actions=actions,
        notes=notes,
    )


def _rewrite_imported_call(
    tree: SyntaxTree,
    call: tree_sitter.Node,
    imported: str,
    kind: ConstructKind,
    convention: Convention,
    references: Set[RequiredReference],
    actions: List[RewriteAction],
    notes: List[str],
) -> Optional[Edit]:
    if kind in HOOK_KINDS:
        accessor = accessor_for(convention, kind)
        references.add(accessor.reference)
        if accessor.note and accessor.note not in notes:
            notes.append(f"{imported}: {accessor.note}")
        actions.append(RewriteAction("rewrite-hook", f"{imported}() -> {accessor.expression}"))
        return Edit.replace(call, accessor.expression)

    if kind == ConstructKind.ROUTER_HOC:
        args = call.child_by_field_name("arguments")
        wrapped = [c for c in args.named_children if c.type != "comment"] if args is not None else []
        if not wrapped:
            return None
        actions.append(RewriteAction("unwrap-hoc", imported))
        notes.append(f"{imported} removed; the component must read the router handle itself")
        return Edit.replace(call, tree.text(wrapped[0]))

    # Route objects and router factories have no runtime counterpart
    actions.append(RewriteAction("remove-router", imported))
    notes.append(f"{imported} removed; its routes are now files under the routes directory")
    return Edit.replace(call, f"/* {advisory(imported + ' replaced by file-system routes')} */ null")


def _map_navigator_call(
    tree: SyntaxTree,
    call: tree_sitter.Node,
    fn: tree_sitter.Node,
    target: str,
) -> Optional[Tuple[Edit, str]]:
    """Edit turning ``navigate(...)`` into a ``target`` method call.

    Returns the edit and the method name, or None when the arguments have
    no router handle counterpart (other history steps, state options,
    options passed through a variable).
    """
    args = call.child_by_field_name("arguments")
    values = [c for c in args.named_children if c.type != "comment"] if args is not None else []

    if values and _is_number(values[0]):
        step = HISTORY_STEPS.get("".join(tree.text(values[0]).split()))
        if step is None or len(values) > 1:
            return None
        return Edit.replace(call, f"{target}.{step}()"), step

    if len(values) == 2:
        replace = _replace_option(tree, values[1])
        if replace is None:
            return None
        method = "replace" if replace else "push"
        return Edit.replace(call, f"{target}.{method}({tree.text(values[0])})"), method

    if len(values) > 2:
        return None
    return Edit.replace(fn, f"{target}.push"), "push"


def _is_number(node: tree_sitter.Node) -> bool:
    if node.type == "number":
        return True
    if node.type == "unary_expression":
        argument = node.child_by_field_name("argument")
        return argument is not None and argument.type == "number"
    return False


def _replace_option(tree: SyntaxTree, node: tree_sitter.Node) -> Optional[bool]:
    """Value of a literal ``{ replace: <bool> }`` options object.

    None when the options carry anything else.
    """
    if node.type != "object":
        return None
    replace = False
    for entry in node.named_children:
        if entry.type == "comment":
            continue
        if entry.type != "pair":
            return None
        key = entry.child_by_field_name("key")
        value = entry.child_by_field_name("value")
        if key is None or value is None or tree.text(key).strip("'\"") != "replace":
            return None
        if value.type not in ("true", "false"):
            return None
        replace = value.type == "true"
    return replace


def _rewrite_method_call(
    tree: SyntaxTree,
    fn: tree_sitter.Node,
    signals: FileSignals,
    references: Set[RequiredReference],
    actions: List[RewriteAction],
) -> Optional[Edit]:
    """``history.push(x)`` / ``props.history.goBack()`` style calls."""
    obj = fn.child_by_field_name("object")
    prop_node = fn.child_by_field_name("property")
    method = tree.text(prop_node)
    if obj is None or method not in NAVIGATION_METHODS:
        return None
    target_method = NAVIGATION_METHODS[method]

    if obj.type == "identifier":
        holder = tree.text(obj)
        bound = signals.handle_bindings.get(holder)
        if bound is not None:
            # Handle already points at the router after the hook rewrite
            if bound != ROUTER_ACCESSOR and lookup(bound) not in (
                ConstructKind.NAVIGATE_HOOK, ConstructKind.HISTORY_HOOK
            ):
                return None
            if target_method == method:
                return None
            actions.append(RewriteAction("rewrite-navigator", f"{holder}.{method}() -> {holder}.{target_method}()"))
            return Edit.replace(prop_node, target_method)
        if holder not in NAVIGATOR_NAMES:
            return None
    elif obj.type == "member_expression":
        if tree.text(obj.child_by_field_name("property")) not in NAVIGATOR_NAMES:
            return None
    else:
        return None

    references.add(RequiredReference.ROUTER_HANDLE)
    actions.append(RewriteAction(
        "rewrite-navigator",
        f"{tree.text(obj)}.{method}() -> {ROUTER_HANDLE_NAME}.{target_method}()",
    ))
    return Edit.replace(fn, f"{ROUTER_HANDLE_NAME}.{target_method}")
