"""Read-only inspection of a parsed file.

``classify`` walks a SyntaxTree once for bindings and once for usages and
returns a FileSignals record. Names are resolved through CONSTRUCT_TABLE;
nothing here branches on individual construct names.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Set

import tree_sitter

from ..ast_parser.imports import iter_imports
from ..ast_parser.models import SyntaxTree
from ..ast_parser.utils import (
    first_argument,
    is_jsx_element,
    jsx_attribute_name,
    jsx_attributes,
    jsx_name,
    string_value,
    walk,
)
from ..constants import (
    BACKEND_PREFIX,
    CLIENT_GLOBALS,
    CLIENT_HOOKS,
    DATA_FETCHING_CALLS,
    ENV_PREFIXES,
    HEAD_MODULES,
    HTTP_CLIENT_METHODS,
    HTTP_CLIENT_NAMES,
    NAVIGATION_METHODS,
    NAVIGATION_MODULES,
    NAVIGATOR_NAMES,
    ROUTER_ACCESSOR,
)
from .constructs import CALL_KINDS, HOOK_KINDS, LINK_KINDS, ConstructKind, lookup
from .models import BackendCall, FileSignals, ImportedName

logger = logging.getLogger(__name__)

_CONTAINER_KINDS = frozenset({
    ConstructKind.WRAPPER_CONTAINER,
    ConstructKind.ROUTE_TABLE,
    ConstructKind.ROUTE,
    ConstructKind.OUTLET,
    ConstructKind.REDIRECT,
})

_SUBSTITUTION = re.compile(r"\$\{\s*([\w$.]*)[^}]*\}")
_EVENT_ATTRIBUTE = re.compile(r"^on[A-Z]")


def classify(
    tree: SyntaxTree,
    navigation_modules: Iterable[str] = NAVIGATION_MODULES,
    head_modules: Iterable[str] = HEAD_MODULES,
) -> FileSignals:
    """Inspect ``tree`` and report its navigation-related constructs.

    Args:
        tree: Parsed file
        navigation_modules: Module names treated as the navigation library
        head_modules: Module names treated as the head library

    Returns:
        FileSignals for the file. The tree is never modified.
    """
    navigation_modules = tuple(navigation_modules)
    head_modules = tuple(head_modules)
    signals = FileSignals(file_path=tree.file_path)

    framework: Set[str] = set()
    for declaration in iter_imports(tree):
        if declaration.module in navigation_modules:
            target = signals.navigation_imports
        elif declaration.module in head_modules:
            target = signals.head_imports
        else:
            if declaration.module == "next" or declaration.module.startswith("next/"):
                framework.update(declaration.local_names)
            continue
        for spec in declaration.specifiers:
            target.append(ImportedName(
                module=declaration.module,
                imported=spec.imported,
                local=spec.local,
                kind=lookup(spec.imported) or ConstructKind.OTHER,
            ))
    signals.framework_imports = frozenset(framework)

    bindings = _collect_bindings(tree, signals)
    signals.handle_bindings = bindings

    hook_calls: Set[str] = set()
    navigator_calls: Set[str] = set()
    link_elements: Set[str] = set()
    containers: Set[str] = set()
    env_names: Set[str] = set()

    for node in walk(tree.root):
        node_type = node.type

        if node_type == "call_expression":
            fn = node.child_by_field_name("function")
            if fn is None:
                continue
            if fn.type == "identifier":
                name = tree.text(fn)
                kind = _name_kind(signals, name)
                if kind in CALL_KINDS:
                    hook_calls.add(name)
                if name in CLIENT_HOOKS:
                    signals.uses_client_hooks = True
                if name in NAVIGATOR_NAMES or name in bindings:
                    navigator_calls.add(name)
                if name in DATA_FETCHING_CALLS:
                    signals.has_data_fetching = True
                if name == "fetch":
                    call = _backend_call(tree, node, method=None)
                    if call is not None:
                        signals.backend_calls.append(call)
            elif fn.type == "member_expression":
                obj = fn.child_by_field_name("object")
                prop = tree.text(fn.child_by_field_name("property"))
                holder = _navigator_name(tree, obj)
                if prop in NAVIGATION_METHODS and holder and (holder in NAVIGATOR_NAMES or holder in bindings):
                    navigator_calls.add(holder)
                if prop in CLIENT_HOOKS and tree.text(obj) == "React":
                    signals.uses_client_hooks = True
                if prop in HTTP_CLIENT_METHODS and tree.text(obj) in HTTP_CLIENT_NAMES:
                    signals.has_data_fetching = True
                    call = _backend_call(tree, node, method=HTTP_CLIENT_METHODS[prop])
                    if call is not None:
                        signals.backend_calls.append(call)

        elif is_jsx_element(node):
            name = jsx_name(tree, node)
            if not name:
                continue
            kind = _name_kind(signals, name)
            if kind in LINK_KINDS:
                link_elements.add(name)
            elif kind in _CONTAINER_KINDS:
                containers.add(name)
            elif kind == ConstructKind.HEAD or name == "Head":
                signals.has_head_elements = True
            if name == "title":
                signals.has_head_elements = True
                signals.title_count += 1
            elif name == "img":
                signals.has_image_elements = True
                signals.image_count += 1
            for attribute in jsx_attributes(node):
                if _EVENT_ATTRIBUTE.match(jsx_attribute_name(tree, attribute)):
                    signals.uses_client_hooks = True

        elif node_type == "identifier":
            if tree.text(node) in CLIENT_GLOBALS:
                signals.uses_client_hooks = True

        elif node_type == "member_expression":
            env_name = env_reference(tree, node)
            if env_name is not None:
                env_names.add(env_name)

    signals.hook_calls = frozenset(hook_calls)
    signals.navigator_calls = frozenset(navigator_calls)
    signals.link_elements = frozenset(link_elements)
    signals.container_elements = frozenset(containers)
    signals.env_references = frozenset(env_names)

    logger.debug(
        f"Classified {tree.file_path}: {len(signals.navigation_imports)} nav imports, "
        f"{len(hook_calls)} hook calls, {len(link_elements)} link kinds, "
        f"{signals.image_count} images"
    )
    return signals


def env_reference(tree: SyntaxTree, node: tree_sitter.Node) -> Optional[str]:
    """Variable name of ``process.env.REACT_APP_X`` / ``import.meta.env.VITE_X``."""
    if node.type != "member_expression":
        return None
    obj = tree.text(node.child_by_field_name("object"))
    if obj not in ("process.env", "import.meta.env"):
        return None
    name = tree.text(node.child_by_field_name("property"))
    if name.startswith(ENV_PREFIXES):
        return name
    return None


def backend_endpoint(url: str) -> Optional[str]:
    """``/api/users/${id}?x=1`` -> ``users/[id]``; None when not backend-bound."""
    if not url.startswith(BACKEND_PREFIX):
        return None
    path = url[len(BACKEND_PREFIX):].split("?", 1)[0].split("#", 1)[0]

    def _param(match):
        name = match.group(1).split(".")[-1] or "param"
        return f"[{name}]"

    path = _SUBSTITUTION.sub(_param, path).strip("/")
    return path or None


# =========================================================================
# Internal helpers
# =========================================================================

def _name_kind(signals: FileSignals, name: str) -> Optional[ConstructKind]:
    """Kind of a local name: its import first, then the table."""
    kind = signals.imported_kind(name)
    if kind is not None:
        return kind
    return lookup(name)


def _collect_bindings(tree: SyntaxTree, signals: FileSignals) -> Dict[str, str]:
    """Local names bound to a table hook call or to the router accessor."""
    bindings: Dict[str, str] = {}
    for node in walk(tree.root):
        if node.type != "variable_declarator":
            continue
        name_node = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name_node is None or name_node.type != "identifier":
            continue
        if value is None or value.type != "call_expression":
            continue
        fn = value.child_by_field_name("function")
        if fn is None or fn.type != "identifier":
            continue
        callee = tree.text(fn)
        entry = signals.imported_entry(callee)
        if callee == ROUTER_ACCESSOR:
            bindings[tree.text(name_node)] = ROUTER_ACCESSOR
        elif entry is not None and entry.kind in HOOK_KINDS:
            bindings[tree.text(name_node)] = entry.imported
        elif lookup(callee) in HOOK_KINDS:
            bindings[tree.text(name_node)] = callee
    return bindings


def _navigator_name(tree: SyntaxTree, obj: Optional[tree_sitter.Node]) -> Optional[str]:
    """Name holding the navigator: ``history`` for both ``history`` and ``props.history``."""
    if obj is None:
        return None
    if obj.type == "identifier":
        return tree.text(obj)
    if obj.type == "member_expression":
        prop = tree.text(obj.child_by_field_name("property"))
        if prop in NAVIGATOR_NAMES:
            return prop
    return None


def _backend_call(tree: SyntaxTree, call: tree_sitter.Node, method: Optional[str]) -> Optional[BackendCall]:
    arg = first_argument(call)
    if arg is None or arg.type not in ("string", "template_string"):
        return None
    raw_url = tree.text(arg)[1:-1]
    endpoint = backend_endpoint(raw_url)
    if endpoint is None:
        return None
    if method is None:
        method = _fetch_method(tree, call) or "GET"
    return BackendCall(method=method, endpoint=endpoint, raw_url=raw_url)


def _fetch_method(tree: SyntaxTree, call: tree_sitter.Node) -> Optional[str]:
    """``method`` of the options object passed as fetch's second argument."""
    args = call.child_by_field_name("arguments")
    if args is None:
        return None
    named: List[tree_sitter.Node] = [c for c in args.named_children if c.type != "comment"]
    if len(named) < 2 or named[1].type != "object":
        return None
    for pair in named[1].named_children:
        if pair.type != "pair":
            continue
        key = pair.child_by_field_name("key")
        key_text = tree.text(key).strip("'\"")
        if key_text == "method":
            value = string_value(tree, pair.child_by_field_name("value"))
            return value.upper() if value else None
    return None
