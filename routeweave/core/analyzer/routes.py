"""Route table extraction.

Reads route declarations from the router configuration file, in either
form the navigation library accepts:

- JSX: ``<Route path element>`` nested inside ``<Routes>`` / ``<Switch>``
- objects: ``[{ path, element, children }]`` passed to a router factory or
  assigned to a ``routes`` / ``router`` variable

Nested routes are flattened with the parent path prefixed; index routes
take the parent path.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

import tree_sitter

from ..ast_parser.imports import iter_imports
from ..ast_parser.models import SyntaxTree
from ..ast_parser.utils import (
    first_argument,
    is_jsx_element,
    jsx_attribute_map,
    jsx_attribute_value,
    jsx_children,
    jsx_expression_inner,
    jsx_name,
    string_value,
    walk,
)
from ..classifier.constructs import ConstructKind, lookup
from ..classifier.models import FileSignals
from ..errors import RouteExtractionFailure
from .models import NOT_FOUND_PATH, RenderingMode, RouteEntry

logger = logging.getLogger(__name__)

_ROUTES_VARIABLE = re.compile(r"routes?|router", re.IGNORECASE)
_ARRAY_SOURCES = frozenset({ConstructKind.ROUTER_FACTORY, ConstructKind.ROUTES_HOOK})
_LAZY_WRAPPERS = frozenset({"lazy", "React.lazy", "loadable"})
_CHILD_KEYS = ("children", "routes")
_COMPONENT_KEYS = ("Component", "component")


@dataclass
class RouteDeclaration:
    """A route as written, before flattening."""

    path: Optional[str]
    index: bool = False
    component: Optional[str] = None
    module: Optional[str] = None  # lazy: () => import('./X')
    has_loader: bool = False
    children: List["RouteDeclaration"] = field(default_factory=list)


# =========================================================================
# Path normalization
# =========================================================================

def normalize_route_path(pattern: str) -> str:
    """Normalize a route pattern to bracket syntax.

    ``/users/:id`` -> ``/users/[id]``, ``/docs/:page?`` -> ``/docs/[[...page]]``,
    ``/files/*`` -> ``/files/[...slug]``, top-level ``*`` -> not-found.
    """
    stripped = pattern.strip()
    if stripped.strip("/") == "*":
        return NOT_FOUND_PATH

    segments = []
    for segment in stripped.split("/"):
        if not segment:
            continue
        if segment == "*":
            segments.append("[...slug]")
        elif segment.startswith(":"):
            name = segment[1:]
            optional = name.endswith("?")
            name = name.rstrip("?").split("(", 1)[0] or "param"
            segments.append(f"[[...{name}]]" if optional else f"[{name}]")
        else:
            segments.append(segment)
    return "/" + "/".join(segments)


def join_route_path(parent: Optional[str], child: str) -> str:
    if child.startswith("/") or not parent:
        return child if child.startswith("/") else "/" + child
    return parent.rstrip("/") + "/" + child


# =========================================================================
# Declaration discovery
# =========================================================================

def find_route_declarations(tree: SyntaxTree, signals: FileSignals) -> List[RouteDeclaration]:
    """All top-level route declarations in a file (JSX and object form)."""
    return _jsx_declarations(tree, signals) + _object_declarations(tree, signals)


def count_declared_routes(declarations: List[RouteDeclaration]) -> int:
    return sum(1 + count_declared_routes(d.children) for d in declarations)


def _kind(signals: FileSignals, name: str) -> Optional[ConstructKind]:
    kind = signals.imported_kind(name)
    return kind if kind is not None else lookup(name)


def _is_route_element(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> bool:
    return is_jsx_element(node) and _kind(signals, jsx_name(tree, node)) == ConstructKind.ROUTE


def _jsx_declarations(tree: SyntaxTree, signals: FileSignals) -> List[RouteDeclaration]:
    roots = []
    for node in walk(tree.root):
        if not _is_route_element(tree, signals, node):
            continue
        ancestor = node.parent
        nested = False
        while ancestor is not None:
            if _is_route_element(tree, signals, ancestor):
                nested = True
                break
            ancestor = ancestor.parent
        if not nested:
            roots.append(_read_jsx_route(tree, signals, node))
    return roots


def _route_children(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Route elements nested directly (fragments allowed) under ``node``."""
    found = []
    for child in jsx_children(node):
        if _is_route_element(tree, signals, child):
            found.append(child)
        elif is_jsx_element(child) and not jsx_name(tree, child):
            found.extend(_route_children(tree, signals, child))
    return found


def _read_jsx_route(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> RouteDeclaration:
    attributes = jsx_attribute_map(tree, node)
    declaration = RouteDeclaration(
        path=_attribute_string(tree, attributes.get("path")),
        index="index" in attributes,
        has_loader="loader" in attributes,
    )

    element = jsx_expression_inner(_value(attributes.get("element")))
    if element is not None:
        declaration.component = _component_of_element(tree, signals, element)
    for key in _COMPONENT_KEYS:
        inner = jsx_expression_inner(_value(attributes.get(key)))
        if declaration.component is None and inner is not None:
            declaration.component = tree.text(inner)
    render = jsx_expression_inner(_value(attributes.get("render")))
    if declaration.component is None and render is not None:
        declaration.component = _component_of_element(tree, signals, render)

    route_children = _route_children(tree, signals, node)
    declaration.children = [_read_jsx_route(tree, signals, c) for c in route_children]
    if declaration.component is None and not route_children:
        # v5 style: <Route path="/x"><Home /></Route>
        for child in jsx_children(node):
            if is_jsx_element(child):
                declaration.component = _component_of_element(tree, signals, child)
                break
    return declaration


def _component_of_element(tree: SyntaxTree, signals: FileSignals, node: tree_sitter.Node) -> Optional[str]:
    """Component rendered by an element, looking through guard wrappers."""
    element = next((n for n in walk(node) if is_jsx_element(n) and jsx_name(tree, n)), None)
    while element is not None:
        children = [c for c in jsx_children(element) if is_jsx_element(c) and jsx_name(tree, c)]
        name = jsx_name(tree, element)
        kind = _kind(signals, name)
        if len(children) == 1 and kind is None:
            inner = children[0]
            if _kind(signals, jsx_name(tree, inner)) is None:
                element = inner
                continue
        return name if kind is None else None
    return None


def _object_declarations(tree: SyntaxTree, signals: FileSignals) -> List[RouteDeclaration]:
    arrays: List[tree_sitter.Node] = []
    seen: Set[int] = set()
    for node in walk(tree.root):
        candidate = None
        if node.type == "call_expression":
            fn = node.child_by_field_name("function")
            if fn is not None and fn.type == "identifier" and _kind(signals, tree.text(fn)) in _ARRAY_SOURCES:
                candidate = first_argument(node)
        elif node.type == "variable_declarator":
            name = node.child_by_field_name("name")
            if name is not None and name.type == "identifier" and _ROUTES_VARIABLE.search(tree.text(name)):
                candidate = node.child_by_field_name("value")
        if candidate is not None and candidate.type == "array" and candidate.start_byte not in seen:
            seen.add(candidate.start_byte)
            arrays.append(candidate)

    declarations: List[RouteDeclaration] = []
    for array in arrays:
        declarations.extend(_read_route_array(tree, signals, array))
    return declarations


def _read_route_array(tree: SyntaxTree, signals: FileSignals, array: tree_sitter.Node) -> List[RouteDeclaration]:
    routes = []
    for item in array.named_children:
        if item.type != "object":
            continue
        pairs = _object_pairs(tree, item)
        if "path" not in pairs and "index" not in pairs and not any(k in pairs for k in _CHILD_KEYS):
            continue
        declaration = RouteDeclaration(
            path=string_value(tree, pairs.get("path")),
            index=tree.text(pairs.get("index")) == "true",
            has_loader="loader" in pairs,
        )
        element = pairs.get("element")
        if element is not None:
            declaration.component = _component_of_element(tree, signals, element)
        for key in _COMPONENT_KEYS:
            if declaration.component is None and key in pairs:
                declaration.component = tree.text(pairs[key])
        if "lazy" in pairs:
            declaration.module = _dynamic_import_target(tree, pairs["lazy"])
        for key in _CHILD_KEYS:
            value = pairs.get(key)
            if value is not None and value.type == "array":
                declaration.children = _read_route_array(tree, signals, value)
        routes.append(declaration)
    return routes


def _object_pairs(tree: SyntaxTree, obj: tree_sitter.Node) -> Dict[str, tree_sitter.Node]:
    pairs = {}
    for child in obj.named_children:
        if child.type == "pair":
            key = tree.text(child.child_by_field_name("key")).strip("'\"")
            pairs[key] = child.child_by_field_name("value")
        elif child.type == "shorthand_property_identifier":
            pairs[tree.text(child)] = child
        elif child.type == "method_definition":
            name = child.child_by_field_name("name")
            pairs[tree.text(name)] = child
    return pairs


def _value(attribute: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    return jsx_attribute_value(attribute) if attribute is not None else None


def _attribute_string(tree: SyntaxTree, attribute: Optional[tree_sitter.Node]) -> Optional[str]:
    value = _value(attribute)
    if value is None:
        return None
    literal = string_value(tree, value)
    if literal is not None:
        return literal
    return string_value(tree, jsx_expression_inner(value))


# =========================================================================
# Component modules
# =========================================================================

def component_modules(tree: SyntaxTree) -> Dict[str, str]:
    """Local component name -> module specifier it was loaded from.

    Covers static imports, ``lazy(() => import())`` and ``require()``.
    """
    modules: Dict[str, str] = {}
    for declaration in iter_imports(tree):
        if declaration.default:
            modules[declaration.default] = declaration.module
        for spec in declaration.specifiers:
            modules[spec.local] = declaration.module

    for node in walk(tree.root):
        if node.type != "variable_declarator":
            continue
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name is None or name.type != "identifier" or value is None or value.type != "call_expression":
            continue
        callee = tree.text(value.child_by_field_name("function"))
        if callee in _LAZY_WRAPPERS:
            target = _dynamic_import_target(tree, first_argument(value))
        elif callee == "require":
            target = string_value(tree, first_argument(value))
        else:
            target = None
        if target:
            modules[tree.text(name)] = target
    return modules


def _dynamic_import_target(tree: SyntaxTree, node: Optional[tree_sitter.Node]) -> Optional[str]:
    """Specifier of the first ``import('...')`` inside ``node``."""
    if node is None:
        return None
    for inner in walk(node):
        if inner.type == "call_expression":
            fn = inner.child_by_field_name("function")
            if fn is not None and fn.type == "import":
                return string_value(tree, first_argument(inner))
    return None


# =========================================================================
# Flattening
# =========================================================================

def extract_routes(
    tree: SyntaxTree,
    signals: FileSignals,
    resolve: Callable[[str], Optional[str]],
    fetches_data: Callable[[Optional[str]], bool],
) -> List[RouteEntry]:
    """Flatten the route declarations of a router configuration file.

    Args:
        tree: Parsed router configuration file
        signals: Its classification
        resolve: Module specifier -> project file (or None)
        fetches_data: Whether a component file performs backend calls

    Raises:
        RouteExtractionFailure: Two routes normalize to the same pattern.
    """
    modules = component_modules(tree)
    entries: List[RouteEntry] = []
    seen: Dict[str, str] = {}

    def _component_path(declaration: RouteDeclaration) -> Optional[str]:
        specifier = declaration.module
        if specifier is None and declaration.component:
            specifier = modules.get(declaration.component.split(".")[0])
        return resolve(specifier) if specifier else None

    def _flatten(declarations: List[RouteDeclaration], parent_raw: Optional[str], parent_norm: Optional[str]):
        for declaration in declarations:
            if declaration.index:
                raw = parent_raw or "/"
            elif declaration.path is not None:
                raw = join_route_path(parent_raw, declaration.path)
            else:
                raw = None  # pathless layout route

            # A parent whose index child claims its path renders as a layout only
            is_layout = any(c.index or c.path == "" for c in declaration.children)

            if raw is not None and not is_layout:
                normalized = normalize_route_path(raw)
                if normalized in seen:
                    raise RouteExtractionFailure(
                        f"Duplicate route pattern '{normalized}' (declared as '{seen[normalized]}' and '{raw}')",
                        file_path=tree.file_path,
                    )
                seen[normalized] = raw
                component_path = _component_path(declaration)
                data = declaration.has_loader or fetches_data(component_path)
                entries.append(RouteEntry(
                    path=normalized,
                    component=declaration.component or _module_stem(declaration.module),
                    component_path=component_path,
                    parent=parent_norm,
                    rendering=RenderingMode.DATA if data else RenderingMode.STATIC,
                    source_path=raw,
                ))

            next_raw = raw if raw is not None else parent_raw
            next_norm = normalize_route_path(next_raw) if next_raw is not None else parent_norm
            _flatten(declaration.children, next_raw, next_norm)

    _flatten(find_route_declarations(tree, signals), None, None)
    logger.info(f"Extracted {len(entries)} route(s) from {tree.file_path}")
    return entries


def _module_stem(specifier: Optional[str]) -> Optional[str]:
    if not specifier:
        return None
    return specifier.rstrip("/").rsplit("/", 1)[-1].split(".")[0] or None
