"""Route placement.

Maps the analyzed route table onto the target directory convention and
places every other input file into its output category:

- a component file referenced by a route becomes that route's page
  (``pages/about.jsx`` or ``app/about/page.jsx``); further routes using the
  same component re-export it
- routes whose component cannot be located get a page from the router
  configuration's named export, or a stub
- other scripts and JSON go to ``components/``, stylesheets to ``styles/``,
  assets to ``public/``
- backend-bound requests found by the classifier become API handler stubs
- in the pages convention, data routes get a getServerSideProps scaffold and
  other dynamic routes a getStaticPaths one

Planning happens before any file is written so that relative imports can be
relocated against the final layout.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ..analyzer.analyzer import classify_language
from ..analyzer.models import FileLanguage, ProjectAnalysis, RenderingMode, RouteEntry
from ..analyzer.resolve import relative_specifier, resolve_module
from ..ast_parser import SyntaxTree, parse_source
from ..ast_parser.imports import iter_imports
from ..constants import ADVISORY_MARKER, CONSUMED_CONFIG_FILES, DATA_FETCHING_EXPORTS, STYLE_EXTENSIONS
from ..rewrite import Convention
from .logs import ConversionLog
from .models import FileOutcome, OutputTree
from .relocation import relocate_imports
from .skeleton import (
    GLOBAL_STYLESHEET,
    api_stub,
    group_backend_calls,
    page_path,
    render_home_page,
    render_server_side_props,
    render_static_paths,
    script_ext,
)

logger = logging.getLogger(__name__)


@dataclass
class PlacementPlan:
    """Where every input file ends up."""

    targets: Dict[str, Tuple[str, str]] = field(default_factory=dict)  # input path -> (category, key)
    route_pages: Dict[str, RouteEntry] = field(default_factory=dict)  # input path -> route it renders
    reexports: List[Tuple[RouteEntry, str]] = field(default_factory=list)  # (route, input path of its component)
    unresolved: List[RouteEntry] = field(default_factory=list)
    merged_styles: List[str] = field(default_factory=list)  # folded into styles/globals.css
    skipped: Dict[str, str] = field(default_factory=dict)  # input path -> reason

    def disk_paths(self, output: OutputTree) -> Dict[str, str]:
        """Input path -> project-relative output path, for import relocation."""
        mapping = {src: output.full_path(cat, key) for src, (cat, key) in self.targets.items()}
        globals_path = output.full_path("styles", GLOBAL_STYLESHEET)
        mapping.update({src: globals_path for src in self.merged_styles})
        return mapping


def route_page_key(route: RouteEntry, convention: Convention, ext: str) -> str:
    """Page key for a route: ``about.js``, ``users/[id]/page.js``, ``404.js``."""
    if route.is_not_found:
        return ("not-found" if convention == Convention.APP else "404") + ext
    segments = route.path.strip("/")
    if convention == Convention.APP:
        return f"{segments}/page{ext}" if segments else f"page{ext}"
    return f"{segments or 'index'}{ext}"


def plan_placement(
    files: Mapping[str, str],
    analysis: ProjectAnalysis,
    convention: Convention,
    typed: bool,
) -> PlacementPlan:
    plan = PlacementPlan()
    used: Set[Tuple[str, str]] = set()
    source_root = analysis.conventions.source_root

    def _claim(path: str, category: str, key: str) -> None:
        if (category, key) in used:
            key = path
        used.add((category, key))
        plan.targets[path] = (category, key)

    for route in analysis.routes:
        component_path = route.component_path
        if component_path is None or component_path not in files or not _language(analysis, component_path).is_script:
            plan.unresolved.append(route)
        elif component_path in plan.route_pages:
            plan.reexports.append((route, component_path))
        else:
            ext = posixpath.splitext(component_path)[1]
            plan.route_pages[component_path] = route
            _claim(component_path, "pages", route_page_key(route, convention, ext))

    for path in sorted(files):
        if path in plan.targets:
            continue
        language = _language(analysis, path)
        reason = _skip_reason(path, language, analysis)
        if reason:
            plan.skipped[path] = reason
        elif path in analysis.global_styles:
            plan.merged_styles.append(path)
        elif path.startswith("public/"):
            _claim(path, "public", path[len("public/"):])
        elif language.is_script or language == FileLanguage.JSON:
            _claim(path, "components", _strip_dirs(path, source_root, "components"))
        elif language == FileLanguage.STYLE:
            _claim(path, "styles", _strip_dirs(path, source_root, "styles"))
        else:
            _claim(path, "public", _strip_dirs(path, source_root))

    return plan


def place_files(
    plan: PlacementPlan,
    files: Mapping[str, str],
    outcomes: Mapping[str, FileOutcome],
    output: OutputTree,
    analysis: ProjectAnalysis,
    typed: bool,
    log: ConversionLog,
    partial: bool = False,
) -> None:
    """Write every planned file, route page and API stub into ``output``.

    With ``partial`` only files that have a rewrite outcome are written;
    re-export, stub and index pages are left out.
    """
    convention = output.convention
    disk_paths = plan.disk_paths(output)
    paths = list(files)
    source_root = analysis.conventions.source_root

    for path, reason in sorted(plan.skipped.items()):
        log.info(f"Not emitted: {reason}", file=path, source=logger)

    for path, (category, key) in sorted(plan.targets.items()):
        outcome = outcomes.get(path)
        if partial and outcome is None:
            continue
        text = outcome.text if outcome is not None else files[path]
        passthrough = outcome.passthrough if outcome is not None else True

        if outcome is not None and not passthrough:
            text, changes = relocate_imports(text, path, disk_paths[path], disk_paths, paths, source_root)
            if convention == Convention.PAGES:
                _warn_global_css(changes, path, log)

        route = plan.route_pages.get(path)
        if route is not None and not passthrough:
            text = _ensure_default_export(text, path, route, log)
            if convention == Convention.PAGES:
                text = _add_data_fetching(text, path, route, log)

        if not output.put(category, key, text, overwrite=False):
            log.warning(f"Output path {output.full_path(category, key)} already taken; file not emitted", file=path, source=logger)
            continue
        if route is not None:
            log.info(f"Route {route.source_path or route.path} placed at {output.full_path(category, key)}", file=path, source=logger)
            if route.rendering == RenderingMode.DATA and convention == Convention.APP:
                log.info(
                    f"Route {route.path} fetches data on the client; consider fetching in a server component",
                    file=path,
                    source=logger,
                )

    _place_api_stubs(output, outcomes, typed, log)
    if partial:
        return

    for route, component_path in plan.reexports:
        key = route_page_key(route, convention, script_ext(typed))
        target = relative_specifier(output.full_path("pages", key), disk_paths[component_path])
        _put_page(output, key, f"export {{ default }} from '{target}';\n", route, log)

    for route in plan.unresolved:
        key = route_page_key(route, convention, script_ext(typed))
        _put_page(output, key, _unresolved_page(route, key, output, outcomes, files, analysis, disk_paths, log), route, log)

    _place_root_page(output, files, analysis, disk_paths, typed, log)


# =========================================================================
# Route pages
# =========================================================================

def _put_page(output: OutputTree, key: str, text: str, route: RouteEntry, log: ConversionLog) -> None:
    if output.put("pages", key, text, overwrite=False):
        log.info(f"Route {route.source_path or route.path} placed at {output.full_path('pages', key)}", source=logger)
    else:
        log.warning(f"Route {route.path} collides with {output.full_path('pages', key)}; page not generated", source=logger)


def _unresolved_page(
    route: RouteEntry,
    key: str,
    output: OutputTree,
    outcomes: Mapping[str, FileOutcome],
    files: Mapping[str, str],
    analysis: ProjectAnalysis,
    disk_paths: Mapping[str, str],
    log: ConversionLog,
) -> str:
    config_path = analysis.router_config_path
    component = route.component
    if component and config_path and config_path in disk_paths:
        outcome = outcomes.get(config_path)
        text = outcome.text if outcome is not None else files[config_path]
        tree = parse_source(text, config_path)
        if isinstance(tree, SyntaxTree) and component in exported_names(tree):
            target = relative_specifier(output.full_path("pages", key), disk_paths[config_path])
            return f"export {{ {component} as default }} from '{target}';\n"

    log.warning(
        f"Component {component or '(none)'} for route {route.path} could not be located; stub page generated",
        file=config_path,
        source=logger,
    )
    return render_stub_page(route)


def render_stub_page(route: RouteEntry) -> str:
    name = _component_name(route.component)
    return f"""/* {ADVISORY_MARKER} stub for route {route.source_path or route.path}: component {route.component or '(none)'} was not found */
export default function {name}() {{
  return <main>{name}</main>;
}}
"""


def _ensure_default_export(text: str, path: str, route: RouteEntry, log: ConversionLog) -> str:
    tree = parse_source(text, path)
    if not isinstance(tree, SyntaxTree) or has_default_export(tree):
        return text
    name = route.component
    if name and name in top_level_names(tree):
        log.info(f"Added default export of {name} for route {route.path}", file=path, source=logger)
        return text.rstrip("\n") + f"\n\nexport default {name};\n"
    log.warning(f"Page for route {route.path} has no default export", file=path, source=logger)
    return text


def _add_data_fetching(text: str, path: str, route: RouteEntry, log: ConversionLog) -> str:
    """Append a data-fetching scaffold to a route page of the pages convention.

    Data routes get getServerSideProps; other dynamic routes get
    getStaticPaths. Pages already exporting a strategy are left alone.
    """
    if route.is_not_found:
        return text
    if route.rendering == RenderingMode.DATA:
        kind, scaffold = "getServerSideProps", render_server_side_props(route.path)
    elif route.is_dynamic:
        kind, scaffold = "getStaticPaths", render_static_paths(route.path)
    else:
        return text

    tree = parse_source(text, path)
    if not isinstance(tree, SyntaxTree) or exported_names(tree) & DATA_FETCHING_EXPORTS:
        return text
    log.info(f"{kind} scaffold added for route {route.path}", file=path, source=logger)
    return text.rstrip("\n") + "\n" + scaffold


def _place_root_page(
    output: OutputTree,
    files: Mapping[str, str],
    analysis: ProjectAnalysis,
    disk_paths: Mapping[str, str],
    typed: bool,
    log: ConversionLog,
) -> None:
    """Give routeless projects an index page rendering the entry's root component."""
    convention = output.convention
    key = page_path("/", convention, typed)
    if output.has("pages", key) or analysis.routes:
        return

    page_disk = output.full_path("pages", key)
    for entry in analysis.entry_points:
        tree = parse_source(files[entry], entry)
        if not isinstance(tree, SyntaxTree):
            continue
        for declaration in iter_imports(tree):
            target = resolve_module(entry, declaration.module, list(files), analysis.conventions.source_root)
            if declaration.default and target in disk_paths and _language(analysis, target).is_script:
                name = declaration.default
                specifier = relative_specifier(page_disk, disk_paths[target])
                output.put("pages", key, render_root_page(name, specifier))
                log.info(f"Index page renders {name} from the entry point", file=entry, source=logger)
                return

    output.put("pages", key, render_home_page())
    log.info("No root route or entry component found; default index page generated", source=logger)


def render_root_page(name: str, specifier: str) -> str:
    return f"""import {name} from '{specifier}';

export default function Home() {{
  return <{name} />;
}}
"""


def _place_api_stubs(output: OutputTree, outcomes: Mapping[str, FileOutcome], typed: bool, log: ConversionLog) -> None:
    calls = [(c.method, c.endpoint) for o in outcomes.values() for c in o.backend_calls]
    for endpoint, methods in sorted(group_backend_calls(calls).items()):
        key, text = api_stub(endpoint, methods, output.convention, typed)
        if output.put("api", key, text, overwrite=False):
            log.info(f"API handler stub for {', '.join(methods)} /api/{endpoint}", source=logger)


# =========================================================================
# Helpers
# =========================================================================

def has_default_export(tree: SyntaxTree) -> bool:
    for child in tree.root.named_children:
        if child.type != "export_statement":
            continue
        if any(c.type == "default" for c in child.children):
            return True
        clause = next((c for c in child.named_children if c.type == "export_clause"), None)
        if clause is not None and any(_export_alias(tree, s) == "default" for s in clause.named_children):
            return True
    return False


def exported_names(tree: SyntaxTree) -> Set[str]:
    names: Set[str] = set()
    for child in tree.root.named_children:
        if child.type != "export_statement" or child.child_by_field_name("source") is not None:
            continue
        declaration = child.child_by_field_name("declaration")
        if declaration is not None:
            names.update(_declared_names(tree, declaration))
        clause = next((c for c in child.named_children if c.type == "export_clause"), None)
        if clause is not None:
            names.update(_export_alias(tree, s) for s in clause.named_children if s.type == "export_specifier")
    return names


def top_level_names(tree: SyntaxTree) -> Set[str]:
    names: Set[str] = set()
    for child in tree.root.named_children:
        target = child.child_by_field_name("declaration") if child.type == "export_statement" else child
        if target is not None:
            names.update(_declared_names(tree, target))
    return names


def _declared_names(tree: SyntaxTree, node) -> List[str]:
    if node.type in ("function_declaration", "generator_function_declaration", "class_declaration"):
        name = node.child_by_field_name("name")
        return [tree.text(name)] if name is not None else []
    if node.type in ("lexical_declaration", "variable_declaration"):
        names = []
        for declarator in node.named_children:
            name = declarator.child_by_field_name("name") if declarator.type == "variable_declarator" else None
            if name is not None and name.type == "identifier":
                names.append(tree.text(name))
        return names
    return []


def _export_alias(tree: SyntaxTree, specifier) -> str:
    alias = specifier.child_by_field_name("alias")
    name = specifier.child_by_field_name("name")
    node = alias if alias is not None else name
    return tree.text(node) if node is not None else ""


def _warn_global_css(changes: List[Tuple[str, str]], path: str, log: ConversionLog) -> None:
    for _, specifier in changes:
        if specifier.endswith(STYLE_EXTENSIONS) and ".module." not in specifier:
            log.warning(
                f"Global stylesheet {specifier} imported outside _app; the pages router only allows it in _app",
                file=path,
                source=logger,
            )


def _skip_reason(path: str, language: FileLanguage, analysis: ProjectAnalysis) -> Optional[str]:
    name = posixpath.basename(path)
    if name in CONSUMED_CONFIG_FILES:
        return "project configuration regenerated for the framework"
    if path in analysis.entry_points:
        return "entry point replaced by the root layout"
    if name.startswith(".env"):
        return "environment file; variables listed in .env.local.example"
    if language == FileLanguage.MARKUP_DOCUMENT and (name == "index.html" or not path.startswith("public/")):
        return "HTML shell replaced by the root layout"
    if language == FileLanguage.OTHER:
        return "no counterpart in the output project"
    return None


def _strip_dirs(path: str, source_root: str, *leading: str) -> str:
    if source_root and path.startswith(source_root + "/"):
        path = path[len(source_root) + 1:]
    for directory in leading:
        if path.startswith(directory + "/"):
            path = path[len(directory) + 1:]
    return path


def _language(analysis: ProjectAnalysis, path: str) -> FileLanguage:
    language = analysis.languages.get(path)
    return language if language is not None else classify_language(path)


def _component_name(component: Optional[str]) -> str:
    name = "".join(ch for ch in (component or "").split(".")[-1] if ch.isalnum() or ch == "_")
    if not name or not name[0].isalpha():
        return "RoutePage"
    return name[0].upper() + name[1:]
