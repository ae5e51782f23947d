"""Project analyzer.

Runs once per conversion, before any rewrite. Parses every script file,
classifies it, and derives the project-wide facts the orchestrator needs:
dialect, layout, route table, dependencies, entry points and environment.
"""

import logging
import posixpath
import re
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Set, Tuple, Union

from ..ast_parser import ParseFailure, SyntaxTree, detect_dialect, parse_source
from ..ast_parser.imports import iter_imports
from ..ast_parser.utils import walk
from ..classifier import FileSignals, classify
from ..constants import (
    ASSET_EXTENSIONS,
    ENV_PREFIXES,
    MARKUP_DOCUMENT_EXTENSIONS,
    NAVIGATION_MODULES,
    ROUTER_CONFIG_STEMS,
    STYLE_EXTENSIONS,
)
from ..errors import RouteExtractionFailure
from .dependencies import read_package_json, summarize_dependencies
from .models import DirectoryConventions, FileLanguage, ProjectAnalysis
from .resolve import package_name, resolve_module
from .routes import count_declared_routes, extract_routes, find_route_declarations

if TYPE_CHECKING:
    from ...setting import RouteweaveSettings
    from ..conversion.logs import ConversionLog

logger = logging.getLogger(__name__)

_JSX_HINT = re.compile(r"</[A-Za-z]|/>")
_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_ENV_LINE = re.compile(r"^\s*(?:export\s+)?([A-Z][A-Z0-9_]*)\s*=", re.MULTILINE)
_ROUTE_HINTS = ("<Route", "createBrowserRouter", "createHashRouter", "useRoutes")
_ENTRY_CALLS = frozenset({
    "ReactDOM.render",
    "ReactDOM.hydrate",
    "createRoot",
    "ReactDOM.createRoot",
    "ReactDOMClient.createRoot",
    "hydrateRoot",
    "ReactDOM.hydrateRoot",
})
_PAGE_DIR_NAMES = frozenset({"pages", "views", "screens", "routes"})
_COMPONENT_DIR_NAMES = frozenset({"components", "shared", "ui", "layouts"})

Parsed = Union[SyntaxTree, ParseFailure]


def classify_language(path: str, text: str = "") -> FileLanguage:
    """Classify a file by extension (and, for ``.js``, by content)."""
    name = posixpath.basename(path).lower()
    ext = posixpath.splitext(name)[1]
    dialect = detect_dialect(path)
    if dialect is not None:
        if ext in (".ts", ".mts", ".cts"):
            return FileLanguage.TYPED
        if ext == ".tsx":
            return FileLanguage.TYPED_MARKUP
        if ext == ".jsx" or _JSX_HINT.search(text):
            return FileLanguage.SCRIPT_MARKUP
        return FileLanguage.SCRIPT
    if ext in STYLE_EXTENSIONS:
        return FileLanguage.STYLE
    if ext == ".json":
        return FileLanguage.JSON
    if ext in MARKUP_DOCUMENT_EXTENSIONS:
        return FileLanguage.MARKUP_DOCUMENT
    if ext in ASSET_EXTENSIONS:
        return FileLanguage.ASSET
    return FileLanguage.OTHER


def detect_conventions(paths: List[str]) -> DirectoryConventions:
    source_root = "src" if any(p.startswith("src/") for p in paths) else ""
    page_dirs: Set[str] = set()
    component_dirs: Set[str] = set()
    for path in paths:
        parts = path.split("/")[:-1]
        for i, part in enumerate(parts):
            lowered = part.lower()
            if lowered in _PAGE_DIR_NAMES:
                page_dirs.add("/".join(parts[:i + 1]))
            elif lowered in _COMPONENT_DIR_NAMES:
                component_dirs.add("/".join(parts[:i + 1]))
    return DirectoryConventions(
        source_root=source_root,
        page_dirs=tuple(sorted(page_dirs)),
        component_dirs=tuple(sorted(component_dirs)),
        has_public_dir=any(p.startswith("public/") for p in paths),
    )


def analyze(
    files: Mapping[str, str],
    settings: Optional["RouteweaveSettings"] = None,
    log: Optional["ConversionLog"] = None,
) -> ProjectAnalysis:
    """Analyze a project given as ``path -> text`` (paths already normalized).

    Args:
        files: Project files
        settings: Runtime settings (file size limit)
        log: Run log receiving analysis findings

    Returns:
        ProjectAnalysis. Route extraction problems are reported through
        ``route_error``, never raised.
    """
    max_bytes = settings.max_file_size_kb * 1024 if settings is not None else None
    paths = sorted(files)
    analysis = ProjectAnalysis()
    analysis.languages = {p: classify_language(p, files[p]) for p in paths}
    analysis.conventions = detect_conventions(paths)

    # Parse and classify every script file once
    parsed: Dict[str, Parsed] = {}
    signals: Dict[str, FileSignals] = {}
    for path in paths:
        if not analysis.languages[path].is_script:
            continue
        text = files[path]
        if max_bytes is not None and len(text.encode("utf-8")) > max_bytes:
            continue
        result = parse_source(text, path)
        parsed[path] = result
        if isinstance(result, SyntaxTree):
            signals[path] = classify(result)

    package, package_error = read_package_json(files.get("package.json"))
    if package_error and log is not None:
        log.warning(package_error, file="package.json", source=logger)
    analysis.project_name = str(package.get("name") or "next-app")

    imported: Set[str] = set()
    for path, tree in parsed.items():
        if isinstance(tree, SyntaxTree):
            for declaration in iter_imports(tree):
                name = package_name(declaration.module)
                if name:
                    imported.add(name)
    analysis.dependencies = summarize_dependencies(package, imported)

    declared = set(analysis.dependencies.declared) | set(analysis.dependencies.dev_declared)
    analysis.uses_typed_dialect = (
        any(lang in (FileLanguage.TYPED, FileLanguage.TYPED_MARKUP) for lang in analysis.languages.values())
        or "tsconfig.json" in files
        or "typescript" in declared
    )

    source_root = analysis.conventions.source_root
    analysis.entry_points = [p for p, t in parsed.items() if isinstance(t, SyntaxTree) and _is_entry_point(t)]
    analysis.global_styles = _entry_stylesheets(analysis.entry_points, parsed, files)
    analysis.env_variables = _env_variables(files, signals)
    analysis.document_title = _document_title(files)

    _extract_route_table(analysis, files, parsed, signals, source_root, log)

    logger.info(
        f"Analyzed {len(paths)} files: typed={analysis.uses_typed_dialect}, "
        f"routes={len(analysis.routes)}, entry_points={len(analysis.entry_points)}"
    )
    return analysis


# =========================================================================
# Route table
# =========================================================================

def _extract_route_table(
    analysis: ProjectAnalysis,
    files: Mapping[str, str],
    parsed: Dict[str, Parsed],
    signals: Dict[str, FileSignals],
    source_root: str,
    log: Optional["ConversionLog"],
) -> None:
    candidates: List[Tuple[Tuple, str]] = []
    for path, tree in parsed.items():
        if isinstance(tree, SyntaxTree):
            count = count_declared_routes(find_route_declarations(tree, signals[path]))
            if count:
                candidates.append((_config_rank(path, count), path))
        elif _looks_like_router_config(files[path]):
            candidates.append((_config_rank(path, 1), path))

    if not candidates:
        logger.info("No router configuration found; project treated as routeless")
        return

    candidates.sort()
    config_path = candidates[0][1]
    analysis.router_config_path = config_path
    tree = parsed[config_path]

    if isinstance(tree, ParseFailure):
        failure = RouteExtractionFailure(
            f"Router configuration could not be parsed: {tree.describe()}",
            file_path=config_path,
        )
        analysis.route_error = failure.message
        return

    paths = list(files)

    def _resolve(specifier: str) -> Optional[str]:
        return resolve_module(config_path, specifier, paths, source_root)

    def _fetches_data(component_path: Optional[str]) -> bool:
        file_signals = signals.get(component_path) if component_path else None
        return bool(file_signals and (file_signals.has_data_fetching or file_signals.backend_calls))

    try:
        analysis.routes = extract_routes(tree, signals[config_path], _resolve, _fetches_data)
    except RouteExtractionFailure as e:
        analysis.routes = []
        analysis.route_error = e.message
        return

    if log is not None:
        log.info(f"Found {len(analysis.routes)} route(s) in router configuration", file=config_path, source=logger)


def _config_rank(path: str, count: int) -> Tuple:
    stem = posixpath.splitext(posixpath.basename(path))[0].lower()
    priority = ROUTER_CONFIG_STEMS.index(stem) if stem in ROUTER_CONFIG_STEMS else len(ROUTER_CONFIG_STEMS)
    return (priority, -count, path.count("/"), path)


def _looks_like_router_config(text: str) -> bool:
    return any(m in text for m in NAVIGATION_MODULES) and any(h in text for h in _ROUTE_HINTS)


# =========================================================================
# Entry points, styles, environment
# =========================================================================

def _is_entry_point(tree: SyntaxTree) -> bool:
    for node in walk(tree.root):
        if node.type == "call_expression":
            fn = node.child_by_field_name("function")
            if fn is not None and tree.text(fn) in _ENTRY_CALLS:
                return True
    return False


def _entry_stylesheets(entry_points: List[str], parsed: Dict[str, Parsed], files: Mapping[str, str]) -> List[str]:
    styles: List[str] = []
    for path in entry_points:
        tree = parsed[path]
        for declaration in iter_imports(tree):
            if not declaration.is_side_effect or not declaration.module.startswith("."):
                continue
            target = posixpath.normpath(posixpath.join(posixpath.dirname(path), declaration.module))
            if target.endswith(STYLE_EXTENSIONS) and target in files and target not in styles:
                styles.append(target)
    return styles


def _env_variables(files: Mapping[str, str], signals: Dict[str, FileSignals]) -> List[str]:
    names: Set[str] = set()
    for file_signals in signals.values():
        names.update(file_signals.env_references)
    for path, text in files.items():
        if posixpath.basename(path).startswith(".env"):
            names.update(m for m in _ENV_LINE.findall(text) if m.startswith(ENV_PREFIXES))
    return sorted(names)


def _document_title(files: Mapping[str, str]) -> Optional[str]:
    for candidate in ("index.html", "public/index.html"):
        text = files.get(candidate)
        if text:
            match = _TITLE.search(text)
            if match and match.group(1).strip():
                return match.group(1).strip()
    return None
