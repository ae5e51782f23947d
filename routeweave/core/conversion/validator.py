"""Output validator.

Structural checks only: mandatory files are present, every route has a
page, generated scripts still parse, and no file uses a framework binding
(router accessor, link, head or image component) it never imports.
Semantics of the rewritten code are not checked.
"""

import logging
import posixpath
import re
from typing import Collection, Iterable, Optional, Set

from ..analyzer.models import RouteEntry
from ..ast_parser import SyntaxTree, detect_dialect, parse_source
from ..ast_parser.imports import iter_imports
from ..rewrite import Convention
from .models import OutputTree, ValidationResult
from .placement import route_page_key, top_level_names
from .skeleton import mandatory_files

logger = logging.getLogger(__name__)

PAGE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")

# Binding name -> pattern of its use
BINDING_USES = {
    "useRouter": re.compile(r"\buseRouter\s*\("),
    "Link": re.compile(r"<Link\b"),
    "Head": re.compile(r"<Head\b"),
    "Image": re.compile(r"<Image\b"),
}


def validate(
    output: OutputTree,
    routes: Iterable[RouteEntry] = (),
    convention: Optional[Convention] = None,
    typed: bool = False,
    opaque: Collection[str] = (),
) -> ValidationResult:
    """Check an output tree for structural completeness.

    Args:
        output: Generated project
        routes: Route table the project was placed from
        convention: Target convention (defaults to the tree's own)
        typed: Whether synthesized files should carry typed extensions
        opaque: Disk paths emitted unchanged; not re-parsed

    Returns:
        ValidationResult. ``missing`` lists mandatory (category, path)
        pairs for the caller to synthesize.
    """
    convention = convention or output.convention
    result = ValidationResult(valid=True)

    for category, path in mandatory_files(convention, typed):
        if not _has_any_extension(output, category, path):
            result.missing.append((category, path))
            result.errors.append(f"Missing mandatory file {output.full_path(category, path)}")

    for route in routes:
        key = route_page_key(route, convention, ".js")
        if not _has_any_extension(output, "pages", key):
            result.errors.append(f"Route {route.path} has no page ({output.full_path('pages', key)})")

    for category, path, text in output.items():
        disk_path = output.full_path(category, path)
        if detect_dialect(path) is None or disk_path in opaque or path.endswith(".d.ts"):
            continue
        tree = parse_source(text, path)
        if not isinstance(tree, SyntaxTree):
            result.warnings.append(f"{disk_path} does not parse after conversion: {tree.describe()}")
            continue
        for name in sorted(_dangling(tree, text)):
            result.errors.append(f"{disk_path} uses {name} without importing it")

    result.valid = not result.errors
    logger.info(
        f"Validation: valid={result.valid}, errors={len(result.errors)}, warnings={len(result.warnings)}"
    )
    return result


def _has_any_extension(output: OutputTree, category: str, path: str) -> bool:
    stem, ext = posixpath.splitext(path)
    if ext not in PAGE_EXTENSIONS:
        return output.has(category, path)
    return any(output.has(category, stem + candidate) for candidate in PAGE_EXTENSIONS)


def _dangling(tree: SyntaxTree, text: str) -> Set[str]:
    used = [name for name, pattern in BINDING_USES.items() if pattern.search(text)]
    if not used:
        return set()
    bound: Set[str] = set(top_level_names(tree))
    for declaration in iter_imports(tree):
        bound.update(declaration.local_names)
    return {name for name in used if name not in bound}
