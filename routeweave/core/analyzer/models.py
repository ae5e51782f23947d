"""Project analyzer data models."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class FileLanguage(str, Enum):
    """Per-file classification used to route files through the pipeline."""

    SCRIPT = "script"
    SCRIPT_MARKUP = "script_markup"
    TYPED = "typed"
    TYPED_MARKUP = "typed_markup"
    STYLE = "style"
    JSON = "json"
    MARKUP_DOCUMENT = "markup_document"
    ASSET = "asset"
    OTHER = "other"

    @property
    def is_script(self) -> bool:
        return self in (
            FileLanguage.SCRIPT,
            FileLanguage.SCRIPT_MARKUP,
            FileLanguage.TYPED,
            FileLanguage.TYPED_MARKUP,
        )


class RenderingMode(str, Enum):
    STATIC = "static"
    DATA = "data"


@dataclass(frozen=True)
class SourceFile:
    """One input file. Rewrites produce a new SourceFile."""

    path: str  # project-relative, forward slashes
    text: str
    language: FileLanguage
    size: int = 0

    def with_text(self, text: str) -> "SourceFile":
        return replace(self, text=text, size=len(text.encode("utf-8")))


NOT_FOUND_PATH = "*"


@dataclass(frozen=True)
class RouteEntry:
    """One declared route.

    ``path`` is the normalized pattern (``/users/[id]``); ``source_path`` is
    the pattern as written (``/users/:id``).
    """

    path: str
    component: Optional[str]
    component_path: Optional[str] = None
    parent: Optional[str] = None
    rendering: RenderingMode = RenderingMode.STATIC
    source_path: str = ""

    @property
    def is_not_found(self) -> bool:
        return self.path == NOT_FOUND_PATH

    @property
    def is_dynamic(self) -> bool:
        return "[" in self.path


@dataclass(frozen=True)
class DirectoryConventions:
    """Layout of the source project."""

    source_root: str = ""  # "src" or "" for flat projects
    page_dirs: Tuple[str, ...] = ()  # "src/pages", "src/views", ...
    component_dirs: Tuple[str, ...] = ()
    has_public_dir: bool = False


@dataclass
class DependencySummary:
    declared: Dict[str, str] = field(default_factory=dict)  # package.json name -> version
    dev_declared: Dict[str, str] = field(default_factory=dict)
    imported: FrozenSet[str] = frozenset()  # bare package names seen in imports
    incompatible: List[Tuple[str, str]] = field(default_factory=list)  # (name, reason)


@dataclass
class ProjectAnalysis:
    """Everything the orchestrator learns about a project before rewriting."""

    uses_typed_dialect: bool = False
    languages: Dict[str, FileLanguage] = field(default_factory=dict)
    conventions: DirectoryConventions = field(default_factory=DirectoryConventions)
    router_config_path: Optional[str] = None
    routes: List[RouteEntry] = field(default_factory=list)
    route_error: Optional[str] = None
    dependencies: DependencySummary = field(default_factory=DependencySummary)
    entry_points: List[str] = field(default_factory=list)
    global_styles: List[str] = field(default_factory=list)
    env_variables: List[str] = field(default_factory=list)
    document_title: Optional[str] = None
    project_name: str = "next-app"

    def route_for_component(self, component_path: str) -> List[RouteEntry]:
        return [r for r in self.routes if r.component_path == component_path]
