"""Conversion run data models."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..analyzer.models import RouteEntry
from ..classifier.models import BackendCall
from ..rewrite.base import Convention, RewriteAction
from .logs import ConversionLog

if TYPE_CHECKING:
    from .file_tree import FileNode


class ConversionState(str, Enum):
    IDLE = "idle"
    INGESTING = "ingesting"
    ANALYZING = "analyzing"
    TRANSFORMING = "transforming"
    ROUTE_PLACEMENT = "route_placement"
    VALIDATING = "validating"
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ConversionState.COMPLETED,
            ConversionState.COMPLETED_WITH_WARNINGS,
            ConversionState.FAILED,
        )


CATEGORIES = ("pages", "components", "api", "styles", "config", "public")

# Category -> directory on disk, per convention
CATEGORY_DIRS: Dict[Convention, Dict[str, str]] = {
    Convention.PAGES: {
        "pages": "pages",
        "components": "components",
        "api": "pages/api",
        "styles": "styles",
        "config": "",
        "public": "public",
    },
    Convention.APP: {
        "pages": "app",
        "components": "components",
        "api": "app/api",
        "styles": "styles",
        "config": "",
        "public": "public",
    },
}


class OutputTree:
    """Generated project, grouped by category.

    Keys are paths relative to the category directory (``about.js`` in
    ``pages``). Built incrementally during one run.
    """

    def __init__(self, convention: Convention = Convention.PAGES):
        self.convention = convention
        self._files: Dict[str, Dict[str, str]] = {c: {} for c in CATEGORIES}

    def put(self, category: str, path: str, text: str, overwrite: bool = True) -> bool:
        """Store a file. Returns False when ``overwrite`` is off and the key exists."""
        bucket = self._files[category]
        if not overwrite and path in bucket:
            return False
        bucket[path] = text
        return True

    def get(self, category: str, path: str) -> Optional[str]:
        return self._files[category].get(path)

    def has(self, category: str, path: str) -> bool:
        return path in self._files[category]

    def category(self, name: str) -> Dict[str, str]:
        return dict(self._files[name])

    def items(self) -> Iterator[Tuple[str, str, str]]:
        """Yield (category, path, text) for every file."""
        for category in CATEGORIES:
            for path, text in sorted(self._files[category].items()):
                yield category, path, text

    def full_path(self, category: str, path: str) -> str:
        """Project-relative path of a file on disk."""
        base = CATEGORY_DIRS[self.convention][category]
        return f"{base}/{path}" if base else path

    def disk_files(self) -> Dict[str, str]:
        return {self.full_path(c, p): t for c, p, t in self.items()}

    def freeze(self) -> Dict[str, Mapping[str, str]]:
        return {c: MappingProxyType(dict(self._files[c])) for c in CATEGORIES}

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._files.values())


@dataclass
class FileOutcome:
    """Result-style outcome of transforming one file."""

    path: str
    ok: bool
    text: str
    actions: List[RewriteAction] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    backend_calls: List[BackendCall] = field(default_factory=list)
    error: Optional[str] = None
    passthrough: bool = False  # emitted unchanged (parse failure or oversized)

    @classmethod
    def success(cls, path: str, text: str, **kwargs) -> "FileOutcome":
        return cls(path=path, ok=True, text=text, **kwargs)

    @classmethod
    def failure(cls, path: str, original_text: str, error: str) -> "FileOutcome":
        return cls(path=path, ok=False, text=original_text, error=error, passthrough=True)


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    missing: List[Tuple[str, str]] = field(default_factory=list)  # (category, path)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass
class ConversionStats:
    total_files: int = 0
    converted_files: int = 0
    failed_files: int = 0
    conversion_time: float = 0.0  # ms
    stage_times: Dict[str, float] = field(default_factory=dict)  # ms per state


@dataclass
class ConversionResult:
    """Terminal result of a run. Always carries a usable project."""

    state: ConversionState
    output: OutputTree
    logs: ConversionLog
    stats: ConversionStats
    file_structure: "FileNode"
    validation: Optional[ValidationResult] = None
    routes: List[RouteEntry] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None

    @property
    def pages(self) -> Dict[str, str]:
        return self.output.category("pages")

    @property
    def components(self) -> Dict[str, str]:
        return self.output.category("components")

    @property
    def api(self) -> Dict[str, str]:
        return self.output.category("api")

    @property
    def styles(self) -> Dict[str, str]:
        return self.output.category("styles")

    @property
    def config(self) -> Dict[str, str]:
        return self.output.category("config")

    @property
    def public(self) -> Dict[str, str]:
        return self.output.category("public")

    def to_dict(self) -> Dict[str, Any]:
        """camelCase shape expected by callers (``fileStructure``, ``stats.totalFiles``)."""
        from ...schemas import ConversionResultSchema

        return ConversionResultSchema.from_result(self).model_dump(by_alias=True)
