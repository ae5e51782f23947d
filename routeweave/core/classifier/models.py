"""Pattern classifier data models.

Pure data containers describing what a file contains. Produced by
``classify`` and consumed read-only by the rewrite passes and the analyzer.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from .constructs import ConstructKind


@dataclass(frozen=True)
class ImportedName:
    """A specifier imported from a navigation or head module."""

    module: str  # "react-router-dom"
    imported: str  # "useNavigate"
    local: str  # "useNav" for `useNavigate as useNav`
    kind: ConstructKind


@dataclass(frozen=True)
class BackendCall:
    """A fetch/axios call whose first argument targets the project's own API."""

    method: str  # "GET" | "POST" | ...
    endpoint: str  # "users" for "/api/users"
    raw_url: str  # "/api/users"


@dataclass
class FileSignals:
    """Everything the rewrite passes need to know about one file."""

    file_path: str
    navigation_imports: List[ImportedName] = field(default_factory=list)
    head_imports: List[ImportedName] = field(default_factory=list)
    # Table hook names called anywhere in the file (imported or not)
    hook_calls: FrozenSet[str] = frozenset()
    # Local name -> accessor it is bound to ("navigate" -> "useNavigate")
    handle_bindings: Dict[str, str] = field(default_factory=dict)
    navigator_calls: FrozenSet[str] = frozenset()
    link_elements: FrozenSet[str] = frozenset()
    container_elements: FrozenSet[str] = frozenset()
    has_head_elements: bool = False
    has_image_elements: bool = False
    image_count: int = 0
    title_count: int = 0
    uses_client_hooks: bool = False
    has_data_fetching: bool = False
    backend_calls: List[BackendCall] = field(default_factory=list)
    env_references: FrozenSet[str] = frozenset()
    # Names imported from the target framework ("useRouter", "Link", ...)
    framework_imports: FrozenSet[str] = frozenset()

    def imported_kind(self, local: str) -> Optional[ConstructKind]:
        """Construct kind of a name imported from a navigation/head module."""
        for entry in self.navigation_imports:
            if entry.local == local:
                return entry.kind
        for entry in self.head_imports:
            if entry.local == local:
                return entry.kind
        return None

    def imported_entry(self, local: str) -> Optional[ImportedName]:
        for entry in self.navigation_imports + self.head_imports:
            if entry.local == local:
                return entry
        return None

    @property
    def has_navigation_usage(self) -> bool:
        return bool(
            self.navigation_imports
            or self.head_imports
            or self.hook_calls
            or self.navigator_calls
            or self.link_elements
            or self.container_elements
        )
