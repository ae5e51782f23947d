"""Construct classification table.

Maps names exported by the navigation and head libraries to the kind of
construct they represent. Recognising a new construct is a table entry,
not a new branch in the classifier or the passes.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional


class ConstructKind(str, Enum):
    """Role of a navigation-library (or head-library) export."""

    WRAPPER_CONTAINER = "wrapper_container"
    ROUTE_TABLE = "route_table"
    ROUTE = "route"
    OUTLET = "outlet"
    REDIRECT = "redirect"
    LINK = "link"
    NAV_LINK = "nav_link"
    NAVIGATE_HOOK = "navigate_hook"
    HISTORY_HOOK = "history_hook"
    LOCATION_HOOK = "location_hook"
    PARAMS_HOOK = "params_hook"
    SEARCH_PARAMS_HOOK = "search_params_hook"
    MATCH_HOOK = "match_hook"
    ROUTES_HOOK = "routes_hook"
    ROUTER_FACTORY = "router_factory"
    ROUTER_HOC = "router_hoc"
    HEAD = "head"
    OTHER = "other"


CONSTRUCT_TABLE: Dict[str, ConstructKind] = {
    # Containers with no role under file-system routing
    "BrowserRouter": ConstructKind.WRAPPER_CONTAINER,
    "HashRouter": ConstructKind.WRAPPER_CONTAINER,
    "MemoryRouter": ConstructKind.WRAPPER_CONTAINER,
    "Router": ConstructKind.WRAPPER_CONTAINER,
    "StaticRouter": ConstructKind.WRAPPER_CONTAINER,
    "NativeRouter": ConstructKind.WRAPPER_CONTAINER,
    "HelmetProvider": ConstructKind.WRAPPER_CONTAINER,
    # Route declarations
    "Routes": ConstructKind.ROUTE_TABLE,
    "Switch": ConstructKind.ROUTE_TABLE,
    "RouterProvider": ConstructKind.ROUTE_TABLE,
    "Route": ConstructKind.ROUTE,
    "Outlet": ConstructKind.OUTLET,
    "Navigate": ConstructKind.REDIRECT,
    "Redirect": ConstructKind.REDIRECT,
    # Cross-page links
    "Link": ConstructKind.LINK,
    "NavLink": ConstructKind.NAV_LINK,
    # Hooks
    "useNavigate": ConstructKind.NAVIGATE_HOOK,
    "useHistory": ConstructKind.HISTORY_HOOK,
    "useLocation": ConstructKind.LOCATION_HOOK,
    "useParams": ConstructKind.PARAMS_HOOK,
    "useSearchParams": ConstructKind.SEARCH_PARAMS_HOOK,
    "useRouteMatch": ConstructKind.MATCH_HOOK,
    "useMatch": ConstructKind.MATCH_HOOK,
    "useRoutes": ConstructKind.ROUTES_HOOK,
    # Router construction
    "createBrowserRouter": ConstructKind.ROUTER_FACTORY,
    "createHashRouter": ConstructKind.ROUTER_FACTORY,
    "createMemoryRouter": ConstructKind.ROUTER_FACTORY,
    "createRoutesFromElements": ConstructKind.ROUTER_FACTORY,
    "withRouter": ConstructKind.ROUTER_HOC,
    # Head management
    "Helmet": ConstructKind.HEAD,
}

HOOK_KINDS: FrozenSet[ConstructKind] = frozenset({
    ConstructKind.NAVIGATE_HOOK,
    ConstructKind.HISTORY_HOOK,
    ConstructKind.LOCATION_HOOK,
    ConstructKind.PARAMS_HOOK,
    ConstructKind.SEARCH_PARAMS_HOOK,
    ConstructKind.MATCH_HOOK,
})

# Imports removed outright: no counterpart is imported in their place
REMOVED_KINDS: FrozenSet[ConstructKind] = frozenset({
    ConstructKind.WRAPPER_CONTAINER,
    ConstructKind.ROUTE_TABLE,
    ConstructKind.ROUTE,
    ConstructKind.OUTLET,
    ConstructKind.REDIRECT,
    ConstructKind.ROUTES_HOOK,
    ConstructKind.ROUTER_FACTORY,
    ConstructKind.ROUTER_HOC,
})

LINK_KINDS: FrozenSet[ConstructKind] = frozenset({ConstructKind.LINK, ConstructKind.NAV_LINK})

# Element kinds handled by the element pass when rendered as JSX
ELEMENT_KINDS: FrozenSet[ConstructKind] = frozenset({
    ConstructKind.WRAPPER_CONTAINER,
    ConstructKind.ROUTE_TABLE,
    ConstructKind.ROUTE,
    ConstructKind.OUTLET,
    ConstructKind.REDIRECT,
    ConstructKind.LINK,
    ConstructKind.NAV_LINK,
    ConstructKind.HEAD,
})

# Call kinds handled by the call pass
CALL_KINDS: FrozenSet[ConstructKind] = HOOK_KINDS | {
    ConstructKind.ROUTES_HOOK,
    ConstructKind.ROUTER_FACTORY,
    ConstructKind.ROUTER_HOC,
}


def lookup(name: str) -> Optional[ConstructKind]:
    """Kind of a library export name, or None when not in the table."""
    return CONSTRUCT_TABLE.get(name)


def hook_names() -> FrozenSet[str]:
    return frozenset(name for name, kind in CONSTRUCT_TABLE.items() if kind in HOOK_KINDS)
