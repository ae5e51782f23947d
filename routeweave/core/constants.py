"""Shared constants for Routeweave.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

# =============================================================================
# Source Libraries
# =============================================================================

# Modules treated as the navigation library being migrated away from
NAVIGATION_MODULES = (
    "react-router-dom",
    "react-router",
    "react-router-native",
)

# Modules providing title/meta management
HEAD_MODULES = (
    "react-helmet",
    "react-helmet-async",
)

# Variable names conventionally holding a navigator, even when not bound
# to a hook in the same file (props.history, injected navigate, ...)
NAVIGATOR_NAMES = ("navigate", "history")

# Navigator method → router handle method
NAVIGATION_METHODS = {
    "push": "push",
    "replace": "replace",
    "goBack": "back",
    "back": "back",
    "goForward": "forward",
    "forward": "forward",
}

# Numeric navigate() argument → router handle method
HISTORY_STEPS = {
    "-1": "back",
    "1": "forward",
}

# Name the pipeline uses for an undeclared router handle
ROUTER_HANDLE_NAME = "router"

# Accessor call producing the router handle
ROUTER_ACCESSOR = "useRouter"

# React hooks and browser globals that force a client component
CLIENT_HOOKS = frozenset({
    "useState",
    "useEffect",
    "useLayoutEffect",
    "useReducer",
    "useRef",
    "useCallback",
    "useMemo",
    "useContext",
    "useTransition",
    "useSyncExternalStore",
})

CLIENT_GLOBALS = frozenset({"window", "document", "localStorage", "sessionStorage", "navigator"})

# NavLink props with no direct target-convention equivalent
ACTIVE_STATE_ATTRIBUTES = frozenset({
    "activeClassName",
    "activeStyle",
    "isActive",
    "exact",
    "end",
    "caseSensitive",
})

# Attributes flagged only when given a function value (NavLink render props)
ACTIVE_STATE_FUNCTION_ATTRIBUTES = frozenset({"className", "style", "children"})

# HTTP verbs recognised on axios-style clients
HTTP_CLIENT_METHODS = {
    "get": "GET",
    "post": "POST",
    "put": "PUT",
    "patch": "PATCH",
    "delete": "DELETE",
}

HTTP_CLIENT_NAMES = frozenset({"axios", "api", "http", "client"})

# Calls that mark a component as fetching data at render time
DATA_FETCHING_CALLS = frozenset({"fetch", "useQuery", "useSWR", "useInfiniteQuery"})

# URL prefix marking a call as bound for the project's own backend
BACKEND_PREFIX = "/api/"

# Page exports that already choose a data-fetching strategy
DATA_FETCHING_EXPORTS = frozenset({"getServerSideProps", "getStaticProps", "getStaticPaths"})

# Environment variable prefixes rewritten to the public prefix
ENV_PREFIXES = ("REACT_APP_", "VITE_")
PUBLIC_ENV_PREFIX = "NEXT_PUBLIC_"

# =============================================================================
# Annotations
# =============================================================================

# Prefix of every comment the pipeline inserts; lets a second run skip
# constructs it already annotated
ADVISORY_MARKER = "[routeweave]"

# =============================================================================
# Dependencies
# =============================================================================

INCOMPATIBLE_LIBRARIES = {
    "react-router-dom": "Replaced by file-system routing and next/link / next/router",
    "react-router": "Replaced by file-system routing and next/router",
    "react-router-native": "Native routing has no file-system equivalent",
    "react-router-config": "Route config objects are replaced by the pages directory",
    "@reach/router": "Unsupported routing library; migrate routes manually",
    "connected-react-router": "Router state in Redux has no equivalent; use the router handle",
    "history": "History objects are managed by the framework router",
    "react-helmet": "Replaced by next/head (pages) or the metadata API (app)",
    "react-helmet-async": "Replaced by next/head (pages) or the metadata API (app)",
    "react-scripts": "Build tooling is provided by next",
    "react-snap": "Pre-rendering is built in",
    "vite": "Build tooling is provided by next",
    "@vitejs/plugin-react": "Build tooling is provided by next",
}

# Libraries always present in the generated package.json
BASE_DEPENDENCIES = {
    "next": "latest",
    "react": "latest",
    "react-dom": "latest",
}

TYPED_DEV_DEPENDENCIES = {
    "typescript": "latest",
    "@types/node": "latest",
    "@types/react": "latest",
    "@types/react-dom": "latest",
}

LINT_DEV_DEPENDENCIES = {
    "eslint": "latest",
    "eslint-config-next": "latest",
}

# =============================================================================
# File Classification
# =============================================================================

STYLE_EXTENSIONS = (".css", ".scss", ".sass", ".less")

ASSET_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".avif", ".ico", ".bmp",
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    ".mp4", ".webm", ".mp3", ".wav",
    ".pdf", ".txt", ".webmanifest",
)

MARKUP_DOCUMENT_EXTENSIONS = (".html", ".htm")

# Candidate router configuration file stems, in priority order
ROUTER_CONFIG_STEMS = ("app", "routes", "router", "approutes", "approuter", "main", "index")

# Project-level configuration files consumed by analysis, never emitted
CONSUMED_CONFIG_FILES = frozenset({
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "tsconfig.json",
    "jsconfig.json",
    "vite.config.js",
    "vite.config.ts",
    "webpack.config.js",
    "babel.config.js",
    ".babelrc",
    "craco.config.js",
    "config-overrides.js",
})
