"""Tests for route table extraction."""

import pytest
from routeweave.core.analyzer import NOT_FOUND_PATH, RenderingMode, extract_routes, normalize_route_path
from routeweave.core.ast_parser import parse_source
from routeweave.core.classifier import classify
from routeweave.core.errors import RouteExtractionFailure


# =========================================================================
# Sample source fixtures
# =========================================================================

NESTED_ROUTES = '''import { BrowserRouter, Routes, Route } from 'react-router-dom';
import Layout from './Layout';
import Home from './pages/Home';
import User from './pages/User';
import Docs from './pages/Docs';
import NotFound from './pages/NotFound';

export default function App() {
  return (
    <BrowserRouter>
      <Routes>
        <Route path="/" element={<Layout />}>
          <Route index element={<Home />} />
          <Route path="users/:id" element={<User />} />
          <Route path="docs/*" element={<Docs />} />
        </Route>
        <Route path="*" element={<NotFound />} />
      </Routes>
    </BrowserRouter>
  );
}
'''

SWITCH_ROUTES = '''import { BrowserRouter, Switch, Route } from 'react-router-dom';
import Home from './Home';
import About from './About';
import Post from './Post';

export default function App() {
  return (
    <BrowserRouter>
      <Switch>
        <Route exact path="/" component={Home} />
        <Route path="/about"><About /></Route>
        <Route path="/posts/:slug?" render={() => <Post />} />
      </Switch>
    </BrowserRouter>
  );
}
'''

OBJECT_ROUTES = '''import { createBrowserRouter, RouterProvider } from 'react-router-dom';
import Root from './Root';
import Home from './Home';
import Stats from './Stats';

const router = createBrowserRouter([
  {
    path: '/',
    element: <Root />,
    children: [
      { index: true, element: <Home /> },
      { path: 'team', lazy: () => import('./Team') },
      { path: 'stats', element: <Stats />, loader: statsLoader },
    ],
  },
]);

export default function App() {
  return <RouterProvider router={router} />;
}
'''

GUARDED_ROUTE = '''import { Routes, Route } from 'react-router-dom';
import RequireAuth from './RequireAuth';
import Dashboard from './Dashboard';

export const AppRoutes = () => (
  <Routes>
    <Route path="/dashboard" element={<RequireAuth><Dashboard /></RequireAuth>} />
  </Routes>
);
'''

DUPLICATE_ROUTES = '''import { Routes, Route } from 'react-router-dom';
import Home from './Home';
import About from './About';

export const AppRoutes = () => (
  <Routes>
    <Route path="/about" element={<Home />} />
    <Route path="about" element={<About />} />
  </Routes>
);
'''


def _extract(source, resolve=lambda specifier: None, fetches_data=lambda path: False):
    tree = parse_source(source, "src/App.js")
    return extract_routes(tree, classify(tree), resolve, fetches_data)


# =========================================================================
# Tests: Path normalization
# =========================================================================

class TestNormalizeRoutePath:
    @pytest.mark.parametrize("pattern,expected", [
        ("/", "/"),
        ("/about", "/about"),
        ("/about/", "/about"),
        ("/users/:id", "/users/[id]"),
        ("/users/:id/posts/:postId", "/users/[id]/posts/[postId]"),
        ("/docs/:page?", "/docs/[[...page]]"),
        ("/files/*", "/files/[...slug]"),
        ("*", NOT_FOUND_PATH),
        ("/*", NOT_FOUND_PATH),
    ])
    def test_patterns(self, pattern, expected):
        assert normalize_route_path(pattern) == expected


# =========================================================================
# Tests: JSX declarations
# =========================================================================

class TestJsxRoutes:
    def test_nested_routes_flattened(self):
        routes = _extract(NESTED_ROUTES)
        assert [(r.path, r.component) for r in routes] == [
            ("/", "Home"),
            ("/users/[id]", "User"),
            ("/docs/[...slug]", "Docs"),
            (NOT_FOUND_PATH, "NotFound"),
        ]

    def test_layout_parent_not_emitted(self):
        routes = _extract(NESTED_ROUTES)
        assert "Layout" not in {r.component for r in routes}
        assert routes[1].parent == "/"

    def test_source_path_preserved(self):
        routes = _extract(NESTED_ROUTES)
        assert routes[1].source_path == "/users/:id"
        assert routes[1].is_dynamic
        assert routes[3].is_not_found

    def test_v5_switch(self):
        routes = _extract(SWITCH_ROUTES)
        assert [(r.path, r.component) for r in routes] == [
            ("/", "Home"),
            ("/about", "About"),
            ("/posts/[[...slug]]", "Post"),
        ]

    def test_guard_wrapper_skipped(self):
        routes = _extract(GUARDED_ROUTE)
        assert [(r.path, r.component) for r in routes] == [("/dashboard", "Dashboard")]

    def test_component_paths_resolved(self):
        modules = {"./pages/Home": "src/pages/Home.js", "./pages/User": "src/pages/User.jsx"}
        routes = _extract(NESTED_ROUTES, resolve=modules.get)
        by_path = {r.path: r.component_path for r in routes}
        assert by_path["/"] == "src/pages/Home.js"
        assert by_path["/users/[id]"] == "src/pages/User.jsx"
        assert by_path[NOT_FOUND_PATH] is None

    def test_data_rendering(self):
        modules = {"./pages/User": "src/pages/User.js"}
        routes = _extract(
            NESTED_ROUTES,
            resolve=modules.get,
            fetches_data=lambda path: path == "src/pages/User.js",
        )
        modes = {r.path: r.rendering for r in routes}
        assert modes["/users/[id]"] == RenderingMode.DATA
        assert modes["/"] == RenderingMode.STATIC


# =========================================================================
# Tests: Object declarations
# =========================================================================

class TestObjectRoutes:
    def test_router_factory(self):
        routes = _extract(OBJECT_ROUTES)
        assert [(r.path, r.component) for r in routes] == [
            ("/", "Home"),
            ("/team", "Team"),
            ("/stats", "Stats"),
        ]

    def test_lazy_module_resolved(self):
        seen = []

        def _resolve(specifier):
            seen.append(specifier)
            return None

        _extract(OBJECT_ROUTES, resolve=_resolve)
        assert "./Team" in seen

    def test_loader_marks_data_route(self):
        routes = _extract(OBJECT_ROUTES)
        modes = {r.path: r.rendering for r in routes}
        assert modes["/stats"] == RenderingMode.DATA
        assert modes["/team"] == RenderingMode.STATIC


# =========================================================================
# Tests: Failures
# =========================================================================

class TestDuplicates:
    def test_duplicate_pattern_raises(self):
        with pytest.raises(RouteExtractionFailure) as excinfo:
            _extract(DUPLICATE_ROUTES)
        assert "Duplicate route pattern '/about'" in excinfo.value.message
        assert excinfo.value.file_path == "src/App.js"

    def test_no_routes(self):
        assert _extract("export const x = 1;\n") == []
