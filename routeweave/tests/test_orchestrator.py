"""End-to-end tests for the conversion orchestrator."""

import json
import threading
from unittest.mock import patch

import pytest
from routeweave.core.ast_parser import SyntaxTree, detect_dialect, parse_source
from routeweave.core.classifier import classify
from routeweave.core.conversion import (
    ConversionOrchestrator,
    ConversionState,
    convert_project,
    ingest,
    normalize_path,
)
from routeweave.core.rewrite import Convention, run_passes
from routeweave.schemas import ConversionOptions
from routeweave.setting import RouteweaveSettings


# ── Fixtures ──────────────────────────────────────────────────────────────

SETTINGS = RouteweaveSettings(max_workers=2)

PACKAGE_JSON = json.dumps({
    "name": "demo",
    "dependencies": {
        "react": "^18.2.0",
        "react-dom": "^18.2.0",
        "react-router-dom": "^6.20.0",
    },
})

INDEX_HTML = '''<!DOCTYPE html>
<html>
  <head><title>Demo</title></head>
  <body><div id="root"></div></body>
</html>
'''

ENTRY = '''import React from 'react';
import ReactDOM from 'react-dom/client';
import './index.css';
import App from './App';

const root = ReactDOM.createRoot(document.getElementById('root'));
root.render(<App />);
'''

APP = '''import React from 'react';
import { BrowserRouter, Routes, Route, Link } from 'react-router-dom';
import Home from './pages/Home';
import About from './pages/About';

export default function App() {
  return (
    <BrowserRouter>
      <nav>
        <Link to="/">Home</Link>
        <Link to="/about">About</Link>
      </nav>
      <Routes>
        <Route path="/" element={<Home />} />
        <Route path="/about" element={<About />} />
      </Routes>
    </BrowserRouter>
  );
}
'''

HOME = '''export default function Home() {
  return <h1>Home</h1>;
}
'''

ABOUT = '''import { Link } from 'react-router-dom';

export default function About() {
  return (
    <div>
      <h1>About</h1>
      <Link to="/">Back</Link>
    </div>
  );
}
'''

LOGIN = '''import { useNavigate } from 'react-router-dom';

export default function Login() {
  const navigate = useNavigate();
  function handleSubmit() {
    navigate('/home');
  }
  return <button onClick={handleSubmit}>Sign in</button>;
}
'''

LOGO = '''export default function Logo() {
  return (
    <div>
      <img src="/logo.png" alt="logo" />
    </div>
  );
}
'''

BROKEN = '''export default function Broken() {
  return (
    <div>
      <span>unclosed
  );
'''

DUPLICATE_APP = '''import { BrowserRouter, Routes, Route } from 'react-router-dom';
import Home from './Home';
import About from './About';

export default function App() {
  return (
    <BrowserRouter>
      <Routes>
        <Route path="/about" element={<Home />} />
        <Route path="about" element={<About />} />
      </Routes>
    </BrowserRouter>
  );
}
'''

TYPED_ENTRY = '''import ReactDOM from 'react-dom/client';
import App from './App';

ReactDOM.createRoot(document.getElementById('root') as HTMLElement).render(<App />);
'''

TYPED_APP = '''export default function App(): JSX.Element {
  return <main>Hello</main>;
}
'''

API_CLIENT = '''export const loadUsers = () => fetch('/api/users');
export const saveUser = (user) => fetch('/api/users', { method: 'POST', body: JSON.stringify(user) });
'''

DATA_APP = '''import { BrowserRouter, Routes, Route } from 'react-router-dom';
import Home from './pages/Home';
import User from './pages/User';
import Feed from './pages/Feed';

export default function App() {
  return (
    <BrowserRouter>
      <Routes>
        <Route path="/" element={<Home />} />
        <Route path="/users/:id" element={<User />} />
        <Route path="/feed" element={<Feed />} />
      </Routes>
    </BrowserRouter>
  );
}
'''

USER = '''import { useParams } from 'react-router-dom';

export default function User() {
  const { id } = useParams();
  return <h1>User {id}</h1>;
}
'''

FEED = '''import { useEffect, useState } from 'react';

export default function Feed() {
  const [items, setItems] = useState([]);
  useEffect(() => {
    fetch('/api/feed').then((r) => r.json()).then(setItems);
  }, []);
  return <ul>{items.map((item) => <li key={item.id}>{item.title}</li>)}</ul>;
}
'''


def _two_route_project():
    return {
        "package.json": PACKAGE_JSON,
        "public/index.html": INDEX_HTML,
        "src/index.js": ENTRY,
        "src/index.css": "body { margin: 0; }\n",
        "src/App.js": APP,
        "src/pages/Home.js": HOME,
        "src/pages/About.js": ABOUT,
    }


def _data_project():
    return {
        "package.json": PACKAGE_JSON,
        "src/index.js": ENTRY,
        "src/index.css": "body { margin: 0; }\n",
        "src/App.js": DATA_APP,
        "src/pages/Home.js": HOME,
        "src/pages/User.js": USER,
        "src/pages/Feed.js": FEED,
    }


def _convert(files, options=None, settings=SETTINGS, cancel_event=None):
    return convert_project(files, options, cancel_event, settings)


def _messages(entries, needle):
    return [m for m in entries if needle in m]


# =========================================================================
# Tests: Empty input
# =========================================================================

class TestEmptyInput:
    def test_default_project(self):
        result = _convert({})
        assert result.state == ConversionState.COMPLETED_WITH_WARNINGS
        assert result.stats.total_files == 0
        assert {"_app.js", "_document.js", "index.js"} <= set(result.pages)
        assert "package.json" in result.config
        assert "globals.css" in result.styles
        assert result.validation.valid
        assert _messages(result.logs.to_dict()["warnings"], "No input files supplied")

    def test_default_project_with_examples(self):
        result = _convert({}, {"includeExamples": True})
        assert "about.js" in result.pages
        assert "hello.js" in result.api

    def test_default_project_app_dir(self):
        result = _convert({}, {"appDir": True})
        assert {"layout.js", "page.js"} <= set(result.pages)
        assert "app/page.js" in result.output.disk_files()


# =========================================================================
# Tests: Two-route project
# =========================================================================

class TestTwoRouteProject:
    @pytest.fixture(scope="class")
    def result(self):
        return _convert(_two_route_project())

    def test_completed(self, result):
        assert result.state == ConversionState.COMPLETED
        assert result.logs.errors == []
        assert result.validation.valid

    def test_route_pages(self, result):
        assert set(result.pages) == {"_app.js", "_document.js", "index.js", "about.js"}
        assert "export default function Home()" in result.pages["index.js"]

    def test_page_links_rewritten(self, result):
        about = result.pages["about.js"]
        assert "import Link from 'next/link';" in about
        assert '<Link href="/">Back</Link>' in about
        assert "react-router-dom" not in about

    def test_router_shell_becomes_component(self, result):
        app = result.components["App.js"]
        assert "'../pages/index'" in app
        assert "'../pages/about'" in app
        assert "routes moved to file-system routing: /, /about" in app
        assert "{children}" in app
        assert '<Link href="/about">About</Link>' in app
        assert "BrowserRouter" not in app

    def test_entry_and_shell_not_emitted(self, result):
        disk = result.output.disk_files()
        assert not any(p.endswith("index.html") for p in disk)
        assert "components/index.js" not in disk

    def test_global_styles_merged(self, result):
        styles = result.styles["globals.css"]
        assert "/* src/index.css */" in styles
        assert "body { margin: 0; }" in styles

    def test_document_title(self, result):
        assert '<title>{"Demo"}</title>' in result.pages["_app.js"]

    def test_package_manifest(self, result):
        manifest = json.loads(result.config["package.json"])
        assert manifest["name"] == "demo"
        assert "next" in manifest["dependencies"]
        assert "react-router-dom" not in manifest["dependencies"]
        assert _messages(result.logs.to_dict()["warnings"], "Dependency react-router-dom dropped")

    def test_stats(self, result):
        assert result.stats.total_files == 7
        assert result.stats.converted_files == 4
        assert result.stats.failed_files == 0
        assert result.stats.conversion_time > 0
        assert "transforming" in result.stats.stage_times

    def test_routes_reported(self, result):
        assert [r.path for r in result.routes] == ["/", "/about"]
        assert _messages(result.logs.to_dict()["info"], "Route / placed at pages/index.js")

    def test_serialized_shape(self, result):
        data = result.to_dict()
        assert data["state"] == "completed"
        assert data["stats"]["totalFiles"] == 7
        assert data["fileStructure"]["type"] == "directory"
        assert set(data["logs"]) == {"errors", "warnings", "info"}
        assert data["validation"]["valid"]

    def test_second_run_changes_nothing(self, result):
        for category in ("pages", "components"):
            for key, text in getattr(result, category).items():
                if detect_dialect(key) is None:
                    continue
                tree = parse_source(text, key)
                outcome = run_passes(tree, classify(tree), Convention.PAGES)
                assert outcome.actions == [], key


class TestDataFetching:
    @pytest.fixture(scope="class")
    def result(self):
        return _convert(_data_project())

    def test_completed(self, result):
        assert result.logs.errors == []
        assert result.validation.valid

    def test_data_route_gets_server_side_props(self, result):
        feed = result.pages["feed.js"]
        assert "export default function Feed()" in feed
        assert "export async function getServerSideProps(context)" in feed
        assert "route /feed fetches data on the client" in feed
        assert "getStaticPaths" not in feed

    def test_dynamic_route_gets_static_paths(self, result):
        user = result.pages["users/[id].js"]
        assert "export async function getStaticPaths()" in user
        assert "export async function getStaticProps()" in user
        assert "// { params: { id: '1' } }," in user
        assert "fallback: 'blocking'" in user
        assert "getServerSideProps" not in user

    def test_static_route_untouched(self, result):
        index = result.pages["index.js"]
        assert "getServerSideProps" not in index
        assert "getStaticPaths" not in index

    def test_scaffolds_logged(self, result):
        info = result.logs.to_dict()["info"]
        assert _messages(info, "getServerSideProps scaffold added for route /feed")
        assert _messages(info, "getStaticPaths scaffold added for route /users/[id]")

    def test_scaffolded_pages_parse(self, result):
        for key in ("feed.js", "users/[id].js"):
            assert isinstance(parse_source(result.pages[key], key), SyntaxTree)

    def test_app_directory_has_no_scaffolds(self):
        result = _convert(_data_project(), {"appDir": True})
        assert "getServerSideProps" not in result.pages["feed/page.js"]
        assert "getStaticPaths" not in result.pages["users/[id]/page.js"]
        assert _messages(result.logs.to_dict()["info"], "consider fetching in a server component")


class TestAppDirectory:
    def test_nested_page_layout(self):
        result = _convert(_two_route_project(), ConversionOptions(app_dir=True))
        disk = result.output.disk_files()

        assert "app/layout.js" in disk
        assert "app/page.js" in disk
        assert "app/about/page.js" in disk
        assert "components/App.js" in disk
        assert "pages/_document.js" not in disk
        assert "'../app/page'" in result.components["App.js"]


# =========================================================================
# Tests: Per-file behaviour
# =========================================================================

class TestFileOutcomes:
    def test_unparseable_file_passes_through(self):
        result = _convert({"src/Broken.js": BROKEN, "src/util.js": "export const one = 1;\n"})

        assert result.components["Broken.js"] == BROKEN
        errors = result.logs.to_dict()["errors"]
        assert len(errors) == 1
        assert errors[0].startswith("src/Broken.js: Could not parse")
        assert result.stats.failed_files == 1
        assert result.state == ConversionState.COMPLETED_WITH_WARNINGS

    def test_navigate_hook(self):
        result = _convert({"src/Login.js": LOGIN})
        login = result.components["Login.js"]

        assert "const navigate = useRouter();" in login
        assert "navigate.push('/home');" in login
        assert "import { useRouter } from 'next/router';" in login
        assert len(_messages(result.logs.to_dict()["warnings"], "declare")) == 1

    def test_image_annotated(self):
        result = _convert({"src/Logo.js": LOGO})
        logo = result.components["Logo.js"]

        assert logo.count("[routeweave] img left as is; next/image needs explicit width and height") == 1
        assert "import Image" not in logo

    def test_backend_calls_become_api_stubs(self):
        result = _convert({"src/api.js": API_CLIENT})
        assert "users.js" in result.api
        assert "case 'GET':" in result.api["users.js"]
        assert "case 'POST':" in result.api["users.js"]

    def test_backend_calls_app_dir(self):
        result = _convert({"src/api.js": API_CLIENT}, {"appDir": True})
        assert "users/route.js" in result.api
        assert "app/api/users/route.js" in result.output.disk_files()

    def test_oversized_file_passes_through(self):
        big = "// " + "x" * 2048 + "\nimport { Link } from 'react-router-dom';\n"
        result = _convert({"src/big.js": big}, settings=RouteweaveSettings(max_file_size_kb=1))
        assert result.components["big.js"] == big
        assert _messages(result.logs.to_dict()["warnings"], "passed through unchanged")

    def test_examples_added_to_converted_project(self):
        result = _convert(_two_route_project(), {"includeExamples": True})
        assert "hello.js" in result.api
        assert "export default function About()" in result.pages["about.js"]


# =========================================================================
# Tests: Route problems
# =========================================================================

class TestRouteProblems:
    def test_duplicate_routes_logged(self):
        result = _convert({
            "src/App.js": DUPLICATE_APP,
            "src/Home.js": HOME,
            "src/About.js": ABOUT,
        })
        errors = _messages(result.logs.to_dict()["errors"], "Duplicate route pattern '/about'")
        assert len(errors) == 1
        assert errors[0].startswith("src/App.js:")
        assert result.routes == []
        assert result.state == ConversionState.COMPLETED_WITH_WARNINGS
        assert "_app.js" in result.pages

    def test_routeless_project_renders_entry_component(self):
        result = _convert({"src/index.tsx": TYPED_ENTRY, "src/App.tsx": TYPED_APP})

        assert "_app.tsx" in result.pages
        assert "tsconfig.json" in result.config
        assert "import App from '../components/App';" in result.pages["index.tsx"]
        assert _messages(result.logs.to_dict()["info"], "Typed sources detected")


# =========================================================================
# Tests: Lifecycle
# =========================================================================

class TestLifecycle:
    def test_cancelled_before_transform(self):
        cancel = threading.Event()
        cancel.set()
        result = _convert(_two_route_project(), cancel_event=cancel)

        assert result.aborted
        assert result.state == ConversionState.COMPLETED_WITH_WARNINGS
        assert _messages(result.logs.to_dict()["warnings"], "Conversion aborted")
        assert "_app.js" in result.pages
        assert "about.js" not in result.pages

    def test_cancelled_during_transform_keeps_finished_files(self):
        cancel = threading.Event()

        class CancelOnThird(ConversionOrchestrator):
            def _transform_file(self, path, *args):
                if path == "src/Widget02.js":
                    cancel.set()
                return super()._transform_file(path, *args)

        files = {
            f"src/Widget{i:02d}.js": f"export const Widget{i:02d} = () => <p>{i}</p>;\n"
            for i in range(40)
        }
        result = CancelOnThird(RouteweaveSettings(max_workers=1)).convert(files, cancel_event=cancel)

        assert result.aborted
        assert result.state == ConversionState.COMPLETED_WITH_WARNINGS
        assert {"Widget00.js", "Widget01.js", "Widget02.js"} <= set(result.components)
        assert "Widget39.js" not in result.components
        assert result.components["Widget00.js"] == files["src/Widget00.js"]
        assert "index.js" not in result.pages

    def test_unexpected_failure(self):
        with patch("routeweave.core.conversion.engine.analyze", side_effect=RuntimeError("boom")):
            result = _convert(_two_route_project())

        assert result.state == ConversionState.FAILED
        assert result.error == "boom"
        assert "_app.js" in result.pages
        assert "index.js" in result.pages
        assert _messages(result.logs.to_dict()["errors"], "Conversion failed: boom")

    def test_orchestrator_state(self):
        orchestrator = ConversionOrchestrator(SETTINGS)
        assert orchestrator.state == ConversionState.IDLE
        orchestrator.convert({"src/Logo.js": LOGO})
        assert orchestrator.state.is_terminal


# =========================================================================
# Tests: Ingestion
# =========================================================================

class TestIngestion:
    @pytest.mark.parametrize("raw,normalized", [
        ("src/App.js", "src/App.js"),
        ("./src/App.js", "src/App.js"),
        ("src\\pages\\Home.js", "src/pages/Home.js"),
        ("/src//App.js", "src/App.js"),
    ])
    def test_normalize_path(self, raw, normalized):
        assert normalize_path(raw) == normalized

    def test_skipped_directories(self):
        files = ingest({
            "node_modules/react/index.js": "",
            "build/static/main.js": "",
            "stories/Button.js": "",
            "src/App.js": "",
        }, skip_directories=["stories"])
        assert list(files) == ["src/App.js"]

    def test_total_files_counts_ingested(self):
        result = _convert({"node_modules/x/index.js": "module.exports = 1;\n", "src/Logo.js": LOGO})
        assert result.stats.total_files == 1
