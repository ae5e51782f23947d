"""Tests for the project analyzer."""

import json

import pytest
from routeweave.core.analyzer import FileLanguage, RenderingMode, analyze, classify_language, detect_conventions
from routeweave.core.analyzer.dependencies import read_package_json
from routeweave.core.analyzer.resolve import package_name, relative_specifier, resolve_module
from routeweave.core.conversion.logs import ConversionLog


# ── Fixtures ──────────────────────────────────────────────────────────────

PACKAGE_JSON = json.dumps({
    "name": "shop",
    "dependencies": {
        "react": "^18.2.0",
        "react-dom": "^18.2.0",
        "react-router-dom": "^6.20.0",
        "axios": "^1.6.0",
    },
    "devDependencies": {"react-scripts": "5.0.1"},
})

INDEX_HTML = '''<!DOCTYPE html>
<html>
  <head><title>My Shop</title></head>
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

APP = '''import { BrowserRouter, Routes, Route } from 'react-router-dom';
import Home from './pages/Home';
import Product from './pages/Product';

export default function App() {
  return (
    <BrowserRouter>
      <Routes>
        <Route path="/" element={<Home />} />
        <Route path="/products/:id" element={<Product />} />
      </Routes>
    </BrowserRouter>
  );
}
'''

HOME = '''export default function Home() {
  return <h1>{process.env.REACT_APP_TITLE}</h1>;
}
'''

PRODUCT = '''import { useEffect, useState } from 'react';
import { useParams } from 'react-router-dom';

export default function Product() {
  const { id } = useParams();
  const [product, setProduct] = useState(null);
  useEffect(() => {
    fetch(`/api/products/${id}`).then((r) => r.json()).then(setProduct);
  }, [id]);
  return <div>{product && product.name}</div>;
}
'''

HEADER = '''export const Header = () => <header>Shop</header>;
'''


def _project():
    return {
        "package.json": PACKAGE_JSON,
        "public/index.html": INDEX_HTML,
        "src/index.js": ENTRY,
        "src/index.css": "body { margin: 0; }\n",
        "src/App.js": APP,
        "src/pages/Home.js": HOME,
        "src/pages/Product.js": PRODUCT,
        "src/components/Header.jsx": HEADER,
        ".env": "REACT_APP_API_URL=http://localhost:4000\nPORT=3000\n",
    }


@pytest.fixture
def analysis():
    return analyze(_project())


# =========================================================================
# Tests: File classification
# =========================================================================

class TestClassifyLanguage:
    @pytest.mark.parametrize("path,text,expected", [
        ("src/util.js", "export const x = 1;", FileLanguage.SCRIPT),
        ("src/App.js", "export default () => <div />;", FileLanguage.SCRIPT_MARKUP),
        ("src/App.jsx", "", FileLanguage.SCRIPT_MARKUP),
        ("src/api.ts", "", FileLanguage.TYPED),
        ("src/App.tsx", "", FileLanguage.TYPED_MARKUP),
        ("src/App.module.scss", "", FileLanguage.STYLE),
        ("src/data.json", "{}", FileLanguage.JSON),
        ("public/index.html", "", FileLanguage.MARKUP_DOCUMENT),
        ("public/logo.png", "", FileLanguage.ASSET),
        ("README.md", "", FileLanguage.OTHER),
    ])
    def test_language(self, path, text, expected):
        assert classify_language(path, text) == expected

    def test_is_script(self):
        assert FileLanguage.TYPED_MARKUP.is_script
        assert not FileLanguage.STYLE.is_script


class TestConventions:
    def test_source_layout(self):
        conventions = detect_conventions(list(_project()))
        assert conventions.source_root == "src"
        assert conventions.page_dirs == ("src/pages",)
        assert conventions.component_dirs == ("src/components",)
        assert conventions.has_public_dir

    def test_flat_layout(self):
        conventions = detect_conventions(["App.js", "index.js"])
        assert conventions.source_root == ""
        assert not conventions.has_public_dir


# =========================================================================
# Tests: Project analysis
# =========================================================================

class TestAnalyze:
    def test_untyped_project(self, analysis):
        assert not analysis.uses_typed_dialect
        assert analysis.project_name == "shop"

    def test_router_config_and_routes(self, analysis):
        assert analysis.router_config_path == "src/App.js"
        assert analysis.route_error is None
        assert [(r.path, r.component_path) for r in analysis.routes] == [
            ("/", "src/pages/Home.js"),
            ("/products/[id]", "src/pages/Product.js"),
        ]

    def test_data_route(self, analysis):
        modes = {r.path: r.rendering for r in analysis.routes}
        assert modes["/"] == RenderingMode.STATIC
        assert modes["/products/[id]"] == RenderingMode.DATA

    def test_entry_points_and_styles(self, analysis):
        assert analysis.entry_points == ["src/index.js"]
        assert analysis.global_styles == ["src/index.css"]

    def test_environment(self, analysis):
        assert analysis.env_variables == ["REACT_APP_API_URL", "REACT_APP_TITLE"]

    def test_document_title(self, analysis):
        assert analysis.document_title == "My Shop"

    def test_dependencies(self, analysis):
        deps = analysis.dependencies
        assert deps.declared["axios"] == "^1.6.0"
        assert deps.dev_declared == {"react-scripts": "5.0.1"}
        assert {"react", "react-dom", "react-router-dom"} <= deps.imported
        assert [name for name, _ in deps.incompatible] == ["react-router-dom", "react-scripts"]

    def test_route_for_component(self, analysis):
        routes = analysis.route_for_component("src/pages/Product.js")
        assert [r.path for r in routes] == ["/products/[id]"]

    def test_typed_by_extension(self):
        result = analyze({"src/App.tsx": "export default function App() { return <main />; }\n"})
        assert result.uses_typed_dialect

    def test_typed_by_tsconfig(self):
        result = analyze({"tsconfig.json": "{}", "src/index.js": "export {};\n"})
        assert result.uses_typed_dialect

    def test_routeless_project(self):
        result = analyze({"src/App.js": HEADER})
        assert result.router_config_path is None
        assert result.routes == []

    def test_duplicate_routes_reported(self):
        files = _project()
        files["src/App.js"] = APP.replace('path="/products/:id"', 'path="/"')
        result = analyze(files)
        assert result.routes == []
        assert "Duplicate route pattern '/'" in result.route_error

    def test_unparseable_router_config(self):
        files = {"src/App.js": "import { Route } from 'react-router-dom';\nexport default () => (<Route path=\"/\" \n"}
        result = analyze(files)
        assert result.router_config_path == "src/App.js"
        assert result.route_error.startswith("Router configuration could not be parsed")

    def test_invalid_package_json_logged(self):
        log = ConversionLog()
        result = analyze({"package.json": "{not json", "src/App.js": HEADER}, log=log)
        assert result.project_name == "next-app"
        assert any("package.json is not valid JSON" in w.message for w in log.warnings)


# =========================================================================
# Tests: Module resolution
# =========================================================================

PATHS = [
    "src/App.js",
    "src/pages/Home.js",
    "src/components/index.jsx",
    "src/styles/main.css",
]


class TestResolve:
    def test_relative_extensionless(self):
        assert resolve_module("src/App.js", "./pages/Home", PATHS) == "src/pages/Home.js"

    def test_directory_index(self):
        assert resolve_module("src/App.js", "./components", PATHS) == "src/components/index.jsx"

    def test_explicit_suffix(self):
        assert resolve_module("src/pages/Home.js", "../styles/main.css", PATHS) == "src/styles/main.css"

    def test_source_root_alias(self):
        assert resolve_module("src/pages/Home.js", "@/App", PATHS, "src") == "src/App.js"

    def test_package_not_resolved(self):
        assert resolve_module("src/App.js", "react", PATHS) is None
        assert resolve_module("src/App.js", "./missing", PATHS) is None

    @pytest.mark.parametrize("specifier,name", [
        ("react", "react"),
        ("lodash/get", "lodash"),
        ("@scope/pkg/sub", "@scope/pkg"),
        ("./local", None),
        ("@/alias", None),
    ])
    def test_package_name(self, specifier, name):
        assert package_name(specifier) == name

    def test_relative_specifier(self):
        assert relative_specifier("components/App.js", "pages/index.js") == "../pages/index"
        assert relative_specifier("pages/index.js", "pages/about.tsx") == "./about"
        assert relative_specifier("components/App.js", "styles/App.css") == "../styles/App.css"
        assert relative_specifier("components/App.js", "pages/index.js", keep_suffix=True) == "../pages/index.js"


class TestPackageJson:
    def test_valid(self):
        data, error = read_package_json('{"name": "x"}')
        assert data == {"name": "x"}
        assert error is None

    def test_missing(self):
        assert read_package_json(None) == ({}, None)

    def test_not_an_object(self):
        data, error = read_package_json("[]")
        assert data == {}
        assert "does not contain an object" in error
