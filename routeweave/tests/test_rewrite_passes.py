"""Tests for the rewrite passes."""

import pytest
from routeweave.core.ast_parser import Edit, parse_source
from routeweave.core.classifier import classify
from routeweave.core.rewrite import Convention, RequiredReference, public_env_name, run_passes
from routeweave.core.rewrite.base import drop_nested
from routeweave.core.rewrite.calls import HANDLE_NOTE


# =========================================================================
# Sample source fixtures
# =========================================================================

LOGIN = '''import { useNavigate } from 'react-router-dom';

export default function Login() {
  const navigate = useNavigate();
  function handleSubmit() {
    navigate('/home');
  }
  return <button onClick={handleSubmit}>Sign in</button>;
}
'''

NAV = '''import { Link, NavLink } from 'react-router-dom';

export default function Nav() {
  return (
    <nav>
      <Link to="/">Home</Link>
      <NavLink to="/about" activeClassName="active">About</NavLink>
    </nav>
  );
}
'''

GO_BACK = '''import { useNavigate } from 'react-router-dom';

export default function Back() {
  const navigate = useNavigate();
  return <button onClick={() => navigate(-1)}>Back</button>;
}
'''

REPLACE_NAVIGATION = '''import { useNavigate } from 'react-router-dom';

export default function Logout() {
  const navigate = useNavigate();
  function handleLogout() {
    navigate('/login', { replace: true });
  }
  return <button onClick={handleLogout}>Log out</button>;
}
'''

STEP_NAVIGATION = '''export default function Wizard({ navigate }) {
  function skipBack() {
    navigate(-2);
  }
  function finish() {
    navigate('/done', { state: { from: 'wizard' } });
  }
  return <button onClick={skipBack}>Back two</button>;
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

HELMET_PAGE = '''import { Helmet } from 'react-helmet';

export default function About() {
  return (
    <div>
      <Helmet>
        <title>About us</title>
      </Helmet>
      <h1>About</h1>
    </div>
  );
}
'''

BARE_TITLE = '''export default function Contact() {
  return (
    <section>
      <title>Contact</title>
      <p>Write to us</p>
    </section>
  );
}
'''

LAYOUT = '''import { Outlet } from 'react-router-dom';

export default function Layout() {
  return (
    <main>
      <Outlet />
    </main>
  );
}
'''

GUARD = '''import { Navigate } from 'react-router-dom';

export default function Guard({ user, children }) {
  if (!user) {
    return <Navigate to="/login" replace />;
  }
  return children;
}
'''

BACK_BUTTON = '''export default function Back({ history }) {
  return <button onClick={() => history.push('/')}>Back</button>;
}
'''

PROPS_HISTORY = '''export default function Cancel(props) {
  return <button onClick={() => props.history.goBack()}>Cancel</button>;
}
'''

CONFIG = '''export const apiUrl = process.env.REACT_APP_API_URL;
export const key = import.meta.env.VITE_KEY;
export const mode = process.env.NODE_ENV;
'''

COUNTER = '''import { useState } from 'react';

export default function Counter() {
  const [count, setCount] = useState(0);
  return <button onClick={() => setCount(count + 1)}>{count}</button>;
}
'''

UNIMPORTED_HOOK = '''export default function Orphan() {
  const navigate = useNavigate();
  return <p>orphan</p>;
}
'''

WITH_ROUTER = '''import { withRouter } from 'react-router-dom';

function Profile({ history }) {
  return <p>profile</p>;
}

export default withRouter(Profile);
'''

LOCAL_LINK = '''import Link from './Link';

export default function Footer() {
  return (
    <footer>
      <Link to="/terms">Terms</Link>
    </footer>
  );
}
'''

PARTIAL_IMPORT = '''import { Link, matchPath } from 'react-router-dom';

export const isHome = (path) => matchPath('/', path);
export const Home = () => <Link to="/">Home</Link>;
'''

APP_ROUTES = '''import { BrowserRouter, Routes, Route } from 'react-router-dom';
import Home from './pages/Home';
import About from './pages/About';

export default function App() {
  return (
    <BrowserRouter>
      <Routes>
        <Route path="/" element={<Home />} />
        <Route path="/about" element={<About />} />
      </Routes>
    </BrowserRouter>
  );
}
'''


def _run(source, convention=Convention.PAGES, path="src/Component.js"):
    tree = parse_source(source, path)
    return run_passes(tree, classify(tree), convention)


def _kinds(outcome):
    return [a.kind for a in outcome.actions]


# =========================================================================
# Tests: Hooks and navigator calls
# =========================================================================

class TestNavigationCalls:
    def test_navigate_hook_pages(self):
        outcome = _run(LOGIN)
        text = outcome.tree.render()

        assert "react-router-dom" not in text
        assert "import { useRouter } from 'next/router';" in text
        assert "const navigate = useRouter();" in text
        assert "navigate.push('/home');" in text
        assert "declare the router handle in this scope" in text
        assert outcome.references == {RequiredReference.ROUTER_HANDLE}

    def test_navigate_hook_single_declare_note(self):
        outcome = _run(LOGIN)
        assert [n for n in outcome.notes if "declare" in n] == [HANDLE_NOTE]

    def test_navigate_hook_app(self):
        outcome = _run(LOGIN, Convention.APP)
        text = outcome.tree.render()

        assert text.startswith("'use client';\n")
        assert "import { useRouter } from 'next/navigation';" in text
        assert "next/router" not in text

    def test_history_step_becomes_back(self):
        outcome = _run(GO_BACK)
        text = outcome.tree.render()

        assert "navigate.back()" in text
        assert "push(-1)" not in text
        assert "navigate() -> navigate.back()" in [a.detail for a in outcome.actions]

    def test_replace_option_selects_replace(self):
        outcome = _run(REPLACE_NAVIGATION)
        text = outcome.tree.render()

        assert "navigate.replace('/login');" in text
        assert "replace: true" not in text
        assert "navigate.push" not in text

    def test_unmapped_navigation_arguments_flagged(self):
        outcome = _run(STEP_NAVIGATION)
        text = outcome.tree.render()

        assert "navigate(-2);" in text
        assert "navigate('/done', { state: { from: 'wizard' } });" in text
        assert text.count("arguments have no router handle equivalent") == 2
        assert _kinds(outcome) == ["flag-call", "flag-call"]
        assert "router.push" not in text

    def test_unbound_history(self):
        outcome = _run(BACK_BUTTON)
        text = outcome.tree.render()
        assert "router.push('/')" in text
        assert "import { useRouter } from 'next/router';" in text

    def test_props_history_method_renamed(self):
        outcome = _run(PROPS_HISTORY)
        assert "router.back()" in outcome.tree.render()

    def test_unimported_hook_flagged(self):
        outcome = _run(UNIMPORTED_HOOK)
        text = outcome.tree.render()
        assert "useNavigate is not imported from the navigation library" in text
        assert "const navigate = useNavigate();" in text
        assert _kinds(outcome) == ["flag-call"]

    def test_router_hoc_unwrapped(self):
        outcome = _run(WITH_ROUTER)
        text = outcome.tree.render()
        assert "export default Profile;" in text
        assert "withRouter" not in text
        assert "unwrap-hoc" in _kinds(outcome)


# =========================================================================
# Tests: Elements
# =========================================================================

class TestElements:
    def test_links(self):
        outcome = _run(NAV)
        text = outcome.tree.render()

        assert "import Link from 'next/link';" in text
        assert '<Link href="/">Home</Link>' in text
        assert '<Link href="/about" activeClassName="active">About</Link>' in text
        assert "NavLink" not in text
        assert "active state (activeClassName) has no next/link equivalent" in text

    def test_image_annotated_not_replaced(self):
        outcome = _run(LOGO)
        text = outcome.tree.render()

        assert text.count("img left as is; next/image needs explicit width and height") == 1
        assert '<img src="/logo.png" alt="logo" />' in text
        assert "import Image" not in text
        assert RequiredReference.IMAGE_COMPONENT not in outcome.references
        assert _kinds(outcome) == ["flag-image"]

    def test_helmet_becomes_head(self):
        outcome = _run(HELMET_PAGE)
        text = outcome.tree.render()

        assert "import Head from 'next/head';" in text
        assert "<Head>" in text and "</Head>" in text
        assert "<title>About us</title>" in text
        assert "Helmet" not in text
        assert not any("metadata" in n for n in outcome.notes)

    def test_helmet_under_app_points_to_metadata(self):
        outcome = _run(HELMET_PAGE, Convention.APP)

        assert "<Head>" in outcome.tree.render()
        assert RequiredReference.HEAD_WRAPPER in outcome.references
        assert any("`metadata` export or `generateMetadata()`" in n for n in outcome.notes)

    def test_bare_title_wrapped(self):
        outcome = _run(BARE_TITLE)
        text = outcome.tree.render()
        assert "<Head><title>Contact</title></Head>" in text
        assert "import Head from 'next/head';" in text

    def test_outlet_becomes_children(self):
        outcome = _run(LAYOUT)
        text = outcome.tree.render()
        assert "{children}" in text
        assert "Outlet" not in text
        assert any("children prop" in n for n in outcome.notes)

    def test_redirect_removed(self):
        outcome = _run(GUARD)
        text = outcome.tree.render()
        assert "Navigate to /login removed" in text
        assert "null;" in text
        assert "<Navigate" not in text

    def test_route_table_collapsed(self):
        outcome = _run(APP_ROUTES, path="src/App.js")
        text = outcome.tree.render()

        assert "routes moved to file-system routing: /, /about" in text
        assert "{children}" in text
        assert "BrowserRouter" not in text
        assert "<Route" not in text
        assert "react-router-dom" not in text

    def test_local_link_flagged(self):
        outcome = _run(LOCAL_LINK)
        text = outcome.tree.render()
        assert "Link is not the navigation library link; review its to prop" in text
        assert '<Link to="/terms">' in text
        assert "next/link" not in text


# =========================================================================
# Tests: Imports, environment and directives
# =========================================================================

class TestImportsAndAssets:
    def test_unmapped_specifier_kept(self):
        outcome = _run(PARTIAL_IMPORT)
        text = outcome.tree.render()

        assert "import { matchPath } from 'react-router-dom';" in text
        assert "import Link from 'next/link';" in text
        assert any("matchPath" in n for n in outcome.notes)

    def test_env_variables(self):
        outcome = _run(CONFIG, path="src/config.js")
        text = outcome.tree.render()

        assert "process.env.NEXT_PUBLIC_API_URL" in text
        assert "process.env.NEXT_PUBLIC_KEY" in text
        assert "process.env.NODE_ENV" in text
        assert "REACT_APP_" not in text

    @pytest.mark.parametrize("name,public", [
        ("REACT_APP_API_URL", "NEXT_PUBLIC_API_URL"),
        ("VITE_KEY", "NEXT_PUBLIC_KEY"),
    ])
    def test_public_env_name(self, name, public):
        assert public_env_name(name) == public

    def test_client_directive_app_only(self):
        assert _run(COUNTER, Convention.APP).tree.render().startswith("'use client';\n")
        assert not _run(COUNTER, Convention.PAGES).changed

    def test_existing_directive_kept_single(self):
        source = "'use client';\n" + COUNTER
        text = _run(source, Convention.APP).tree.render()
        assert text.count("use client") == 1

    def test_untouched_file_unchanged(self):
        source = "export const add = (a, b) => a + b;\n"
        outcome = _run(source)
        assert not outcome.changed
        assert outcome.tree.render() == source


# =========================================================================
# Tests: Second run
# =========================================================================

class TestSecondRun:
    @pytest.mark.parametrize("source", [
        LOGIN, GO_BACK, REPLACE_NAVIGATION, STEP_NAVIGATION, NAV, LOGO, HELMET_PAGE, BARE_TITLE, LAYOUT, GUARD, BACK_BUTTON,
        PROPS_HISTORY, CONFIG, UNIMPORTED_HOOK, WITH_ROUTER, LOCAL_LINK,
        PARTIAL_IMPORT, APP_ROUTES,
    ])
    @pytest.mark.parametrize("convention", [Convention.PAGES, Convention.APP])
    def test_converted_output_is_stable(self, source, convention):
        first = _run(source, convention)
        second = _run(first.tree.render(), convention)
        assert second.actions == []
        assert second.tree.render() == first.tree.render()


# =========================================================================
# Tests: Edit batching
# =========================================================================

class TestDropNested:
    def test_inner_edit_dropped(self):
        outer = Edit(0, 10, "x")
        inner = Edit(2, 4, "y")
        assert drop_nested([inner, outer]) == [outer]

    def test_insertion_before_replacement_kept(self):
        insert = Edit.insert(5, "/* note */ ")
        replace = Edit(5, 9, "Link")
        assert drop_nested([replace, insert]) == [insert, replace]

    def test_disjoint_edits_kept(self):
        edits = [Edit(0, 2, "a"), Edit(4, 6, "b")]
        assert drop_nested(edits) == edits
