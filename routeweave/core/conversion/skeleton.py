"""Mandatory project skeleton and generated files.

Every converted project carries a root layout, a global stylesheet, the
framework configuration and a package manifest. These are synthesized here,
before route placement, and again during validation for anything that went
missing. Templates follow the framework's own starter project.
"""

import json
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..analyzer.dependencies import target_dependencies, target_dev_dependencies
from ..analyzer.models import DependencySummary, ProjectAnalysis
from ..constants import (
    ADVISORY_MARKER,
    BACKEND_PREFIX,
    BASE_DEPENDENCIES,
    LINT_DEV_DEPENDENCIES,
    TYPED_DEV_DEPENDENCIES,
)
from ..rewrite import Convention, public_env_name
from .models import OutputTree

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Next.js App"
DEFAULT_GLOBAL_STYLES = """html,
body {
  padding: 0;
  margin: 0;
  font-family: -apple-system, BlinkMacSystemFont, Segoe UI, Roboto, Oxygen,
    Ubuntu, Cantarell, Fira Sans, Droid Sans, Helvetica Neue, sans-serif;
}

a {
  color: inherit;
  text-decoration: none;
}

* {
  box-sizing: border-box;
}
"""

GITIGNORE = """# dependencies
/node_modules
/.pnp
.pnp.js

# testing
/coverage

# next.js
/.next/
/out/

# production
/build

# misc
.DS_Store
*.pem

# debug
npm-debug.log*
yarn-debug.log*
yarn-error.log*

# local env files
.env*.local

# vercel
.vercel

# typescript
*.tsbuildinfo
next-env.d.ts
"""

NEXT_ENV_DTS = """/// <reference types="next" />
/// <reference types="next/image-types/global" />

// NOTE: This file should not be edited
"""

TSCONFIG = {
    "compilerOptions": {
        "target": "es5",
        "lib": ["dom", "dom.iterable", "esnext"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": False,
        "forceConsistentCasingInFileNames": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "node",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "incremental": True,
        "baseUrl": ".",
        "paths": {"@/*": ["./*"]},
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx"],
    "exclude": ["node_modules"],
}

GLOBAL_STYLESHEET = "globals.css"


def script_ext(typed: bool, markup: bool = True) -> str:
    """Extension for a generated script file."""
    if typed:
        return ".tsx" if markup else ".ts"
    return ".js"


# =========================================================================
# Mandatory files
# =========================================================================

def root_layout_path(convention: Convention, typed: bool) -> str:
    stem = "layout" if convention == Convention.APP else "_app"
    return stem + script_ext(typed)


def mandatory_files(convention: Convention, typed: bool) -> List[Tuple[str, str]]:
    """(category, path) pairs every output tree must contain."""
    return [
        ("pages", root_layout_path(convention, typed)),
        ("styles", GLOBAL_STYLESHEET),
        ("config", "next.config.js"),
        ("config", "package.json"),
    ]


def build_skeleton(
    output: OutputTree,
    analysis: Optional[ProjectAnalysis],
    typed: bool,
    global_styles: str = DEFAULT_GLOBAL_STYLES,
) -> None:
    """Write the mandatory files plus project configuration into ``output``."""
    convention = output.convention
    title = (analysis.document_title if analysis else None) or DEFAULT_TITLE

    if convention == Convention.APP:
        output.put("pages", root_layout_path(convention, typed), render_app_layout(title, typed))
    else:
        output.put("pages", root_layout_path(convention, typed), render_custom_app(title, typed))
        output.put("pages", "_document" + script_ext(typed), render_document())

    output.put("styles", GLOBAL_STYLESHEET, global_styles)
    output.put("config", "next.config.js", render_next_config())

    dependencies = analysis.dependencies if analysis else DependencySummary()
    name = analysis.project_name if analysis else "next-app"
    output.put("config", "package.json", render_package_json(name, dependencies, typed))

    if typed:
        output.put("config", "tsconfig.json", json.dumps(TSCONFIG, indent=2) + "\n")
        output.put("config", "next-env.d.ts", NEXT_ENV_DTS)
    output.put("config", ".gitignore", GITIGNORE)

    env_variables = analysis.env_variables if analysis else []
    if env_variables:
        output.put("config", ".env.local.example", render_env_example(env_variables))

    logger.debug(f"Skeleton written for {convention.value} convention ({len(output)} files)")


def synthesize_missing(output: OutputTree, missing: Iterable[Tuple[str, str]], typed: bool) -> List[str]:
    """Fill in missing mandatory files with defaults. Returns their disk paths."""
    scratch = OutputTree(output.convention)
    build_skeleton(scratch, None, typed)
    added = []
    for category, path in missing:
        text = scratch.get(category, path)
        if text is None:
            continue
        output.put(category, path, text, overwrite=False)
        added.append(output.full_path(category, path))
    return added


def render_custom_app(title: str, typed: bool) -> str:
    lines = ["import '../styles/globals.css';", "import Head from 'next/head';"]
    if typed:
        lines.append("import type { AppProps } from 'next/app';")
    signature = "{ Component, pageProps }: AppProps" if typed else "{ Component, pageProps }"
    return "\n".join(lines) + f"""

export default function App({signature}) {{
  return (
    <>
      <Head>
        <title>{{{json.dumps(title)}}}</title>
      </Head>
      <Component {{...pageProps}} />
    </>
  );
}}
"""


def render_document() -> str:
    return """import { Html, Head, Main, NextScript } from 'next/document';

export default function Document() {
  return (
    <Html lang="en">
      <Head />
      <body>
        <Main />
        <NextScript />
      </body>
    </Html>
  );
}
"""


def render_app_layout(title: str, typed: bool) -> str:
    header = "import '../styles/globals.css';\n"
    if typed:
        header = "import type { Metadata } from 'next';\n" + header
    metadata = "export const metadata: Metadata" if typed else "export const metadata"
    props = "{ children }: { children: React.ReactNode }" if typed else "{ children }"
    return header + f"""
{metadata} = {{
  title: {json.dumps(title)},
}};

export default function RootLayout({props}) {{
  return (
    <html lang="en">
      <body>{{children}}</body>
    </html>
  );
}}
"""


def render_next_config() -> str:
    return """/** @type {import('next').NextConfig} */
const nextConfig = {
  reactStrictMode: true,
};

module.exports = nextConfig;
"""


def render_package_json(name: str, dependencies: DependencySummary, typed: bool) -> str:
    dev_extra = dict(LINT_DEV_DEPENDENCIES)
    if typed:
        dev_extra.update(TYPED_DEV_DEPENDENCIES)
    manifest = {
        "name": name,
        "version": "0.1.0",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
        },
        "dependencies": target_dependencies(dependencies, BASE_DEPENDENCIES),
        "devDependencies": target_dev_dependencies(dependencies, dev_extra),
    }
    return json.dumps(manifest, indent=2) + "\n"


def render_env_example(names: Iterable[str]) -> str:
    lines = ["# Client-visible variables must carry the NEXT_PUBLIC_ prefix"]
    lines.extend(f"{public_env_name(name)}=" for name in names)
    return "\n".join(lines) + "\n"


# =========================================================================
# Default project
# =========================================================================

def page_path(route: str, convention: Convention, typed: bool) -> str:
    """Page key for a normalized route (``/`` or ``/about``), not-found excluded."""
    segments = route.strip("/")
    ext = script_ext(typed)
    if convention == Convention.APP:
        return f"{segments}/page{ext}" if segments else f"page{ext}"
    return f"{segments or 'index'}{ext}"


def build_default_project(output: OutputTree, typed: bool, include_examples: bool) -> None:
    """Starter pages for a project with nothing to convert."""
    convention = output.convention
    output.put("pages", page_path("/", convention, typed), render_home_page(include_examples), overwrite=False)
    if include_examples:
        add_examples(output, typed)


def add_examples(output: OutputTree, typed: bool, pages: bool = True) -> None:
    """Example about page and hello API route. Never overwrites."""
    convention = output.convention
    if pages:
        output.put("pages", page_path("/about", convention, typed), render_about_page(), overwrite=False)
    key, text = api_stub("hello", ["GET"], convention, typed, example=True)
    output.put("api", key, text, overwrite=False)


def render_home_page(link_about: bool = False) -> str:
    if not link_about:
        return """export default function Home() {
  return (
    <main>
      <h1>Welcome to Next.js</h1>
      <p>Edit this page to get started.</p>
    </main>
  );
}
"""
    return """import Link from 'next/link';

export default function Home() {
  return (
    <main>
      <h1>Welcome to Next.js</h1>
      <p>
        <Link href="/about">About this project</Link>
      </p>
    </main>
  );
}
"""


def render_about_page() -> str:
    return """import Link from 'next/link';

export default function About() {
  return (
    <main>
      <h1>About</h1>
      <Link href="/">Back home</Link>
    </main>
  );
}
"""


# =========================================================================
# API handler stubs
# =========================================================================

def api_stub(
    endpoint: str,
    methods: Iterable[str],
    convention: Convention,
    typed: bool,
    example: bool = False,
) -> Tuple[str, str]:
    """(key, text) of a backend handler for ``endpoint`` (``users/[id]``)."""
    methods = sorted({m.upper() for m in methods}) or ["GET"]
    ext = script_ext(typed, markup=False)
    header = "" if example else (
        f"/* {ADVISORY_MARKER} generated from client requests to {BACKEND_PREFIX}{endpoint}; "
        f"replace the placeholder responses */\n"
    )
    if convention == Convention.APP:
        return f"{endpoint}/route{ext}", header + _route_handlers(endpoint, methods, typed)
    return f"{endpoint}{ext}", header + _pages_handler(endpoint, methods, typed)


def _pages_handler(endpoint: str, methods: List[str], typed: bool) -> str:
    lines = []
    if typed:
        lines.append("import type { NextApiRequest, NextApiResponse } from 'next';\n")
    signature = "req: NextApiRequest, res: NextApiResponse" if typed else "req, res"
    lines.append(f"export default function handler({signature}) {{")
    lines.append("  switch (req.method) {")
    for method in methods:
        lines.append(f"    case '{method}':")
        lines.append(f"      return res.status(200).json({{ route: '{endpoint}', method: '{method}' }});")
    allowed = ", ".join(f"'{m}'" for m in methods)
    lines.append("    default:")
    lines.append(f"      res.setHeader('Allow', [{allowed}]);")
    lines.append("      return res.status(405).end(`Method ${req.method} Not Allowed`);")
    lines.append("  }")
    lines.append("}")
    return "\n".join(lines) + "\n"


def _route_handlers(endpoint: str, methods: List[str], typed: bool) -> str:
    param = "request: Request" if typed else "request"
    blocks = []
    for method in methods:
        blocks.append(
            f"export async function {method}({param}) {{\n"
            f"  return Response.json({{ route: '{endpoint}', method: '{method}' }});\n"
            f"}}\n"
        )
    return "\n".join(blocks)


def group_backend_calls(calls: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """endpoint -> HTTP methods, from (method, endpoint) pairs."""
    grouped: Dict[str, List[str]] = {}
    for method, endpoint in calls:
        methods = grouped.setdefault(endpoint, [])
        if method.upper() not in methods:
            methods.append(method.upper())
    return grouped


# =========================================================================
# Data fetching scaffolds
# =========================================================================

_ROUTE_PARAM = re.compile(r"\[\[?(\.\.\.)?([^\]]+)\]\]?")


def route_params(route_path: str) -> List[Tuple[str, bool]]:
    """(name, catch_all) for each dynamic segment of a normalized route path."""
    return [(m.group(2), bool(m.group(1))) for m in _ROUTE_PARAM.finditer(route_path)]


def render_server_side_props(route_path: str) -> str:
    """getServerSideProps scaffold for a route whose component fetches data."""
    return f"""
/* {ADVISORY_MARKER} route {route_path} fetches data on the client; move the request here and pass the result as props */
export async function getServerSideProps(context) {{
  try {{
    // const res = await fetch('your-api-endpoint');
    // const data = await res.json();
    return {{ props: {{}} }};
  }} catch (error) {{
    console.error('Error fetching data:', error);
    return {{ props: {{ error: 'Failed to load data' }} }};
  }}
}}
"""


def render_static_paths(route_path: str) -> str:
    """getStaticPaths scaffold, with the getStaticProps it requires, for a dynamic route."""
    example = ", ".join(
        f"{name}: ['a']" if catch_all else f"{name}: '1'"
        for name, catch_all in route_params(route_path)
    )
    return f"""
/* {ADVISORY_MARKER} dynamic route {route_path} is rendered on first request; list known paths to pre-render them */
export async function getStaticPaths() {{
  return {{
    paths: [
      // {{ params: {{ {example} }} }},
    ],
    fallback: 'blocking',
  }};
}}

export async function getStaticProps() {{
  return {{ props: {{}}, revalidate: 60 }};
}}
"""
