"""Module specifier resolution against the project's own files."""

import posixpath
from typing import Collection, Optional

SCRIPT_SUFFIXES = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")


def is_relative(specifier: str) -> bool:
    return specifier.startswith("./") or specifier.startswith("../") or specifier in (".", "..")


def package_name(specifier: str) -> Optional[str]:
    """``@scope/pkg/sub`` -> ``@scope/pkg``; ``lodash/get`` -> ``lodash``.

    Returns None for relative and aliased specifiers.
    """
    if is_relative(specifier) or specifier.startswith(("/", "@/", "~/")):
        return None
    parts = specifier.split("/")
    if specifier.startswith("@"):
        return "/".join(parts[:2]) if len(parts) >= 2 else None
    return parts[0]


def resolve_module(importer: str, specifier: str, paths: Collection[str], source_root: str = "") -> Optional[str]:
    """Project file a specifier points at, or None for packages and misses.

    Handles relative specifiers, the ``@/`` and ``~/`` source-root aliases,
    extensionless paths and directory ``index`` files.
    """
    if is_relative(specifier):
        base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    elif specifier.startswith(("@/", "~/")):
        base = posixpath.join(source_root, specifier[2:]) if source_root else specifier[2:]
    elif source_root and specifier.startswith(source_root + "/"):
        base = specifier
    else:
        return None

    base = base.lstrip("/")
    if base in paths:
        return base
    for suffix in SCRIPT_SUFFIXES:
        if base + suffix in paths:
            return base + suffix
    for suffix in SCRIPT_SUFFIXES:
        candidate = f"{base}/index{suffix}"
        if candidate in paths:
            return candidate
    return None


def relative_specifier(from_path: str, to_path: str, keep_suffix: bool = False) -> str:
    """Relative import specifier from one output file to another."""
    target = to_path
    if not keep_suffix:
        stem, ext = posixpath.splitext(to_path)
        if ext in SCRIPT_SUFFIXES:
            target = stem
    spec = posixpath.relpath(target, posixpath.dirname(from_path) or ".")
    if not spec.startswith("."):
        spec = "./" + spec
    return spec
