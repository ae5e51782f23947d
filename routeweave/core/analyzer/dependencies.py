"""Dependency and compatibility summary."""

import json
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from ..constants import INCOMPATIBLE_LIBRARIES
from .models import DependencySummary

logger = logging.getLogger(__name__)


def read_package_json(text: Optional[str]) -> Tuple[Dict[str, Any], Optional[str]]:
    """Parse package.json text. Returns (data, error message)."""
    if not text:
        return {}, None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return {}, f"package.json is not valid JSON: {e.msg} (line {e.lineno})"
    if not isinstance(data, dict):
        return {}, "package.json does not contain an object"
    return data, None


def summarize_dependencies(package: Dict[str, Any], imported: Iterable[str]) -> DependencySummary:
    """Declared and imported packages, with known-incompatible ones flagged."""
    declared = {k: str(v) for k, v in (package.get("dependencies") or {}).items()}
    dev_declared = {k: str(v) for k, v in (package.get("devDependencies") or {}).items()}
    imported = frozenset(imported)

    seen = set(declared) | set(dev_declared) | imported
    incompatible = [
        (name, INCOMPATIBLE_LIBRARIES[name])
        for name in sorted(seen)
        if name in INCOMPATIBLE_LIBRARIES
    ]
    if incompatible:
        logger.info(f"Incompatible libraries: {', '.join(name for name, _ in incompatible)}")

    return DependencySummary(
        declared=declared,
        dev_declared=dev_declared,
        imported=imported,
        incompatible=incompatible,
    )


def target_dependencies(summary: DependencySummary, base: Dict[str, str]) -> Dict[str, str]:
    """Runtime dependencies of the converted project."""
    dropped = {name for name, _ in summary.incompatible}
    merged = {k: v for k, v in summary.declared.items() if k not in dropped}
    merged.update(base)
    return dict(sorted(merged.items()))


def target_dev_dependencies(summary: DependencySummary, extra: Dict[str, str]) -> Dict[str, str]:
    dropped = {name for name, _ in summary.incompatible}
    merged = {k: v for k, v in summary.dev_declared.items() if k not in dropped}
    for name, version in extra.items():
        merged.setdefault(name, version)
    return dict(sorted(merged.items()))
