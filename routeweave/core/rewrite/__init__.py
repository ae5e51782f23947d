"""Routeweave rewrite passes.

Public API:
    run_passes(tree, signals, convention) → RewriteOutcome

The passes run in a fixed order; each receives the tree produced by the
previous one and the signals computed from the original file.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List

from ..ast_parser.models import SyntaxTree
from ..classifier.models import FileSignals
from .assets import public_env_name, rewrite_assets
from .base import (
    HANDLE_ACCESSORS,
    REFERENCE_IMPORTS,
    Convention,
    PassResult,
    RequiredReference,
    RewriteAction,
    merge_results,
)
from .calls import rewrite_calls
from .elements import rewrite_elements
from .imports import rewrite_imports

logger = logging.getLogger(__name__)

__all__ = [
    "run_passes",
    "rewrite_imports",
    "rewrite_calls",
    "rewrite_elements",
    "rewrite_assets",
    "public_env_name",
    "Convention",
    "PassResult",
    "RequiredReference",
    "RewriteAction",
    "RewriteOutcome",
    "HANDLE_ACCESSORS",
    "REFERENCE_IMPORTS",
]


@dataclass
class RewriteOutcome:
    """Combined effect of all passes on one file."""

    tree: SyntaxTree
    references: FrozenSet[RequiredReference] = frozenset()
    actions: List[RewriteAction] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.actions)


def run_passes(tree: SyntaxTree, signals: FileSignals, convention: Convention) -> RewriteOutcome:
    """Run import, call, element and asset passes in order.

    Raises:
        RewriteError: A pass produced source that no longer parses.
    """
    results: List[PassResult] = []
    current = tree
    for rewrite in (rewrite_imports, rewrite_calls, rewrite_elements):
        result = rewrite(current, signals, convention)
        results.append(result)
        current = result.tree

    references, actions, notes = merge_results(results)
    final = rewrite_assets(current, signals, convention, references)
    actions.extend(final.actions)
    notes.extend(n for n in final.notes if n not in notes)

    if actions:
        logger.debug(f"{tree.file_path}: {len(actions)} rewrite action(s) across all passes")

    return RewriteOutcome(tree=final.tree, references=references, actions=actions, notes=notes)
