"""Routeweave pattern classifier.

Public API:
    classify(tree) → FileSignals
    CONSTRUCT_TABLE / ConstructKind: name → construct kind table
"""

from .classifier import backend_endpoint, classify, env_reference
from .constructs import CONSTRUCT_TABLE, ConstructKind, lookup
from .models import BackendCall, FileSignals, ImportedName

__all__ = [
    "classify",
    "backend_endpoint",
    "env_reference",
    "lookup",
    "CONSTRUCT_TABLE",
    "ConstructKind",
    "BackendCall",
    "FileSignals",
    "ImportedName",
]
