"""Routeweave conversion orchestrator.

Public API:
    convert_project(files, options) → ConversionResult
    ConversionOrchestrator(settings).convert(files, options, cancel_event)
    validate(output, routes, convention) → ValidationResult
"""

from .engine import ConversionOrchestrator, convert_project, ingest, normalize_path
from .file_tree import FileNode, build_file_tree
from .logs import ConversionLog, LogEntry, Severity
from .models import (
    CATEGORIES,
    ConversionResult,
    ConversionState,
    ConversionStats,
    FileOutcome,
    OutputTree,
    ValidationResult,
)
from .placement import PlacementPlan, plan_placement, route_page_key
from .validator import validate

__all__ = [
    "convert_project",
    "ConversionOrchestrator",
    "ingest",
    "normalize_path",
    "validate",
    "build_file_tree",
    "plan_placement",
    "route_page_key",
    "CATEGORIES",
    "ConversionLog",
    "ConversionResult",
    "ConversionState",
    "ConversionStats",
    "FileNode",
    "FileOutcome",
    "LogEntry",
    "OutputTree",
    "PlacementPlan",
    "Severity",
    "ValidationResult",
]
