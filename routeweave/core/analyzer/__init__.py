"""Routeweave project analyzer.

Public API:
    analyze(files, settings, log) → ProjectAnalysis
"""

from .analyzer import analyze, classify_language, detect_conventions
from .models import (
    NOT_FOUND_PATH,
    DependencySummary,
    DirectoryConventions,
    FileLanguage,
    ProjectAnalysis,
    RenderingMode,
    RouteEntry,
    SourceFile,
)
from .routes import extract_routes, normalize_route_path

__all__ = [
    "analyze",
    "classify_language",
    "detect_conventions",
    "extract_routes",
    "normalize_route_path",
    "NOT_FOUND_PATH",
    "DependencySummary",
    "DirectoryConventions",
    "FileLanguage",
    "ProjectAnalysis",
    "RenderingMode",
    "RouteEntry",
    "SourceFile",
]
