"""Conversion error taxonomy.

Every stage captures these at its own boundary and turns them into run-log
entries; none of them escape ``ConversionOrchestrator.convert``.
"""

from typing import List, Optional


class ConversionError(Exception):
    """Base class for conversion pipeline errors."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file_path = file_path

    def __str__(self) -> str:
        if self.file_path:
            return f"{self.file_path}: {self.message}"
        return self.message


class RewriteError(ConversionError):
    """A rewrite pass could not be applied to a file's tree."""


class RouteExtractionFailure(ConversionError):
    """The router configuration could not be read into a route table."""


class EmptyInputError(ConversionError):
    """The caller supplied zero files."""

    def __init__(self, message: str = "No input files supplied"):
        super().__init__(message)


class ValidationFailure(ConversionError):
    """The generated output is structurally incomplete."""

    def __init__(self, errors: List[str]):
        super().__init__(f"{len(errors)} validation error(s)")
        self.errors = errors
