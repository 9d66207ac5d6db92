"""
Core models and exceptions for twbgraph
"""

from twbgraph.core.models import (
    FieldRecord,
    DependencyEdge,
    ExtractionResult,
    FieldCategory,
    DependencyMode,
    TwbGraphError,
    WorkbookLoadError,
    ExportError,
    ValidationError,
)

__all__ = [
    "FieldRecord",
    "DependencyEdge",
    "ExtractionResult",
    "FieldCategory",
    "DependencyMode",
    "TwbGraphError",
    "WorkbookLoadError",
    "ExportError",
    "ValidationError",
]
