"""
twbgraph - field and dependency extraction for Tableau workbooks
"""

from twbgraph.extraction.assembler import extract_workbook
from twbgraph.core.models import DependencyMode, ExtractionResult, FieldCategory

__version__ = "1.0.0"

__all__ = ['extract_workbook', 'DependencyMode', 'ExtractionResult', 'FieldCategory']
