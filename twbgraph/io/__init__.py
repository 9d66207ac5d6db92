"""
I/O for twbgraph: workbook loading and result export
"""

from twbgraph.io.workbook_loader import WorkbookLoader
from twbgraph.io.json_exporter import export_result_json

__all__ = ['WorkbookLoader', 'export_result_json']
