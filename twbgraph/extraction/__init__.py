"""
Extraction module for twbgraph
Field collection, identity resolution, formula rewriting and dependency discovery
"""

from twbgraph.extraction.collector import FieldCollector, collect_fields
from twbgraph.extraction.identity_resolver import build_identity_map, deduplicate, sort_for_presentation
from twbgraph.extraction.formula_rewriter import FormulaRewriter, rewrite_formula, rewrite_formulas
from twbgraph.extraction.dependency_builder import (
    build_token_scan_edges,
    build_containment_edges,
    build_dependencies,
    close_graph,
)
from twbgraph.extraction.tokens import scan_formula_tokens
from twbgraph.extraction.assembler import extract_workbook

__all__ = [
    'FieldCollector',
    'collect_fields',
    'build_identity_map',
    'deduplicate',
    'sort_for_presentation',
    'FormulaRewriter',
    'rewrite_formula',
    'rewrite_formulas',
    'build_token_scan_edges',
    'build_containment_edges',
    'build_dependencies',
    'close_graph',
    'scan_formula_tokens',
    'extract_workbook',
]
