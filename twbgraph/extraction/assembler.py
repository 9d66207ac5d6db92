"""
Output Assembler
Runs the extraction pipeline over one workbook tree
"""

import logging
from typing import Any, List

from twbgraph.core.models import DependencyMode, ExtractionResult, FieldRecord
from twbgraph.extraction.collector import FieldCollector
from twbgraph.extraction.identity_resolver import (
    build_identity_map,
    deduplicate,
    sort_for_presentation,
)
from twbgraph.extraction.formula_rewriter import FormulaRewriter
from twbgraph.extraction.dependency_builder import build_dependencies

logger = logging.getLogger(__name__)


def extract_workbook(tree: Any, mode: DependencyMode = DependencyMode.TOKEN_SCAN) -> ExtractionResult:
    """
    Extract fields, calculations and relationships from a workbook tree

    Collector -> Resolver -> Rewriter -> Graph Builder -> Assembler. Nothing
    is shared between calls, so independent trees can be processed
    concurrently.

    Args:
        tree: Root element of the parsed workbook
        mode: Dependency extraction strategy (token scan is the default)

    Returns:
        ExtractionResult with fields, calcs and relationships
    """
    if isinstance(mode, str) and not isinstance(mode, DependencyMode):
        mode = DependencyMode.from_string(mode)

    collector = FieldCollector()
    raw_records = collector.collect(tree)

    identity_map = build_identity_map(raw_records)
    FormulaRewriter(identity_map).rewrite_records(raw_records)

    fields = sort_for_presentation(deduplicate(raw_records))
    relationships = build_dependencies(fields, mode, collector.next_sequence)

    result = ExtractionResult(
        fields=fields,
        calcs=select_calcs(fields),
        relationships=relationships,
        mode=mode,
    )
    logger.info(
        f"Extracted {len(result.fields)} fields ({len(result.calcs)} calculations/parameters) "
        f"and {len(result.relationships)} relationships"
    )
    return result


def select_calcs(fields: List[FieldRecord]) -> List[FieldRecord]:
    """Calculated fields and parameters, same objects as in fields"""
    return [record for record in fields if record.is_calc]
