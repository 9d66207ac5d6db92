"""
Dependency Graph Builder
Derives field -> field edges from formula text
"""

import logging
from typing import List, Sequence

from twbgraph.core.models import (
    FieldRecord,
    FieldCategory,
    DependencyEdge,
    DependencyMode,
    UNKNOWN_DATASOURCE,
)
from twbgraph.extraction.tokens import scan_formula_tokens, fold

logger = logging.getLogger(__name__)


def build_token_scan_edges(records: Sequence[FieldRecord]) -> List[DependencyEdge]:
    """
    Edges from the bracket tokens of each (rewritten) formula

    Every token becomes an edge token -> owning field caption, except a
    token equal to the field's own caption. Repeated tokens give repeated
    edges.

    Args:
        records: Final field records, formulas already rewritten

    Returns:
        Edge list in record order
    """
    edges = []
    for record in records:
        if not record.calculation_formula:
            continue
        for token in scan_formula_tokens(record.calculation_formula):
            if token == record.caption:
                continue
            edges.append(DependencyEdge(source=token, target=record.caption))
    return edges


def build_containment_edges(records: Sequence[FieldRecord]) -> List[DependencyEdge]:
    """
    Edges from identifier containment in original formulas

    For each target with an original formula and every other record, emit
    source caption -> target caption when [source id] appears as a token
    (case-insensitive) of the target's original formula. Independent of
    the rewrite step; quadratic in the number of records.

    Args:
        records: Final field records

    Returns:
        Edge list, target-major in record order
    """
    edges = []
    for target in records:
        original = target.calculation_formula_original
        if not original:
            continue
        tokens = {fold(token) for token in scan_formula_tokens(original)}
        for source in records:
            if source.id == target.id:
                continue
            if fold(source.stripped_id) in tokens:
                edges.append(DependencyEdge(source=source.caption, target=target.caption))
    return edges


def close_graph(
    records: List[FieldRecord],
    edges: Sequence[DependencyEdge],
    next_sequence: int
) -> List[FieldRecord]:
    """
    Add placeholder fields for edge sources that are not known captions

    Args:
        records: Final field records, extended in place
        edges: Edges to close over
        next_sequence: First sequence number free for placeholders

    Returns:
        The placeholder records that were appended
    """
    known = {record.caption for record in records}
    placeholders = []

    for edge in edges:
        if edge.source in known:
            continue
        placeholder = FieldRecord(
            id=f"[{edge.source}]",
            name=edge.source,
            caption=edge.source,
            category=FieldCategory.DEFAULT_FIELD,
            sequence=next_sequence,
            datasource_name=UNKNOWN_DATASOURCE,
            datasource_caption=UNKNOWN_DATASOURCE,
        )
        next_sequence += 1
        records.append(placeholder)
        placeholders.append(placeholder)
        known.add(edge.source)

    if placeholders:
        logger.info(f"Added {len(placeholders)} placeholder fields for undeclared references")
    return placeholders


def build_dependencies(
    records: List[FieldRecord],
    mode: DependencyMode = DependencyMode.TOKEN_SCAN,
    next_sequence: int = 0
) -> List[DependencyEdge]:
    """
    Build the edge list with one strategy and close the graph

    Only the selected strategy runs; the two are never merged.

    Args:
        records: Final field records (placeholders get appended)
        mode: Extraction strategy
        next_sequence: First sequence number free for placeholders

    Returns:
        Edge list
    """
    if mode == DependencyMode.CONTAINMENT:
        edges = build_containment_edges(records)
    else:
        edges = build_token_scan_edges(records)

    close_graph(records, edges, next_sequence)
    logger.debug(f"Built {len(edges)} dependency edges ({mode.value})")
    return edges
