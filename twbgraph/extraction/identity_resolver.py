"""
Identity Resolver
Maps internal identifiers to friendly names and removes duplicate records
"""

import logging
from typing import Dict, List, Iterable

from twbgraph.core.models import FieldRecord, FieldCategory, is_parameters_datasource

logger = logging.getLogger(__name__)


def build_identity_map(records: Iterable[FieldRecord]) -> Dict[str, str]:
    """
    Build the stripped identifier -> [friendly name] mapping

    Calculated fields and parameters always claim the slot for their
    identifier; default fields only fill slots nobody claimed yet, so a raw
    source column cannot shadow a calculation sharing its identifier.

    Args:
        records: Raw field records

    Returns:
        Dict keyed by bracket-free identifier, in first-claim order
    """
    identity_map: Dict[str, str] = {}

    for record in records:
        key = record.stripped_id
        if record.category in (FieldCategory.CALCULATED_FIELD, FieldCategory.PARAMETER):
            identity_map[key] = record.friendly_name
        elif key not in identity_map:
            identity_map[key] = record.friendly_name

    logger.debug(f"Identity map built with {len(identity_map)} identifiers")
    return identity_map


def deduplicate(records: Iterable[FieldRecord]) -> List[FieldRecord]:
    """
    Keep one record per id, preferring the Parameters datasource

    Args:
        records: Raw field records

    Returns:
        Unique records, Parameters datasource first, then by sequence
    """
    ordered = sorted(
        records,
        key=lambda r: (0 if is_parameters_datasource(r.datasource_name) else 1, r.sequence)
    )

    unique = []
    seen_ids = set()
    for record in ordered:
        if record.id in seen_ids:
            logger.debug(f"Dropping duplicate field {record.id} from {record.datasource_name}")
            continue
        seen_ids.add(record.id)
        unique.append(record)

    return unique


def presentation_key(record: FieldRecord):
    """Sort key: category, datasource caption, name, sequence"""
    return (
        record.category.rank,
        record.datasource_caption or "",
        record.name or "",
        record.sequence,
    )


def sort_for_presentation(records: Iterable[FieldRecord]) -> List[FieldRecord]:
    """Order records for display; carries no semantic meaning"""
    return sorted(records, key=presentation_key)
