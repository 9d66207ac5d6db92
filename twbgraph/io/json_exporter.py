"""
JSON export of extraction results
"""

import json
import logging
from pathlib import Path

from twbgraph.core.models import ExtractionResult, ExportError

logger = logging.getLogger(__name__)


def export_result_json(result: ExtractionResult, output_path: Path) -> Path:
    """
    Write fields, calcs and relationships to a JSON file

    Args:
        result: Extraction result
        output_path: Destination file

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file cannot be written
    """
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        logger.error(f"Error exporting JSON: {e}")
        raise ExportError(f"Error writing {output_path}: {e}")

    logger.info(f"JSON exported: {output_path}")
    return output_path
