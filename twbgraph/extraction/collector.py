"""
Field Collector
Walks datasource, column and param elements of a parsed workbook tree
"""

import logging
from typing import List, Optional, Any

from twbgraph.core.models import FieldRecord, FieldCategory, is_parameters_datasource

logger = logging.getLogger(__name__)


SEMANTIC_NOMINAL = "[Nominal]"
SEMANTIC_ORDINAL = "[Ordinal]"
SEMANTIC_MEASURE = "[Measure]"


class FieldCollector:
    """
    Collects raw field records from a workbook tree

    The tree only needs the ElementTree element API (get, iter, find,
    itertext), so both lxml and xml.etree elements work. A collector is
    meant for a single tree; the sequence counter starts at zero for each
    instance.
    """

    def __init__(self):
        """Initialize collector"""
        self._sequence = 0

    @property
    def next_sequence(self) -> int:
        """Sequence number the next created record would get"""
        return self._sequence

    def collect(self, tree: Any) -> List[FieldRecord]:
        """
        Collect field records in traversal order

        Args:
            tree: Root element of the parsed workbook

        Returns:
            Raw records, datasource-major, columns before params
        """
        records: List[FieldRecord] = []

        for datasource in tree.iter("datasource"):
            ds_name = datasource.get("name") or "Unknown Datasource"
            ds_caption = datasource.get("caption") or ds_name
            is_parameters = is_parameters_datasource(ds_name)

            for column in datasource.iter("column"):
                records.append(self._column_record(column, ds_name, ds_caption, is_parameters))

            if is_parameters:
                for param in datasource.iter("param"):
                    param_id = _bracket(param.get("name") or f"col_{self._sequence}")
                    if any(r.id == param_id and r.datasource_name == ds_name for r in records):
                        logger.debug(f"Parameter already registered through a column: {param_id}")
                        continue
                    records.append(self._param_record(param, param_id, ds_name, ds_caption))

        logger.debug(f"Collected {len(records)} raw field records")
        return records

    def _take_sequence(self) -> int:
        sequence = self._sequence
        self._sequence += 1
        return sequence

    def _column_record(self, column, ds_name: str, ds_caption: str, is_parameters: bool) -> FieldRecord:
        """Build a record from a <column> element"""
        sequence = self._take_sequence()
        name_attr = column.get("name")

        field_id = column.get("id") or _bracket(name_attr or f"col_{sequence}")
        field_name = name_attr or field_id
        caption = column.get("caption") or _display_name(field_name)

        calculation = column.find(".//calculation")
        formula = calculation.get("formula") if calculation is not None else None

        if is_parameters:
            category = FieldCategory.PARAMETER
        elif formula is not None:
            category = FieldCategory.CALCULATED_FIELD
        else:
            category = FieldCategory.DEFAULT_FIELD

        semantic_role = column.get("semantic-role")

        return FieldRecord(
            id=field_id,
            name=field_name,
            caption=caption,
            category=category,
            sequence=sequence,
            datasource_name=ds_name,
            datasource_caption=ds_caption,
            alias=column.get("alias"),
            description=_description(column),
            role=column.get("role"),
            data_type=column.get("datatype"),
            default_aggregation=column.get("default-aggregation"),
            field_type=column.get("type"),
            is_nominal=semantic_role == SEMANTIC_NOMINAL,
            is_ordinal=semantic_role == SEMANTIC_ORDINAL,
            is_quantitative=semantic_role == SEMANTIC_MEASURE,
            hidden=column.get("hidden") == "true",
            calculation_formula=formula,
        )

    def _param_record(self, param, param_id: str, ds_name: str, ds_caption: str) -> FieldRecord:
        """Build a record from a <param> element"""
        name = param.get("name") or param_id
        return FieldRecord(
            id=param_id,
            name=name,
            caption=param.get("caption") or _display_name(name),
            category=FieldCategory.PARAMETER,
            sequence=self._take_sequence(),
            datasource_name=ds_name,
            datasource_caption=ds_caption,
            alias=param.get("alias"),
            role="parameter",
            data_type=param.get("datatype"),
            field_type="quantitative",
        )


def collect_fields(tree: Any) -> List[FieldRecord]:
    """Collect raw field records from a workbook tree"""
    return FieldCollector().collect(tree)


def _bracket(name: str) -> str:
    """Wrap a name in brackets unless it already is"""
    if name.startswith("[") and name.endswith("]"):
        return name
    return f"[{name}]"


def _display_name(name: str) -> str:
    """Name without its enclosing brackets, for display"""
    if len(name) > 2 and name.startswith("[") and name.endswith("]"):
        return name[1:-1]
    return name


def _description(column) -> Optional[str]:
    """Text of desc/formatted-text/run, if present"""
    desc = column.find(".//desc")
    if desc is None:
        return None
    formatted = desc.find(".//formatted-text")
    if formatted is None:
        return None
    run = formatted.find(".//run")
    if run is None:
        return None
    return "".join(run.itertext())
