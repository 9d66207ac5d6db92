"""
Data models and exceptions for twbgraph
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any


# Custom exceptions
class TwbGraphError(Exception):
    """Base error for twbgraph"""
    pass


class WorkbookLoadError(TwbGraphError):
    """Error loading a workbook file"""
    pass


class ExportError(TwbGraphError):
    """Error exporting results"""
    pass


class ValidationError(TwbGraphError):
    """Validation error"""
    pass


PARAMETERS_DATASOURCE = "Parameters"
UNKNOWN_DATASOURCE = "Unknown"


def is_parameters_datasource(name: Optional[str]) -> bool:
    """True if the datasource name is the Parameters datasource (case-insensitive)"""
    return bool(name) and name.lower() == PARAMETERS_DATASOURCE.lower()


class FieldCategory(str, Enum):
    """Field categories, in presentation order"""
    PARAMETER = "Parameter"
    CALCULATED_FIELD = "CalculatedField"
    DEFAULT_FIELD = "DefaultField"

    @property
    def rank(self) -> int:
        return list(FieldCategory).index(self)


class DependencyMode(str, Enum):
    """Strategies for discovering dependencies from formula text"""
    TOKEN_SCAN = "token-scan"
    CONTAINMENT = "containment"

    @classmethod
    def from_string(cls, value: str) -> 'DependencyMode':
        """Creates a mode from a string, with validation"""
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            valid = [m.value for m in cls]
            raise ValidationError(f"Invalid dependency mode: {value}. Valid: {valid}")


@dataclass
class FieldRecord:
    """A field or parameter discovered in a workbook"""
    id: str
    name: Optional[str]
    caption: Optional[str]
    category: FieldCategory
    sequence: int
    datasource_name: Optional[str] = None
    datasource_caption: Optional[str] = None
    alias: Optional[str] = None
    description: Optional[str] = None
    role: Optional[str] = None
    data_type: Optional[str] = None
    default_aggregation: Optional[str] = None
    field_type: Optional[str] = None
    is_nominal: bool = False
    is_ordinal: bool = False
    is_quantitative: bool = False
    hidden: bool = False
    calculation_formula: Optional[str] = None
    _formula_original: Optional[str] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        # Snapshot of the raw formula, taken once
        self._formula_original = self.calculation_formula

    @property
    def calculation_formula_original(self) -> Optional[str]:
        """Raw formula as found in the workbook, never rewritten"""
        return self._formula_original

    @property
    def stripped_id(self) -> str:
        return strip_brackets(self.id)

    @property
    def friendly_name(self) -> str:
        """Bracket-wrapped display name used when rewriting formulas"""
        return f"[{self.caption or self.name}]"

    @property
    def is_calc(self) -> bool:
        return self.category in (FieldCategory.CALCULATED_FIELD, FieldCategory.PARAMETER)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "caption": self.caption,
            "category": self.category.value,
            "sequence": self.sequence,
            "datasource_name": self.datasource_name,
            "datasource_caption": self.datasource_caption,
            "alias": self.alias,
            "description": self.description,
            "role": self.role,
            "data_type": self.data_type,
            "default_aggregation": self.default_aggregation,
            "field_type": self.field_type,
            "is_nominal": self.is_nominal,
            "is_ordinal": self.is_ordinal,
            "is_quantitative": self.is_quantitative,
            "hidden": self.hidden,
            "calculation_formula": self.calculation_formula,
            "calculation_formula_original": self.calculation_formula_original,
        }


@dataclass(frozen=True)
class DependencyEdge:
    """Directed reference from one field caption to another"""
    source: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.source, "to": self.target}


@dataclass
class ExtractionResult:
    """Fields, calculated fields/parameters and relationships of one workbook"""
    fields: List[FieldRecord]
    calcs: List[FieldRecord]
    relationships: List[DependencyEdge]
    mode: DependencyMode = DependencyMode.TOKEN_SCAN

    @property
    def datasources(self) -> List[str]:
        """Distinct datasource captions in field order, Parameters and placeholders excluded"""
        captions = []
        for record in self.fields:
            name = record.datasource_name
            if not name or is_parameters_datasource(name) or name == UNKNOWN_DATASOURCE:
                continue
            caption = record.datasource_caption or name
            if caption not in captions:
                captions.append(caption)
        return captions

    def get_field(self, caption: str) -> Optional[FieldRecord]:
        for record in self.fields:
            if record.caption == caption:
                return record
        return None

    def search(self, term: str) -> List[FieldRecord]:
        """
        Case-insensitive substring search over caption, name, id and formula

        Args:
            term: Text to search for

        Returns:
            Matching fields, in field order. An empty term matches everything.
        """
        needle = (term or "").casefold()
        matches = []
        for record in self.fields:
            haystack = [record.caption, record.name, record.id, record.calculation_formula]
            if any(needle in value.casefold() for value in haystack if value):
                matches.append(record)
        return matches

    def summary(self) -> Dict[str, int]:
        counts = {category.value: 0 for category in FieldCategory}
        for record in self.fields:
            counts[record.category.value] += 1
        counts["fields"] = len(self.fields)
        counts["relationships"] = len(self.relationships)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "fields": [record.to_dict() for record in self.fields],
            "calcs": [record.to_dict() for record in self.calcs],
            "relationships": [edge.to_dict() for edge in self.relationships],
        }


def strip_brackets(identifier: Optional[str]) -> str:
    """Removes every square bracket from an identifier"""
    if not identifier:
        return ""
    return identifier.replace("[", "").replace("]", "")
