"""
Formula Rewriter
Substitutes internal identifiers in formulas with friendly names
"""

import logging
from typing import Dict, Iterable, Optional

from twbgraph.core.models import FieldRecord
from twbgraph.extraction.tokens import TOKEN_PATTERN, fold

logger = logging.getLogger(__name__)


class FormulaRewriter:
    """
    Rewrites bracket tokens of formulas using an identity map

    Candidates are ordered longest first and only ever matched against a
    whole bracket token, so "[Sales]" can never rewrite part of
    "[Sales Amount]". Matching is case-insensitive through str.casefold;
    when two identifiers fold to the same key the one coming first in
    longest-first order wins.
    """

    def __init__(self, identity_map: Dict[str, str]):
        """
        Initialize rewriter

        Args:
            identity_map: Stripped identifier -> bracket-wrapped friendly name
        """
        self.identity_map = identity_map
        self._lookup: Dict[str, str] = {}
        for identifier in sorted(identity_map, key=len, reverse=True):
            self._lookup.setdefault(fold(identifier), identity_map[identifier])

    def rewrite(self, formula: Optional[str]) -> Optional[str]:
        """
        Rewrite a single formula

        Args:
            formula: Formula text (None is returned unchanged)

        Returns:
            Formula with every known identifier token replaced
        """
        if not formula or not self._lookup:
            return formula
        return TOKEN_PATTERN.sub(self._replace_token, formula)

    def _replace_token(self, match) -> str:
        return self._lookup.get(fold(match.group(1)), match.group(0))

    def rewrite_records(self, records: Iterable[FieldRecord]) -> int:
        """
        Rewrite calculation_formula of every record in place

        The original formula snapshot is left untouched.

        Returns:
            Number of formulas that changed
        """
        changed = 0
        for record in records:
            if record.calculation_formula is None:
                continue
            rewritten = self.rewrite(record.calculation_formula)
            if rewritten != record.calculation_formula:
                record.calculation_formula = rewritten
                changed += 1

        logger.debug(f"Rewrote {changed} formulas")
        return changed


def rewrite_formula(formula: Optional[str], identity_map: Dict[str, str]) -> Optional[str]:
    """Rewrite one formula with the given identity map"""
    return FormulaRewriter(identity_map).rewrite(formula)


def rewrite_formulas(records: Iterable[FieldRecord], identity_map: Dict[str, str]) -> int:
    """Rewrite formulas of all records in place"""
    return FormulaRewriter(identity_map).rewrite_records(records)
