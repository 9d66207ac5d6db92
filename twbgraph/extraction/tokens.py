"""
Bracket token scanning for calculation formulas
"""

import re
from typing import Iterator, List, Optional

# '[' + one or more characters other than '[' or ']' + ']'
TOKEN_PATTERN = re.compile(r'\[([^\[\]]+)\]')


def iter_tokens(formula: Optional[str]) -> Iterator[re.Match]:
    """Yield a match per bracket-delimited token, left to right"""
    if not formula:
        return
    yield from TOKEN_PATTERN.finditer(formula)


def scan_formula_tokens(formula: Optional[str]) -> List[str]:
    """
    Extract every bracket-delimited token of a formula

    Args:
        formula: Formula text (may be None)

    Returns:
        Token texts without brackets, in order, repeats kept
    """
    return [match.group(1) for match in iter_tokens(formula)]


def fold(identifier: str) -> str:
    """Case-insensitive key for identifier comparison"""
    return identifier.casefold()
