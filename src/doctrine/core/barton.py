"""
Barton number codec - parse, validate and format doctrine identifiers.

A Barton number is a five-part dotted identifier ``DB.HQ.SUB.NESTED.INDEX``:

    ┌────────┬──────────────────────────────────────────────┐
    │ DB     │ 1 = Command Ops, 2 = Marketing DB            │
    │ HQ     │ sub-hive                                     │
    │ SUB    │ sub-sub-hive                                 │
    │ NESTED │ section 0-49, selects the doctrine category  │
    │ INDEX  │ doctrinal id within the section              │
    └────────┴──────────────────────────────────────────────┘

The NESTED section is split into five bands of ten and each band maps to
exactly one ``Category``. ``category_of`` is the only place that table is
written down; the registry and the compliance engine both call it.

Integers are written in canonical decimal (no sign, no leading zeros), so
``format_identifier(parse(text)) == text`` for every text that parses once
boundary whitespace is removed.

Examples:
    >>> num = parse("1.1.1.20.1")
    >>> num.nested, num.category
    (20, <Category.PROCESS: 'process'>)
    >>> format_identifier(num)
    '1.1.1.20.1'
    >>> is_valid("1.1.1.50.1")
    False

Tags:
    barton-number, identifier, codec, validation, doctrine-registry

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from doctrine.core.enums import Category, Database
from doctrine.core.errors import InvalidIdentifierError

NESTED_MIN = 0
NESTED_MAX = 49
BAND_WIDTH = 10

_INT = r"(0|[1-9][0-9]*)"
_PATTERN = re.compile(rf"^{_INT}\.{_INT}\.{_INT}\.{_INT}\.{_INT}$", re.ASCII)

# Band lower bound -> category, in order
_BANDS: tuple[Category, ...] = (
    Category.TONE,
    Category.STRUCTURE,
    Category.PROCESS,
    Category.COMPLIANCE,
    Category.MESSAGING,
)


def category_of(nested: int) -> Category:
    """Return the category for a NESTED section number.

    ``[0,9]`` tone, ``[10,19]`` structure, ``[20,29]`` process,
    ``[30,39]`` compliance, ``[40,49]`` messaging.

    Raises:
        ValueError: ``nested`` is outside [0, 49]. Callers validate the
            identifier first, so reaching this is a programming error.
    """
    if isinstance(nested, bool) or not isinstance(nested, int):
        raise ValueError(f"Invalid section number: {nested!r}")
    if not NESTED_MIN <= nested <= NESTED_MAX:
        raise ValueError(f"Invalid section number: {nested}")
    return _BANDS[nested // BAND_WIDTH]


@dataclass(frozen=True)
class BartonNumber:
    """A validated Barton number. Construction enforces every field range."""

    database: int
    hq: int
    sub: int
    nested: int
    index: int

    def __post_init__(self) -> None:
        parts = (self.database, self.hq, self.sub, self.nested, self.index)
        for value in parts:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidIdentifierError(_join(parts), "fields must be non-negative integers")
        if self.database not in (Database.COMMAND_OPS, Database.MARKETING):
            raise InvalidIdentifierError(_join(parts), "database must be 1 or 2")
        if not NESTED_MIN <= self.nested <= NESTED_MAX:
            raise InvalidIdentifierError(
                _join(parts), f"nested section must be in [{NESTED_MIN}, {NESTED_MAX}]"
            )

    @property
    def category(self) -> Category:
        return category_of(self.nested)

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        return (self.database, self.hq, self.sub, self.nested, self.index)

    def __str__(self) -> str:
        return format_identifier(self)


def parse(text: str) -> BartonNumber:
    """Parse ``DB.HQ.SUB.NESTED.INDEX`` into a ``BartonNumber``.

    Surrounding whitespace is ignored. Anything else that is not exactly
    five canonical non-negative integers fails; there are no partial parses.

    Raises:
        InvalidIdentifierError: malformed text, database not in {1, 2},
            or nested section outside [0, 49].
    """
    if not isinstance(text, str):
        raise InvalidIdentifierError(repr(text), "identifier must be a string")
    match = _PATTERN.match(text.strip())
    if match is None:
        raise InvalidIdentifierError(text, "expected DB.HQ.SUB.NESTED.INDEX")
    database, hq, sub, nested, index = (int(group) for group in match.groups())
    return BartonNumber(database, hq, sub, nested, index)


def format_identifier(identifier: BartonNumber) -> str:
    """Render a ``BartonNumber`` as canonical dotted text."""
    return _join(identifier.as_tuple())


def is_valid(text: str) -> bool:
    """Non-raising validity check."""
    try:
        parse(text)
    except InvalidIdentifierError:
        return False
    return True


def _join(parts: tuple) -> str:
    return ".".join(str(p) for p in parts)


__all__ = [
    "BartonNumber",
    "NESTED_MIN",
    "NESTED_MAX",
    "category_of",
    "format_identifier",
    "is_valid",
    "parse",
]
