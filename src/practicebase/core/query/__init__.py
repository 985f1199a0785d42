"""Filter expression support for read queries."""

from .filter_parser import (
    OPERATORS,
    FilterClause,
    FilterExpression,
    FilterSyntaxError,
    parse_clause,
    parse_where,
)

__all__ = [
    "OPERATORS",
    "FilterClause",
    "FilterExpression",
    "FilterSyntaxError",
    "parse_clause",
    "parse_where",
]
