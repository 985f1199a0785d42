"""Parser for the ``where`` filter expression.

A filter is one or more clauses of the form ``<property><operator><literal>``
joined by a single connective family: every connective is ``AND`` or every
connective is ``OR``. Literals are JSON values; ``in`` takes a parenthesised
list body such as ``(1, 2, "x")``.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

from practicebase.core.errors import RequestError

OPERATORS = ("<=", "<", ">=", ">", "=", "like", "in")

_CLAUSE_PATTERN = re.compile(r"^(.+?)(<=|<|>=|>|=|\s+like\s+|\s+in\s+)(.+)$", re.IGNORECASE | re.DOTALL)
_CONNECTIVE_PATTERN = re.compile(r"\s+(and|or)\s+", re.IGNORECASE)
_LIST_PATTERN = re.compile(r"^\((.*)\)$", re.DOTALL)


class FilterSyntaxError(RequestError):
    """Raised when a ``where`` expression cannot be parsed."""

    default_message = "Could not parse WHERE clause, check your syntax."


@dataclass(frozen=True)
class FilterClause:
    """A single ``property operator value`` comparison."""

    prop: str
    operator: str
    value: Any

    def matches(self, record: dict[str, Any]) -> bool:
        """Test one record against this clause."""
        return _COMPARATORS[self.operator](record.get(self.prop), self.value)


@dataclass(frozen=True)
class FilterExpression:
    """Clauses joined by one connective (``and`` or ``or``)."""

    clauses: tuple[FilterClause, ...]
    connective: str = "and"

    def matches(self, record: dict[str, Any]) -> bool:
        """Test one record against the whole expression."""
        results = (clause.matches(record) for clause in self.clauses)
        if self.connective == "or":
            return any(results)
        return all(results)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _loose_equals(actual: Any, expected: Any) -> bool:
    """Equality that lets a numeric string match the same number."""
    if actual == expected:
        return True
    if isinstance(actual, str) and _is_number(expected):
        actual, expected = expected, actual
    if _is_number(actual) and isinstance(expected, str):
        try:
            return float(expected) == actual
        except ValueError:
            return False
    return False


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        try:
            return bool(compare(actual, expected))
        except TypeError:
            return False

    return check


def _like(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, str) or not isinstance(expected, str):
        return False
    return expected.lower() in actual.lower()


def _member(actual: Any, expected: Any) -> bool:
    return any(_loose_equals(actual, candidate) for candidate in expected)


_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<=": _ordered(lambda a, b: a <= b),
    "<": _ordered(lambda a, b: a < b),
    ">=": _ordered(lambda a, b: a >= b),
    ">": _ordered(lambda a, b: a > b),
    "=": _loose_equals,
    "like": _like,
    "in": _member,
}


def _split_outside_quotes(expression: str) -> tuple[list[str], list[str]]:
    """Split on AND/OR connectives that are not inside a quoted literal.

    Returns:
        The clause strings and the connectives found between them (lower case).
    """
    clauses: list[str] = []
    connectives: list[str] = []
    start = 0
    pos = 0
    quote: str | None = None

    while pos < len(expression):
        char = expression[pos]
        if quote:
            if char == "\\":
                pos += 2
                continue
            if char == quote:
                quote = None
            pos += 1
            continue
        if char in ("'", '"'):
            quote = char
            pos += 1
            continue
        match = _CONNECTIVE_PATTERN.match(expression, pos)
        if match and char.isspace():
            clauses.append(expression[start:pos])
            connectives.append(match.group(1).lower())
            pos = match.end()
            start = pos
            continue
        pos += 1

    clauses.append(expression[start:])
    return clauses, connectives


def _parse_literal(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise FilterSyntaxError() from e


def parse_clause(clause: str) -> FilterClause:
    """Parse one ``property operator literal`` clause."""
    match = _CLAUSE_PATTERN.match(clause.strip())
    if match is None:
        raise FilterSyntaxError()

    prop, operator, raw_value = match.groups()
    prop = prop.strip()
    operator = operator.strip().lower()
    raw_value = raw_value.strip()
    if not prop or not raw_value:
        raise FilterSyntaxError()

    if operator == "in":
        list_match = _LIST_PATTERN.match(raw_value)
        if list_match is None:
            raise FilterSyntaxError()
        value = _parse_literal(f"[{list_match.group(1)}]")
    else:
        value = _parse_literal(raw_value)

    return FilterClause(prop=prop, operator=operator, value=value)


def parse_where(expression: str) -> FilterExpression:
    """Parse a full ``where`` expression.

    Raises:
        FilterSyntaxError: If a clause is malformed or AND and OR are mixed.
    """
    if not expression or not expression.strip():
        raise FilterSyntaxError()

    parts, connectives = _split_outside_quotes(expression.strip())
    if len(set(connectives)) > 1:
        raise FilterSyntaxError("Mixing AND and OR in one WHERE clause is not supported")

    clauses = tuple(parse_clause(part) for part in parts)
    connective = connectives[0] if connectives else "and"
    return FilterExpression(clauses=clauses, connective=connective)
