"""Tree form of a parsed rule expression.

Nodes are frozen so a parsed rule set can be shared between requests.
"""

from dataclasses import dataclass
from typing import Any


class Node:
    """Marker base of every expression node."""


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class Variable(Node):
    """Dotted path into the evaluation context, e.g. ``data.teamId``."""

    name: str


@dataclass(frozen=True)
class BinaryOp(Node):
    left: Node
    operator: str
    right: Node


@dataclass(frozen=True)
class UnaryOp(Node):
    operator: str
    operand: Node


@dataclass(frozen=True)
class FunctionCall(Node):
    """Call of a built-in such as ``is_owner(user, data)``."""

    name: str
    arguments: list[Node]


@dataclass(frozen=True)
class ListLiteral(Node):
    items: list[Node]
