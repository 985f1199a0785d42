"""Evaluation of parsed rule expressions.

Only the node types of :mod:`.ast` and the built-ins registered in
``FUNCTIONS`` can run; a rule never executes host code.
"""

import operator
from typing import Any, Callable

from .ast import BinaryOp, FunctionCall, ListLiteral, Literal, Node, UnaryOp, Variable
from .exceptions import RuleEvaluationError

RecordLookup = Callable[[str, str], dict[str, Any] | None]

EQUALITY = {"==": operator.eq, "!=": operator.ne}

# Ordering between incompatible types is false rather than an error
ORDERING = {"<": operator.lt, ">": operator.gt, "<=": operator.le, ">=": operator.ge}


def _contains(container: Any, item: Any) -> bool:
    if container is None:
        return False
    try:
        return item in container
    except TypeError:
        return False


def _is_owner(user: Any, target: Any) -> bool:
    if not isinstance(user, dict) or not isinstance(target, dict):
        return False
    owner_id = target.get("_ownerId")
    return owner_id is not None and user.get("_id") == owner_id


def _string_test(test: Callable[[str, str], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, part: Any) -> bool:
        return isinstance(value, str) and isinstance(part, str) and test(value, part)

    return check


FUNCTIONS: dict[str, Callable[[Any, Any], Any]] = {
    "is_owner": _is_owner,
    "contains": _contains,
    "starts_with": _string_test(str.startswith),
    "ends_with": _string_test(str.endswith),
}


class Evaluator:
    """Evaluates an AST against a context of named values."""

    def __init__(self, context: dict[str, Any], lookup: RecordLookup | None = None):
        """Initialize the evaluator.

        Args:
            context: Values visible to the rule, e.g. user, data, newData.
            lookup: Record fetcher backing ``get(collection, id)``.
        """
        self.context = context
        self.lookup = lookup

    def evaluate(self, node: Node) -> Any:
        """Evaluate ``node`` and return its value."""
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Variable):
            return self._path(node.name)
        if isinstance(node, ListLiteral):
            return [self.evaluate(item) for item in node.items]
        if isinstance(node, UnaryOp) and node.operator == "not":
            return not self.evaluate(node.operand)
        if isinstance(node, BinaryOp):
            return self._binary(node)
        if isinstance(node, FunctionCall):
            return self._call(node)
        raise RuleEvaluationError(f"Cannot evaluate {node!r}")

    def _path(self, name: str) -> Any:
        value: Any = self.context
        for part in name.split("."):
            if not isinstance(value, dict):
                return None
            value = value.get(part)
        return value

    def _binary(self, node: BinaryOp) -> Any:
        op = node.operator
        if op == "and":
            return bool(self.evaluate(node.left)) and bool(self.evaluate(node.right))
        if op == "or":
            return bool(self.evaluate(node.left)) or bool(self.evaluate(node.right))

        left, right = self.evaluate(node.left), self.evaluate(node.right)
        if op in EQUALITY:
            return EQUALITY[op](left, right)
        if op in ORDERING:
            try:
                return ORDERING[op](left, right)
            except TypeError:
                return False
        if op == "in":
            return _contains(right, left)
        raise RuleEvaluationError(f"Unknown binary operator: {op}")

    def _call(self, node: FunctionCall) -> Any:
        if node.name != "get" and node.name not in FUNCTIONS:
            raise RuleEvaluationError(f"Unknown function: {node.name}")
        if len(node.arguments) != 2:
            raise RuleEvaluationError(f"{node.name}() expects 2 arguments")

        first, second = (self.evaluate(arg) for arg in node.arguments)
        if node.name == "get":
            return self._get(first, second)
        return FUNCTIONS[node.name](first, second)

    def _get(self, collection: Any, record_id: Any) -> dict[str, Any] | None:
        if self.lookup is None:
            raise RuleEvaluationError("get() is not available in this context")
        if not isinstance(collection, str) or not isinstance(record_id, str):
            return None
        return self.lookup(collection, record_id)
