"""Access rule expressions: parsing and evaluation."""

from typing import Any

from .ast import Node
from .evaluator import Evaluator, RecordLookup
from .exceptions import RuleError, RuleEvaluationError, RuleSyntaxError
from .lexer import Lexer
from .parser import Parser


def parse_rule(expression: str) -> Node:
    """Parse a rule expression into its AST.

    Raises:
        RuleSyntaxError: If the expression is malformed.
    """
    return Parser(Lexer(expression)).parse()


def evaluate_rule(
    node: Node, context: dict[str, Any], lookup: RecordLookup | None = None
) -> Any:
    """Evaluate a parsed rule against named context values."""
    return Evaluator(context, lookup).evaluate(node)


__all__ = [
    "parse_rule",
    "evaluate_rule",
    "Node",
    "RecordLookup",
    "RuleError",
    "RuleSyntaxError",
    "RuleEvaluationError",
]
