"""Errors raised while parsing or evaluating access rules."""


class RuleError(Exception):
    """Common base of rule failures."""


class RuleSyntaxError(RuleError):
    """A rule expression is malformed.

    Attributes:
        position: Offset into the expression where parsing stopped.
    """

    def __init__(self, message: str, position: int | None = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class RuleEvaluationError(RuleError):
    """A well-formed rule cannot be evaluated (unknown function, bad arity)."""
