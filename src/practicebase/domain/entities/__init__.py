"""Domain entities for PracticeBase.

Entities are pure Python dataclasses that represent core concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from practicebase.domain.entities.execution_context import ExecutionContext
from practicebase.domain.entities.query_spec import LoadJoin, QuerySpec, SortKey
from practicebase.domain.entities.rule_set import (
    ACTIONS,
    CollectionRules,
    ExpressionRule,
    PropertyRule,
    RoleRule,
    Rule,
    RuleSet,
    ScopedRules,
)

__all__ = [
    "ACTIONS",
    "CollectionRules",
    "ExecutionContext",
    "ExpressionRule",
    "LoadJoin",
    "PropertyRule",
    "QuerySpec",
    "RoleRule",
    "Rule",
    "RuleSet",
    "ScopedRules",
    "SortKey",
]
