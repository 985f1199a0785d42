"""Access rule set entities.

The rule set is loaded once at startup from a JSON document and is
read-only afterwards. Its configuration shape is::

    {
        "*": {".create": ["User"], ".update": ["Owner"], ".delete": ["Owner"]},
        "members": {
            ".update": "is_owner(user, get('teams', record.teamId))",
            "*": {"status": {".create": "payload.status == 'pending'"}},
            "<record id>": {".delete": false, "note": {".read": ["Owner"]}}
        }
    }

Keys starting with a dot name an action. A rule value is a list of role
labels, a boolean, or a rule expression string. Empty lists and empty
strings leave the inherited rule in place.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from practicebase.core.rules import Node, parse_rule
from practicebase.core.rules.ast import Literal

ACTIONS = ("create", "read", "update", "delete")

# Actions whose property rules redact data
PROPERTY_ACTIONS = ("create", "read", "update")

ROLE_GUEST = "Guest"
ROLE_USER = "User"
ROLE_OWNER = "Owner"
ROLES = frozenset({ROLE_GUEST, ROLE_USER, ROLE_OWNER})

WILDCARD = "*"


@dataclass(frozen=True)
class RoleRule:
    """Rule satisfied by any of a fixed set of role labels."""

    roles: frozenset[str]


@dataclass(frozen=True)
class ExpressionRule:
    """Rule given by a boolean expression over (user, record, payload)."""

    source: str
    node: Node


Rule = RoleRule | ExpressionRule


@dataclass(frozen=True)
class PropertyRule:
    """A rule scoped to a single property for one action."""

    prop: str
    rule: Rule


@dataclass(frozen=True)
class ScopedRules:
    """Action and property rules attached to a collection or a record id."""

    actions: Mapping[str, Rule] = field(default_factory=dict)
    properties: Mapping[str, Mapping[str, Rule]] = field(default_factory=dict)

    def property_rules(self, action: str) -> list[PropertyRule]:
        """Property rules defined for ``action`` in declaration order."""
        return [
            PropertyRule(prop=prop, rule=rules[action])
            for prop, rules in self.properties.items()
            if action in rules
        ]


@dataclass(frozen=True)
class CollectionRules:
    """Rules of one collection.

    Attributes:
        actions: Collection-level action rules.
        wildcard: Property rules declared under the ``*`` marker.
        records: Rules dedicated to specific record ids.
    """

    actions: Mapping[str, Rule] = field(default_factory=dict)
    wildcard: ScopedRules = field(default_factory=ScopedRules)
    records: Mapping[str, ScopedRules] = field(default_factory=dict)


DEFAULT_RULES: dict[str, Rule] = {
    "create": RoleRule(frozenset({ROLE_USER})),
    "read": ExpressionRule(source="true", node=Literal(True)),
    "update": RoleRule(frozenset({ROLE_OWNER})),
    "delete": RoleRule(frozenset({ROLE_OWNER})),
}


@dataclass(frozen=True)
class RuleSet:
    """Immutable authorization policy."""

    defaults: Mapping[str, Rule] = field(default_factory=lambda: dict(DEFAULT_RULES))
    collections: Mapping[str, CollectionRules] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None) -> "RuleSet":
        """Build a rule set from its JSON configuration shape.

        Wildcard defaults from the configuration override the built-in
        defaults per action.

        Raises:
            ValueError: If an action, role label or rule value is invalid.
            RuleSyntaxError: If a rule expression cannot be parsed.
        """
        config = config or {}
        if not isinstance(config, Mapping):
            raise ValueError("Rule configuration must be an object")

        defaults = dict(DEFAULT_RULES)
        wildcard = config.get(WILDCARD)
        if wildcard is not None:
            defaults.update(_parse_scope(wildcard, WILDCARD).actions)

        collections = {
            name: _parse_collection(name, value)
            for name, value in config.items()
            if name != WILDCARD
        }
        return cls(defaults=defaults, collections=collections)

    def for_collection(self, collection: str | None) -> CollectionRules | None:
        """Rules of ``collection``, if any were configured."""
        if collection is None:
            return None
        return self.collections.get(collection)


def parse_rule_value(value: Any, where: str) -> Rule | None:
    """Parse one configured rule value.

    Returns:
        The rule, or None when the value is empty and must not override.
    """
    if isinstance(value, bool):
        return ExpressionRule(source="true" if value else "false", node=Literal(value))

    if isinstance(value, list):
        if not value:
            return None
        unknown = [role for role in value if role not in ROLES]
        if unknown:
            raise ValueError(f"Unknown role(s) {unknown} in rule at {where}")
        return RoleRule(frozenset(value))

    if isinstance(value, str):
        if not value.strip():
            return None
        return ExpressionRule(source=value, node=parse_rule(value))

    raise ValueError(f"Invalid rule value at {where}: {value!r}")


def _parse_actions(value: Mapping[str, Any], where: str) -> dict[str, Rule]:
    actions: dict[str, Rule] = {}
    for key, raw in value.items():
        if not key.startswith("."):
            continue
        action = key[1:]
        if action not in ACTIONS:
            raise ValueError(f"Unknown action '{key}' at {where}")
        rule = parse_rule_value(raw, f"{where}.{key}")
        if rule is not None:
            actions[action] = rule
    return actions


def _parse_scope(value: Any, where: str) -> ScopedRules:
    if not isinstance(value, Mapping):
        raise ValueError(f"Rules at {where} must be an object")

    properties: dict[str, dict[str, Rule]] = {}
    for key, raw in value.items():
        if key.startswith("."):
            continue
        if not isinstance(raw, Mapping):
            raise ValueError(f"Property rules at {where}.{key} must be an object")
        prop_actions = _parse_actions(raw, f"{where}.{key}")
        invalid = [action for action in prop_actions if action not in PROPERTY_ACTIONS]
        if invalid:
            raise ValueError(f"Property rules at {where}.{key} cannot use {invalid}")
        if prop_actions:
            properties[key] = prop_actions

    return ScopedRules(actions=_parse_actions(value, where), properties=properties)


def _parse_collection(name: str, value: Any) -> CollectionRules:
    if not isinstance(value, Mapping):
        raise ValueError(f"Rules for collection '{name}' must be an object")

    wildcard = ScopedRules()
    records: dict[str, ScopedRules] = {}
    for key, raw in value.items():
        if key.startswith("."):
            continue
        if key == WILDCARD:
            scope = _parse_scope(raw, f"{name}.*")
            wildcard = ScopedRules(properties=scope.properties)
        else:
            records[key] = _parse_scope(raw, f"{name}.{key}")

    return CollectionRules(
        actions=_parse_actions(value, name),
        wildcard=wildcard,
        records=records,
    )
