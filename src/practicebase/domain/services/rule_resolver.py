"""Rule resolution service.

Decides whether an operation may proceed and which properties must be
hidden from the response or stripped from the incoming payload.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from practicebase.core.errors import AuthorizationError, CredentialError
from practicebase.core.rules import RecordLookup, RuleError, evaluate_rule
from practicebase.domain.entities.execution_context import ExecutionContext
from practicebase.domain.entities.rule_set import (
    ROLE_GUEST,
    ROLE_OWNER,
    ROLE_USER,
    ExpressionRule,
    PropertyRule,
    RoleRule,
    Rule,
    RuleSet,
)

logger = logging.getLogger(__name__)


@dataclass
class AccessDecision:
    """Result of rule resolution for one operation.

    Attributes:
        rule: The action rule that applied after all overrides.
        property_rules: Property rules to apply, in resolution order.
        allowed: Whether the action rule was satisfied.
    """

    rule: Rule
    property_rules: list[PropertyRule] = field(default_factory=list)
    allowed: bool = True


class RuleResolver:
    """Resolves and applies access rules.

    Resolution stages, each able to override the previous:
    1. Wildcard default rule for the action
    2. The collection's own rule for the action
    3. Wildcard property rules of the collection (appended)
    4. Rules of the specific record id: action rule replaces,
       property rules are appended

    An admin context bypasses a failed action rule but never the
    property redaction.
    """

    def __init__(self, rule_set: RuleSet, lookup: RecordLookup | None = None):
        """Initialize the resolver.

        Args:
            rule_set: The immutable authorization policy.
            lookup: Record lookup backing the ``get`` rule function.
        """
        self.rule_set = rule_set
        self.lookup = lookup

    def resolve(
        self, action: str, collection: str | None, record_id: str | None = None
    ) -> AccessDecision:
        """Resolve the action rule and property rules for an operation."""
        rule = self.rule_set.defaults[action]
        property_rules: list[PropertyRule] = []

        collection_rules = self.rule_set.for_collection(collection)
        if collection_rules is not None:
            rule = collection_rules.actions.get(action, rule)
            property_rules.extend(collection_rules.wildcard.property_rules(action))

            record_rules = collection_rules.records.get(record_id) if record_id else None
            if record_rules is not None:
                rule = record_rules.actions.get(action, rule)
                property_rules.extend(record_rules.property_rules(action))

        return AccessDecision(rule=rule, property_rules=property_rules)

    def authorize(
        self,
        context: ExecutionContext,
        action: str,
        collection: str | None,
        record: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> AccessDecision:
        """Check the action rule for an operation.

        Args:
            context: Caller context.
            action: One of create, read, update, delete.
            collection: Target collection, None for the collection listing.
            record: Candidate record, None for collection-level operations.
            payload: Incoming data for create and update.

        Returns:
            The resolved decision, including property rules still to apply.

        Raises:
            AuthorizationError: If a caller identity is required but absent.
            CredentialError: If the caller lacks the required privilege.
        """
        record_id = record.get("_id") if record else None
        decision = self.resolve(action, collection, record_id)

        if isinstance(decision.rule, RoleRule):
            allowed = self._check_roles(decision.rule, context, record)
        else:
            allowed = self._check_expression(decision.rule, context, record, payload)
        decision.allowed = allowed

        if not allowed:
            if not context.is_admin:
                logger.debug(
                    f"Access denied: action={action}, collection={collection}, "
                    f"record_id={record_id}, user_id={context.user_id}"
                )
                raise CredentialError()
            logger.info(
                f"Admin override: action={action}, collection={collection}, "
                f"record_id={record_id}"
            )

        return decision

    def apply_property_rules(
        self,
        context: ExecutionContext,
        action: str,
        property_rules: list[PropertyRule],
        record: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Delete every property whose rule evaluates false.

        Properties are removed from ``record`` for reads, and from
        ``payload`` for create and update. Both are caller-owned copies
        and are modified in place.
        """
        target = record if action == "read" else payload
        if target is None:
            return

        for property_rule in property_rules:
            if property_rule.prop not in target:
                continue
            if not self._check_property(property_rule.rule, context, record, payload):
                logger.debug(
                    f"Property redacted: action={action}, prop={property_rule.prop}"
                )
                del target[property_rule.prop]

    def enforce(
        self,
        context: ExecutionContext,
        action: str,
        collection: str | None,
        record: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> AccessDecision:
        """Authorize an operation, then apply its property rules."""
        decision = self.authorize(context, action, collection, record, payload)
        self.apply_property_rules(
            context, action, decision.property_rules, record=record, payload=payload
        )
        return decision

    def redact_records(
        self,
        context: ExecutionContext,
        collection: str,
        records: list[dict[str, Any]],
    ) -> None:
        """Apply read property rules to each record of a list read."""
        for record in records:
            decision = self.resolve("read", collection, record.get("_id"))
            self.apply_property_rules(context, "read", decision.property_rules, record=record)

    def _check_roles(
        self,
        rule: RoleRule,
        context: ExecutionContext,
        record: dict[str, Any] | None,
    ) -> bool:
        if ROLE_GUEST in rule.roles:
            return True
        if not context.is_authenticated:
            if context.is_admin:
                return False
            raise AuthorizationError()
        if ROLE_USER in rule.roles:
            return True
        if ROLE_OWNER in rule.roles and record is not None:
            owner_id = record.get("_ownerId")
            return owner_id is not None and owner_id == context.user_id
        return False

    def _check_expression(
        self,
        rule: ExpressionRule,
        context: ExecutionContext,
        record: dict[str, Any] | None,
        payload: dict[str, Any] | None,
    ) -> bool:
        variables = {
            "user": context.user,
            "record": record,
            "data": record,
            "payload": payload,
            "newData": payload,
        }
        try:
            return bool(evaluate_rule(rule.node, variables, self.lookup))
        except RuleError as e:
            logger.error(f"Error evaluating rule '{rule.source}': {e}")
            # Deny by default on error
            return False

    def _check_property(
        self,
        rule: Rule,
        context: ExecutionContext,
        record: dict[str, Any] | None,
        payload: dict[str, Any] | None,
    ) -> bool:
        if isinstance(rule, RoleRule):
            try:
                return self._check_roles(rule, context, record)
            except AuthorizationError:
                return False
        return self._check_expression(rule, context, record, payload)
