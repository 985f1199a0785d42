"""Tests for rule resolution and property redaction."""

import pytest

from practicebase.core.errors import AuthorizationError, CredentialError
from practicebase.domain.entities.execution_context import ExecutionContext
from practicebase.domain.entities.rule_set import RoleRule, RuleSet
from practicebase.domain.services.rule_resolver import RuleResolver

PETER = {"_id": "u1", "email": "peter@abv.bg"}
GEORGE = {"_id": "u2", "email": "george@abv.bg"}

TEAMS = {"t1": {"_id": "t1", "_ownerId": "u1"}}

RULES = {
    "users": {".create": False, ".read": ["Owner"], ".update": False, ".delete": False},
    "members": {
        ".update": "is_owner(user, get('teams', data.teamId))",
        ".delete": "is_owner(user, get('teams', data.teamId)) or is_owner(user, data)",
        "*": {
            "teamId": {".update": "newData.teamId == data.teamId"},
            "status": {".create": "newData.status == 'pending'"},
        },
    },
    "notes": {
        ".read": ["Guest"],
        "*": {"secret": {".read": False}, "email": {".read": ["User"]}},
        "n1": {".read": ["Owner"], "body": {".read": "user != null"}},
    },
    "broken": {".read": "unknown_fn()"},
}


def lookup(collection, record_id):
    return TEAMS.get(record_id) if collection == "teams" else None


@pytest.fixture
def resolver():
    return RuleResolver(RuleSet.from_config(RULES), lookup=lookup)


def caller(user=None, is_admin=False):
    return ExecutionContext(user=user, is_admin=is_admin)


class TestResolve:
    """Test the override stages."""

    def test_defaults(self, resolver):
        assert resolver.resolve("create", "appliances").rule == RoleRule(frozenset({"User"}))
        assert resolver.resolve("delete", "appliances").rule == RoleRule(frozenset({"Owner"}))
        assert resolver.resolve("read", "appliances").property_rules == []

    def test_collection_rule_replaces_default(self, resolver):
        assert resolver.resolve("read", "users").rule == RoleRule(frozenset({"Owner"}))

    def test_record_rules_replace_action_and_append_properties(self, resolver):
        decision = resolver.resolve("read", "notes", "n1")

        assert decision.rule == RoleRule(frozenset({"Owner"}))
        assert [rule.prop for rule in decision.property_rules] == ["secret", "email", "body"]

    def test_other_records_use_collection_rules(self, resolver):
        decision = resolver.resolve("read", "notes", "n2")

        assert decision.rule == RoleRule(frozenset({"Guest"}))
        assert [rule.prop for rule in decision.property_rules] == ["secret", "email"]


class TestRoles:
    """Test role list evaluation."""

    def test_default_create_requires_user(self, resolver):
        resolver.authorize(caller(PETER), "create", "appliances", payload={})

        with pytest.raises(AuthorizationError):
            resolver.authorize(caller(), "create", "appliances", payload={})

    def test_owner_may_update(self, resolver):
        record = {"_id": "a1", "_ownerId": "u1"}

        resolver.authorize(caller(PETER), "update", "appliances", record, {})

    def test_non_owner_gets_credential_error(self, resolver):
        record = {"_id": "a1", "_ownerId": "u1"}

        with pytest.raises(CredentialError):
            resolver.authorize(caller(GEORGE), "update", "appliances", record, {})

    def test_anonymous_owner_check_is_authorization_error(self, resolver):
        with pytest.raises(AuthorizationError):
            resolver.authorize(caller(), "delete", "appliances", {"_id": "a1", "_ownerId": "u1"})

    def test_guest(self, resolver):
        decision = resolver.authorize(caller(), "read", "notes", {"_id": "n2"})

        assert decision.allowed

    def test_owner_without_candidate_record(self, resolver):
        """Collection-level reads cannot satisfy Owner."""
        with pytest.raises(CredentialError):
            resolver.authorize(caller(PETER), "read", "users")


class TestExpressions:
    """Test expression rules."""

    def test_false_literal(self, resolver):
        with pytest.raises(CredentialError):
            resolver.authorize(caller(PETER), "create", "users", payload={})

    def test_related_record_ownership(self, resolver):
        member = {"_id": "m1", "_ownerId": "u2", "teamId": "t1"}

        resolver.authorize(caller(PETER), "update", "members", member, {})
        with pytest.raises(CredentialError):
            resolver.authorize(caller(GEORGE), "update", "members", member, {})

    def test_or_expression(self, resolver):
        member = {"_id": "m1", "_ownerId": "u2", "teamId": "t1"}

        resolver.authorize(caller(GEORGE), "delete", "members", member)

    def test_anonymous_expression_is_credential_error(self, resolver):
        member = {"_id": "m1", "_ownerId": "u2", "teamId": "t1"}

        with pytest.raises(CredentialError):
            resolver.authorize(caller(), "update", "members", member, {})

    def test_evaluation_error_denies(self, resolver):
        with pytest.raises(CredentialError):
            resolver.authorize(caller(PETER), "read", "broken")


class TestAdmin:
    """Test the admin bypass."""

    def test_admin_bypasses_failed_rule(self, resolver):
        record = {"_id": "a1", "_ownerId": "u1"}

        decision = resolver.authorize(caller(GEORGE, is_admin=True), "delete", "appliances", record)

        assert decision.allowed is False

    def test_anonymous_admin_bypasses_missing_identity(self, resolver):
        resolver.authorize(caller(is_admin=True), "create", "appliances", payload={})

    def test_admin_is_still_redacted(self, resolver):
        record = {"_id": "n2", "title": "t", "secret": "s"}

        resolver.enforce(caller(PETER, is_admin=True), "read", "notes", record)

        assert record == {"_id": "n2", "title": "t"}


class TestPropertyRules:
    """Test redaction of records and payloads."""

    def test_read_redacts_record(self, resolver):
        record = {"_id": "n2", "secret": "s", "email": "e"}

        resolver.enforce(caller(), "read", "notes", record)

        assert record == {"_id": "n2"}

    def test_role_property_rule_passes_for_user(self, resolver):
        record = {"_id": "n2", "email": "e"}

        resolver.enforce(caller(PETER), "read", "notes", record)

        assert record == {"_id": "n2", "email": "e"}

    def test_create_strips_payload(self, resolver):
        payload = {"teamId": "t1", "status": "member"}

        resolver.enforce(caller(GEORGE), "create", "members", payload=payload)

        assert payload == {"teamId": "t1"}

    def test_create_keeps_allowed_value(self, resolver):
        payload = {"teamId": "t1", "status": "pending"}

        resolver.enforce(caller(GEORGE), "create", "members", payload=payload)

        assert payload == {"teamId": "t1", "status": "pending"}

    def test_update_strips_changed_property(self, resolver):
        member = {"_id": "m1", "_ownerId": "u2", "teamId": "t1"}
        payload = {"teamId": "t9", "status": "member"}

        resolver.enforce(caller(PETER), "update", "members", member, payload)

        assert payload == {"status": "member"}
        assert member["teamId"] == "t1"

    def test_redact_records_uses_record_specific_rules(self, resolver):
        records = [
            {"_id": "n1", "body": "b", "secret": "s"},
            {"_id": "n2", "body": "b", "secret": "s"},
        ]

        resolver.redact_records(caller(), "notes", records)

        assert records == [{"_id": "n1"}, {"_id": "n2", "body": "b"}]
