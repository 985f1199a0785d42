"""Tests for the rule expression evaluator."""

import pytest

from practicebase.core.rules import evaluate_rule, parse_rule
from practicebase.core.rules.exceptions import RuleEvaluationError

PETER = {"_id": "u1", "email": "peter@abv.bg"}
TEAMS = {"t1": {"_id": "t1", "_ownerId": "u1", "name": "Storm Troopers"}}


def lookup(collection, record_id):
    if collection == "teams":
        return TEAMS.get(record_id)
    return None


def evaluate(expression, **context):
    return evaluate_rule(parse_rule(expression), context, lookup)


class TestVariables:
    """Test variable resolution."""

    def test_dotted_path(self):
        assert evaluate("user.email", user=PETER) == "peter@abv.bg"

    def test_missing_key_is_null(self):
        assert evaluate("user.nickname == null", user=PETER) is True

    def test_path_through_null(self):
        """Anonymous callers resolve user.* to null instead of failing."""
        assert evaluate("user._id", user=None) is None


class TestComparisons:
    """Test comparison operators."""

    def test_equality(self):
        assert evaluate("newData.status == 'pending'", newData={"status": "pending"})
        assert not evaluate("newData.status == 'pending'", newData={"status": "member"})

    def test_inequality(self):
        assert evaluate("data.teamId != 't2'", data={"teamId": "t1"})

    def test_ordering(self):
        assert evaluate("record.price >= 10", record={"price": 12.5})

    def test_ordering_between_incompatible_types_is_false(self):
        assert evaluate("record.price > 10", record={"price": "cheap"}) is False

    def test_membership(self):
        assert evaluate("record.status in ['pending', 'member']", record={"status": "member"})

    def test_membership_against_null(self):
        assert evaluate("'x' in record.tags", record={}) is False


class TestLogic:
    """Test boolean connectives."""

    def test_and_short_circuits(self):
        """The right operand is not evaluated once the left one is false."""
        assert evaluate("false and unknown_fn()") is False

    def test_or_short_circuits(self):
        assert evaluate("true or unknown_fn()") is True

    def test_not(self):
        assert evaluate("not user", user=None) is True


class TestFunctions:
    """Test built-in rule functions."""

    def test_is_owner(self):
        assert evaluate("is_owner(user, data)", user=PETER, data={"_ownerId": "u1"})
        assert not evaluate("is_owner(user, data)", user=PETER, data={"_ownerId": "u2"})

    def test_is_owner_anonymous(self):
        assert evaluate("is_owner(user, data)", user=None, data={"_ownerId": "u1"}) is False

    def test_is_owner_requires_owner_id(self):
        assert evaluate("is_owner(user, data)", user={"_id": None}, data={}) is False

    def test_get_related_record(self):
        expression = "is_owner(user, get('teams', data.teamId))"
        assert evaluate(expression, user=PETER, data={"teamId": "t1"}) is True
        assert evaluate(expression, user=PETER, data={"teamId": "missing"}) is False

    def test_get_without_lookup(self):
        with pytest.raises(RuleEvaluationError, match="not available"):
            evaluate_rule(parse_rule("get('teams', 't1')"), {})

    def test_string_functions(self):
        record = {"email": "peter@abv.bg"}
        assert evaluate("contains(record.email, '@')", record=record)
        assert evaluate("starts_with(record.email, 'peter')", record=record)
        assert evaluate("ends_with(record.email, '.bg')", record=record)
        assert not evaluate("ends_with(record.missing, '.bg')", record=record)

    def test_wrong_argument_count(self):
        with pytest.raises(RuleEvaluationError, match="expects 2 arguments"):
            evaluate("contains('a')")

    def test_unknown_function(self):
        with pytest.raises(RuleEvaluationError, match="Unknown function"):
            evaluate("eval('1')")
