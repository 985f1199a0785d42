"""Tests for the record ID generator."""

import pytest

from practicebase.domain.services.record_id_generator import (
    RecordIdExhaustedError,
    RecordIdGenerator,
)


class TestRecordIdGenerator:
    """Tests for RecordIdGenerator."""

    def test_returns_first_free_candidate(self):
        candidates = iter(["a", "b", "c"])
        generator = RecordIdGenerator(lambda: next(candidates))

        assert generator.generate("items", {"a", "b"}) == "c"

    def test_exhausted(self):
        generator = RecordIdGenerator(lambda: "a", max_attempts=5)

        with pytest.raises(RecordIdExhaustedError) as exc_info:
            generator.generate("items", {"a"})

        assert exc_info.value.collection == "items"
        assert exc_info.value.attempts == 5
        assert "items" in str(exc_info.value)

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            RecordIdGenerator(max_attempts=0)

    def test_default_factory_is_random(self):
        generator = RecordIdGenerator()

        assert generator.generate("items", set()) != generator.generate("items", set())
