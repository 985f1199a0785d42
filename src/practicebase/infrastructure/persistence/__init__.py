"""Seed data and rule set loading."""

from practicebase.infrastructure.persistence.seed_loader import (
    DEFAULTS_DIR,
    SeedDataError,
    load_document,
    load_protected_data,
    load_rule_set,
    load_seed_data,
)

__all__ = [
    "DEFAULTS_DIR",
    "SeedDataError",
    "load_document",
    "load_protected_data",
    "load_rule_set",
    "load_seed_data",
]
