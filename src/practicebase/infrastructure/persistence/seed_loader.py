"""Loading of seed data, protected data and the rule set.

Each document is read from its configured path, or from the JSON files
bundled in the ``defaults`` directory when no path is configured.
"""

import json
from pathlib import Path
from typing import Any

from practicebase.core.config import Settings
from practicebase.core.logging import get_logger
from practicebase.domain.entities.rule_set import RuleSet
from practicebase.infrastructure.auth.password_hasher import (
    hash_password,
    is_password_hash,
)

logger = get_logger(__name__)

DEFAULTS_DIR = Path(__file__).parent / "defaults"

SEED_DATA_FILE = "seed_data.json"
PROTECTED_DATA_FILE = "protected_data.json"
RULES_FILE = "rules.json"

SeedData = dict[str, dict[str, dict[str, Any]]]


class SeedDataError(Exception):
    """Raised when a data or rules document cannot be loaded."""


def _resolve(path: str | Path | None, default_name: str) -> Path:
    return Path(path) if path else DEFAULTS_DIR / default_name


def load_document(path: str | Path | None, default_name: str) -> dict[str, Any]:
    """Read a JSON object from ``path`` or the bundled default.

    Raises:
        SeedDataError: If the file is missing, invalid, or not an object.
    """
    source = _resolve(path, default_name)
    try:
        document = json.loads(source.read_text(encoding="utf-8"))
    except OSError as e:
        raise SeedDataError(f"Cannot read {source}: {e}") from e
    except json.JSONDecodeError as e:
        raise SeedDataError(f"Invalid JSON in {source}: {e}") from e

    if not isinstance(document, dict):
        raise SeedDataError(f"{source} must contain a JSON object")

    logger.debug("Document loaded", path=str(source))
    return document


def _validate_collections(document: dict[str, Any], source: str) -> SeedData:
    for name, records in document.items():
        if not isinstance(records, dict):
            raise SeedDataError(f"Collection '{name}' in {source} must be an object")
        for record_id, record in records.items():
            if not isinstance(record, dict):
                raise SeedDataError(
                    f"Record '{record_id}' of '{name}' in {source} must be an object"
                )
    return document


def load_seed_data(settings: Settings) -> SeedData:
    """Initial content of the public collection store."""
    document = load_document(settings.seed_data_path, SEED_DATA_FILE)
    return _validate_collections(document, str(settings.seed_data_path or SEED_DATA_FILE))


def load_protected_data(settings: Settings) -> SeedData:
    """Initial users and sessions, with plain seed passwords hashed."""
    document = load_document(settings.protected_data_path, PROTECTED_DATA_FILE)
    data = _validate_collections(
        document, str(settings.protected_data_path or PROTECTED_DATA_FILE)
    )
    data.setdefault("users", {})
    data.setdefault("sessions", {})

    for user in data["users"].values():
        password = user.pop("password", None)
        stored = user.get("hashedPassword")
        if isinstance(stored, str) and is_password_hash(stored):
            continue
        if isinstance(password, str) and password:
            user["hashedPassword"] = hash_password(password)

    logger.info("Protected data loaded", users=len(data["users"]))
    return data


def load_rule_set(path: str | Path | None = None) -> RuleSet:
    """Parse the rules document into an immutable RuleSet.

    Raises:
        SeedDataError: If the document cannot be read or has an invalid shape.
        RuleSyntaxError: If a rule expression cannot be parsed.
    """
    document = load_document(path, RULES_FILE)
    try:
        rule_set = RuleSet.from_config(document)
    except ValueError as e:
        raise SeedDataError(str(e)) from e

    logger.info("Rule set loaded", collections=len(rule_set.collections))
    return rule_set
