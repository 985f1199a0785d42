"""Domain services."""

from practicebase.domain.services.collection_store import (
    SYSTEM_FIELDS,
    CollectionStore,
)
from practicebase.domain.services.identity_service import IdentityService
from practicebase.domain.services.query_engine import QueryEngine
from practicebase.domain.services.record_id_generator import (
    RecordIdExhaustedError,
    RecordIdGenerator,
)
from practicebase.domain.services.record_service import RecordService, related_fetcher
from practicebase.domain.services.rule_resolver import AccessDecision, RuleResolver

__all__ = [
    "AccessDecision",
    "CollectionStore",
    "IdentityService",
    "QueryEngine",
    "RecordIdExhaustedError",
    "RecordIdGenerator",
    "RecordService",
    "RuleResolver",
    "SYSTEM_FIELDS",
    "related_fetcher",
]
