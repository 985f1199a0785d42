"""Record service orchestrating store, rules and query shaping.

Every operation fetches candidates from the store, asks the rule resolver
before any mutation, and shapes read results only after redaction.
"""

import copy
from typing import Any

from practicebase.core.errors import RequestError
from practicebase.core.logging import get_logger
from practicebase.domain.entities.execution_context import ExecutionContext
from practicebase.domain.entities.query_spec import QuerySpec
from practicebase.domain.services.collection_store import CollectionStore
from practicebase.domain.services.query_engine import (
    CREDENTIAL_FIELD,
    QueryEngine,
    RelatedFetcher,
)
from practicebase.domain.services.rule_resolver import RuleResolver

logger = get_logger(__name__)

USERS_COLLECTION = "users"


def related_fetcher(
    store: CollectionStore, protected_store: CollectionStore | None = None
) -> RelatedFetcher:
    """Build a ``(collection, id) -> record | None`` lookup.

    The ``users`` collection is served from the protected store when one is
    given. Credentials are always stripped from the returned copy.
    """

    def fetch(collection: str, record_id: Any) -> dict[str, Any] | None:
        source = store
        if collection == USERS_COLLECTION and protected_store is not None:
            source = protected_store
        record = source.fetch(collection, record_id)
        if record is not None:
            record.pop(CREDENTIAL_FIELD, None)
        return record

    return fetch


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise RequestError("Request body must be a JSON object")
    return copy.deepcopy(payload)


class RecordService:
    """Create, read, update and delete records on behalf of a caller."""

    def __init__(
        self,
        store: CollectionStore,
        resolver: RuleResolver,
        engine: QueryEngine | None = None,
        fetch_related: RelatedFetcher | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Collection store holding the records.
            resolver: Rule resolver gating every operation.
            engine: Query engine shaping read results.
            fetch_related: Lookup used by relational loading.
        """
        self.store = store
        self.resolver = resolver
        self.engine = engine or QueryEngine()
        self.fetch_related = fetch_related or related_fetcher(store)

    def create(
        self,
        context: ExecutionContext,
        collection: str,
        payload: Any,
        record_id: str | None = None,
    ) -> dict[str, Any]:
        """Store a new record owned by the caller.

        Raises:
            RequestError: If an id is given or the payload is not an object.
            AuthorizationError: If the caller must be authenticated.
            CredentialError: If the caller may not create here.
        """
        if record_id is not None:
            raise RequestError("Use PUT to update records")
        data = _require_object(payload)

        self.resolver.enforce(context, "create", collection, payload=data)
        record = self.store.add(collection, data, owner_id=context.user_id)

        logger.info(
            "Record created",
            collection=collection,
            record_id=record["_id"],
            user_id=context.user_id,
        )
        return record

    def read(
        self,
        context: ExecutionContext,
        collection: str | None,
        record_id: str | None = None,
        spec: QuerySpec | None = None,
    ) -> list[str] | list[dict[str, Any]] | dict[str, Any] | int:
        """Read one record, a shaped collection, or the collection names.

        A ``where`` filter turns an id-addressed read into a collection read.

        Raises:
            NotFoundError: If the collection or record does not exist.
            RequestError: If the query cannot be applied.
        """
        spec = spec or QuerySpec()

        if collection is None:
            return self.store.list_collections()

        if record_id is not None and not spec.is_filtered:
            record = self.store.get(collection, record_id)
            self.resolver.enforce(context, "read", collection, record=record)
            return self.engine.shape_one(record, spec, self.fetch_related)

        records = self.store.get(collection)
        self.resolver.authorize(context, "read", collection)
        self.resolver.redact_records(context, collection, records)
        return self.engine.shape(records, spec, self.fetch_related)

    def update(
        self,
        context: ExecutionContext,
        collection: str,
        record_id: str | None,
        payload: Any,
        partial: bool = False,
    ) -> dict[str, Any]:
        """Replace a record, or merge into it when ``partial`` is set.

        Raises:
            RequestError: If the id is missing or the payload is not an object.
            NotFoundError: If the collection or record does not exist.
            AuthorizationError: If the caller must be authenticated.
            CredentialError: If the caller may not update this record.
        """
        if record_id is None:
            raise RequestError("Missing entry ID")
        data = _require_object(payload)

        existing = self.store.get(collection, record_id)
        self.resolver.enforce(context, "update", collection, record=existing, payload=data)

        if partial:
            record = self.store.merge(collection, record_id, data)
        else:
            record = self.store.set(collection, record_id, data)

        logger.info(
            "Record updated",
            collection=collection,
            record_id=record_id,
            partial=partial,
            user_id=context.user_id,
        )
        return record

    def delete(
        self,
        context: ExecutionContext,
        collection: str,
        record_id: str | None,
    ) -> dict[str, int]:
        """Delete a record.

        Raises:
            RequestError: If the id is missing.
            NotFoundError: If the collection or record does not exist.
            AuthorizationError: If the caller must be authenticated.
            CredentialError: If the caller may not delete this record.
        """
        if record_id is None:
            raise RequestError("Missing entry ID")

        existing = self.store.get(collection, record_id)
        self.resolver.enforce(context, "delete", collection, record=existing)
        marker = self.store.delete(collection, record_id)

        logger.info(
            "Record deleted",
            collection=collection,
            record_id=record_id,
            user_id=context.user_id,
        )
        return marker
