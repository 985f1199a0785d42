"""Query engine shaping read results.

Applies a QuerySpec to records fetched (and already redacted) by the
record service. The pipeline order is fixed:
filter, sort, offset, limit, distinct, count, select, load.
"""

import json
from typing import Any, Callable, Iterable

from practicebase.core.errors import RequestError
from practicebase.core.logging import get_logger
from practicebase.domain.entities.query_spec import LoadJoin, QuerySpec, SortKey

logger = get_logger(__name__)

CREDENTIAL_FIELD = "hashedPassword"

RelatedFetcher = Callable[[str, Any], dict[str, Any] | None]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _collation_key(value: str) -> tuple[str, str]:
    # Case-insensitive order; raw value keeps the order total
    return (value.casefold(), value)


def _sort_once(records: list[dict[str, Any]], key: SortKey) -> list[dict[str, Any]]:
    values = [record.get(key.prop) for record in records]

    if all(_is_number(value) for value in values):
        return sorted(records, key=lambda record: record[key.prop], reverse=key.descending)

    if all(isinstance(value, str) for value in values):
        return sorted(
            records,
            key=lambda record: _collation_key(record[key.prop]),
            reverse=key.descending,
        )

    raise RequestError(f"Cannot sort by '{key.prop}': values are not comparable")


def _distinct_key(record: dict[str, Any], props: Iterable[str]) -> str:
    return json.dumps([record.get(prop) for prop in props], sort_keys=True, default=str)


class QueryEngine:
    """Shapes record lists according to a QuerySpec.

    A pure function of its inputs: records passed in are never mutated,
    results are built from fresh dictionaries.
    """

    def shape(
        self,
        records: list[dict[str, Any]],
        spec: QuerySpec,
        fetch_related: RelatedFetcher | None = None,
    ) -> list[dict[str, Any]] | int:
        """Run the full read pipeline.

        Args:
            records: Candidate records.
            spec: Parsed query options.
            fetch_related: ``(collection, id) -> record | None`` used by load.

        Returns:
            The shaped records, or their number when ``spec.count`` is set.

        Raises:
            RequestError: If a sort key compares incompatible values.
        """
        result = list(records)

        if spec.where is not None:
            result = [record for record in result if spec.where.matches(record)]

        # Right to left, so the first key has the highest priority.
        for key in reversed(spec.sort_by):
            result = _sort_once(result, key)

        if spec.offset:
            result = result[spec.offset :]

        if spec.page_size is not None:
            result = result[: spec.page_size]

        if spec.distinct:
            seen: set[str] = set()
            unique = []
            for record in result:
                marker = _distinct_key(record, spec.distinct)
                if marker not in seen:
                    seen.add(marker)
                    unique.append(record)
            result = unique

        if spec.count:
            return len(result)

        return [self._project(record, spec, fetch_related) for record in result]

    def shape_one(
        self,
        record: dict[str, Any],
        spec: QuerySpec,
        fetch_related: RelatedFetcher | None = None,
    ) -> dict[str, Any]:
        """Apply select and load to a single-record read."""
        return self._project(record, spec, fetch_related)

    def _project(
        self,
        record: dict[str, Any],
        spec: QuerySpec,
        fetch_related: RelatedFetcher | None,
    ) -> dict[str, Any]:
        if spec.select:
            shaped = {prop: record[prop] for prop in spec.select if prop in record}
        else:
            shaped = dict(record)

        if spec.load and fetch_related is not None:
            for join in spec.load:
                related = self._load(shaped, join, fetch_related)
                if related is not None:
                    shaped[join.prop] = related
        return shaped

    def _load(
        self,
        record: dict[str, Any],
        join: LoadJoin,
        fetch_related: RelatedFetcher,
    ) -> dict[str, Any] | None:
        foreign_id = record.get(join.source_prop)
        related = fetch_related(join.collection, foreign_id)
        if related is None:
            logger.debug(
                "Related record not found",
                collection=join.collection,
                record_id=foreign_id,
                prop=join.prop,
            )
            return None
        related.pop(CREDENTIAL_FIELD, None)
        return related
