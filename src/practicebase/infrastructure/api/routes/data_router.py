"""Router for collection data.

Every collection is reachable under ``/data/{collection}``; collections
are created by their first record.
"""

from typing import Any

from fastapi import APIRouter

from practicebase.infrastructure.api.dependencies import (
    CallerContext,
    JsonBody,
    ReadSpec,
    Records,
)
from practicebase.infrastructure.api.schemas import ERROR_RESPONSES, DeletionResponse

router = APIRouter(tags=["data"], responses=ERROR_RESPONSES)


@router.get("", summary="List collections")
async def list_collections(context: CallerContext, records: Records) -> list[str]:
    """Names of all collections."""
    return records.read(context, None)


@router.get("/{collection}", summary="Read a collection")
async def read_collection(
    collection: str, context: CallerContext, records: Records, spec: ReadSpec
) -> Any:
    """Filtered, sorted and paginated records, or their count.

    Query options: where, sortBy, offset, pageSize, distinct, select,
    load, count.
    """
    return records.read(context, collection, spec=spec)


@router.post("/{collection}", summary="Create a record")
async def create_record(
    collection: str, context: CallerContext, records: Records, body: JsonBody
) -> dict[str, Any]:
    """Store a new record owned by the caller."""
    return records.create(context, collection, body)


@router.put("/{collection}", include_in_schema=False)
@router.patch("/{collection}", include_in_schema=False)
async def update_without_id(
    collection: str, context: CallerContext, records: Records, body: JsonBody
) -> dict[str, Any]:
    return records.update(context, collection, None, body)


@router.delete("/{collection}", include_in_schema=False)
async def delete_without_id(
    collection: str, context: CallerContext, records: Records
) -> dict[str, Any]:
    return records.delete(context, collection, None)


@router.get("/{collection}/{record_id}", summary="Read a record")
async def read_record(
    collection: str,
    record_id: str,
    context: CallerContext,
    records: Records,
    spec: ReadSpec,
) -> Any:
    """One record; a ``where`` option turns this into a collection read."""
    return records.read(context, collection, record_id, spec)


@router.post("/{collection}/{record_id}", include_in_schema=False)
async def create_with_id(
    collection: str,
    record_id: str,
    context: CallerContext,
    records: Records,
    body: JsonBody,
) -> dict[str, Any]:
    return records.create(context, collection, body, record_id=record_id)


@router.put("/{collection}/{record_id}", summary="Replace a record")
async def replace_record(
    collection: str,
    record_id: str,
    context: CallerContext,
    records: Records,
    body: JsonBody,
) -> dict[str, Any]:
    """Replace all properties; system properties are carried forward."""
    return records.update(context, collection, record_id, body)


@router.patch("/{collection}/{record_id}", summary="Update a record")
async def merge_record(
    collection: str,
    record_id: str,
    context: CallerContext,
    records: Records,
    body: JsonBody,
) -> dict[str, Any]:
    """Merge the given properties into the record."""
    return records.update(context, collection, record_id, body, partial=True)


@router.delete(
    "/{collection}/{record_id}",
    summary="Delete a record",
    response_model=DeletionResponse,
    response_model_by_alias=True,
)
async def delete_record(
    collection: str, record_id: str, context: CallerContext, records: Records
) -> dict[str, Any]:
    """Remove the record and return the deletion time."""
    return records.delete(context, collection, record_id)
