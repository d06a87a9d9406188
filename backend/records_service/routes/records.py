"""
Records Service: Record Route Handlers
========================================

What:  HTTP surface of the record store.
How:   Decode the body, call RecordStore, wrap the result. Store errors are
       not caught here; the global handlers in main.py turn them into
       responses (404 for GET requests, 400/500 for writes).

Endpoints:
    GET  /api/v1/records               → {"records": [{id, title, body}, ...]}
    GET  /api/v1/records/{record_id}   → {"ID", "Title", "Body"}
    PUT  /api/v1/records               → {"id": <new id>}         (create)
    POST /api/v1/records               → {"record": {...}}        (upsert by id)
"""

import logging

from fastapi import APIRouter, Depends

from records_service.schemas.record import (
    ErrorResponse,
    RecordCreateRequest,
    RecordCreateResponse,
    RecordDetailResponse,
    RecordItem,
    RecordListResponse,
    RecordUpdateRequest,
    RecordUpdateResponse,
)
from records_service.services.record_store import RecordStore, get_record_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/records", tags=["Records"])


@router.get(
    "",
    response_model=RecordListResponse,
    responses={404: {"description": "Store unavailable or query failed", "model": ErrorResponse}},
    summary="List all records",
)
async def list_records(store: RecordStore = Depends(get_record_store)) -> RecordListResponse:
    """Every record, in store order. An empty collection yields an empty list."""
    records = await store.list_records()
    return RecordListResponse(records=[RecordItem.from_record(r) for r in records])


@router.get(
    "/{record_id}",
    response_model=RecordDetailResponse,
    responses={404: {"description": "Record not found, invalid ID, or store failure", "model": ErrorResponse}},
    summary="Get a record by ID",
)
async def get_record(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> RecordDetailResponse:
    record = await store.get_record(record_id)
    return RecordDetailResponse.from_record(record)


@router.put(
    "",
    response_model=RecordCreateResponse,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Create a record",
    description="Stores a new record. Any `id` in the body is ignored; the store assigns one.",
)
async def create_record(
    payload: RecordCreateRequest,
    store: RecordStore = Depends(get_record_store),
) -> RecordCreateResponse:
    if payload.id:
        logger.debug("Ignoring client-supplied id %r on create", payload.id)
    record_id = await store.create_record(payload.to_record())
    return RecordCreateResponse(id=record_id)


@router.post(
    "",
    response_model=RecordUpdateResponse,
    responses={
        400: {"description": "Malformed body or ID", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Update (or create) a record by ID",
    description=(
        "Replaces the title and body of the record with the given `id`. "
        "If no record has that `id`, one is created there."
    ),
)
async def update_record(
    payload: RecordUpdateRequest,
    store: RecordStore = Depends(get_record_store),
) -> RecordUpdateResponse:
    record = await store.update_record(payload.to_record())
    return RecordUpdateResponse(record=RecordItem.from_record(record))
