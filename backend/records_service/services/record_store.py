"""
Records Service: Record Store
===============================

What:  Find-all, find-by-id, insert and upsert-by-id against the records
       collection.
How:   Every operation takes its own connection from the ConnectionProvider
       and releases it before returning. Driver errors become StoreError,
       shape errors become DecodeError, empty lookups become NotFoundError.
Who:   Called by the record route handlers.

Operation summary:
    list_records()        → List[Record]  (store-native order, may be empty)
    get_record(id)        → Record        (exact _id match, NotFoundError if none)
    create_record(record) → str           (fresh ObjectId, client id ignored)
    update_record(record) → Record        (whole-document replace, upsert=True)

There are no transactions across operations; each call is atomic only at
the single-document level.
"""

import logging
from typing import List

from bson import ObjectId
from fastapi import Request
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from records_service.database import ConnectionProvider
from records_service.exceptions import DecodeError, NotFoundError, StoreError
from records_service.models.record import Record, parse_record_id

logger = logging.getLogger(__name__)


class RecordStore:
    """CRUD (minus delete) for Record documents."""

    def __init__(self, provider: ConnectionProvider):
        self.provider = provider

    async def list_records(self) -> List[Record]:
        """
        Return every record in the collection.

        Raises:
            StoreError: the query failed, or a stored document is not a Record
        """
        async with self.provider.connect() as conn:
            try:
                documents = await conn.collection.find({}).to_list(length=None)
            except PyMongoError as e:
                logger.error("Could not list records: %s", e)
                raise StoreError(
                    message=f"Could not list records: {e}",
                    operation="find",
                ) from e

        try:
            records = [Record.from_document(doc) for doc in documents]
        except DecodeError as e:
            logger.error("Could not decode listed records: %s", e.message)
            raise StoreError(
                message=f"Could not decode records: {e.message}",
                operation="find",
                context={"field": e.field},
            ) from e
        logger.debug("Listed %d records", len(records))
        return records

    async def get_record(self, record_id: str) -> Record:
        """
        Return the record whose identifier is exactly `record_id`.

        Raises:
            DecodeError: `record_id` is not a valid ObjectId
            NotFoundError: no document has that identifier
            StoreError: the query failed
        """
        oid = parse_record_id(record_id)

        async with self.provider.connect() as conn:
            try:
                document = await conn.collection.find_one({"_id": oid})
            except PyMongoError as e:
                logger.error("Could not fetch record %s: %s", record_id, e)
                raise StoreError(
                    message=f"Could not fetch record: {e}",
                    operation="find_one",
                    context={"record_id": record_id},
                ) from e

        if document is None:
            raise NotFoundError(resource="record", resource_id=record_id)
        return Record.from_document(document)

    async def create_record(self, record: Record) -> str:
        """
        Insert `record` under a freshly generated identifier and return it.

        Any identifier already on `record` is ignored.

        Raises:
            StoreError: the insert failed
        """
        document = record.model_copy(update={"id": str(ObjectId())}).to_document()

        async with self.provider.connect() as conn:
            try:
                result = await conn.collection.insert_one(document)
            except PyMongoError as e:
                logger.error("Could not create record: %s", e)
                raise StoreError(
                    message=f"Could not create record: {e}",
                    operation="insert_one",
                ) from e

        record_id = str(result.inserted_id)
        logger.info("Record created: %s", record_id)
        return record_id

    async def update_record(self, record: Record) -> Record:
        """
        Replace the document at `record.id`, creating it if absent.

        Title and body are fully replaced; nothing from the previous version
        survives. Returns the document as read back after the write.

        Raises:
            DecodeError: `record` has no identifier, or an invalid one
            StoreError: the write failed or the read-back was unusable
        """
        if not record.id:
            raise DecodeError(message="Record ID is required for update", field="id")
        document = record.to_document()

        async with self.provider.connect() as conn:
            try:
                updated = await conn.collection.find_one_and_replace(
                    {"_id": document["_id"]},
                    document,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except PyMongoError as e:
                logger.error("Could not save record %s: %s", record.id, e)
                raise StoreError(
                    message=f"Could not save record: {e}",
                    operation="find_one_and_replace",
                    context={"record_id": record.id},
                ) from e

        if updated is None:
            raise StoreError(
                message="Record was saved but could not be read back",
                operation="find_one_and_replace",
                context={"record_id": record.id},
            )
        try:
            saved = Record.from_document(updated)
        except DecodeError as e:
            raise StoreError(
                message=f"Record was saved but could not be read back: {e.message}",
                operation="find_one_and_replace",
                context={"record_id": record.id},
            ) from e

        logger.info("Record saved: %s", saved.id)
        return saved


# ── FastAPI Dependency ────────────────────────────────────────────────────
def get_record_store(request: Request) -> RecordStore:
    """Store created by the application lifespan."""
    return request.app.state.record_store
