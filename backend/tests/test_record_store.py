"""
Records Service: Record Store Unit Tests
==========================================

What:  RecordStore operations against an in-memory collection double.
How:   `record_store` is wired to FakeProvider/FakeCollection from conftest,
       so every property below is checked without a MongoDB server.

What we test:
    ✅ Create assigns fresh unique IDs; created records are retrievable
    ✅ Get filters by exact ID; unknown IDs raise NotFoundError
    ✅ Update upserts and fully replaces the stored document
    ✅ List on an empty collection is an empty list
    ✅ Driver failures and undecodable listings surface as StoreError
    ✅ Each operation opens and releases exactly one connection
"""

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from records_service.exceptions import (
    DecodeError,
    NotFoundError,
    StoreConnectionError,
    StoreError,
)
from records_service.models.record import Record

UNUSED_ID = "000000000000000000000000"


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_then_get(self, record_store):
        record_id = await record_store.create_record(Record(title="A", body="B"))

        fetched = await record_store.get_record(record_id)
        assert fetched == Record(id=record_id, title="A", body="B")

    @pytest.mark.asyncio
    async def test_assigns_unique_ids(self, record_store):
        ids = [await record_store.create_record(Record(title=f"t{i}")) for i in range(5)]

        assert len(set(ids)) == 5
        assert all(ObjectId.is_valid(record_id) for record_id in ids)

    @pytest.mark.asyncio
    async def test_client_id_ignored(self, record_store, fake_collection):
        record_id = await record_store.create_record(Record(id=UNUSED_ID, title="A", body="B"))

        assert record_id != UNUSED_ID
        assert fake_collection.documents[0]["_id"] == ObjectId(record_id)

    @pytest.mark.asyncio
    async def test_stored_shape(self, record_store, fake_collection):
        record_id = await record_store.create_record(Record(title="A", body="B"))

        assert fake_collection.documents == [
            {"_id": ObjectId(record_id), "title": "A", "body": "B"}
        ]

    @pytest.mark.asyncio
    async def test_insert_failure(self, record_store, fake_collection):
        fake_collection.fail_on["insert_one"] = OperationFailure("disk full")

        with pytest.raises(StoreError) as exc_info:
            await record_store.create_record(Record(title="A"))
        assert "disk full" in exc_info.value.message
        assert exc_info.value.operation == "insert_one"


class TestGet:

    @pytest.mark.asyncio
    async def test_unused_id_not_found(self, record_store):
        await record_store.create_record(Record(title="someone else"))

        with pytest.raises(NotFoundError):
            await record_store.get_record(UNUSED_ID)

    @pytest.mark.asyncio
    async def test_filters_by_id(self, record_store):
        first = await record_store.create_record(Record(title="first"))
        second = await record_store.create_record(Record(title="second"))

        assert (await record_store.get_record(second)).title == "second"
        assert (await record_store.get_record(first)).title == "first"

    @pytest.mark.asyncio
    async def test_invalid_id(self, record_store, fake_collection):
        with pytest.raises(DecodeError):
            await record_store.get_record("not-an-object-id")
        assert fake_collection.calls == []

    @pytest.mark.asyncio
    async def test_malformed_document(self, record_store, fake_collection):
        oid = ObjectId()
        fake_collection.documents.append({"_id": oid, "title": 42, "body": "x"})

        with pytest.raises(DecodeError):
            await record_store.get_record(str(oid))

    @pytest.mark.asyncio
    async def test_query_failure(self, record_store, fake_collection):
        fake_collection.fail_on["find_one"] = OperationFailure("interrupted")

        with pytest.raises(StoreError):
            await record_store.get_record(UNUSED_ID)


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_existing(self, record_store):
        record_id = await record_store.create_record(Record(title="A", body="B"))

        updated = await record_store.update_record(Record(id=record_id, title="C", body="D"))

        assert updated == Record(id=record_id, title="C", body="D")
        assert await record_store.get_record(record_id) == updated

    @pytest.mark.asyncio
    async def test_upsert_creates_at_given_id(self, record_store, fake_collection):
        new_id = str(ObjectId())

        updated = await record_store.update_record(Record(id=new_id, title="new", body="doc"))

        assert updated.id == new_id
        assert len(fake_collection.documents) == 1
        assert (await record_store.get_record(new_id)).title == "new"

    @pytest.mark.asyncio
    async def test_replaces_whole_document(self, record_store, fake_collection):
        oid = ObjectId()
        fake_collection.documents.append(
            {"_id": oid, "title": "old", "body": "old body", "legacy": True}
        )

        await record_store.update_record(Record(id=str(oid), title="C"))

        assert fake_collection.documents == [{"_id": oid, "title": "C", "body": ""}]

    @pytest.mark.asyncio
    async def test_requires_id(self, record_store):
        with pytest.raises(DecodeError):
            await record_store.update_record(Record(title="no id"))

    @pytest.mark.asyncio
    async def test_write_failure(self, record_store, fake_collection):
        fake_collection.fail_on["find_one_and_replace"] = OperationFailure("not primary")

        with pytest.raises(StoreError) as exc_info:
            await record_store.update_record(Record(id=UNUSED_ID, title="x"))
        assert "not primary" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unreadable_result_is_store_error(self, record_store, fake_collection, monkeypatch):
        async def returns_garbage(*args, **kwargs):
            return {"_id": ObjectId(), "title": ["not", "text"]}

        monkeypatch.setattr(fake_collection, "find_one_and_replace", returns_garbage)

        with pytest.raises(StoreError):
            await record_store.update_record(Record(id=UNUSED_ID, title="x"))


class TestList:

    @pytest.mark.asyncio
    async def test_empty_collection(self, record_store):
        assert await record_store.list_records() == []

    @pytest.mark.asyncio
    async def test_store_order(self, record_store):
        ids = [await record_store.create_record(Record(title=t)) for t in ("x", "y", "z")]

        records = await record_store.list_records()
        assert [r.id for r in records] == ids
        assert [r.title for r in records] == ["x", "y", "z"]

    @pytest.mark.asyncio
    async def test_query_failure(self, record_store, fake_collection):
        fake_collection.fail_on["find"] = OperationFailure("unauthorized")

        with pytest.raises(StoreError):
            await record_store.list_records()

    @pytest.mark.asyncio
    async def test_malformed_document(self, record_store, fake_collection):
        fake_collection.documents.append({"title": "no id"})

        with pytest.raises(StoreError) as exc_info:
            await record_store.list_records()
        assert exc_info.value.operation == "find"
        assert isinstance(exc_info.value.__cause__, DecodeError)


class TestConnections:

    @pytest.mark.asyncio
    async def test_one_connection_per_operation(self, record_store, fake_provider):
        record_id = await record_store.create_record(Record(title="A"))
        await record_store.get_record(record_id)
        await record_store.update_record(Record(id=record_id, title="B"))
        await record_store.list_records()

        assert fake_provider.opened == 4
        assert fake_provider.closed == 4

    @pytest.mark.asyncio
    async def test_released_on_failure(self, record_store, fake_provider, fake_collection):
        fake_collection.fail_on["find"] = OperationFailure("boom")

        with pytest.raises(StoreError):
            await record_store.list_records()
        assert fake_provider.opened == fake_provider.closed == 1

    @pytest.mark.asyncio
    async def test_connection_error_propagates(self, record_store, fake_provider):
        fake_provider.connect_error = StoreConnectionError(stage="ping", message="auth failed")

        with pytest.raises(StoreConnectionError):
            await record_store.list_records()
