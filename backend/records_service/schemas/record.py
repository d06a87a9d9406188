"""
Records Service: Pydantic Request/Response Schemas
====================================================

What:  The API contract for the record and service endpoints.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and builds the OpenAPI document from them.

Inbound field names:
    Payloads may use `id`/`title`/`body` or the capitalised `ID`/`Title`/`Body`
    that earlier clients of this service send.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, Field, field_validator

from records_service.models.record import Record


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RecordCreateRequest(BaseModel):
    """
    Body of PUT /api/v1/records.

    An `id` may be present but is ignored: new records always get a fresh
    identifier from the store.
    """
    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "ID", "_id"),
        description="Ignored on create",
    )
    title: str = Field(default="", validation_alias=AliasChoices("title", "Title"))
    body: str = Field(default="", validation_alias=AliasChoices("body", "Body"))

    def to_record(self) -> Record:
        return Record(title=self.title, body=self.body)


class RecordUpdateRequest(BaseModel):
    """Body of POST /api/v1/records: a full record including its identifier."""
    id: str = Field(
        validation_alias=AliasChoices("id", "ID", "_id"),
        description="24-character hex ObjectId of the record to replace (or create)",
    )
    title: str = Field(default="", validation_alias=AliasChoices("title", "Title"))
    body: str = Field(default="", validation_alias=AliasChoices("body", "Body"))

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not ObjectId.is_valid(v):
            raise ValueError(f"'{v}' is not a valid record ID (expected 24 hex characters)")
        return v

    def to_record(self) -> Record:
        return Record(id=self.id, title=self.title, body=self.body)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RecordItem(BaseModel):
    """A record as listed and as returned from update."""
    id: str = Field(description="Record identifier (hex ObjectId)")
    title: str
    body: str

    @classmethod
    def from_record(cls, record: Record) -> "RecordItem":
        return cls(id=record.id, title=record.title, body=record.body)


class RecordListResponse(BaseModel):
    """GET /api/v1/records."""
    records: List[RecordItem]


class RecordDetailResponse(BaseModel):
    """
    GET /api/v1/records/{record_id}.

    Serialized with capitalised keys: {"ID": ..., "Title": ..., "Body": ...}.
    """
    id: str = Field(alias="ID")
    title: str = Field(alias="Title")
    body: str = Field(alias="Body")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_record(cls, record: Record) -> "RecordDetailResponse":
        return cls(id=record.id, title=record.title, body=record.body)


class RecordCreateResponse(BaseModel):
    """PUT /api/v1/records."""
    id: str = Field(description="Identifier assigned to the new record")


class RecordUpdateResponse(BaseModel):
    """POST /api/v1/records."""
    record: RecordItem


class HealthResponse(BaseModel):
    """GET /health."""
    status: str = Field(description="healthy or degraded")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float


class ErrorResponse(BaseModel):
    """Shape of every error body produced by the exception handlers."""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    request_id: str = ""
