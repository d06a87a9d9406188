"""
Records Service: Record Entity
================================

What:  The single persisted entity and its storage representation.
How:   A pydantic model for field access plus explicit conversions to and
       from the MongoDB document shape.

Storage shape (collection `records`):
    {
        "_id":   ObjectId("65f1c2..."),   ← assigned once, on creation
        "title": "Shopping",
        "body":  "eggs, milk"
    }

On the wire the identifier is the 24-character hex form of the ObjectId.
"""

from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, Field

from records_service.exceptions import DecodeError


def parse_record_id(value: Any) -> ObjectId:
    """Convert a wire identifier into an ObjectId, or raise DecodeError."""
    if isinstance(value, ObjectId):
        return value
    message = f"'{value}' is not a valid record ID (expected 24 hex characters)"
    # ObjectId(None) would mint a new ID and ObjectId(bytes) takes raw bytes
    if not isinstance(value, str):
        raise DecodeError(message=message, field="id")
    try:
        return ObjectId(value)
    except InvalidId as e:
        raise DecodeError(message=message, field="id") from e


class Record(BaseModel):
    """A titled piece of text. No behavior beyond field access."""

    id: Optional[str] = Field(default=None, description="Hex ObjectId; None until created")
    title: str = Field(default="", description="Short title, not unique")
    body: str = Field(default="", description="Free-form text")

    def to_document(self) -> Dict[str, Any]:
        """Storage form. The record must already carry an identifier."""
        if self.id is None:
            raise DecodeError(message="Record has no ID", field="id")
        return {
            "_id": parse_record_id(self.id),
            "title": self.title,
            "body": self.body,
        }

    @classmethod
    def from_document(cls, document: Optional[Mapping[str, Any]]) -> "Record":
        """
        Build a Record from a stored document.

        Missing title/body read as empty strings. A missing `_id` or a
        non-string title/body means the document is not a Record.
        """
        if not isinstance(document, Mapping):
            raise DecodeError(
                message="Stored record is not a document",
                context={"type": type(document).__name__},
            )
        if document.get("_id") is None:
            raise DecodeError(message="Stored record has no _id", field="_id")

        record_id = str(document["_id"])
        fields = {}
        for name in ("title", "body"):
            value = document.get(name, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise DecodeError(
                    message=f"Stored record {record_id} has a non-text '{name}'",
                    field=name,
                    context={"record_id": record_id, "type": type(value).__name__},
                )
            fields[name] = value
        return cls(id=record_id, **fields)
