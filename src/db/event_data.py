"""
Decoding of Firestore trigger payloads.

Firestore CloudEvents delivered as `application/json` carry documents in the
REST encoding: every field value is wrapped in a single-key typed object
(`{"stringValue": "abc"}`, `{"integerValue": "12"}`, ...). Domain code only
ever sees the decoded plain values.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


def decode_value(value: Dict[str, Any]) -> Any:
    """
    Decode one typed Firestore value.

    Example:
        >>> decode_value({"integerValue": "3"})
        3
        >>> decode_value({"mapValue": {"fields": {"a": {"booleanValue": True}}}})
        {'a': True}
    """
    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return datetime.fromisoformat(value["timestampValue"].replace("Z", "+00:00"))
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    raise ValueError(f"Unknown Firestore value type: {sorted(value)}")


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Decode a Firestore `fields` map into plain values."""
    return {name: decode_value(value) for name, value in fields.items()}


@dataclass
class EventDocument:
    """Document carried by a Firestore trigger event."""

    name: str
    collection: str
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


def parse_document_name(name: str) -> tuple:
    """
    Split a document resource name into (collection, document id).

    Accepts full names (`projects/p/databases/(default)/documents/shows/abc`)
    and relative paths (`shows/abc`). For subcollection documents the innermost
    collection is returned.
    """
    path = name.split("/documents/", 1)[1] if "/documents/" in name else name
    segments = [segment for segment in path.split("/") if segment]
    if len(segments) < 2 or len(segments) % 2:
        raise ValueError(f"Not a document path: {name}")
    return segments[-2], segments[-1]


def _decode_document(raw: Optional[Dict[str, Any]]) -> Optional[EventDocument]:
    if not raw or not raw.get("name"):
        return None
    collection, doc_id = parse_document_name(raw["name"])
    return EventDocument(
        name=raw["name"],
        collection=collection,
        id=doc_id,
        data=decode_fields(raw.get("fields", {})),
    )


@dataclass
class DocumentChange:
    """Decoded `value` / `oldValue` pair of a Firestore event."""

    value: Optional[EventDocument]
    old_value: Optional[EventDocument]

    @property
    def document(self) -> Optional[EventDocument]:
        """The document the event is about (new state, else previous state)."""
        return self.value or self.old_value


def parse_document_event(payload: Dict[str, Any]) -> DocumentChange:
    """Decode the JSON body of a Firestore document event."""
    if not isinstance(payload, dict):
        raise ValueError("Firestore event data must be a JSON object")
    return DocumentChange(
        value=_decode_document(payload.get("value")),
        old_value=_decode_document(payload.get("oldValue")),
    )
