"""JSON entry codec.

ONLY entry serialization - converts cache entries and values to and from
the JSON text stored by the backends.

Remote KV documents hold the whole entry with camelCase field names
(``key, value, tags, expiresAt, createdAt``); the embedded store keeps only
the encoded value in its ``value`` column.

Following maximum separation architecture - one file = one purpose.
"""

import json
from typing import Any, Dict

from ...core.entities.cache_entry import CacheEntry
from ...core.exceptions.serialization_error import SerializationError
from ...core.exceptions.deserialization_error import DeserializationError

_DUMPS_OPTIONS: Dict[str, Any] = {
    "allow_nan": False,
    "ensure_ascii": False,
    "separators": (",", ":"),
}


def encode_value(key: str, value: Any) -> str:
    """Encode a cache value as strict JSON.
    
    Raises:
        SerializationError: value is not JSON-serializable
    """
    try:
        return json.dumps(value, **_DUMPS_OPTIONS)
    except (TypeError, ValueError) as e:
        raise SerializationError.for_value(key, value, e) from e


def decode_value(data: Any) -> Any:
    """Decode a stored JSON value.
    
    Raises:
        DeserializationError: stored text is not valid JSON
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError("Stored cache value is not valid UTF-8", original_error=e) from e
    if not isinstance(data, str):
        raise DeserializationError(f"Stored cache value has unexpected type {type(data).__name__}")
    try:
        return json.loads(data)
    except ValueError as e:
        raise DeserializationError("Stored cache value is not valid JSON", data=data, original_error=e) from e


def encode_entry(entry: CacheEntry) -> str:
    """Encode a full entry document for the remote KV store."""
    document = {
        "key": entry.key,
        "value": entry.value,
        "tags": list(entry.tags),
        "expiresAt": entry.expires_at,
        "createdAt": entry.created_at,
    }
    try:
        return json.dumps(document, **_DUMPS_OPTIONS)
    except (TypeError, ValueError) as e:
        raise SerializationError.for_value(entry.key, entry.value, e) from e


def decode_entry(data: Any, key: str) -> CacheEntry:
    """Decode a remote KV entry document.
    
    ``key`` is the raw cache key the document was read from; it wins over
    the stored ``key`` field.
    
    Raises:
        DeserializationError: document is not valid JSON or has the wrong shape
    """
    document = decode_value(data)
    if not isinstance(document, dict) or "value" not in document:
        raise DeserializationError(f"Stored entry for '{key}' is not an entry document")
    
    tags = document.get("tags") or []
    expires_at = document.get("expiresAt")
    created_at = document.get("createdAt") or 0
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise DeserializationError(f"Stored entry for '{key}' has malformed tags")
    if expires_at is not None and not isinstance(expires_at, (int, float)):
        raise DeserializationError(f"Stored entry for '{key}' has malformed expiresAt")
    if not isinstance(created_at, (int, float)):
        raise DeserializationError(f"Stored entry for '{key}' has malformed createdAt")
    
    return CacheEntry(
        key=key,
        value=document["value"],
        tags=tags,
        expires_at=int(expires_at) if expires_at is not None else None,
        created_at=int(created_at),
    )
