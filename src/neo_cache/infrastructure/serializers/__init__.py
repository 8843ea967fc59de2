"""Cache serializer implementations."""

from .entry_codec import encode_value, decode_value, encode_entry, decode_entry

__all__ = [
    "encode_value",
    "decode_value",
    "encode_entry",
    "decode_entry",
]
