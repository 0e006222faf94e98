# src/cache/codec.py — v2
"""Entry codec: structured value <-> primary document + binary segments.

Bytes-like nodes shorter than the inline threshold are kept in the
document as ``{"type": "Buffer", "data": [...]}``. Longer ones are
extracted to segments and replaced by an ``ExternalBuffer`` placeholder
carrying their index and size. Segments are numbered in depth-first
document order.

Dicts whose "type" is "Buffer" or "ExternalBuffer" are reserved for these
markers and rejected on encode, so every stored value reads back unchanged.

Document layout::

    {"segments": N, "value": <encoded value>}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from fscache.cache.errors import CorruptEntry
from fscache.cache.models import EncodedEntry, ExternalBufferRef

INLINE_THRESHOLD = 1024

_BUFFER_TYPE = "Buffer"
_EXTERNAL_TYPE = "ExternalBuffer"
_BYTES_LIKE = (bytes, bytearray, memoryview)
_RESERVED_TYPES = frozenset({_BUFFER_TYPE, _EXTERNAL_TYPE})


@dataclass
class ParsedDocument:
    """A parsed primary document whose external buffers are not yet loaded."""

    segment_count: int
    tree: Any
    pending: list[ExternalBufferRef] = field(default_factory=list)


def encode_value(value: Any, inline_threshold: int = INLINE_THRESHOLD) -> EncodedEntry:
    """Encode a structured value into a document and its extracted segments.

    Args:
        value: None, bool, int, float, str, bytes-like, list/tuple, dict with
            str keys, or a pydantic model (encoded via model_dump()).
        inline_threshold: Buffers of at least this many bytes are extracted.

    Returns:
        EncodedEntry with the document text and ordered segments.

    Raises:
        TypeError: If the value contains an unsupported node or a dict whose
            "type" is a reserved marker name.
    """
    segments: list[bytes] = []

    def _encode(node: Any) -> Any:
        if node is None or isinstance(node, (bool, int, float, str)):
            return node
        if isinstance(node, _BYTES_LIKE):
            data = bytes(node)
            if len(data) < inline_threshold:
                return {"type": _BUFFER_TYPE, "data": list(data)}
            segments.append(data)
            ref = ExternalBufferRef(index=len(segments) - 1, size=len(data))
            return ref.model_dump()
        if isinstance(node, BaseModel):
            return _encode(node.model_dump())
        if isinstance(node, dict):
            if isinstance(node.get("type"), str) and node["type"] in _RESERVED_TYPES:
                raise TypeError(
                    f"dict with reserved \"type\" {node['type']!r} cannot be cached"
                )
            encoded = {}
            for key, item in node.items():
                if not isinstance(key, str):
                    raise TypeError(
                        f"cache values only support str keys, got {type(key).__name__}"
                    )
                encoded[key] = _encode(item)
            return encoded
        if isinstance(node, (list, tuple)):
            return [_encode(item) for item in node]
        raise TypeError(f"cannot cache value of type {type(node).__name__}")

    encoded_value = _encode(value)
    document = json.dumps(
        {"segments": len(segments), "value": encoded_value},
        separators=(",", ":"),
    )
    return EncodedEntry(document=document, segments=segments)


def parse_document(path: str, document: str) -> ParsedDocument:
    """Parse a primary document, leaving ExternalBufferRef placeholders.

    Raises:
        CorruptEntry: If the document is not valid JSON, lacks its header,
            or a placeholder points past the recorded segment count.
    """
    pending: list[ExternalBufferRef] = []

    def _object_hook(obj: dict[str, Any]) -> Any:
        kind = obj.get("type")
        if kind == _BUFFER_TYPE and isinstance(obj.get("data"), list):
            try:
                return bytes(obj["data"])
            except (TypeError, ValueError) as e:
                raise CorruptEntry(path, f"invalid inline buffer: {e}") from e
        if kind == _EXTERNAL_TYPE and _is_int(obj.get("index")) and _is_int(obj.get("size")):
            try:
                ref = ExternalBufferRef(**obj)
            except ValidationError as e:
                raise CorruptEntry(path, f"invalid external buffer: {e}") from e
            pending.append(ref)
            return ref
        return obj

    try:
        parsed = json.loads(document, object_hook=_object_hook)
    except json.JSONDecodeError as e:
        raise CorruptEntry(path, f"document is not valid JSON: {e}") from e

    segment_count = _header_segments(parsed)
    if segment_count is None or "value" not in parsed:
        raise CorruptEntry(path, "document header is missing")

    for ref in pending:
        if ref.index >= segment_count:
            raise CorruptEntry(
                path,
                f"external buffer index {ref.index} out of range "
                f"(document has {segment_count} segments)",
            )
    return ParsedDocument(segment_count=segment_count, tree=parsed["value"], pending=pending)


def materialize(path: str, parsed: ParsedDocument, segments: dict[int, bytes]) -> Any:
    """Replace placeholders in a parsed document with loaded segment bytes.

    Raises:
        CorruptEntry: If a segment is missing or its length differs from
            the size recorded in the placeholder.
    """
    for ref in parsed.pending:
        data = segments.get(ref.index)
        if data is None:
            raise CorruptEntry(path, f"segment {ref.index} is missing")
        if len(data) != ref.size:
            raise CorruptEntry(
                path,
                f"segment {ref.index} has {len(data)} bytes, expected {ref.size}",
            )

    def _fill(node: Any) -> Any:
        if isinstance(node, ExternalBufferRef):
            return segments[node.index]
        if isinstance(node, dict):
            return {key: _fill(item) for key, item in node.items()}
        if isinstance(node, list):
            return [_fill(item) for item in node]
        return node

    if not parsed.pending:
        return parsed.tree
    return _fill(parsed.tree)


def read_segment_count(document: str) -> int | None:
    """Return the segment count recorded in a document header, or None."""
    try:
        parsed = json.loads(document)
    except json.JSONDecodeError:
        return None
    return _header_segments(parsed)


def _header_segments(parsed: Any) -> int | None:
    if not isinstance(parsed, dict):
        return None
    count = parsed.get("segments")
    if not _is_int(count) or count < 0:
        return None
    return count


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
