"""
Encoding helpers for attribute payloads.

Structured values travel as base64(gzip(json)). Each stage is fully
materialised before the next one starts, and only the final bytes are ever
handed to a transport, so a failing stage cannot leave a partial write behind.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import gzip
import json
import zlib
from typing import Any, Iterable

from inventory_agent.core.errors import EncodingError


def _normalize(obj: Any) -> Any:
    if hasattr(obj, "to_json"):
        return _normalize(obj.to_json())
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _normalize(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {str(k): _normalize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_normalize(v) for v in obj]
    return obj


def to_json_text(value: Any) -> str:
    """Serialize a structured value to newline terminated JSON text."""
    try:
        return json.dumps(_normalize(value), sort_keys=False) + "\n"
    except (TypeError, ValueError, RecursionError) as e:
        raise EncodingError(f"serialize: {e}") from e


def encode_compressed(value: Any) -> bytes:
    text = to_json_text(value)
    try:
        compressed = gzip.compress(text.encode("utf-8"))
    except (zlib.error, OSError) as e:
        raise EncodingError(f"compress: {e}") from e
    return base64.standard_b64encode(compressed)


def decode_compressed(data: bytes) -> Any:
    """Inverse of encode_compressed; returns the parsed JSON value."""
    try:
        compressed = base64.b64decode(data.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"base64 decode: {e}") from e
    try:
        text = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as e:
        raise EncodingError(f"decompress: {e}") from e
    try:
        return json.loads(text.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise EncodingError(f"parse: {e}") from e


def render_error_list(errors: Iterable[str]) -> str:
    """
    Render errors as a quoted list, e.g. ["first" "second"].

    An empty list renders as []. Entries use JSON string escaping.
    """
    return "[" + " ".join(json.dumps(e, ensure_ascii=False) for e in errors) + "]"
