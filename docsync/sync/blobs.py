"""Blob payload normalization.

A blob arrives as one of:

* a base64 string,
* raw ``bytes`` (already decoded, passed through),
* a structure with a base64 string ``content`` field, either a mapping
  or an object such as :class:`docsync.models.sync.BlobContent`.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any

from docsync.sync.errors import MalformedRequestError
from docsync.sync.paths import check_segment

_URLSAFE = str.maketrans("-_", "+/")


def _b64decode(name: str, text: str) -> bytes:
    # Whitespace, missing padding and the URL-safe alphabet are tolerated
    normalized = "".join(text.split()).translate(_URLSAFE)
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedRequestError(
            f"Blob '{name}' is not valid base64: {exc}"
        ) from exc


def decode_blob(name: str, payload: Any) -> bytes:
    """Return the binary content of a single blob payload."""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return _b64decode(name, payload)

    if isinstance(payload, Mapping):
        content = payload.get("content")
    else:
        content = getattr(payload, "content", None)
    if isinstance(content, str):
        return _b64decode(name, content)

    raise MalformedRequestError(f"Invalid blob format for key {name}")


def decode_blobs(blobs: Mapping[str, Any]) -> dict[str, bytes]:
    """Decode every blob in *blobs*.

    All payloads are checked before anything is returned, so one bad
    entry rejects the whole set.
    """
    decoded: dict[str, bytes] = {}
    for name, payload in blobs.items():
        check_segment(name, what="blob name")
        decoded[name] = decode_blob(name, payload)
    return decoded
