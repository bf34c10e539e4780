"""Resource metadata and provider capabilities."""

from __future__ import annotations

import mimetypes
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

__all__ = [
    "COLLECTION_MIME_TYPE",
    "DEFAULT_MIME_TYPE",
    "Capabilities",
    "MetaData",
    "guess_mime_type",
    "make_etag",
]

COLLECTION_MIME_TYPE = "inode/directory"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Built-in table only: a fresh MimeTypes() never reads the host's mime.types,
# so the same extension maps to the same type on every machine.
_MIME_TABLE = mimetypes.MimeTypes()


def guess_mime_type(name: str, is_collection: bool = False) -> str:
    """Return the MIME type for a resource name.

    Collections are always ``inode/directory``; unknown extensions fall back
    to ``application/octet-stream``.
    """
    if is_collection:
        return COLLECTION_MIME_TYPE
    ext = posixpath.splitext(name)[1]
    if not ext:
        return DEFAULT_MIME_TYPE
    strict_map, common_map = _MIME_TABLE.types_map[True], _MIME_TABLE.types_map[False]
    return (
        strict_map.get(ext)
        or strict_map.get(ext.lower())
        or common_map.get(ext)
        or common_map.get(ext.lower())
        or DEFAULT_MIME_TYPE
    )


def make_etag(modified: int) -> str:
    """Entity tag derived from the modification time (HTTP quoted form)."""
    return f'"{modified}"'


@dataclass(frozen=True)
class MetaData:
    """Metadata of a file or collection.

    Attributes:
        id: Canonical URI of the resource
        path: Canonical URI of the resource
        size: Size in bytes (0 for collections)
        is_collection: True if the resource is a directory
        mime_type: MIME type derived from the extension
        checksum: Checksum value, empty unless the provider computes one
        checksum_type: Checksum algorithm, empty unless the provider computes one
        modified: Last modification, integral seconds since the epoch
        etag: Version token; changes iff ``modified`` changes
        children: Immediate children, only when requested for a collection
        extra: Provider-defined payload
    """

    id: str
    path: str
    size: int
    is_collection: bool
    mime_type: str
    modified: int
    etag: str
    checksum: str = ""
    checksum_type: str = ""
    children: Optional[List["MetaData"]] = None
    extra: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "path": self.path,
            "size": self.size,
            "iscol": self.is_collection,
            "mime_type": self.mime_type,
            "checksum": self.checksum,
            "checksum_type": self.checksum_type,
            "modified": self.modified,
            "etag": self.etag,
            "children": [c.to_dict() for c in self.children] if self.children is not None else None,
            "extra": self.extra,
        }


@dataclass
class Capabilities:
    """Optional features a provider advertises.

    ``features`` is an open mapping (e.g. ``{"versions": True}``); the
    storage layer itself never interprets it.
    """

    features: Dict[str, Any] = field(default_factory=dict)

    def supports(self, name: str) -> bool:
        return bool(self.features.get(name, False))

    def to_dict(self) -> Dict[str, Any]:
        return {"features": dict(self.features)}
