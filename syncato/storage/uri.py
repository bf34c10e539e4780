"""Resource URI parsing for multi-backend storage.

A resource is addressed as ``<scheme>://<path>``. The scheme selects the
storage provider; the path is opaque to everything but that provider.

    >>> uri = ResourceURI.parse("local://photos/beach.png")
    >>> uri.scheme, uri.path
    ('local', 'photos/beach.png')
    >>> str(uri.child("x.txt"))
    'local://photos/beach.png/x.txt'
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, replace
from urllib.parse import quote, unquote, urlsplit

__all__ = ["ResourceURI"]

# Characters kept literal when formatting a path; '?' and '#' are always quoted
_PATH_SAFE = "/:@!$&'()*+,;=~"


@dataclass(frozen=True)
class ResourceURI:
    """Parsed resource URI.

    Attributes:
        scheme: Lower-cased scheme, the provider registry key
        path: Percent-decoded, provider-interpreted path
        query: Raw query string (without '?')
        fragment: Raw fragment (without '#')
    """

    scheme: str
    path: str
    query: str = ""
    fragment: str = ""

    @classmethod
    def parse(cls, raw: str) -> "ResourceURI":
        """Parse a URI string.

        Everything between ``scheme://`` and the query/fragment is the path,
        so ``local://photos/beach.png`` and ``local:///photos/beach.png``
        address the same resource once a provider normalizes the path.

        Raises:
            ValueError: If the string is malformed, has no scheme or its path
                contains a NUL character
        """
        if not isinstance(raw, str):
            raise ValueError(f"resource URI must be a string, got {type(raw).__name__}")
        parts = urlsplit(raw.strip())
        if not parts.scheme:
            raise ValueError(f"resource URI has no scheme: {raw!r}")
        path = unquote(parts.netloc + parts.path)
        if "\x00" in path:
            raise ValueError(f"resource URI path contains a NUL character: {raw!r}")
        return cls(
            scheme=parts.scheme,
            path=path,
            query=parts.query,
            fragment=parts.fragment,
        )

    @property
    def name(self) -> str:
        """Last segment of the path ('' for the root)."""
        return posixpath.basename(self.path.rstrip("/"))

    def without_query(self) -> "ResourceURI":
        return replace(self, query="", fragment="")

    def child(self, name: str) -> "ResourceURI":
        """URI of an immediate child; query and fragment do not carry over."""
        if not self.path:
            path = name
        else:
            path = posixpath.join(self.path, name)
        return ResourceURI(scheme=self.scheme, path=path)

    def __str__(self) -> str:
        text = f"{self.scheme}://{quote(self.path, safe=_PATH_SAFE)}"
        if self.query:
            text += f"?{self.query}"
        if self.fragment:
            text += f"#{self.fragment}"
        return text
