"""
Request/response models shared by every backend.

A backend is driven by exactly one call, ``handle(ContentRequest)``, and
answers with a ``ContentResponse``. Paths always start with ``/`` and are
relative to the backend root; a trailing ``/`` addresses a container.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import AsyncIterator, Dict, List, Mapping, Optional, Union
from urllib.parse import quote, unquote
import posixpath

from multidict import CIMultiDict

Body = AsyncIterator[bytes]

DEFAULT_READ_SIZE = 64 * 1024


class Method(str, Enum):
    """Operations a backend understands."""
    READ_META = "READ_META"
    READ_CONTENT = "READ_CONTENT"
    WRITE = "WRITE"
    DELETE = "DELETE"


async def iter_bytes(data: bytes, size: int = DEFAULT_READ_SIZE) -> Body:
    """Yield ``data`` in pieces of at most ``size`` bytes."""
    view = memoryview(data)
    for start in range(0, len(view), size):
        yield bytes(view[start:start + size])


async def read_body(body: Optional[Body]) -> bytes:
    """Drain a body into a single bytes object."""
    if body is None:
        return b""
    parts = []
    async for piece in body:
        parts.append(piece)
    return b"".join(parts)


async def close_body(body: Optional[Body]) -> None:
    """Release a body that will not be consumed."""
    aclose = getattr(body, "aclose", None)
    if aclose is not None:
        await aclose()


class LinkedBody:
    """
    Body derived from another body.
    
    Closing it also closes ``source``, even when iteration never started.
    """
    
    def __init__(self, body: Body, source: Optional[Body]):
        self._body = body
        self._source = source
    
    def __aiter__(self) -> 'LinkedBody':
        return self
    
    async def __anext__(self) -> bytes:
        return await self._body.__anext__()
    
    async def aclose(self) -> None:
        await close_body(self._body)
        await close_body(self._source)


def normalize_path(path: str) -> str:
    """Return ``path`` with a leading slash and collapsed separators."""
    container = path.endswith("/")
    cleaned = posixpath.normpath("/" + path.lstrip("/"))
    if cleaned == "/":
        return "/"
    # normpath keeps a leading '//' as-is
    cleaned = "/" + cleaned.lstrip("/")
    return cleaned + "/" if container else cleaned


def join_path(base: str, path: str) -> str:
    """Append ``path`` below ``base``, keeping the container marker of ``path``."""
    base = normalize_path(base or "/")
    if not base.endswith("/"):
        base += "/"
    return normalize_path(base + path.lstrip("/"))


def format_link(name: str) -> str:
    """Encode a child name as a link-metadata header value."""
    return f"<{quote(name, safe='/')}>"


def parse_link(value: str) -> str:
    """Decode a link-metadata header value back into a child name."""
    value = value.strip()
    if value.startswith("<") and ">" in value:
        value = value[1:value.index(">")]
    return unquote(value)


def _to_headers(headers: Union[Mapping[str, str], CIMultiDict, None]) -> CIMultiDict:
    if isinstance(headers, CIMultiDict):
        return headers
    return CIMultiDict(headers or {})


def _to_body(body: Union[bytes, Body, None]) -> Optional[Body]:
    if isinstance(body, (bytes, bytearray)):
        return iter_bytes(bytes(body))
    return body


@dataclass
class ContentRequest:
    """
    A single operation against a backend.
    
    Attributes:
        method: Operation to perform
        path: Target path relative to the backend root
        params: Backend options and per-call flags
        headers: Content-Type, Content-Length, Range, ...
        body: Lazy byte stream, only meaningful for WRITE
    """
    method: Method
    path: str = "/"
    params: Dict[str, str] = field(default_factory=dict)
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: Optional[Body] = None
    
    def __post_init__(self):
        self.method = Method(self.method)
        self.path = normalize_path(self.path)
        self.params = dict(self.params)
        self.headers = _to_headers(self.headers)
        self.body = _to_body(self.body)
    
    @property
    def is_container(self) -> bool:
        """True when the path addresses a container."""
        return self.path.endswith("/")
    
    @property
    def name(self) -> str:
        """Last path segment, without the container marker."""
        return posixpath.basename(self.path.rstrip("/"))
    
    @property
    def parent(self) -> str:
        """Container holding the target, with trailing slash."""
        parent = posixpath.dirname(self.path.rstrip("/"))
        return parent.rstrip("/") + "/"
    
    def derive(self, **changes) -> 'ContentRequest':
        """Copy the request with some fields replaced."""
        if "headers" not in changes:
            changes["headers"] = CIMultiDict(self.headers)
        return replace(self, **changes)


@dataclass
class ContentResponse:
    """
    Result of a backend operation.
    
    Attributes:
        status: HTTP-like status code
        headers: Metadata headers; container listings carry one ``Link``
                 entry per child
        body: Lazy, single-pass byte stream
    """
    status: int = 200
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: Optional[Body] = None
    
    def __post_init__(self):
        self.headers = _to_headers(self.headers)
        self.body = _to_body(self.body)
    
    @classmethod
    def not_found(cls, path: str = "") -> 'ContentResponse':
        """Build a 404 response."""
        headers = CIMultiDict()
        if path:
            headers["X-Not-Found"] = path
        return cls(status=404, headers=headers)
    
    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status < 300
    
    @property
    def links(self) -> List[str]:
        """Decoded child names from link-metadata headers."""
        return [parse_link(value) for value in self.headers.getall("Link", [])]
    
    def set_links(self, names: List[str]) -> None:
        """Replace the link-metadata entries with ``names``."""
        self.headers.popall("Link", None)
        for name in names:
            self.headers.add("Link", format_link(name))
    
    @property
    def content_length(self) -> Optional[int]:
        """Declared body length, if any."""
        value = self.headers.get("Content-Length")
        if value is None or value == "":
            return None
        return int(value)
    
    async def read(self) -> bytes:
        """Consume the whole body."""
        data = await read_body(self.body)
        self.body = None
        return data
    
    async def discard(self) -> None:
        """Release the body without reading it."""
        await close_body(self.body)
        self.body = None
