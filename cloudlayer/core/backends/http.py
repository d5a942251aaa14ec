"""
Read-only HTTP backend.

Serves files from a web server. Container paths (ending in ``/``) are
fetched as HTML index pages and their anchors become link-metadata.
"""
from html.parser import HTMLParser
from typing import List, Optional
from urllib.parse import quote, unquote, urlsplit

import aiohttp
from multidict import CIMultiDict

from ..models import ContentRequest, ContentResponse, iter_bytes
from .base import BaseBackend
from .options import require

READ_SIZE = 64 * 1024
FORWARDED_HEADERS = ("Content-Type", "Content-Length", "Last-Modified", "ETag")


class _LinkCollector(HTMLParser):
    """Collects immediate child names from the anchors of an index page."""
    
    def __init__(self):
        super().__init__()
        self.names: List[str] = []
    
    def handle_starttag(self, tag, attrs):
        if tag != "a":
            return
        href = dict(attrs).get("href")
        name = self._child_name(href) if href else None
        if name and name not in self.names:
            self.names.append(name)
    
    @staticmethod
    def _child_name(href: str) -> Optional[str]:
        parts = urlsplit(href)
        if parts.scheme or parts.netloc or not parts.path:
            return None
        path = unquote(parts.path)
        if path.startswith("./"):
            path = path[2:]
        if path.startswith("/") or path.startswith(".."):
            return None
        stem = path[:-1] if path.endswith("/") else path
        if not stem or "/" in stem:
            return None
        return path


def parse_index(html: str) -> List[str]:
    """Extract child names (directories with trailing ``/``) from HTML."""
    collector = _LinkCollector()
    collector.feed(html)
    collector.close()
    return collector.names


class _ResponseBody:
    """
    Body of a GET response.
    
    The connection is released at the end of the stream, on error, or on
    ``aclose`` even if nothing was read.
    """
    
    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response
        self._pieces = response.content.iter_chunked(READ_SIZE)
    
    def __aiter__(self) -> '_ResponseBody':
        return self
    
    async def __anext__(self) -> bytes:
        try:
            return await self._pieces.__anext__()
        except BaseException:
            self._response.release()
            raise
    
    async def aclose(self) -> None:
        self._response.release()


class HttpBackend(BaseBackend):
    """
    Backend reading from a web server.
    
    Reuses one aiohttp session for all requests; call ``close`` when done.
    """
    
    TYPE = "http"
    
    def __init__(self, router=None, session: Optional[aiohttp.ClientSession] = None):
        super().__init__(router)
        self._session = session
        self._owns_session = False
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session
    
    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
    
    def _url(self, request: ContentRequest) -> str:
        base = require(request.params, "url").rstrip("/")
        return base + quote(request.path)
    
    @staticmethod
    def _copy_headers(response: aiohttp.ClientResponse) -> CIMultiDict:
        headers = CIMultiDict()
        for name in FORWARDED_HEADERS:
            if name in response.headers:
                headers[name] = response.headers[name]
        return headers
    
    async def _listing(self, request: ContentRequest, with_body: bool) -> ContentResponse:
        session = await self._get_session()
        url = self._url(request)
        async with session.get(url) as response:
            if response.status == 404:
                return ContentResponse.not_found(request.path)
            if response.status >= 400:
                return ContentResponse(status=response.status)
            html = await response.text()
        result = ContentResponse(status=200)
        result.set_links(parse_index(html))
        if with_body:
            result.headers["Content-Type"] = "text/html; charset=utf-8"
            result.body = iter_bytes(html.encode("utf-8"))
        return result
    
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        if request.is_container:
            return await self._listing(request, with_body=False)
        session = await self._get_session()
        self._logger.debug(f"HEAD {self._url(request)}")
        async with session.head(self._url(request), allow_redirects=True) as response:
            if response.status == 404:
                return ContentResponse.not_found(request.path)
            return ContentResponse(status=response.status, headers=self._copy_headers(response))
    
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        if request.is_container:
            return await self._listing(request, with_body=True)
        session = await self._get_session()
        self._logger.debug(f"GET {self._url(request)}")
        response = await session.get(self._url(request))
        if response.status == 404:
            response.release()
            return ContentResponse.not_found(request.path)
        if response.status >= 400:
            response.release()
            return ContentResponse(status=response.status)
        return ContentResponse(
            status=response.status,
            headers=self._copy_headers(response),
            body=_ResponseBody(response)
        )
    
    async def write(self, request: ContentRequest) -> ContentResponse:
        return ContentResponse(status=405)
    
    async def delete(self, request: ContentRequest) -> ContentResponse:
        return ContentResponse(status=405)
