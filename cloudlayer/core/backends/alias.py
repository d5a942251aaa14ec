"""
Alias backend.

Gives another name to a remote path: a request for ``/desktop`` against an
alias of ``mydrive:private/backup`` becomes ``mydrive:private/backup/desktop``.
"""
from ..models import ContentRequest, ContentResponse
from .base import BaseBackend
from .options import require


class AliasBackend(BaseBackend):
    """Forwards every request to the aliased remote."""
    
    TYPE = "alias"
    
    async def handle(self, request: ContentRequest) -> ContentResponse:
        remote = require(request.params, "remote")
        return await self._require_router().forward(remote, request)
    
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        return await self.handle(request)
    
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        return await self.handle(request)
    
    async def write(self, request: ContentRequest) -> ContentResponse:
        return await self.handle(request)
    
    async def delete(self, request: ContentRequest) -> ContentResponse:
        return await self.handle(request)
