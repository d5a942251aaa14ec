"""
In-memory backend.

Keeps objects in a store owned by the backend instance, so independent
instances (and routers) never see each other's data.
"""
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Dict, List, Optional, Set
import mimetypes
import time

from multidict import CIMultiDict

from ..models import ContentRequest, ContentResponse, iter_bytes, read_body
from .base import BaseBackend


@dataclass
class MemoryObject:
    """A stored object and its modification time."""
    data: bytes
    modified: float = field(default_factory=time.time)


class MemoryStore:
    """Key-value map of objects plus explicitly created containers."""
    
    def __init__(self):
        self.objects: Dict[str, MemoryObject] = {}
        self.containers: Set[str] = {"/"}
    
    def children(self, container: str) -> List[str]:
        """Immediate children of ``container``, containers marked with ``/``."""
        names = []
        for key in sorted(set(self.objects) | self.containers):
            if key == container or not key.startswith(container):
                continue
            rest = key[len(container):]
            child = rest.split("/", 1)[0]
            if "/" in rest:
                child += "/"
            if child not in names:
                names.append(child)
        return names
    
    def container_exists(self, container: str) -> bool:
        if container in self.containers:
            return True
        return any(key.startswith(container) for key in self.objects)
    
    def clear(self) -> None:
        self.objects.clear()
        self.containers = {"/"}


class MemoryBackend(BaseBackend):
    """
    Backend storing everything in RAM.
    
    Example:
        >>> backend = MemoryBackend()
        >>> await backend.handle(ContentRequest(Method.WRITE, "/a.txt", body=b"hi"))
    """
    
    TYPE = "memory"
    
    def __init__(self, router=None, store: Optional[MemoryStore] = None):
        super().__init__(router)
        self.store = store or MemoryStore()
    
    def _object_headers(self, path: str, obj: MemoryObject) -> CIMultiDict:
        headers = CIMultiDict()
        headers["Content-Type"] = mimetypes.guess_type(path)[0] or "application/octet-stream"
        headers["Content-Length"] = str(len(obj.data))
        headers["Last-Modified"] = formatdate(obj.modified, usegmt=True)
        return headers
    
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        path = request.path
        if request.is_container:
            if not self.store.container_exists(path):
                return ContentResponse.not_found(path)
            response = ContentResponse(status=200)
            response.set_links(self.store.children(path))
            return response
        
        obj = self.store.objects.get(path)
        if obj is None:
            return ContentResponse.not_found(path)
        return ContentResponse(status=200, headers=self._object_headers(path, obj))
    
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        response = await self.read_meta(request)
        if response.ok and not request.is_container:
            response.body = iter_bytes(self.store.objects[request.path].data)
        return response
    
    async def write(self, request: ContentRequest) -> ContentResponse:
        path = request.path
        if request.is_container:
            self.store.containers.add(path)
        else:
            data = await read_body(request.body)
            self.store.objects[path] = MemoryObject(data)
            self._logger.debug(f"Stored {path} ({len(data)} bytes)")
        headers = CIMultiDict()
        headers["Content-Location"] = path
        return ContentResponse(status=201, headers=headers)
    
    async def delete(self, request: ContentRequest) -> ContentResponse:
        path = request.path
        if request.is_container:
            for key in [k for k in self.store.objects if k.startswith(path)]:
                del self.store.objects[key]
            self.store.containers = {
                c for c in self.store.containers if not c.startswith(path)
            }
            self.store.containers.add("/")
        else:
            self.store.objects.pop(path, None)
        return ContentResponse(status=204)
