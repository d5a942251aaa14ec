"""Shared base class for backends."""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from ..logging import get_logger
from ..models import ContentRequest, ContentResponse, Method

if TYPE_CHECKING:
    from ..router import Router


class BaseBackend(ABC):
    """
    Abstract base class for backends.
    
    Subclasses implement one coroutine per method; ``handle`` dispatches on
    ``request.method``. Overlays receive the router so they can resolve the
    remote they wrap.
    """
    
    TYPE = ""
    
    def __init__(self, router: Optional['Router'] = None):
        self.router = router
        self._logger = get_logger(f'cloudlayer.backend.{self.TYPE or "base"}')
    
    async def handle(self, request: ContentRequest) -> ContentResponse:
        handlers = {
            Method.READ_META: self.read_meta,
            Method.READ_CONTENT: self.read_content,
            Method.WRITE: self.write,
            Method.DELETE: self.delete,
        }
        return await handlers[request.method](request)
    
    @abstractmethod
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        """Metadata or child listing of the target."""
        pass
    
    @abstractmethod
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        """Metadata plus lazy body of the target."""
        pass
    
    @abstractmethod
    async def write(self, request: ContentRequest) -> ContentResponse:
        """Create a container or create/replace an object."""
        pass
    
    @abstractmethod
    async def delete(self, request: ContentRequest) -> ContentResponse:
        """Remove an object or a container recursively."""
        pass
    
    async def close(self) -> None:
        """Release resources held by the backend."""
        pass
    
    def _require_router(self) -> 'Router':
        if self.router is None:
            raise RuntimeError(f"{type(self).__name__} needs a router to reach its remote")
        return self.router
