"""
Backend protocol.

Every storage provider and every overlay exposes the same single coroutine,
so overlays can wrap any backend, including other overlays.
"""
from typing import Protocol, runtime_checkable

from ..models import ContentRequest, ContentResponse


@runtime_checkable
class Backend(Protocol):
    """
    Uniform storage backend contract.
    
    READ_META on a container lists its children as link-metadata; on an
    object it reports Content-Type, Content-Length and Last-Modified.
    READ_CONTENT adds a lazy body. WRITE creates containers (idempotent) or
    creates/replaces objects and answers 201. DELETE is idempotent and
    answers 204. Unknown targets answer 404.
    """
    
    async def handle(self, request: ContentRequest) -> ContentResponse:
        """
        Perform one operation.
        
        Args:
            request: The operation to perform
            
        Returns:
            Response with status, headers and optional body
            
        Raises:
            ConfigurationError: If the request carries bad backend options
        """
        ...
