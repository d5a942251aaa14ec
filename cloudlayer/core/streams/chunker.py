"""
Fixed-size re-chunking of byte streams.

``ByteChunker`` is the synchronous primitive (feed bytes in, get full chunks
out); ``rechunk`` wraps it around an async body.
"""
from typing import List, Optional

from ..models import Body


class ByteChunker:
    """
    Slices an incoming byte stream into pieces of exactly ``chunk_size``.
    
    Input boundaries do not need to line up with ``chunk_size``; partial data
    is held until enough bytes arrive. At most ``chunk_size - 1`` bytes are
    retained between calls.
    
    Example:
        >>> chunker = ByteChunker(4)
        >>> chunker.transform(b"abcdef")
        [b'abcd']
        >>> chunker.flush()
        b'ef'
    """
    
    def __init__(self, chunk_size: int):
        """
        Initialize with chunk size.
        
        Args:
            chunk_size: Size of each emitted chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size
        self._partial = bytearray()
    
    @property
    def pending(self) -> int:
        """Number of bytes held back waiting for a full chunk."""
        return len(self._partial)
    
    def transform(self, data: bytes) -> List[bytes]:
        """
        Accept more input and return every chunk that is now complete.
        
        Args:
            data: Next piece of the stream (any length)
            
        Returns:
            Zero or more chunks, each exactly ``chunk_size`` bytes
        """
        chunks = []
        view = memoryview(data)
        offset = 0
        
        if self._partial:
            take = min(len(view), self.chunk_size - len(self._partial))
            self._partial += view[:take]
            offset = take
            if len(self._partial) == self.chunk_size:
                chunks.append(bytes(self._partial))
                self._partial = bytearray()
        
        while len(view) - offset >= self.chunk_size:
            chunks.append(bytes(view[offset:offset + self.chunk_size]))
            offset += self.chunk_size
        
        if offset < len(view):
            self._partial += view[offset:]
        
        return chunks
    
    def flush(self) -> Optional[bytes]:
        """
        Return the trailing short chunk, if any bytes remain.
        
        Returns:
            Remaining bytes (shorter than ``chunk_size``) or None
        """
        if not self._partial:
            return None
        remainder = bytes(self._partial)
        self._partial = bytearray()
        return remainder


async def rechunk(body: Body, chunk_size: int) -> Body:
    """
    Re-emit ``body`` as chunks of exactly ``chunk_size`` bytes.
    
    The final chunk may be shorter. Nothing is yielded for an empty body.
    """
    chunker = ByteChunker(chunk_size)
    async for piece in body:
        for chunk in chunker.transform(piece):
            yield chunk
    tail = chunker.flush()
    if tail is not None:
        yield tail
