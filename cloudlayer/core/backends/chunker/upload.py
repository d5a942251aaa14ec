"""
Streaming chunk upload with one chunk of lookahead.

Whether a file is stored whole or split is only known once a second chunk
shows up, and the last chunk is named differently in the two cases. The
upload therefore always holds the newest chunk back and sends it when the
next one arrives or the stream ends.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from ...logging import get_logger
from .naming import NameFormat

logger = get_logger('cloudlayer.backend.chunker')

PutCallback = Callable[[str, bytes], Awaitable[None]]


class UploadState(Enum):
    NO_CHUNK_YET = "no_chunk_yet"
    HOLDING_ONE_CHUNK = "holding_one_chunk"


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of a chunked upload.
    
    Attributes:
        size: Total bytes uploaded
        nchunks: Number of chunk objects written (0 when stored whole)
        names: Names written, in upload order
    """
    size: int
    nchunks: int
    names: List[str]
    
    @property
    def chunked(self) -> bool:
        return self.nchunks > 0


class ChunkedUpload:
    """
    State machine driving one upload.
    
    Call ``feed`` for every chunk produced by the byte chunker, then
    ``finish`` once. Chunks are sent strictly in index order, each awaited
    before the next.
    """
    
    def __init__(
        self,
        put: PutCallback,
        base_name: str,
        name_format: NameFormat,
        start_from: int = 1,
        txn: Optional[str] = None
    ):
        """
        Initialize the upload.
        
        Args:
            put: Coroutine storing ``data`` under a sibling ``name``
            base_name: Original file name
            name_format: Chunk name template
            start_from: Index of the first chunk
            txn: Optional transaction suffix for chunk names
        """
        self._put = put
        self._base_name = base_name
        self._names = name_format
        self._start_from = start_from
        self._txn = txn
        
        self.state = UploadState.NO_CHUNK_YET
        self._held: Optional[bytes] = None
        self._count = 0
        self._size = 0
        self._written: List[str] = []
        self._finished = False
    
    def _chunk_name(self, position: int) -> str:
        return self._names.format(self._base_name, self._start_from + position, self._txn)
    
    async def _send(self, name: str, data: bytes):
        logger.debug(f"Uploading {name} ({len(data)} bytes)")
        await self._put(name, data)
        self._written.append(name)
    
    async def feed(self, chunk: bytes) -> None:
        """Accept the next chunk; uploads the previously held one."""
        if self._finished:
            raise RuntimeError("Upload already finished")
        if self.state is UploadState.HOLDING_ONE_CHUNK:
            await self._send(self._chunk_name(self._count - 1), self._held)
        self._held = chunk
        self.state = UploadState.HOLDING_ONE_CHUNK
        self._count += 1
        self._size += len(chunk)
    
    async def finish(self) -> UploadResult:
        """
        Upload the held chunk under its final name.
        
        A single chunk (or an empty stream) is stored under the original
        name; otherwise the last chunk gets the chunk name for its index.
        """
        if self._finished:
            raise RuntimeError("Upload already finished")
        self._finished = True
        
        if self.state is UploadState.NO_CHUNK_YET:
            await self._send(self._base_name, b"")
            return UploadResult(size=0, nchunks=0, names=list(self._written))
        
        if self._count == 1:
            await self._send(self._base_name, self._held)
            nchunks = 0
        else:
            await self._send(self._chunk_name(self._count - 1), self._held)
            nchunks = self._count
        self._held = None
        return UploadResult(size=self._size, nchunks=nchunks, names=list(self._written))
