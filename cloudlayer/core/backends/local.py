"""
Local filesystem backend.

Paths are resolved below the ``root`` option (current directory by default).
File content is streamed with aiofiles in 64 KiB pieces.
"""
from email.utils import formatdate
from pathlib import Path
import mimetypes
import os
import shutil

import aiofiles
import aiofiles.os
from multidict import CIMultiDict

from ..models import ContentRequest, ContentResponse, Body
from .base import BaseBackend

READ_SIZE = 64 * 1024

_rmtree = aiofiles.os.wrap(shutil.rmtree)


class LocalBackend(BaseBackend):
    """Backend serving a directory of the local disk."""
    
    TYPE = "local"
    
    def _resolve(self, request: ContentRequest) -> Path:
        root = Path(request.params.get("root") or os.getcwd())
        return root / request.path.lstrip("/")
    
    async def _stream(self, path: Path) -> Body:
        async with aiofiles.open(path, 'rb') as f:
            while True:
                piece = await f.read(READ_SIZE)
                if not piece:
                    break
                yield piece
    
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        path = self._resolve(request)
        try:
            stats = await aiofiles.os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return ContentResponse.not_found(request.path)
        
        response = ContentResponse(status=200)
        if path.is_dir():
            names = []
            for entry in sorted(os.scandir(path), key=lambda e: e.name):
                names.append(entry.name + "/" if entry.is_dir() else entry.name)
            response.set_links(names)
        else:
            if request.is_container:
                return ContentResponse.not_found(request.path)
            response.headers["Content-Type"] = (
                mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            )
            response.headers["Content-Length"] = str(stats.st_size)
        response.headers["Last-Modified"] = formatdate(stats.st_mtime, usegmt=True)
        return response
    
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        response = await self.read_meta(request)
        if response.ok and "Content-Length" in response.headers:
            response.body = self._stream(self._resolve(request))
        return response
    
    async def write(self, request: ContentRequest) -> ContentResponse:
        path = self._resolve(request)
        if request.is_container:
            await aiofiles.os.makedirs(path, exist_ok=True)
        else:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            written = 0
            async with aiofiles.open(path, 'wb') as f:
                if request.body is not None:
                    async for piece in request.body:
                        await f.write(piece)
                        written += len(piece)
            self._logger.debug(f"Wrote {path} ({written} bytes)")
        headers = CIMultiDict()
        headers["Content-Location"] = request.path
        return ContentResponse(status=201, headers=headers)
    
    async def delete(self, request: ContentRequest) -> ContentResponse:
        path = self._resolve(request)
        if path.is_dir():
            await _rmtree(path)
        elif path.exists():
            await aiofiles.os.remove(path)
        return ContentResponse(status=204)
